"""Text preset router — CRUD endpoints for a registered user's saved texts."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, Response

from app.auth.dependencies import require_user
from app.auth.schemas import User

from .schemas import PresetCreate, PresetUpdate, TextPreset
from .service import PresetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/presets", tags=["presets"])


def _service() -> PresetService:
    return PresetService.get_instance()


def _owned_preset(preset_id: int, user: User) -> TextPreset:
    preset = _service().get(preset_id)
    if preset is None:
        raise HTTPException(status_code=404, detail="Preset not found")
    if preset.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized")
    return preset


@router.post("", status_code=201)
async def create_preset(body: PresetCreate, user: User = Depends(require_user)) -> JSONResponse:
    """Create a preset owned by the caller.

    Returns:
        The created preset (201 Created).
    """
    preset = _service().create(user_id=user.id, name=body.name, content=body.content)
    logger.info("[presets] Created %d for user %d: %s", preset.id, user.id, preset.name)
    return JSONResponse(preset.to_response(), status_code=201)


@router.get("")
async def list_presets(user: User = Depends(require_user)) -> list:
    """List the caller's presets, oldest first."""
    return [p.to_response() for p in _service().list_by_user(user.id)]


@router.put("/{preset_id}")
async def update_preset(
    preset_id: int,
    body: PresetUpdate,
    user: User = Depends(require_user),
) -> dict:
    """Update a preset's name and/or content.

    Returns:
        The updated preset, 404 if not found, or 403 if owned by someone else.
    """
    _owned_preset(preset_id, user)
    updated = _service().update(preset_id, name=body.name, content=body.content)
    logger.info("[presets] Updated %d for user %d", preset_id, user.id)
    return updated.to_response()


@router.delete("/{preset_id}", status_code=204)
async def delete_preset(preset_id: int, user: User = Depends(require_user)) -> Response:
    """Delete a preset.

    Returns:
        204 No Content on success, 404 if not found, 403 if owned by someone else.
    """
    _owned_preset(preset_id, user)
    _service().delete(preset_id)
    logger.info("[presets] Deleted %d for user %d", preset_id, user.id)
    return Response(status_code=204)
