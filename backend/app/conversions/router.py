"""Conversion router — text-to-speech, history and audio download.

Endpoints:
    POST   /api/convert              - Convert text to an MP3 narration
    GET    /api/conversions          - Caller's conversion history (authenticated)
    GET    /api/conversions/count    - Today's guest usage and the limit
    DELETE /api/conversions/{id}     - Delete a conversion and its audio (authenticated)
    GET    /api/audio/{filename}     - Download a generated audio file
"""
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse, Response
from pydantic import ValidationError

from app.auth.dependencies import get_optional_user, require_user
from app.auth.schemas import User
from app.config import get_config
from app.database import GUEST_USER_ID
from app.files.service import FileStorageService
from app.notifications.service import EmailService
from app.quota.service import QuotaExceededError, QuotaGate
from app.synthesis.schemas import VoiceSettings
from app.synthesis.service import SynthesisError, get_synthesizer

from .schemas import ConvertRequest
from .service import ConversionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["conversions"])


def _client_host(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _send_completion_email(user: User, conversion_id: int) -> None:
    sent = EmailService.get_instance().send(
        user, "conversion_complete", conversion_id=conversion_id
    )
    logger.info(
        "[convert] Conversion completion email to %s: %s",
        user.email, "sent" if sent else "failed",
    )


@router.post("/convert", status_code=201)
async def convert(
    request: Request,
    body: ConvertRequest,
    background_tasks: BackgroundTasks,
    user: Optional[User] = Depends(get_optional_user),
) -> JSONResponse:
    """Convert text to speech and record the conversion.

    Guests are checked against the daily quota before anything else.

    Raises:
        HTTPException 400: Missing text, invalid voice settings, or a fileId the
            caller does not own.
        HTTPException 429: Guest daily limit reached.
        HTTPException 500: Synthesis failed.
    """
    gate = QuotaGate.from_config()
    guest_key = None if user else gate.guest_key_for(_client_host(request))
    try:
        gate.check(user, guest_key)
    except QuotaExceededError as e:
        raise HTTPException(status_code=429, detail=str(e))

    if not body.text:
        raise HTTPException(status_code=400, detail="Text content is required")

    try:
        voice_settings = VoiceSettings.model_validate(body.voice_settings or {})
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid voice settings")

    owner_id = user.id if user else GUEST_USER_ID
    if body.file_id is not None:
        source = FileStorageService.get_instance().get_uploaded_file(body.file_id)
        if source is None or source.user_id != owner_id:
            raise HTTPException(status_code=400, detail="Source file not found")

    language = body.language or get_config().tts.default_language
    service = ConversionService.get_instance()

    def _record(audio_url: Optional[str]):
        return service.create_conversion(
            user_id=owner_id,
            text_content=body.text,
            audio_file_path=audio_url,
            voice_settings=voice_settings,
            language=language,
            source_file_id=body.file_id,
            guest_key=guest_key,
        )

    # A guest's row is reserved before synthesis so concurrent requests
    # count it. Nothing above awaits, so check and reserve are atomic.
    reserved = _record(None) if user is None else None
    try:
        audio_url = await get_synthesizer().synthesize_async(
            body.text, language, voice_settings, is_guest=user is None
        )
    except SynthesisError as e:
        if reserved is not None:
            service.delete_conversion(reserved.id)
        raise HTTPException(status_code=500, detail=str(e))

    if reserved is not None:
        conversion = service.set_audio_path(reserved.id, audio_url)
    else:
        conversion = _record(audio_url)
    logger.info(
        "[convert] Created conversion %d (owner=%d, lang=%s, %d chars)",
        conversion.id, conversion.user_id, language, len(body.text),
    )

    if user is not None and user.email:
        background_tasks.add_task(_send_completion_email, user, conversion.id)

    return JSONResponse(conversion.to_created(), status_code=201)


@router.get("/conversions")
async def list_conversions(user: User = Depends(require_user)) -> list:
    """Caller's conversion history with text truncated to 100 characters."""
    conversions = ConversionService.get_instance().list_by_user(user.id)
    return [c.to_history_item() for c in conversions]


@router.get("/conversions/count")
async def conversion_count(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
) -> dict:
    """Today's usage: unlimited for registered users, the daily limit for guests."""
    if user is not None:
        return {"count": 0, "limit": "unlimited"}

    gate = QuotaGate.from_config()
    count = gate.usage(None, gate.guest_key_for(_client_host(request)))
    return {"count": count, "limit": gate.limit}


@router.delete("/conversions/{conversion_id}", status_code=204)
async def delete_conversion(
    conversion_id: int,
    user: User = Depends(require_user),
) -> Response:
    """Delete a conversion and its audio file.

    Returns:
        204 No Content, 404 if not found, 403 if owned by someone else.
    """
    service = ConversionService.get_instance()
    conversion = service.get_conversion(conversion_id)
    if conversion is None:
        raise HTTPException(status_code=404, detail="Conversion not found")
    if conversion.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized")

    audio_path = get_synthesizer().resolve_audio_path(conversion.audio_file_path)
    if audio_path is not None:
        try:
            audio_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("[conversions] Failed to delete audio file %s: %s", audio_path, e)

    service.delete_conversion(conversion_id)
    logger.info("[conversions] Deleted conversion %d for user %d", conversion_id, user.id)
    return Response(status_code=204)


@router.get("/audio/{filename}")
async def download_audio(filename: str) -> FileResponse:
    """Download a generated audio file by name.

    Raises:
        HTTPException 404: Unknown file, or a name that is not a bare filename.
    """
    if Path(filename).name != filename or filename.startswith("."):
        raise HTTPException(status_code=404, detail="Audio file not found")

    audio_path = get_synthesizer().audio_dir / filename
    if not audio_path.is_file():
        raise HTTPException(status_code=404, detail="Audio file not found")

    return FileResponse(path=audio_path, filename=filename, media_type="audio/mpeg")
