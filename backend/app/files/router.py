"""FastAPI router for document upload endpoints.

Endpoints:
    POST   /api/upload      - Upload a document or image and extract its text
    GET    /api/files       - List the caller's uploads (authenticated)
    DELETE /api/files/{id}  - Delete one of the caller's uploads (authenticated)
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from app.auth.dependencies import get_optional_user, require_user
from app.auth.schemas import User
from app.config import get_config
from app.conversions.service import ConversionService
from app.database import GUEST_USER_ID
from app.extraction.schemas import FileType, OcrSettings, get_file_type
from app.extraction.service import ExtractionError, get_extractor
from app.quota.service import QuotaGate

from .schemas import UploadResponse
from .service import FileStorageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["files"])

UNSUPPORTED_TYPE_MESSAGE = "Unsupported file type. Allowed: PDF, DOCX, JPG, PNG, TXT"


def _parse_ocr_settings(raw: Optional[str]) -> Optional[OcrSettings]:
    """Parse the ``ocrSettings`` form field; invalid input falls back to defaults."""
    if not raw:
        return None
    try:
        return OcrSettings.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        logger.warning("[upload] Invalid OCR settings, using defaults: %s", e)
        return None


@router.post("/upload", status_code=201)
async def upload_file(
    request: Request,
    file: Optional[UploadFile] = File(None),
    ocrSettings: Optional[str] = Form(None),
    user: Optional[User] = Depends(get_optional_user),
) -> JSONResponse:
    """Upload a file and return its extracted text.

    Supported file types: PDF, DOCX, JPEG, PNG and plain text, up to the
    configured size limit (10MB by default). Size and type are checked
    before anything is written to disk.

    Raises:
        HTTPException 400: No file, or an unsupported MIME type.
        HTTPException 413: File exceeds the size limit.
        HTTPException 500: Extraction failed.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    config = get_config()
    max_size = config.uploads.max_file_size_bytes

    content = await file.read(max_size + 1)
    if len(content) > max_size:
        raise HTTPException(
            status_code=413,
            detail=f"File size exceeds limit of {max_size // (1024 * 1024)}MB",
        )

    mime_type = file.content_type or "application/octet-stream"
    if mime_type not in config.uploads.allowed_mime_types:
        raise HTTPException(status_code=400, detail=UNSUPPORTED_TYPE_MESSAGE)

    file_type = get_file_type(mime_type)
    ocr_settings = _parse_ocr_settings(ocrSettings) if file_type == FileType.IMG else None

    service = FileStorageService.get_instance()
    file_name = file.filename or "unnamed"
    stored_path = service.save_bytes(file_name, content)

    try:
        extracted_text = await get_extractor().extract_text_async(
            str(stored_path), file_type, ocr_settings
        )
    except ExtractionError as e:
        service.delete_file_bytes(str(stored_path))
        raise HTTPException(status_code=500, detail=str(e))

    guest_key = None
    if user is None:
        guest_key = QuotaGate.from_config().guest_key_for(
            request.client.host if request.client else None
        )

    uploaded = service.create_uploaded_file(
        user_id=user.id if user else GUEST_USER_ID,
        file_path=str(stored_path),
        file_name=file_name,
        file_type=file_type,
        extracted_text=extracted_text,
        guest_key=guest_key,
        processed=True,
    )
    logger.info(
        "[upload] Stored %s as file %d (%s, %d chars extracted, owner=%d)",
        file_name, uploaded.id, file_type.value, len(extracted_text), uploaded.user_id,
    )

    body = UploadResponse(
        id=uploaded.id,
        fileName=uploaded.file_name,
        fileType=uploaded.file_type,
        extractedText=uploaded.extracted_text,
        uploadDate=uploaded.upload_date,
    )
    return JSONResponse(body.model_dump(mode="json"), status_code=201)


@router.get("/files")
async def list_files(user: User = Depends(require_user)) -> list:
    """List the caller's uploads, newest first."""
    files = FileStorageService.get_instance().list_by_user(user.id)
    return [f.to_summary() for f in files]


@router.delete("/files/{file_id}", status_code=204)
async def delete_file(file_id: int, user: User = Depends(require_user)) -> Response:
    """Delete an upload and its stored bytes.

    Conversions made from the file are kept but lose their back-reference.

    Returns:
        204 No Content on success, 404 if not found, 403 if owned by someone else.
    """
    service = FileStorageService.get_instance()
    uploaded = service.get_uploaded_file(file_id)
    if uploaded is None:
        raise HTTPException(status_code=404, detail="File not found")
    if uploaded.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized")

    service.delete_file_bytes(uploaded.file_path)
    ConversionService.get_instance().detach_source_file(file_id)
    service.delete_uploaded_file(file_id)
    logger.info("[files] Deleted file %d for user %d", file_id, user.id)
    return Response(status_code=204)
