"""Pydantic schemas for uploaded files.

- UploadedFile: complete row stored in the ``uploaded_files`` table
- UploadResponse: API response after a successful upload

Uploads are stored in a shared directory under ``<epoch-ms>-<uuid4><ext>``
names so concurrent writers never collide.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.extraction.schemas import FileType


class UploadedFile(BaseModel):
    """Metadata for an uploaded file.

    ``user_id`` is the owner; guests use the sentinel ``GUEST_USER_ID``.
    ``extracted_text`` stays None until extraction completes.
    """
    id: int = Field(..., description="Unique file ID")
    user_id: int = Field(..., description="Owning user ID (0 for guests)")
    guest_key: Optional[str] = Field(None, description="Client key for guest uploads")
    file_path: str = Field(..., description="Path of the stored bytes")
    file_name: str = Field(..., description="Original filename")
    file_type: FileType = Field(..., description="Extraction route")
    extracted_text: Optional[str] = Field(None, description="Extracted text")
    processed: bool = Field(False, description="Whether extraction completed")
    upload_date: datetime = Field(..., description="Upload timestamp (local time)")

    def to_summary(self) -> dict:
        """Shape used by the file list endpoint."""
        return {
            "id": self.id,
            "fileName": self.file_name,
            "fileType": self.file_type.value,
            "uploadDate": self.upload_date.isoformat(),
        }


class UploadResponse(BaseModel):
    """Response after a successful upload (201)."""
    id: int
    fileName: str
    fileType: FileType
    extractedText: Optional[str]
    uploadDate: datetime
