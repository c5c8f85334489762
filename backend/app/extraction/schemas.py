"""Pydantic schemas for text extraction.

- FileType: the four extraction routes (PDF, DOCX, IMG, TXT)
- OcrSettings: tesseract page segmentation mode, engine mode and language

The file type is derived from the MIME type declared by the uploader; the
file content itself is never sniffed.
"""
from enum import Enum

from pydantic import BaseModel, Field


class FileType(str, Enum):
    """Extraction route for an uploaded file."""
    PDF = "PDF"
    DOCX = "DOCX"
    IMG = "IMG"
    TXT = "TXT"


class OcrSettings(BaseModel):
    """Tesseract options for image uploads.

    Defaults are fully automatic page segmentation (3), the default engine
    (3) and English.
    """
    mode: int = Field(default=3, ge=0, le=13)
    engine: int = Field(default=3, ge=0, le=3)
    language: str = Field(default="eng", min_length=1)


DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def get_file_type(mime_type: str) -> FileType:
    """Determine the extraction route from a declared MIME type.

    Examples:
        >>> get_file_type("application/pdf")
        <FileType.PDF: 'PDF'>
        >>> get_file_type("image/png")
        <FileType.IMG: 'IMG'>
        >>> get_file_type("application/octet-stream")
        <FileType.TXT: 'TXT'>
    """
    if mime_type == "application/pdf":
        return FileType.PDF
    if "wordprocessingml.document" in mime_type:
        return FileType.DOCX
    if mime_type.startswith("image/"):
        return FileType.IMG
    return FileType.TXT
