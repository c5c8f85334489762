"""Text extraction module: PDF text layer, OCR, plain text and DOCX stub."""

from .schemas import FileType, OcrSettings, get_file_type
from .service import (
    DOCX_PLACEHOLDER_TEXT,
    ExtractionError,
    TextExtractor,
    get_extractor,
    set_extractor,
)

__all__ = [
    "DOCX_PLACEHOLDER_TEXT",
    "ExtractionError",
    "FileType",
    "OcrSettings",
    "TextExtractor",
    "get_extractor",
    "get_file_type",
    "set_extractor",
]
