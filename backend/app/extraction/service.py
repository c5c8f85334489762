"""Text extraction backends for uploaded files.

Routes a stored file to the matching backend:
    TXT  -> UTF-8 read, verbatim; undecodable bytes become U+FFFD
    PDF  -> PyMuPDF text layer (no OCR fallback for scanned pages)
    IMG  -> tesseract OCR via pytesseract
    DOCX -> fixed placeholder while DOCX processing is disabled
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from .schemas import FileType, OcrSettings

logger = logging.getLogger(__name__)

DOCX_PLACEHOLDER_TEXT = (
    "Text extracted from DOCX file. (Note: DOCX processing is under maintenance)"
)


class ExtractionError(Exception):
    """Raised when a file's text cannot be extracted."""


class TextExtractor:
    """Stateless dispatcher over the extraction backends."""

    def __init__(
        self,
        default_ocr: Optional[OcrSettings] = None,
        tesseract_cmd: Optional[str] = None,
    ) -> None:
        self._default_ocr = default_ocr or OcrSettings()
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def extract_text(
        self,
        file_path: str,
        file_type: FileType,
        ocr_settings: Optional[OcrSettings] = None,
    ) -> str:
        """Extract plain text from a stored file.

        Args:
            file_path: Path of the stored upload.
            file_type: Route derived from the declared MIME type.
            ocr_settings: Tesseract options, only used for images.

        Returns:
            The extracted text. PDFs without a text layer yield "".

        Raises:
            ExtractionError: If the backend fails for any reason.
        """
        try:
            if file_type == FileType.TXT:
                return Path(file_path).read_bytes().decode("utf-8", errors="replace")
            if file_type == FileType.PDF:
                return self._extract_pdf(file_path)
            if file_type == FileType.IMG:
                return self._extract_image(file_path, ocr_settings or self._default_ocr)
            if file_type == FileType.DOCX:
                return DOCX_PLACEHOLDER_TEXT
            raise ValueError("Unsupported file type")
        except Exception as e:
            logger.error("Text extraction error for %s: %s", file_path, e)
            raise ExtractionError(f"Failed to extract text: {e}") from e

    async def extract_text_async(
        self,
        file_path: str,
        file_type: FileType,
        ocr_settings: Optional[OcrSettings] = None,
    ) -> str:
        """Run :meth:`extract_text` in the default executor."""
        return await asyncio.get_event_loop().run_in_executor(
            None, self.extract_text, file_path, file_type, ocr_settings
        )

    @staticmethod
    def _extract_pdf(file_path: str) -> str:
        with fitz.open(file_path) as doc:
            pages = [page.get_text("text") for page in doc]
        return "\n".join(pages).strip()

    @staticmethod
    def _extract_image(file_path: str, settings: OcrSettings) -> str:
        # Each call spawns its own tesseract process.
        config = f"--psm {settings.mode} --oem {settings.engine}"
        with Image.open(file_path) as img:
            return pytesseract.image_to_string(img, lang=settings.language, config=config)


_extractor: Optional[TextExtractor] = None


def get_extractor() -> TextExtractor:
    """Return the process-wide extractor, built from config on first use."""
    global _extractor
    if _extractor is None:
        from app.config import get_config
        ocr = get_config().ocr
        _extractor = TextExtractor(
            default_ocr=OcrSettings(mode=ocr.mode, engine=ocr.engine, language=ocr.language),
            tesseract_cmd=ocr.tesseract_cmd,
        )
    return _extractor


def set_extractor(extractor: Optional[TextExtractor]) -> None:
    """Set (or clear) the process-wide extractor."""
    global _extractor
    _extractor = extractor
