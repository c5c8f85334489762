"""Tests for the text extraction backends.

tesseract is mocked; PDFs are generated with PyMuPDF.
"""
import asyncio
from unittest.mock import patch

import fitz
import pytest
from PIL import Image

from app.extraction.schemas import FileType, OcrSettings, get_file_type
from app.extraction.service import DOCX_PLACEHOLDER_TEXT, ExtractionError, TextExtractor


@pytest.fixture
def extractor():
    return TextExtractor()


class TestGetFileType:
    @pytest.mark.parametrize("mime,expected", [
        ("application/pdf", FileType.PDF),
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", FileType.DOCX),
        ("image/jpeg", FileType.IMG),
        ("image/png", FileType.IMG),
        ("text/plain", FileType.TXT),
        ("application/octet-stream", FileType.TXT),
    ])
    def test_mapping(self, mime, expected):
        assert get_file_type(mime) == expected


class TestOcrSettings:
    def test_defaults(self):
        settings = OcrSettings()
        assert (settings.mode, settings.engine, settings.language) == (3, 3, "eng")

    def test_rejects_out_of_range_mode(self):
        with pytest.raises(ValueError):
            OcrSettings(mode=14)

    def test_rejects_out_of_range_engine(self):
        with pytest.raises(ValueError):
            OcrSettings(engine=4)


class TestTextExtraction:
    def test_txt_is_read_verbatim(self, extractor, tmp_path):
        path = tmp_path / "note.txt"
        path.write_bytes("Hello world\r\nsecond line  ".encode("utf-8"))

        assert extractor.extract_text(str(path), FileType.TXT) == "Hello world\r\nsecond line  "

    def test_txt_invalid_utf8_is_replaced(self, extractor, tmp_path):
        path = tmp_path / "latin1.txt"
        path.write_bytes("Café au lait".encode("latin-1"))

        assert extractor.extract_text(str(path), FileType.TXT) == "Caf\ufffd au lait"

    def test_missing_file_raises(self, extractor, tmp_path):
        with pytest.raises(ExtractionError):
            extractor.extract_text(str(tmp_path / "missing.txt"), FileType.TXT)

    def test_docx_returns_placeholder(self, extractor, tmp_path):
        path = tmp_path / "doc.docx"
        path.write_bytes(b"PK\x03\x04 not really a docx")

        assert extractor.extract_text(str(path), FileType.DOCX) == DOCX_PLACEHOLDER_TEXT

    def test_pdf_text_layer(self, extractor, tmp_path):
        path = tmp_path / "doc.pdf"
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Hello from a PDF")
        doc.save(str(path))
        doc.close()

        assert "Hello from a PDF" in extractor.extract_text(str(path), FileType.PDF)

    def test_pdf_without_text_layer_is_empty(self, extractor, tmp_path):
        path = tmp_path / "blank.pdf"
        doc = fitz.open()
        doc.new_page()
        doc.save(str(path))
        doc.close()

        assert extractor.extract_text(str(path), FileType.PDF) == ""

    def test_corrupt_pdf_raises(self, extractor, tmp_path):
        path = tmp_path / "corrupt.pdf"
        path.write_bytes(b"not a pdf at all")

        with pytest.raises(ExtractionError):
            extractor.extract_text(str(path), FileType.PDF)

    @patch("app.extraction.service.pytesseract.image_to_string")
    def test_image_uses_default_ocr_settings(self, mock_ocr, extractor, tmp_path):
        mock_ocr.return_value = "recognized text"
        path = tmp_path / "scan.png"
        Image.new("RGB", (20, 20), "white").save(path)

        assert extractor.extract_text(str(path), FileType.IMG) == "recognized text"
        _, kwargs = mock_ocr.call_args
        assert kwargs["lang"] == "eng"
        assert kwargs["config"] == "--psm 3 --oem 3"

    @patch("app.extraction.service.pytesseract.image_to_string")
    def test_image_uses_custom_ocr_settings(self, mock_ocr, extractor, tmp_path):
        mock_ocr.return_value = "texte"
        path = tmp_path / "scan.jpg"
        Image.new("RGB", (20, 20), "white").save(path)

        settings = OcrSettings(mode=6, engine=1, language="fra")
        extractor.extract_text(str(path), FileType.IMG, settings)

        _, kwargs = mock_ocr.call_args
        assert kwargs["lang"] == "fra"
        assert kwargs["config"] == "--psm 6 --oem 1"

    @patch("app.extraction.service.pytesseract.image_to_string")
    def test_ocr_failure_is_wrapped(self, mock_ocr, extractor, tmp_path):
        mock_ocr.side_effect = RuntimeError("tesseract is not installed")
        path = tmp_path / "scan.png"
        Image.new("RGB", (20, 20), "white").save(path)

        with pytest.raises(ExtractionError, match="tesseract is not installed"):
            extractor.extract_text(str(path), FileType.IMG)

    def test_async_wrapper(self, extractor, tmp_path):
        path = tmp_path / "note.txt"
        path.write_text("async hello", encoding="utf-8")

        result = asyncio.run(extractor.extract_text_async(str(path), FileType.TXT))
        assert result == "async hello"
