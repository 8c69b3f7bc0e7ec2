from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from pypdf import PdfWriter

from backend.documents.config import ExtractionConfig
from backend.documents.extractor import extract_text

STRICT = ExtractionConfig(ocr_fallback=False)
WITH_OCR = ExtractionConfig(ocr_fallback=True)


def _blank_pdf(path: Path, pages: int = 1) -> Path:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    with open(path, "wb") as fh:
        writer.write(fh)
    return path


def _mock_reader(page_texts: list[str], encrypted: bool = False, decrypts: bool = True) -> MagicMock:
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    reader = MagicMock()
    reader.pages = pages
    reader.is_encrypted = encrypted
    reader.decrypt.return_value = 1 if decrypts else 0
    return reader


@pytest.fixture
def statement(tmp_path: Path) -> Path:
    return _blank_pdf(tmp_path / "statement.pdf")


# ── Text layer ───────────────────────────────────────────────────────────


@patch("backend.documents.extractor.PdfReader")
def test_text_layer_used_when_present(mock_reader_cls, statement):
    mock_reader_cls.return_value = _mock_reader(["03/02 WHOLE FOODS $84.20", "03/04 DELTA $412.00"])

    doc = extract_text(statement, WITH_OCR)

    assert not doc.failed
    assert doc.method == "text"
    assert "WHOLE FOODS" in doc.text
    assert "DELTA" in doc.text
    assert doc.page_count == 2


@patch("backend.documents.extractor.PdfReader")
def test_pages_beyond_cap_are_truncated(mock_reader_cls, statement):
    mock_reader_cls.return_value = _mock_reader([f"page {i}" for i in range(1, 6)])

    doc = extract_text(statement, ExtractionConfig(max_pages=2))

    assert not doc.failed
    assert doc.page_count == 5
    assert doc.pages_read == 2
    assert "page 2" in doc.text
    assert "page 3" not in doc.text


@patch("backend.documents.extractor.PdfReader")
def test_long_text_truncated_to_max_chars(mock_reader_cls, statement):
    mock_reader_cls.return_value = _mock_reader(["x" * 500])

    doc = extract_text(statement, ExtractionConfig(max_chars=100))

    assert len(doc.text) == 100


# ── Fallback policy ──────────────────────────────────────────────────────


@patch("backend.documents.extractor.pytesseract")
@patch("backend.documents.extractor.convert_from_path")
def test_scanned_pdf_falls_back_to_ocr(mock_convert, mock_tesseract, statement):
    mock_convert.return_value = [MagicMock()]
    mock_tesseract.image_to_string.return_value = "SCANNED: UBER $23.10"

    doc = extract_text(statement, WITH_OCR)

    assert not doc.failed
    assert doc.method == "ocr"
    assert doc.text == "SCANNED: UBER $23.10"
    _, kwargs = mock_convert.call_args
    assert kwargs["first_page"] == 1
    assert kwargs["last_page"] == 1


@patch("backend.documents.extractor.convert_from_path")
def test_strict_mode_does_not_ocr(mock_convert, statement):
    doc = extract_text(statement, STRICT)

    assert doc.failed
    assert doc.text is None
    assert "no extractable text" in doc.reason
    mock_convert.assert_not_called()


@patch("backend.documents.extractor.convert_from_path")
def test_ocr_errors_become_failure(mock_convert, statement):
    mock_convert.side_effect = RuntimeError("poppler not installed")

    doc = extract_text(statement, WITH_OCR)

    assert doc.failed
    assert "poppler not installed" in doc.reason


@patch("backend.documents.extractor.pytesseract")
@patch("backend.documents.extractor.convert_from_path")
def test_empty_ocr_is_failure(mock_convert, mock_tesseract, statement):
    mock_convert.return_value = [MagicMock()]
    mock_tesseract.image_to_string.return_value = "   "

    doc = extract_text(statement, WITH_OCR)

    assert doc.failed


# ── Broken input ─────────────────────────────────────────────────────────


def test_corrupted_file_is_failure_not_exception(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf at all")

    doc = extract_text(path, STRICT)

    assert doc.failed
    assert "could not be processed" in doc.reason


def test_missing_file_is_failure(tmp_path):
    doc = extract_text(tmp_path / "nope.pdf", STRICT)
    assert doc.failed


@patch("backend.documents.extractor.PdfReader")
def test_password_protected_is_failure(mock_reader_cls, statement):
    mock_reader_cls.return_value = _mock_reader(["secret"], encrypted=True, decrypts=False)

    doc = extract_text(statement, STRICT)

    assert doc.failed
    assert "password-protected" in doc.reason


@patch("backend.documents.extractor.PdfReader")
def test_empty_password_encryption_is_readable(mock_reader_cls, statement):
    mock_reader_cls.return_value = _mock_reader(["opened"], encrypted=True, decrypts=True)

    doc = extract_text(statement, STRICT)

    assert not doc.failed
    assert doc.text == "opened"


@patch("backend.documents.extractor.pytesseract")
@patch("backend.documents.extractor.convert_from_path")
def test_input_file_left_untouched(mock_convert, mock_tesseract, statement):
    mock_convert.return_value = [MagicMock()]
    mock_tesseract.image_to_string.return_value = "text"
    before = statement.read_bytes()

    extract_text(statement, WITH_OCR)

    assert statement.exists()
    assert statement.read_bytes() == before
