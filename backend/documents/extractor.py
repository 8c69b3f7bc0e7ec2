from __future__ import annotations

import logging
from pathlib import Path

import pytesseract
from pdf2image import convert_from_path
from pypdf import PdfReader

from .config import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig
from .models import ExtractedDocument

logger = logging.getLogger(__name__)


def _read_text_layer(path: Path, max_pages: int) -> tuple[str, int, int]:
    """Return ``(text, total_pages, pages_read)`` from the PDF's text layer."""
    reader = PdfReader(str(path))
    if reader.is_encrypted and not reader.decrypt(""):
        raise ValueError("PDF is password-protected")

    total = len(reader.pages)
    pages: list[str] = []
    for page in reader.pages[:max_pages]:
        page_text = (page.extract_text() or "").strip()
        if page_text:
            pages.append(page_text)

    if total > max_pages:
        logger.info("PDF has %d pages; only the first %d were read", total, max_pages)
    return "\n\n".join(pages), total, min(total, max_pages)


def _ocr_first_pages(path: Path, config: ExtractionConfig) -> str:
    images = convert_from_path(
        str(path),
        dpi=config.ocr_dpi,
        first_page=1,
        last_page=config.ocr_pages,
    )
    texts = [(pytesseract.image_to_string(image) or "").strip() for image in images]
    return "\n\n".join(t for t in texts if t)


def _truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    logger.info("Extracted text truncated from %d to %d chars", len(text), max_chars)
    return text[:max_chars]


def extract_text(
    path: str | Path,
    config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
) -> ExtractedDocument:
    """
    Best-effort text extraction from a statement PDF.

    Tries the text layer first. When that is empty or unreadable, OCRs the
    first page if ``config.ocr_fallback`` is set, otherwise reports failure.
    Never raises and never touches the file beyond reading it.
    """
    path = Path(path)
    text = ""
    total_pages = 0
    pages_read = 0
    layer_error: str | None = None

    try:
        text, total_pages, pages_read = _read_text_layer(path, config.max_pages)
    except Exception as exc:  # pypdf raises a wide range of types on corrupt input
        logger.warning("Text-layer extraction failed for %s", path.name, exc_info=True)
        layer_error = str(exc) or exc.__class__.__name__

    if text.strip():
        logger.info("Extracted %d chars from %s via text layer", len(text), path.name)
        return ExtractedDocument(
            text=_truncate(text, config.max_chars),
            method="text",
            page_count=total_pages,
            pages_read=pages_read,
        )

    if layer_error:
        reason = (
            "PDF file could not be processed. The file may be corrupted, "
            f"password-protected, or in an unsupported format ({layer_error})."
        )
    else:
        reason = "PDF contains no extractable text; it may be a scanned image."

    if not config.ocr_fallback:
        return ExtractedDocument.failure(reason, page_count=total_pages)

    try:
        ocr_text = _ocr_first_pages(path, config)
    except Exception as exc:  # poppler / tesseract missing, or unrenderable page
        logger.warning("OCR fallback failed for %s", path.name, exc_info=True)
        return ExtractedDocument.failure(
            f"{reason} OCR fallback failed: {str(exc) or exc.__class__.__name__}",
            page_count=total_pages,
        )

    if not ocr_text.strip():
        return ExtractedDocument.failure(f"{reason} OCR found no text either.", page_count=total_pages)

    logger.info("Extracted %d chars from %s via OCR", len(ocr_text), path.name)
    return ExtractedDocument(
        text=_truncate(ocr_text, config.max_chars),
        method="ocr",
        page_count=total_pages,
        pages_read=min(config.ocr_pages, total_pages) if total_pages else config.ocr_pages,
    )
