from __future__ import annotations

import os
from dataclasses import dataclass


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Settings for statement text extraction.

    ``ocr_fallback`` selects the policy when pypdf finds no text: OCR the
    first ``ocr_pages`` pages, or (strict mode) report failure straight away.
    """

    max_pages: int = int(os.getenv("PDF_MAX_PAGES", "50"))
    max_chars: int = 20_000
    ocr_fallback: bool = _env_flag("PDF_OCR_FALLBACK", True)
    ocr_pages: int = 1
    ocr_dpi: int = int(os.getenv("PDF_OCR_DPI", "200"))


DEFAULT_EXTRACTION_CONFIG = ExtractionConfig()
