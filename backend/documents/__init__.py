"""
Statement text extraction.

Responsibilities:
- Pull text out of text-native PDFs with pypdf, capped at a page limit.
- Fall back to OCR of the first page for scanned statements (optional).
- Report unreadable, encrypted or corrupt files as a failed extraction
  instead of raising.
"""
