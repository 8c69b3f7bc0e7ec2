from __future__ import annotations

from pydantic import BaseModel, model_validator


class ExtractedDocument(BaseModel):
    """Outcome of reading one uploaded statement: text or a failure, never both."""

    text: str | None = None
    failed: bool = False
    reason: str | None = None
    method: str | None = None  # "text" or "ocr"
    page_count: int = 0
    pages_read: int = 0

    @model_validator(mode="after")
    def _text_xor_failure(self) -> "ExtractedDocument":
        if self.failed:
            if self.text is not None:
                raise ValueError("a failed extraction cannot carry text")
            if not self.reason:
                raise ValueError("a failed extraction needs a reason")
        elif not (self.text and self.text.strip()):
            raise ValueError("a successful extraction needs non-empty text")
        return self

    @classmethod
    def failure(cls, reason: str, page_count: int = 0) -> "ExtractedDocument":
        return cls(failed=True, reason=reason, page_count=page_count)
