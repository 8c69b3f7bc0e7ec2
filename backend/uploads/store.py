from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel

from .config import DEFAULT_UPLOAD_CONFIG, UploadConfig

logger = logging.getLogger(__name__)


class UploadedFile(BaseModel):
    id: str
    original_name: str
    filename: str
    path: Path
    size: int
    content_type: str
    uploaded_at: datetime
    used: bool = False


class UploadedFileOut(BaseModel):
    id: str
    original_name: str
    size: int
    uploaded_at: datetime
    used: bool


class UploadStore:
    """Metadata for statements saved to the upload directory."""

    def __init__(self, config: UploadConfig = DEFAULT_UPLOAD_CONFIG) -> None:
        self.config = config
        self._files: dict[str, UploadedFile] = {}
        self._lock = threading.Lock()

    def add(self, original_name: str, content: bytes, content_type: str) -> UploadedFile:
        self.config.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{uuid.uuid4()}.pdf"
        path = self.config.upload_dir / filename
        path.write_bytes(content)

        record = UploadedFile(
            id=str(uuid.uuid4()),
            original_name=original_name,
            filename=filename,
            path=path,
            size=len(content),
            content_type=content_type,
            uploaded_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._files[record.id] = record
        logger.info("Stored upload %s (%s, %d bytes)", record.id, original_name, record.size)
        return record

    def get(self, file_id: str) -> UploadedFile | None:
        with self._lock:
            return self._files.get(file_id)

    def list_files(self) -> list[UploadedFile]:
        with self._lock:
            return sorted(self._files.values(), key=lambda f: f.uploaded_at)

    def resolve_path(self, file_id: str) -> Path | None:
        """Path of a known upload whose file still exists on disk."""
        record = self.get(file_id)
        if record is None or not record.path.is_file():
            return None
        return record.path

    def mark_used(self, file_id: str) -> None:
        with self._lock:
            record = self._files.get(file_id)
            if record is not None:
                self._files[file_id] = record.model_copy(update={"used": True})

    def delete(self, file_id: str) -> bool:
        with self._lock:
            record = self._files.pop(file_id, None)
        if record is None:
            return False
        record.path.unlink(missing_ok=True)
        logger.info("Deleted upload %s", file_id)
        return True
