from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class UploadConfig:
    upload_dir: Path = Path(
        os.getenv("UPLOAD_DIR", str(Path(__file__).resolve().parent.parent / "temp"))
    )
    max_bytes: int = int(os.getenv("UPLOAD_MAX_BYTES", str(10 * 1024 * 1024)))
    allowed_content_types: tuple[str, ...] = ("application/pdf",)


DEFAULT_UPLOAD_CONFIG = UploadConfig()
