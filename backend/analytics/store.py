from __future__ import annotations

import threading
import time
from typing import Any

_events: list[dict[str, Any]] = []
_lock = threading.Lock()


def record_event(event_type: str, data: dict[str, Any]) -> None:
    # Called from background job threads as well as request handlers
    with _lock:
        _events.append({
            "type": event_type,
            "timestamp": time.time(),
            **data,
        })


def get_events() -> list[dict[str, Any]]:
    with _lock:
        return list(_events)


def clear_events() -> None:
    with _lock:
        _events.clear()
