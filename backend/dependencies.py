"""
Shared service instances for the API.

Each getter is a FastAPI dependency; tests swap them out through
``app.dependency_overrides``.
"""
from __future__ import annotations

from functools import lru_cache

from .llm.client import InferenceClient, get_inference_client
from .recommendations.history import HistoryStore
from .recommendations.jobs import JobStore
from .uploads.store import UploadStore

_job_store = JobStore()
_history_store = HistoryStore()
_upload_store = UploadStore()


def get_job_store() -> JobStore:
    return _job_store


def get_history_store() -> HistoryStore:
    return _history_store


def get_upload_store() -> UploadStore:
    return _upload_store


@lru_cache(maxsize=1)
def get_client() -> InferenceClient:
    return get_inference_client()
