from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from backend.analytics.aggregator import compute_analytics
from backend.analytics.store import clear_events, get_events, record_event
from backend.app import app
from backend.dependencies import get_client, get_history_store, get_job_store
from backend.llm.client import TIMEOUT, InferenceError
from backend.recommendations.history import HistoryStore
from backend.recommendations.jobs import JobStore

ANSWER = json.dumps({"summary": "ok", "cards": [{"name": "Citi Double Cash"}]})


class FakeClient:
    def __init__(self, answers):
        self.answers = list(answers)

    def query(self, prompt: str) -> str:
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture(autouse=True)
def fresh_state():
    clear_events()
    jobs = JobStore()
    history = HistoryStore()
    app.dependency_overrides[get_job_store] = lambda: jobs
    app.dependency_overrides[get_history_store] = lambda: history
    yield
    app.dependency_overrides.clear()
    clear_events()


def test_analytics_empty():
    body = TestClient(app).get("/analytics").json()
    assert body["total_jobs"] == 0
    assert body["success_rate"] == 0.0
    assert body["avg_duration_ms"] == 0.0
    assert body["top_networks"] == []


def test_analytics_counts_jobs():
    fake = FakeClient([ANSWER, "not json at all", InferenceError(TIMEOUT, "Inference service timed out"), ANSWER])
    app.dependency_overrides[get_client] = lambda: fake
    client = TestClient(app)

    client.post("/recommendations/generate", json={"filters": {"networks": ["VISA"]}})
    client.post("/recommendations/generate", json={"filters": {"networks": ["VISA"], "rewardTypes": ["Travel"]}})
    client.post("/recommendations/generate", json={"filters": {"networks": ["Discover"]}})
    client.post("/recommendations/generate", json={"filters": {}})

    body = client.get("/analytics").json()
    assert body["total_jobs"] == 4
    assert body["completed"] == 2
    assert body["failed"] == 2
    assert body["success_rate"] == 50.0
    assert body["failure_reasons"] == {"parse": 1, TIMEOUT: 1}
    assert body["top_networks"][0] == {"name": "VISA", "count": 2}
    assert body["top_reward_types"] == [{"name": "Travel", "count": 1}]
    assert body["documents"]["total"] == 0


def test_events_are_a_snapshot():
    record_event("generation", {"status": "completed"})
    record_event("chat", {"status": "completed"})

    events = get_events()
    events.clear()

    assert [e["type"] for e in get_events()] == ["generation", "chat"]
    assert compute_analytics(get_events())["chat_messages"] == 1


def test_document_stats():
    events = [
        {"type": "generation", "status": "completed", "has_document": True,
         "extraction_success": True, "extraction_method": "ocr", "duration_ms": 10.0},
        {"type": "generation", "status": "completed", "has_document": True,
         "extraction_success": False, "extraction_method": None, "duration_ms": 30.0,
         "response_format": "legacy"},
        {"type": "generation", "status": "completed", "has_document": False, "duration_ms": 20.0},
    ]

    stats = compute_analytics(events)

    assert stats["documents"] == {"total": 2, "extraction_failures": 1, "ocr_used": 1}
    assert stats["legacy_format_replies"] == 1
    assert stats["avg_duration_ms"] == 20.0
