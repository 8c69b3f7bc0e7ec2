from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.app import app
from backend.dependencies import get_upload_store
from backend.uploads.config import UploadConfig
from backend.uploads.store import UploadStore

PDF_BYTES = b"%PDF-1.4\n1 0 obj << >> endobj\ntrailer << >>\n%%EOF\n"


@pytest.fixture
def uploads(tmp_path: Path):
    store = UploadStore(UploadConfig(upload_dir=tmp_path / "uploads", max_bytes=1024))
    app.dependency_overrides[get_upload_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


def _upload(client: TestClient, content: bytes = PDF_BYTES, name: str = "statement.pdf",
            content_type: str = "application/pdf"):
    return client.post("/upload/pdf", files={"pdf": (name, content, content_type)})


def test_upload_stores_file(uploads):
    resp = _upload(TestClient(app))

    assert resp.status_code == 200
    body = resp.json()
    assert body["original_name"] == "statement.pdf"
    assert body["size"] == len(PDF_BYTES)
    assert body["used"] is False
    assert "path" not in body

    record = uploads.get(body["id"])
    assert record.path.read_bytes() == PDF_BYTES
    assert record.path.parent == uploads.config.upload_dir


def test_non_pdf_rejected(uploads):
    resp = _upload(TestClient(app), b"hello", "notes.txt", "text/plain")
    assert resp.status_code == 400
    assert uploads.list_files() == []


def test_empty_file_rejected(uploads):
    resp = _upload(TestClient(app), b"")
    assert resp.status_code == 400


def test_oversized_file_rejected(uploads):
    resp = _upload(TestClient(app), b"%PDF" + b"0" * 2048)
    assert resp.status_code == 413
    assert uploads.list_files() == []


def test_list_get_and_delete(uploads):
    client = TestClient(app)
    first = _upload(client, name="jan.pdf").json()["id"]
    second = _upload(client, name="feb.pdf").json()["id"]

    listing = client.get("/upload/files").json()
    assert listing["count"] == 2
    assert [f["id"] for f in listing["files"]] == [first, second]

    assert client.get(f"/upload/files/{first}").json()["original_name"] == "jan.pdf"

    path = uploads.get(first).path
    assert client.delete(f"/upload/files/{first}").status_code == 200
    assert not path.exists()
    assert client.get(f"/upload/files/{first}").status_code == 404
    assert client.delete(f"/upload/files/{first}").status_code == 404
    assert client.get("/upload/files").json()["count"] == 1


def test_resolve_path_requires_file_on_disk(uploads):
    record = uploads.add("statement.pdf", PDF_BYTES, "application/pdf")
    assert uploads.resolve_path(record.id) == record.path

    record.path.unlink()
    assert uploads.resolve_path(record.id) is None
    assert uploads.resolve_path("unknown") is None


def test_stored_name_always_pdf(uploads):
    resp = _upload(TestClient(app), name="statement.exe")

    assert resp.status_code == 200
    record = uploads.get(resp.json()["id"])
    assert record.path.suffix == ".pdf"
    assert record.original_name == "statement.exe"


def test_mark_used(uploads):
    record = uploads.add("statement.pdf", PDF_BYTES, "application/pdf")
    uploads.mark_used(record.id)
    assert uploads.get(record.id).used is True
