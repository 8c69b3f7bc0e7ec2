from __future__ import annotations

import logging
import time

from fastapi import BackgroundTasks, Depends, FastAPI, File, HTTPException, Query, UploadFile

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .chat.context import FALLBACK_REPLY, build_chat_prompt
from .chat.models import ChatRequest, ChatResponse
from .dependencies import get_client, get_history_store, get_job_store, get_upload_store
from .llm.client import InferenceClient, InferenceError
from .recommendations.history import HistoryStore
from .recommendations.jobs import JobStatus, JobStore
from .recommendations.models import (
    GenerateRequest,
    GenerateResponse,
    HistoryResponse,
    JobStatusResponse,
    RecommendationResult,
)
from .recommendations.pipeline import run_generation_job
from .uploads.store import UploadedFileOut, UploadStore

logger = logging.getLogger(__name__)

app = FastAPI(title="Credit Card Recommendation API", version="1.0.0")

CARD_NETWORKS = ["VISA", "Mastercard", "American Express", "Discover"]
REWARD_TYPES = ["Cashback", "Points", "Flights", "Hotels", "Dining", "Groceries", "Gas", "Travel"]
FEE_RANGES = ["0-0", "0-100", "100-250", "250-550", "550+"]


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {
        "card_networks": CARD_NETWORKS,
        "reward_types": REWARD_TYPES,
        "fee_ranges": FEE_RANGES,
    }


# ── Upload endpoints ─────────────────────────────────────────────────────


def _upload_out(record) -> UploadedFileOut:
    return UploadedFileOut(**record.model_dump(include=set(UploadedFileOut.model_fields)))


@app.post("/upload/pdf", response_model=UploadedFileOut)
def upload_pdf(
    pdf: UploadFile = File(...),
    uploads: UploadStore = Depends(get_upload_store),
) -> UploadedFileOut:
    if pdf.content_type not in uploads.config.allowed_content_types:
        raise HTTPException(status_code=400, detail="Only PDF files are allowed")

    content = pdf.file.read(uploads.config.max_bytes + 1)
    if len(content) > uploads.config.max_bytes:
        raise HTTPException(status_code=413, detail="File exceeds the upload size limit")
    if not content:
        raise HTTPException(status_code=400, detail="No file uploaded")

    record = uploads.add(pdf.filename or "statement.pdf", content, pdf.content_type)
    return _upload_out(record)


@app.get("/upload/files")
def list_uploads(uploads: UploadStore = Depends(get_upload_store)) -> dict:
    files = [_upload_out(f) for f in uploads.list_files()]
    return {"files": files, "count": len(files)}


@app.get("/upload/files/{file_id}", response_model=UploadedFileOut)
def get_upload(file_id: str, uploads: UploadStore = Depends(get_upload_store)) -> UploadedFileOut:
    record = uploads.get(file_id)
    if record is None:
        raise HTTPException(status_code=404, detail="File not found")
    return _upload_out(record)


@app.delete("/upload/files/{file_id}")
def delete_upload(file_id: str, uploads: UploadStore = Depends(get_upload_store)) -> dict:
    if not uploads.delete(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    return {"status": "deleted"}


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.post("/recommendations/generate", response_model=GenerateResponse, status_code=202)
def generate(
    body: GenerateRequest,
    background_tasks: BackgroundTasks,
    jobs: JobStore = Depends(get_job_store),
    history: HistoryStore = Depends(get_history_store),
    uploads: UploadStore = Depends(get_upload_store),
    client: InferenceClient = Depends(get_client),
) -> GenerateResponse:
    upload = None
    if body.file_id:
        upload = uploads.get(body.file_id)
        if upload is None:
            raise HTTPException(
                status_code=404,
                detail="Uploaded PDF file not found. Please upload a PDF first.",
            )
        if uploads.resolve_path(body.file_id) is None:
            raise HTTPException(status_code=404, detail="PDF file no longer exists.")

    job_id = jobs.create()
    logger.info("Job %s queued (document: %s)", job_id, upload.id if upload else None)

    background_tasks.add_task(
        run_generation_job,
        job_id,
        body.filters,
        upload,
        jobs=jobs,
        history=history,
        client=client,
        uploads=uploads,
    )
    return GenerateResponse(job_id=job_id, status=JobStatus.pending.value)


@app.get("/recommendations/status/{job_id}", response_model=JobStatusResponse)
def job_status(job_id: str, jobs: JobStore = Depends(get_job_store)) -> JobStatusResponse:
    job = jobs.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(
        job_id=job.id,
        status=job.status.value,
        data=job.result,
        error=job.error,
    )


@app.get("/recommendations/history", response_model=HistoryResponse)
def recommendation_history(
    limit: int = Query(default=50, ge=0, le=500),
    history: HistoryStore = Depends(get_history_store),
) -> HistoryResponse:
    results = history.recent(limit)
    return HistoryResponse(history=results, count=len(results), total=len(history))


@app.post("/recommendations/chat", response_model=ChatResponse)
def recommendation_chat(
    body: ChatRequest,
    history: HistoryStore = Depends(get_history_store),
    client: InferenceClient = Depends(get_client),
) -> ChatResponse:
    if body.recommendation_id is not None:
        recommendation = history.get(body.recommendation_id)
        if recommendation is None:
            raise HTTPException(status_code=404, detail="Recommendation not found")
    else:
        recommendation = body.recommendation

    prompt = build_chat_prompt(recommendation, body.history, body.message)
    try:
        answer = client.query(prompt)
    except InferenceError as exc:
        record_event("chat", {"status": "failed", "failure_kind": exc.kind})
        raise HTTPException(status_code=502, detail=exc.message) from exc

    record_event("chat", {"status": "completed", "history_turns": len(body.history)})
    return ChatResponse(
        reply=answer if answer.strip() else FALLBACK_REPLY,
        message_id=f"msg-{int(time.time() * 1000)}",
    )


@app.get("/recommendations/{recommendation_id}", response_model=RecommendationResult)
def get_recommendation(
    recommendation_id: int,
    history: HistoryStore = Depends(get_history_store),
) -> RecommendationResult:
    result = history.get(recommendation_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    return result


# ── Analytics ────────────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
