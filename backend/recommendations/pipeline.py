"""
Background generation pipeline.

One call of ``run_generation_job`` drives one job from ``pending`` to a
terminal state, in this order:

    extract statement text -> build prompt -> query model -> parse reply
    -> complete/fail the job -> append to history

Statement extraction problems are absorbed (the prompt switches to the
preference-only framing). Inference and parse problems fail the job with a
readable reason. Anything unexpected is caught at the job boundary so a job
is never left pending.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from ..analytics.store import record_event
from ..documents.config import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig
from ..documents.extractor import extract_text
from ..documents.models import ExtractedDocument
from ..llm.client import InferenceClient, InferenceError
from ..uploads.store import UploadedFile, UploadStore
from .history import HistoryStore
from .jobs import JobStore
from .models import DocumentSummary, FilterSet, RecommendationResult
from .parser import ParseFailure, parse_answer
from .prompt import build_recommendation_prompt

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 500


def _document_summary(upload: UploadedFile, document: ExtractedDocument) -> DocumentSummary:
    preview = None
    if document.text:
        preview = document.text[:_PREVIEW_CHARS]
        if len(document.text) > _PREVIEW_CHARS:
            preview += "..."
    error = None
    if document.failed:
        error = f"{document.reason} Recommendations are based only on your filter preferences."
    return DocumentSummary(
        file_id=upload.id,
        original_name=upload.original_name,
        size=upload.size,
        extraction_success=not document.failed,
        extraction_method=document.method,
        extracted_preview=preview,
        extraction_error=error,
    )


def run_generation_job(
    job_id: str,
    filters: FilterSet,
    upload: UploadedFile | None,
    *,
    jobs: JobStore,
    history: HistoryStore,
    client: InferenceClient,
    uploads: UploadStore | None = None,
    extraction_config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
) -> None:
    start_time = time.time()
    event: dict[str, Any] = {
        "job_id": job_id,
        "networks": filters.networks,
        "reward_types": filters.reward_types,
        "fee_range": filters.fee_range,
        "has_document": upload is not None,
    }

    try:
        # --- Statement text ---
        document_text: str | None = None
        summary: DocumentSummary | None = None
        if upload is not None:
            document = extract_text(upload.path, extraction_config)
            summary = _document_summary(upload, document)
            event["extraction_success"] = summary.extraction_success
            event["extraction_method"] = summary.extraction_method
            if document.failed:
                logger.warning("Job %s: statement extraction failed: %s", job_id, document.reason)
            else:
                document_text = document.text
            if uploads is not None:
                uploads.mark_used(upload.id)

        # --- Prompt & inference ---
        prompt = build_recommendation_prompt(filters, document_text)
        logger.debug("Job %s prompt:\n%s", job_id, prompt)
        answer = client.query(prompt)

        # --- Parse ---
        parsed = parse_answer(answer)
        if isinstance(parsed, ParseFailure):
            logger.warning(
                "Job %s: could not parse model answer (%s); first 500 chars: %r",
                job_id, parsed.reason, answer[:500],
            )
            jobs.fail(job_id, parsed.reason)
            event.update(status="failed", failure_kind="parse", error=parsed.reason)
            return

        result = RecommendationResult(
            id=history.next_id(),
            filters=filters,
            document=summary,
            summary=parsed.summary,
            format=parsed.format,
            recommendations=parsed.items,
            generated_at=datetime.now(timezone.utc),
        )
        jobs.complete(job_id, result)
        history.append(result)
        event.update(
            status="completed",
            recommendation_id=result.id,
            results_returned=result.count,
            response_format=result.format.value,
        )
        logger.info("Job %s completed: recommendation %d with %d cards", job_id, result.id, result.count)

    except InferenceError as exc:
        logger.warning("Job %s: inference failed (%s): %s", job_id, exc.kind, exc.message)
        jobs.fail(job_id, exc.message)
        event.update(status="failed", failure_kind=exc.kind, error=exc.message)

    except Exception as exc:
        logger.exception("Job %s: unexpected pipeline error", job_id)
        job = jobs.get(job_id)
        if job is not None and not job.is_terminal:
            jobs.fail(job_id, f"Recommendation generation failed: {exc.__class__.__name__}")
        event.update(status="failed", failure_kind="internal", error=str(exc))

    finally:
        event["duration_ms"] = round((time.time() - start_time) * 1000, 1)
        record_event("generation", event)
