from __future__ import annotations

import logging
from typing import Any

import httpx

from .client import (
    BAD_RESPONSE,
    HTTP_STATUS,
    TIMEOUT,
    UNREACHABLE,
    InferenceError,
)
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

# "response" is the retriever's current field; "answer" is what older
# deployments of the service return.
ANSWER_FIELDS = ("response", "answer")


def extract_answer(body: Any) -> str:
    """Return the answer text from a retriever reply body."""
    if not isinstance(body, dict):
        raise InferenceError(BAD_RESPONSE, "Inference service returned a non-object reply")
    for field in ANSWER_FIELDS:
        value = body.get(field)
        if isinstance(value, str) and value.strip():
            return value
    raise InferenceError(
        BAD_RESPONSE,
        f"Inference reply has no answer field (expected one of: {', '.join(ANSWER_FIELDS)})",
    )


class RetrieverClient:
    """Client for the RAG retriever ``/query`` endpoint."""

    def __init__(
        self,
        config: LLMConfig = DEFAULT_LLM_CONFIG,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "question": prompt,
            "index_name": self.config.index_name,
            "enable_reranking": self.config.enable_reranking,
            "model_name": self.config.model_name,
            "rerank_top_k": self.config.rerank_top_k,
        }

    def query(self, prompt: str) -> str:
        url = f"{self.config.base_url.rstrip('/')}/query"
        logger.info("Querying retriever at %s (prompt: %d chars)", url, len(prompt))

        try:
            with httpx.Client(timeout=self.config.timeout, transport=self._transport) as client:
                response = client.post(url, json=self._payload(prompt))
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("Retriever timed out after %.0fs", self.config.timeout)
            raise InferenceError(
                TIMEOUT, f"Inference service timed out after {self.config.timeout:.0f}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Retriever returned HTTP %s: %s",
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise InferenceError(
                HTTP_STATUS,
                f"Inference service returned HTTP {exc.response.status_code}",
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("Retriever unreachable at %s: %s", url, exc)
            raise InferenceError(UNREACHABLE, f"Inference service unreachable: {exc}") from exc
        except ValueError as exc:
            raise InferenceError(BAD_RESPONSE, "Inference service returned invalid JSON") from exc

        answer = extract_answer(body)
        logger.debug("Retriever answer: %d chars", len(answer))
        return answer
