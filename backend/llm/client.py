from __future__ import annotations

from typing import Protocol

from .config import DEFAULT_LLM_CONFIG, LLMConfig

# Failure kinds carried by InferenceError
TIMEOUT = "timeout"
UNREACHABLE = "unreachable"
HTTP_STATUS = "http_status"
BAD_RESPONSE = "bad_response"


class InferenceError(Exception):
    """Any failure talking to the generation service."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class InferenceClient(Protocol):
    def query(self, prompt: str) -> str:
        """Send ``prompt`` and return the answer text unmodified."""
        ...


def get_inference_client(config: LLMConfig = DEFAULT_LLM_CONFIG) -> InferenceClient:
    if config.provider == "groq":
        from .groq_client import GroqClient

        return GroqClient(config)

    from .retriever_client import RetrieverClient

    return RetrieverClient(config)
