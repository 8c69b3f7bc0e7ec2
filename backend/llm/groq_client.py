from __future__ import annotations

import logging

from groq import APIConnectionError, APIStatusError, APITimeoutError, Groq

from .client import (
    BAD_RESPONSE,
    HTTP_STATUS,
    TIMEOUT,
    UNREACHABLE,
    InferenceError,
)
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a credit card recommendation engine. "
    "Follow the user's instructions exactly and return only what they ask for."
)


class GroqClient:
    """Direct Groq chat-completion backend with the retriever's contract."""

    def __init__(self, config: LLMConfig = DEFAULT_LLM_CONFIG) -> None:
        self.config = config

    def query(self, prompt: str) -> str:
        if not self.config.api_key:
            raise InferenceError(UNREACHABLE, "GROQ_API_KEY is not configured")

        try:
            client = Groq(api_key=self.config.api_key, timeout=self.config.timeout)
            response = client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.config.max_tokens,
                temperature=0.3,
            )
        except APITimeoutError as exc:
            logger.warning("Groq call timed out", exc_info=True)
            raise InferenceError(
                TIMEOUT, f"Inference service timed out after {self.config.timeout:.0f}s"
            ) from exc
        except APIConnectionError as exc:
            logger.warning("Groq unreachable", exc_info=True)
            raise InferenceError(UNREACHABLE, f"Inference service unreachable: {exc}") from exc
        except APIStatusError as exc:
            logger.warning("Groq returned HTTP %s", exc.status_code)
            raise InferenceError(
                HTTP_STATUS, f"Inference service returned HTTP {exc.status_code}"
            ) from exc

        if not response.choices:
            raise InferenceError(BAD_RESPONSE, "Inference reply has no choices")
        content = response.choices[0].message.content
        if content is None:
            raise InferenceError(BAD_RESPONSE, "Inference reply has no message content")
        return content
