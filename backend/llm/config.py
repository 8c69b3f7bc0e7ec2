from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class LLMConfig:
    provider: str = os.getenv("LLM_PROVIDER", "retriever")

    # RAG retriever service (canonical backend)
    base_url: str = os.getenv("RAG_RETRIEVER_ENDPOINT", "http://localhost:5002")
    timeout: float = float(os.getenv("RAG_TIMEOUT", "120"))
    model_name: str = os.getenv("RAG_MODEL_NAME", "gpt-3.5-turbo")
    index_name: str | None = os.getenv("RAG_INDEX_NAME") or None
    enable_reranking: bool = True
    rerank_top_k: int = int(os.getenv("RAG_RERANK_TOP_K", "10"))

    # Direct Groq backend
    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    max_tokens: int = 2048


DEFAULT_LLM_CONFIG = LLMConfig()
