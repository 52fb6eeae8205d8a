"""
Runtime configuration resolved from explicit overrides and environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


ENV_CORPUS_PATH = "PODCAST_SEARCH_CORPUS_PATH"
ENV_EMBEDDING_MODEL = "PODCAST_SEARCH_EMBEDDING_MODEL"
ENV_EMBEDDING_DIM = "PODCAST_SEARCH_EMBEDDING_DIM"
ENV_TOP_K = "PODCAST_SEARCH_TOP_K"
ENV_REMOTE_TIMEOUT = "PODCAST_SEARCH_REMOTE_TIMEOUT"
ENV_TYPING_DELAY = "PODCAST_SEARCH_TYPING_DELAY"
ENV_SETTLE_DELAY = "PODCAST_SEARCH_SETTLE_DELAY"
ENV_LOG_LEVEL = "PODCAST_SEARCH_LOG_LEVEL"
ENV_PINECONE_API_KEY = "PINECONE_API_KEY"
ENV_PINECONE_INDEX_HOST = "PINECONE_INDEX_HOST"
ENV_PINECONE_INDEX_NAME = "PINECONE_INDEX_NAME"

DEFAULT_EMBEDDING_MODEL = "gemini-embedding-001"
DEFAULT_EMBEDDING_DIM = 1536
DEFAULT_TOP_K = 10
DEFAULT_REMOTE_TIMEOUT = 5.0
DEFAULT_TYPING_DELAY = 0.3
DEFAULT_SETTLE_DELAY = 0.8
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_PINECONE_INDEX_NAME = "podcast-search"


@dataclass(frozen=True)
class SearchSettings:
    """Settings shared by the orchestrator, session, server and CLI."""

    corpus_path: str | None = None
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_dim: int = DEFAULT_EMBEDDING_DIM
    top_k: int = DEFAULT_TOP_K
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT
    typing_delay: float = DEFAULT_TYPING_DELAY
    settle_delay: float = DEFAULT_SETTLE_DELAY
    log_level: str = DEFAULT_LOG_LEVEL
    pinecone_api_key: str | None = None
    pinecone_index_host: str | None = None
    pinecone_index_name: str = DEFAULT_PINECONE_INDEX_NAME

    @property
    def pinecone_configured(self) -> bool:
        return bool(self.pinecone_api_key and self.pinecone_index_host)

    def with_overrides(self, **overrides: object) -> "SearchSettings":
        """Return a copy with non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def load_settings(**overrides: object) -> SearchSettings:
    """
    Resolve settings.

    Precedence:
    1) explicit keyword overrides (None means "not given")
    2) environment variables
    3) defaults
    """
    settings = SearchSettings(
        corpus_path=os.getenv(ENV_CORPUS_PATH) or None,
        embedding_model=os.getenv(ENV_EMBEDDING_MODEL, DEFAULT_EMBEDDING_MODEL),
        embedding_dim=_env_int(ENV_EMBEDDING_DIM, DEFAULT_EMBEDDING_DIM),
        top_k=_env_int(ENV_TOP_K, DEFAULT_TOP_K),
        remote_timeout=_env_float(ENV_REMOTE_TIMEOUT, DEFAULT_REMOTE_TIMEOUT),
        typing_delay=_env_float(ENV_TYPING_DELAY, DEFAULT_TYPING_DELAY),
        settle_delay=_env_float(ENV_SETTLE_DELAY, DEFAULT_SETTLE_DELAY),
        log_level=os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
        pinecone_api_key=os.getenv(ENV_PINECONE_API_KEY) or None,
        pinecone_index_host=os.getenv(ENV_PINECONE_INDEX_HOST) or None,
        pinecone_index_name=os.getenv(
            ENV_PINECONE_INDEX_NAME, DEFAULT_PINECONE_INDEX_NAME
        ),
    )
    return settings.with_overrides(**overrides)
