"""
Embedding provider for vector-based semantic search.

Wraps the Google GenAI embedding API for query and batch embedding, and
translates client failures into the quota / unavailable error kinds the
search fallback chain depends on.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from google.genai import Client as GenAIClient
from google.genai import errors as genai_errors
from google.genai.types import HttpOptions

from .config import DEFAULT_EMBEDDING_DIM, DEFAULT_EMBEDDING_MODEL, DEFAULT_REMOTE_TIMEOUT
from .errors import QuotaExceededError, RemoteUnavailableError

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 50
_SERVICE = "embedding"
_QUOTA_STATUSES = frozenset({"RESOURCE_EXHAUSTED"})


def _is_quota_error(exc: genai_errors.APIError) -> bool:
    if getattr(exc, "code", None) == 429:
        return True
    status = getattr(exc, "status", None)
    if isinstance(status, str) and status.upper() in _QUOTA_STATUSES:
        return True
    message = str(getattr(exc, "message", "") or exc).lower()
    return "quota" in message


class EmbeddingProvider:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("PODCAST_SEARCH_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL)
        self.dim = dim or int(
            os.getenv("PODCAST_SEARCH_EMBEDDING_DIM", str(DEFAULT_EMBEDDING_DIM))
        )
        self.batch_size = batch_size or int(
            os.getenv("PODCAST_SEARCH_EMBEDDING_BATCH_SIZE", str(_DEFAULT_BATCH_SIZE))
        )
        self.timeout = timeout if timeout is not None else DEFAULT_REMOTE_TIMEOUT

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if resolved_key is None:
                raise ValueError(
                    "GOOGLE_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            # HttpOptions.timeout is expressed in milliseconds.
            self._client = GenAIClient(
                api_key=resolved_key,
                http_options=HttpOptions(timeout=int(self.timeout * 1000)),
            )

    def _embed(self, contents: list[str], *, task_type: str) -> list[list[float]]:
        try:
            result = self._client.models.embed_content(
                model=self.model,
                contents=contents,
                config={
                    "task_type": task_type,
                    "output_dimensionality": self.dim,
                },
            )
        except genai_errors.APIError as exc:
            if _is_quota_error(exc):
                logger.warning("Embedding quota exhausted: %s", exc)
                raise QuotaExceededError(
                    "Embedding API quota exceeded", service=_SERVICE
                ) from exc
            raise RemoteUnavailableError(
                f"Embedding API error: {exc}", service=_SERVICE
            ) from exc
        except Exception as exc:
            raise RemoteUnavailableError(
                f"Embedding request failed: {exc}", service=_SERVICE
            ) from exc

        embeddings = getattr(result, "embeddings", None)
        if not embeddings or len(embeddings) != len(contents):
            raise RemoteUnavailableError(
                "Embedding API returned an unexpected number of vectors",
                service=_SERVICE,
            )
        vectors: list[list[float]] = []
        for emb in embeddings:
            values = list(emb.values or [])
            if len(values) != self.dim:
                raise RemoteUnavailableError(
                    f"Embedding dimension {len(values)} does not match {self.dim}",
                    service=_SERVICE,
                )
            vectors.append(values)
        return vectors

    def embed_texts(
        self,
        texts: list[str],
        *,
        task_type: str = "RETRIEVAL_DOCUMENT",
    ) -> list[list[float]]:
        """Embed a list of texts in batches.

        Returns a list of embedding vectors in the same order as *texts*.
        """
        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            all_embeddings.extend(self._embed(batch, task_type=task_type))
        return all_embeddings

    def embed_query(self, query: str) -> list[float]:
        """Embed a single query text for retrieval."""
        logger.debug("Generating embedding for query %r", query)
        return self._embed([query], task_type="RETRIEVAL_QUERY")[0]
