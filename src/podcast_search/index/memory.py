"""
In-process vector index for offline demos and tests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from ..models import Document
from ..search.ranker import rank_by_similarity
from .base import VectorMatch


def _matches_filter(metadata: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    # Supports the equality subset of Pinecone's filter language.
    if not filter:
        return True
    for field_name, condition in filter.items():
        value = metadata.get(field_name)
        if isinstance(condition, dict):
            if "$eq" in condition and value != condition["$eq"]:
                return False
            if "$in" in condition and value not in condition["$in"]:
                return False
        elif value != condition:
            return False
    return True


class InMemoryVectorIndex:
    """Cosine-similarity index held in a dict of id -> vector."""

    def __init__(self) -> None:
        self._vectors: dict[str, list[float]] = {}
        self._metadata: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._vectors)

    def upsert(
        self,
        vector_id: str,
        vector: list[float],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._vectors[vector_id] = list(vector)
        self._metadata[vector_id] = dict(metadata or {})

    @classmethod
    def from_documents(
        cls,
        documents: Iterable[Document],
        embed: Callable[[str], list[float]],
    ) -> "InMemoryVectorIndex":
        """Embed each document's searchable text and store it under its id."""
        index = cls()
        for doc in documents:
            index.upsert(
                doc.external_id,
                embed(doc.searchable_text()),
                {"title": doc.title, "category": doc.category, "tags": list(doc.tags)},
            )
        return index

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 10,
        include_metadata: bool = True,
        filter: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        candidates = {
            vector_id: values
            for vector_id, values in self._vectors.items()
            if _matches_filter(self._metadata[vector_id], filter)
        }
        ranked = rank_by_similarity(vector, candidates, min_score=0.0)
        return [
            VectorMatch(
                id=match.id,
                score=match.similarity,
                metadata=dict(self._metadata[match.id]) if include_metadata else {},
            )
            for match in ranked[: max(top_k, 1)]
        ]
