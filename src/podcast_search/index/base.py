"""
Vector index interface and match records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class VectorMatch:
    """One match returned by a vector index query."""

    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "score": self.score, "metadata": dict(self.metadata)}


class VectorIndex(Protocol):
    """Protocol for the remote (or in-process) vector index used by search."""

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 10,
        include_metadata: bool = True,
        filter: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        """Return the nearest stored vectors, best first, scores in [0, 1]."""
