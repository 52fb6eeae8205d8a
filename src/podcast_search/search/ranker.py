"""
Ranking helpers for vector similarity results.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..models import Document, ScoredDocument

if TYPE_CHECKING:
    from ..index.base import VectorMatch

# Cosine cutoffs. Hashed query vectors are noisier, so they get a lower bar.
REMOTE_MIN_SCORE = 0.3
LOCAL_MIN_SCORE = 0.1
LOCAL_EMBEDDING_SCORE_SCALE = 0.8


@dataclass(frozen=True)
class SimilarityMatch:
    """Candidate id with its raw cosine similarity and display percentage."""

    id: str
    similarity: float

    @property
    def score(self) -> int:
        return to_percentage(self.similarity)


def to_percentage(similarity: float) -> int:
    """Rescale a [0, 1] similarity to a 0-100 integer."""
    return max(0, min(100, round(similarity * 100)))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError(f"Vector dimensions differ: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_by_similarity(
    query_vector: Sequence[float],
    candidates: Mapping[str, Sequence[float]],
    *,
    min_score: float,
) -> list[SimilarityMatch]:
    """Score every candidate against the query, keep those above ``min_score``."""
    matches = [
        SimilarityMatch(id=candidate_id, similarity=cosine_similarity(query_vector, vector))
        for candidate_id, vector in candidates.items()
    ]
    kept = [match for match in matches if match.similarity > min_score]
    return sorted(kept, key=lambda match: -match.similarity)


def merge_vector_matches(
    matches: Iterable[VectorMatch],
    documents: Iterable[Document],
    *,
    min_score: float,
    score_scale: float = 1.0,
) -> list[ScoredDocument]:
    """
    Map index matches back onto candidate documents.

    Matches whose id has no candidate document, or whose scaled score does not
    clear ``min_score``, are discarded. Duplicate ids keep their best score.
    Output is sorted by score; ties keep the order the index returned them in.
    """
    by_external_id = {doc.external_id: doc for doc in documents}
    best: dict[str, float] = {}
    for match in matches:
        if match.id not in by_external_id:
            continue
        scaled = match.score * score_scale
        if scaled <= min_score:
            continue
        if scaled > best.get(match.id, -math.inf):
            best[match.id] = scaled

    ranked = sorted(best.items(), key=lambda item: -item[1])
    return [
        ScoredDocument(document=by_external_id[match_id], score=to_percentage(score))
        for match_id, score in ranked
    ]
