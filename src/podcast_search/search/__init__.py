"""Search helpers for the podcast corpus."""

from .lexical import SEMANTIC_MAP, score_documents
from .local_embedding import LocalEmbedder, embed_locally
from .ranker import (
    LOCAL_MIN_SCORE,
    REMOTE_MIN_SCORE,
    SimilarityMatch,
    cosine_similarity,
    merge_vector_matches,
    rank_by_similarity,
)
from .strategy import (
    FALLBACK_TRANSITIONS,
    FailureKind,
    InputPhase,
    SearchStrategy,
    SearchStrategyState,
    select_strategy,
)
from .orchestrator import SearchAttempt, SearchOrchestrator, SearchOutcome
from .session import SearchSession

__all__ = [
    "SEMANTIC_MAP",
    "score_documents",
    "LocalEmbedder",
    "embed_locally",
    "LOCAL_MIN_SCORE",
    "REMOTE_MIN_SCORE",
    "SimilarityMatch",
    "cosine_similarity",
    "merge_vector_matches",
    "rank_by_similarity",
    "FALLBACK_TRANSITIONS",
    "FailureKind",
    "InputPhase",
    "SearchStrategy",
    "SearchStrategyState",
    "select_strategy",
    "SearchAttempt",
    "SearchOrchestrator",
    "SearchOutcome",
    "SearchSession",
]
