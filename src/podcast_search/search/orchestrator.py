"""
Search orchestration: category pre-filter, strategy selection and the
remote -> locally-embedded remote -> lexical fallback chain.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..config import SearchSettings
from ..corpus import Corpus
from ..errors import QuotaExceededError, RemoteServiceError
from ..index.base import VectorIndex, VectorMatch
from ..models import Document, ScoredDocument
from .lexical import score_documents
from .local_embedding import LocalEmbedder
from .ranker import (
    LOCAL_EMBEDDING_SCORE_SCALE,
    LOCAL_MIN_SCORE,
    REMOTE_MIN_SCORE,
    merge_vector_matches,
)
from .strategy import (
    FailureKind,
    InputPhase,
    SearchStrategy,
    SearchStrategyState,
    is_remote_eligible,
    next_strategy,
    select_strategy,
)

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]

STATUS_ANALYZING = "分析搜尋意圖..."
STATUS_EMBEDDING = "生成語義向量..."
STATUS_SIMILARITY = "計算相似度..."
STATUS_SORTING = "排序結果..."


class QueryEmbedder(Protocol):
    def embed_query(self, query: str) -> list[float]: ...


@dataclass(frozen=True)
class SearchAttempt:
    """One step of the fallback chain and how it ended."""

    strategy: SearchStrategy
    failure: FailureKind | None = None
    error: str | None = None


@dataclass(frozen=True)
class SearchOutcome:
    """Ranked results plus the strategy that produced them."""

    results: list[ScoredDocument]
    strategy: SearchStrategy
    attempts: list[SearchAttempt] = field(default_factory=list)

    @property
    def fell_back(self) -> bool:
        return any(attempt.failure is not None for attempt in self.attempts)


def category_filter(category: str | None) -> dict[str, Any] | None:
    """Vector index metadata filter matching the selected category."""
    if not category:
        return None
    return {"category": {"$eq": category}}


class SearchOrchestrator:
    """Compose lexical scoring, local embeddings and remote vector search."""

    def __init__(
        self,
        corpus: Corpus,
        *,
        embedding_provider: QueryEmbedder | None = None,
        vector_index: VectorIndex | None = None,
        local_embedder: QueryEmbedder | None = None,
        settings: SearchSettings | None = None,
    ) -> None:
        self.corpus = corpus
        self.settings = settings or SearchSettings()
        self.embedding_provider = embedding_provider
        self.vector_index = vector_index
        self.local_embedder = local_embedder or LocalEmbedder(self.settings.embedding_dim)

    @property
    def remote_enabled(self) -> bool:
        return self.vector_index is not None

    def close(self) -> None:
        """Release the vector index connection, if the backend holds one."""
        close = getattr(self.vector_index, "close", None)
        if callable(close):
            close()

    def select(self, state: SearchStrategyState) -> SearchStrategy:
        return select_strategy(
            state,
            remote_enabled=self.remote_enabled,
            embedding_enabled=self.embedding_provider is not None,
        )

    def search(
        self,
        query: str,
        category: str | None = None,
        *,
        strategy: SearchStrategy | None = None,
        on_status: StatusCallback | None = None,
    ) -> SearchOutcome:
        """
        Answer ``query`` within ``category``.

        The query is treated as settled. An explicit ``strategy`` overrides
        the starting tier for queries that are eligible for it.
        Remote failures never propagate: quota exhaustion retries the index
        with a local query embedding, anything else falls back to lexical
        scoring, which cannot fail.
        """
        if not isinstance(query, str):
            raise TypeError(f"query must be a str, got {type(query).__name__}")

        candidates = self.corpus.filter_category(category)
        state = SearchStrategyState(
            query=query, category=category or None, phase=InputPhase.SETTLED
        )
        selected = self.select(state)
        # An explicit strategy only picks the starting tier; blank and short
        # queries keep their pass-through and local-only handling.
        if strategy in (None, SearchStrategy.SKIP) or selected is SearchStrategy.SKIP:
            strategy = selected
        elif strategy.is_remote and not is_remote_eligible(query):
            strategy = SearchStrategy.LOCAL_LEXICAL

        if strategy is SearchStrategy.SKIP:
            return SearchOutcome(
                results=[ScoredDocument(document=doc) for doc in candidates],
                strategy=strategy,
            )

        self._notify(on_status, STATUS_ANALYZING)
        attempts: list[SearchAttempt] = []
        while strategy.is_remote:
            if self.vector_index is None:
                attempts.append(
                    SearchAttempt(strategy, FailureKind.REMOTE_UNAVAILABLE, "no vector index")
                )
                strategy = next_strategy(strategy, FailureKind.REMOTE_UNAVAILABLE)
                continue
            try:
                results = self._search_remote(
                    strategy, query, category, candidates, on_status=on_status
                )
            except RemoteServiceError as exc:
                failure = (
                    FailureKind.QUOTA_EXCEEDED
                    if isinstance(exc, QuotaExceededError)
                    else FailureKind.REMOTE_UNAVAILABLE
                )
                attempts.append(SearchAttempt(strategy, failure, str(exc)))
                fallback = next_strategy(strategy, failure)
                logger.warning(
                    "%s search failed (%s): %s; falling back to %s",
                    strategy.value,
                    failure.value,
                    exc,
                    fallback.value,
                )
                strategy = fallback
                continue
            attempts.append(SearchAttempt(strategy))
            logger.info(
                "%s search found %d matches for %r", strategy.value, len(results), query
            )
            return SearchOutcome(results=results, strategy=strategy, attempts=attempts)

        self._notify(on_status, STATUS_SORTING)
        results = score_documents(query, candidates)
        attempts.append(SearchAttempt(SearchStrategy.LOCAL_LEXICAL))
        return SearchOutcome(
            results=results, strategy=SearchStrategy.LOCAL_LEXICAL, attempts=attempts
        )

    def query_index(
        self,
        strategy: SearchStrategy,
        query: str,
        *,
        top_k: int | None = None,
        include_metadata: bool = True,
        filter: dict[str, Any] | None = None,
        on_status: StatusCallback | None = None,
    ) -> list[VectorMatch]:
        """Embed ``query`` for a remote strategy and query the vector index.

        Raises ``RemoteServiceError`` subclasses; callers decide on fallback.
        """
        if self.vector_index is None:
            raise RuntimeError("No vector index configured")
        embedder = self._embedder_for(strategy)
        self._notify(on_status, STATUS_EMBEDDING)
        vector = embedder.embed_query(query)
        self._notify(on_status, STATUS_SIMILARITY)
        return self.vector_index.query(
            vector,
            top_k=top_k or self.settings.top_k,
            include_metadata=include_metadata,
            filter=filter,
        )

    def _search_remote(
        self,
        strategy: SearchStrategy,
        query: str,
        category: str | None,
        candidates: list[Document],
        *,
        on_status: StatusCallback | None,
    ) -> list[ScoredDocument]:
        matches = self.query_index(
            strategy,
            query,
            filter=category_filter(category),
            on_status=on_status,
        )
        self._notify(on_status, STATUS_SORTING)
        if strategy is SearchStrategy.REMOTE_LOCAL_EMBEDDING:
            return merge_vector_matches(
                matches,
                candidates,
                min_score=LOCAL_MIN_SCORE,
                score_scale=LOCAL_EMBEDDING_SCORE_SCALE,
            )
        return merge_vector_matches(matches, candidates, min_score=REMOTE_MIN_SCORE)

    def _embedder_for(self, strategy: SearchStrategy) -> QueryEmbedder:
        if strategy is SearchStrategy.REMOTE_EMBEDDING:
            if self.embedding_provider is None:
                raise QuotaExceededError("No embedding provider configured", service="embedding")
            return self.embedding_provider
        return self.local_embedder

    @staticmethod
    def _notify(on_status: StatusCallback | None, message: str) -> None:
        if on_status is None:
            return
        try:
            on_status(message)
        except Exception:
            logger.exception("Status observer raised; ignoring")
