"""Tests for the debounced two-speed search session."""

from __future__ import annotations

import asyncio

import pytest

from podcast_search.config import SearchSettings
from podcast_search.corpus import Corpus
from podcast_search.errors import QuotaExceededError
from podcast_search.index.base import VectorMatch
from podcast_search.search.orchestrator import (
    STATUS_EMBEDDING,
    SearchOrchestrator,
    SearchOutcome,
)
from podcast_search.search.session import SearchSession
from podcast_search.search.strategy import FailureKind, SearchStrategy

from conftest import FakeEmbedder, FakeVectorIndex


def _session(
    orchestrator: SearchOrchestrator,
    published: list[SearchOutcome],
    statuses: list[str] | None = None,
) -> SearchSession:
    return SearchSession(
        orchestrator,
        on_results=published.append,
        on_status=statuses.append if statuses is not None else None,
    )


def test_initial_results_are_the_whole_corpus(corpus: Corpus) -> None:
    session = SearchSession(SearchOrchestrator(corpus))

    assert [item.id for item in session.results] == [1, 2, 3, 4, 5, 6]
    assert session.outcome.strategy is SearchStrategy.SKIP
    assert session.generation == 0


@pytest.mark.asyncio
async def test_lexical_pass_then_remote_pass(
    corpus: Corpus, fast_settings: SearchSettings
) -> None:
    orchestrator = SearchOrchestrator(
        corpus,
        embedding_provider=FakeEmbedder(),
        vector_index=FakeVectorIndex([VectorMatch(id="2", score=0.9)]),
        settings=fast_settings,
    )
    published: list[SearchOutcome] = []
    session = _session(orchestrator, published)

    session.update("股票")
    await session.wait()

    assert [outcome.strategy for outcome in published] == [
        SearchStrategy.LOCAL_LEXICAL,
        SearchStrategy.REMOTE_EMBEDDING,
    ]
    assert [(item.id, item.score) for item in session.results] == [(2, 90)]
    assert not session.is_searching
    assert session.status == ""


@pytest.mark.asyncio
async def test_rapid_updates_only_search_the_latest_query(
    corpus: Corpus, fast_settings: SearchSettings
) -> None:
    embedder = FakeEmbedder()
    orchestrator = SearchOrchestrator(
        corpus,
        embedding_provider=embedder,
        vector_index=FakeVectorIndex([VectorMatch(id="3", score=0.9)]),
        settings=fast_settings,
    )
    published: list[SearchOutcome] = []
    session = _session(orchestrator, published)

    session.update("股")
    session.update("股票")
    session.update("企業")
    await session.wait()

    assert embedder.calls == ["企業"]
    assert session.generation == 3
    assert [item.id for item in session.results] == [3]


@pytest.mark.asyncio
async def test_in_flight_remote_result_for_old_query_is_dropped(
    corpus: Corpus, fast_settings: SearchSettings
) -> None:
    index = FakeVectorIndex(
        responses={
            "股票": [VectorMatch(id="2", score=0.9)],
            "企業": [VectorMatch(id="3", score=0.9)],
        },
        delay=0.2,
    )
    orchestrator = SearchOrchestrator(
        corpus,
        embedding_provider=FakeEmbedder(),
        vector_index=index,
        settings=fast_settings,
    )
    published: list[SearchOutcome] = []
    session = _session(orchestrator, published)

    session.update("股票")
    assert await asyncio.to_thread(index.started.wait, 2.0)
    session.update("企業")
    await session.wait()

    remote = [o for o in published if o.strategy is SearchStrategy.REMOTE_EMBEDDING]
    assert [[item.id for item in o.results] for o in remote] == [[3]]
    assert [item.id for item in session.results] == [3]


@pytest.mark.asyncio
async def test_clearing_the_query_restores_the_corpus(
    corpus: Corpus, fast_settings: SearchSettings
) -> None:
    embedder = FakeEmbedder()
    orchestrator = SearchOrchestrator(
        corpus,
        embedding_provider=embedder,
        vector_index=FakeVectorIndex([VectorMatch(id="2", score=0.9)]),
        settings=fast_settings,
    )
    published: list[SearchOutcome] = []
    session = _session(orchestrator, published)

    session.update("股票")
    session.update("")
    await session.wait()

    assert embedder.calls == []
    assert session.outcome.strategy is SearchStrategy.SKIP
    assert [item.id for item in session.results] == [1, 2, 3, 4, 5, 6]


@pytest.mark.asyncio
async def test_short_query_stays_local(
    corpus: Corpus, fast_settings: SearchSettings
) -> None:
    embedder = FakeEmbedder()
    orchestrator = SearchOrchestrator(
        corpus,
        embedding_provider=embedder,
        vector_index=FakeVectorIndex([VectorMatch(id="2", score=0.9)]),
        settings=fast_settings,
    )
    published: list[SearchOutcome] = []
    session = _session(orchestrator, published)

    session.update("股")
    await session.wait()

    assert embedder.calls == []
    assert [outcome.strategy for outcome in published] == [SearchStrategy.LOCAL_LEXICAL]


@pytest.mark.asyncio
async def test_status_updates_are_delivered_and_cleared(
    corpus: Corpus, fast_settings: SearchSettings
) -> None:
    orchestrator = SearchOrchestrator(
        corpus,
        embedding_provider=FakeEmbedder(),
        vector_index=FakeVectorIndex([VectorMatch(id="2", score=0.9)]),
        settings=fast_settings,
    )
    published: list[SearchOutcome] = []
    statuses: list[str] = []
    session = _session(orchestrator, published, statuses)

    session.update("股票")
    await session.wait()

    assert STATUS_EMBEDDING in statuses
    assert session.status == ""
    assert not session.is_searching


@pytest.mark.asyncio
async def test_quota_failure_is_remembered_for_the_current_input(
    corpus: Corpus, fast_settings: SearchSettings
) -> None:
    orchestrator = SearchOrchestrator(
        corpus,
        embedding_provider=FakeEmbedder(error=QuotaExceededError("quota")),
        vector_index=FakeVectorIndex([VectorMatch(id="2", score=0.9)]),
        settings=fast_settings,
    )
    published: list[SearchOutcome] = []
    session = _session(orchestrator, published)

    session.update("股票")
    await session.wait()

    assert session.outcome.strategy is SearchStrategy.REMOTE_LOCAL_EMBEDDING
    assert session.state.last_failure is FailureKind.QUOTA_EXCEEDED
    assert orchestrator.select(session.state) is SearchStrategy.REMOTE_LOCAL_EMBEDDING

    session.update("股票投資")
    assert session.state.last_failure is None
    session.close()


@pytest.mark.asyncio
async def test_non_string_update_is_rejected(corpus: Corpus) -> None:
    session = SearchSession(SearchOrchestrator(corpus))

    with pytest.raises(TypeError):
        session.update(None)  # type: ignore[arg-type]
    assert session.generation == 0


@pytest.mark.asyncio
async def test_unexpected_remote_error_keeps_lexical_results(
    corpus: Corpus, fast_settings: SearchSettings
) -> None:
    orchestrator = SearchOrchestrator(
        corpus,
        embedding_provider=FakeEmbedder(),
        vector_index=FakeVectorIndex(error=RuntimeError("client closed")),
        settings=fast_settings,
    )
    published: list[SearchOutcome] = []
    session = _session(orchestrator, published)

    session.update("股票")
    await session.wait()

    assert [outcome.strategy for outcome in published] == [SearchStrategy.LOCAL_LEXICAL]
    assert session.results[0].id == 2
    assert not session.is_searching
    assert session.status == ""
