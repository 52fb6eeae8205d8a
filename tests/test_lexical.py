"""Tests for keyword and concept-map scoring."""

from __future__ import annotations

import pytest

from podcast_search.models import Document
from podcast_search.search.lexical import (
    CONCEPT_MATCH_WEIGHT,
    SEMANTIC_MAP,
    TERM_MATCH_WEIGHT,
    score_documents,
)


def _scores(results) -> list[tuple[int, int | None]]:
    return [(item.id, item.score) for item in results]


def test_empty_query_passes_corpus_through_unscored(documents: list[Document]) -> None:
    results = score_documents("", documents)

    assert [item.id for item in results] == [1, 2, 3, 4, 5, 6]
    assert all(item.score is None for item in results)


def test_whitespace_query_is_treated_like_empty(documents: list[Document]) -> None:
    assert _scores(score_documents("  \t\n ", documents)) == _scores(
        score_documents("", documents)
    )


def test_non_string_query_is_rejected(documents: list[Document]) -> None:
    with pytest.raises(TypeError):
        score_documents(None, documents)  # type: ignore[arg-type]


def test_concept_credit_surfaces_document_without_literal_match(
    documents: list[Document],
) -> None:
    results = score_documents("美食", documents)
    by_id = {item.id: item.score for item in results}

    # Episode 1 is tagged 川菜 and never mentions 美食.
    assert "美食" not in documents[0].searchable_text()
    assert by_id[1] is not None and by_id[1] >= CONCEPT_MATCH_WEIGHT

    naive = [doc.id for doc in documents if "美食" in doc.searchable_text()]
    assert 1 not in naive


def test_scores_and_order_for_concept_query(documents: list[Document]) -> None:
    results = score_documents("美食", documents)

    # Every document gets the key credit; those with related terms of another
    # concept get an extra +5; episode 5 also contains the literal term.
    assert _scores(results) == [
        (5, 15),
        (2, 10),
        (3, 10),
        (4, 10),
        (1, 5),
        (6, 5),
    ]


def test_ties_keep_corpus_order(documents: list[Document]) -> None:
    results = score_documents("股票", documents)

    assert _scores(results) == [(2, 15), (1, 5), (3, 5), (4, 5), (5, 5)]


def test_zero_scores_are_excluded(documents: list[Document]) -> None:
    results = score_documents("股票", documents)

    assert 6 not in [item.id for item in results]


def test_literal_term_match_is_case_insensitive(documents: list[Document]) -> None:
    results = score_documents("WEEKEND", documents)

    assert _scores(results) == [(6, TERM_MATCH_WEIGHT), (1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]


def test_concept_credit_is_cumulative_per_term(documents: list[Document]) -> None:
    # Uncapped: each term re-earns the concept credit for the same document.
    results = score_documents("投資 理財", documents)
    by_id = {item.id: item.score for item in results}

    assert by_id[2] == 2 * (TERM_MATCH_WEIGHT + CONCEPT_MATCH_WEIGHT)


def test_adding_a_term_never_lowers_existing_scores(documents: list[Document]) -> None:
    before = {item.id: item.score for item in score_documents("股票", documents)}
    after = {item.id: item.score for item in score_documents("股票 企業", documents)}

    for doc_id, score in before.items():
        assert after[doc_id] >= score
    assert after[2] == 20
    assert after[3] == 20


def test_output_is_sorted_descending(documents: list[Document]) -> None:
    for query in ["美食", "股票 企業", "溫泉 日本", "mail"]:
        scores = [item.score for item in score_documents(query, documents)]
        assert scores == sorted(scores, reverse=True)


def test_semantic_map_is_read_only() -> None:
    with pytest.raises(TypeError):
        SEMANTIC_MAP["新概念"] = ("詞",)  # type: ignore[index]
    assert "川菜" in SEMANTIC_MAP["美食"]
