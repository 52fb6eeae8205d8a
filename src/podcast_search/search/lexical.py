"""
Keyword and concept-map relevance scoring over the local corpus.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from ..models import Document, ScoredDocument

TERM_MATCH_WEIGHT = 10
CONCEPT_MATCH_WEIGHT = 5

SEMANTIC_MAP: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "美食": ("餐廳", "料理", "吃", "食物", "菜", "鍋", "丼", "燒鳥", "川菜", "蔬食"),
        "旅行": ("旅遊", "景點", "地方", "城市", "溫泉", "日本", "桃園", "露營"),
        "財經": ("投資", "企業", "金融", "理財", "股票", "經濟", "商業", "產業"),
        "社會": ("詐騙", "犯罪", "議題", "問題", "移工", "司法", "逃稅"),
        "娛樂": ("明星", "藝人", "爆料", "八卦", "電影", "戲劇", "影視"),
        "人物": ("故事", "專訪", "訪談", "創業", "企業家", "母親", "家庭"),
        "科技": ("電子", "製造", "連接器", "導軌", "雲端", "智能"),
        "醫療": ("健康", "疾病", "醫院", "治療", "藥物", "SARS", "疫情"),
    }
)


def query_terms(query: str) -> list[str]:
    """Lowercase the query and split it on whitespace."""
    return query.lower().split()


def _concept_credit(
    term: str,
    searchable: str,
    semantic_map: Mapping[str, tuple[str, ...]],
) -> int:
    credit = 0
    for concept, related_terms in semantic_map.items():
        # Related terms are not lowercased: "SARS" never matches searchable text.
        if term in concept or any(related in searchable for related in related_terms):
            credit += CONCEPT_MATCH_WEIGHT
    return credit


def score_document(
    terms: list[str],
    document: Document,
    *,
    semantic_map: Mapping[str, tuple[str, ...]] = SEMANTIC_MAP,
) -> int:
    """Cumulative score of one document for the given query terms."""
    searchable = document.searchable_text()
    score = 0
    for term in terms:
        if term in searchable:
            score += TERM_MATCH_WEIGHT
        score += _concept_credit(term, searchable, semantic_map)
    return score


def score_documents(
    query: str,
    documents: Iterable[Document],
    *,
    semantic_map: Mapping[str, tuple[str, ...]] = SEMANTIC_MAP,
) -> list[ScoredDocument]:
    """
    Rank documents by keyword and concept-map relevance.

    An empty or whitespace-only query passes every document through unscored
    in its original order. Otherwise documents scoring zero are dropped and
    the rest are sorted by score, ties keeping corpus order.
    """
    if not isinstance(query, str):
        raise TypeError(f"query must be a str, got {type(query).__name__}")

    terms = query_terms(query)
    if not terms:
        return [ScoredDocument(document=doc) for doc in documents]

    scored = [
        ScoredDocument(
            document=doc,
            score=score_document(terms, doc, semantic_map=semantic_map),
        )
        for doc in documents
    ]
    matched = [item for item in scored if item.score and item.score > 0]
    # sorted() is stable, so equal scores keep corpus order.
    return sorted(matched, key=lambda item: -(item.score or 0))
