from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from podcast_search.config import SearchSettings
from podcast_search.corpus import Corpus
from podcast_search.errors import RemoteServiceError
from podcast_search.index.base import VectorMatch
from podcast_search.models import Document
from podcast_search.search.local_embedding import embed_locally


EPISODES: list[dict[str, Any]] = [
    {
        "id": 1,
        "title": "老店麻辣鍋",
        "description": "四川口味",
        "category": "美食",
        "duration": "30:00",
        "publishDate": "2024-01-01",
        "tags": ["川菜"],
    },
    {
        "id": 2,
        "title": "升息下的股票投資",
        "description": "理財入門",
        "category": "finance",
        "duration": "31:00",
        "publishDate": "2024-01-02",
        "tags": ["投資"],
    },
    {
        "id": 3,
        "title": "企業併購觀察",
        "description": "產業分析",
        "category": "finance",
        "duration": "32:00",
        "publishDate": "2024-01-03",
        "tags": ["企業"],
    },
    {
        "id": 4,
        "title": "北海道溫泉",
        "description": "雪地散步",
        "category": "travel",
        "duration": "33:00",
        "publishDate": "2024-01-04",
        "tags": ["日本"],
    },
    {
        "id": 5,
        "title": "夜市小吃",
        "description": "台南美食巡禮",
        "fullDescription": "從米糕到鱔魚意麵",
        "category": "美食",
        "duration": "34:00",
        "publishDate": "2024-01-05",
        "tags": ["小吃"],
    },
    {
        "id": 6,
        "title": "Weekend Notes",
        "description": "listener mail",
        "category": "misc",
        "duration": "12:00",
        "publishDate": "2024-01-06",
        "tags": ["mailbag"],
    },
]


@pytest.fixture()
def documents() -> list[Document]:
    return [Document.model_validate(entry) for entry in EPISODES]


@pytest.fixture()
def corpus(documents: list[Document]) -> Corpus:
    return Corpus(documents)


@pytest.fixture()
def corpus_file(tmp_path: Path) -> Path:
    path = tmp_path / "episodes.json"
    path.write_text(json.dumps(EPISODES, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture()
def fast_settings() -> SearchSettings:
    return SearchSettings(typing_delay=0.01, settle_delay=0.01)


# ---------------------------------------------------------------------------
# Fake remote collaborators
# ---------------------------------------------------------------------------


class FakeEmbedder:
    """Query embedder that records calls and can be told to fail."""

    def __init__(self, error: RemoteServiceError | None = None, dim: int = 1536) -> None:
        self.error = error
        self.dim = dim
        self.calls: list[str] = []

    def embed_query(self, query: str) -> list[float]:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return embed_locally(query, self.dim)

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if self.error is not None:
            raise self.error
        return [embed_locally(text, self.dim) for text in texts]


@dataclass
class IndexCall:
    vector: list[float]
    top_k: int
    include_metadata: bool
    filter: dict[str, Any] | None


class FakeVectorIndex:
    """Vector index returning canned matches, optionally per query text."""

    def __init__(
        self,
        matches: list[VectorMatch] | None = None,
        *,
        error: Exception | None = None,
        responses: dict[str, list[VectorMatch]] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.matches = matches or []
        self.error = error
        self.responses = responses or {}
        self.delay = delay
        self.calls: list[IndexCall] = []
        self.started = threading.Event()
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 10,
        include_metadata: bool = True,
        filter: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        self.calls.append(IndexCall(list(vector), top_k, include_metadata, filter))
        self.started.set()
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        for query, matches in self.responses.items():
            if embed_locally(query, len(vector)) == list(vector):
                return list(matches)
        return list(self.matches)


@pytest.fixture()
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()
