"""
Read-only episode corpus loaded once at startup.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from importlib import resources
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from .errors import CorpusError
from .models import Document

_DOCUMENTS_ADAPTER = TypeAdapter(list[Document])


class Corpus:
    """Immutable, ordered collection of episodes."""

    def __init__(self, documents: Iterable[Document]) -> None:
        self._documents: tuple[Document, ...] = tuple(documents)
        self._by_id: dict[int, Document] = {}
        for doc in self._documents:
            if doc.id in self._by_id:
                raise CorpusError(f"Duplicate episode id: {doc.id}")
            self._by_id[doc.id] = doc

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._by_id

    def get(self, doc_id: int) -> Document | None:
        return self._by_id.get(doc_id)

    def by_external_id(self, external_id: str) -> Document | None:
        """Resolve a vector index id (the string form of the episode id)."""
        try:
            return self._by_id.get(int(str(external_id).strip()))
        except ValueError:
            return None

    def categories(self) -> list[str]:
        """Distinct categories in first-seen order."""
        return list(dict.fromkeys(doc.category for doc in self._documents))

    def tags(self) -> list[str]:
        """Distinct tags in first-seen order."""
        return list(dict.fromkeys(tag for doc in self._documents for tag in doc.tags))

    def filter_category(self, category: str | None) -> list[Document]:
        """Exact-match category filter; no category keeps every document."""
        if not category:
            return list(self._documents)
        return [doc for doc in self._documents if doc.category == category]


def _read_bundled_corpus() -> str:
    return (
        resources.files("podcast_search")
        .joinpath("data", "podcasts.json")
        .read_text(encoding="utf-8")
    )


def load_corpus(path: str | None = None) -> Corpus:
    """
    Load the episode corpus from a JSON array.

    Falls back to the bundled dataset when no path is given.
    """
    if path is None:
        raw = _read_bundled_corpus()
    else:
        corpus_path = Path(path).expanduser()
        if not corpus_path.is_file():
            raise CorpusError(f"No such corpus file: {corpus_path}")
        raw = corpus_path.read_text(encoding="utf-8")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorpusError(f"Corpus is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise CorpusError("Corpus must be a JSON array of episodes.")

    try:
        documents = _DOCUMENTS_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise CorpusError(f"Invalid episode record: {exc}") from exc
    return Corpus(documents)
