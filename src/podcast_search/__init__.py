"""
Podcast search - semantic search over a fixed corpus of podcast episodes.

Queries go to a remote vector index with a Google GenAI embedding, retry
the index with a locally hashed embedding when the embedding quota runs out,
and finally fall back to keyword/concept-map scoring of the local corpus.

Example usage:
    >>> from podcast_search import SearchOrchestrator, load_corpus
    >>> orchestrator = SearchOrchestrator(load_corpus())
    >>> outcome = orchestrator.search("美食")
    >>> [item.document.title for item in outcome.results]
"""

from .config import SearchSettings, load_settings
from .corpus import Corpus, load_corpus
from .errors import (
    CorpusError,
    QuotaExceededError,
    RemoteServiceError,
    RemoteUnavailableError,
    SearchError,
)
from .models import Document, ScoredDocument
from .search import (
    LocalEmbedder,
    SearchOrchestrator,
    SearchOutcome,
    SearchSession,
    SearchStrategy,
    score_documents,
)

__all__ = [
    # Config
    "SearchSettings",
    "load_settings",
    # Corpus
    "Corpus",
    "load_corpus",
    "Document",
    "ScoredDocument",
    # Errors
    "SearchError",
    "CorpusError",
    "RemoteServiceError",
    "QuotaExceededError",
    "RemoteUnavailableError",
    # Search
    "LocalEmbedder",
    "SearchOrchestrator",
    "SearchOutcome",
    "SearchSession",
    "SearchStrategy",
    "score_documents",
]
