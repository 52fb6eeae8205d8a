"""
Error taxonomy shared by the corpus loader, remote adapters and search core.
"""

from __future__ import annotations


class SearchError(Exception):
    """Base class for podcast search errors."""


class CorpusError(SearchError, ValueError):
    """Raised when the episode corpus cannot be loaded or is malformed."""


class RemoteServiceError(SearchError):
    """A remote embedding or vector index call did not produce a usable result."""

    def __init__(self, message: str, *, service: str | None = None) -> None:
        super().__init__(message)
        self.service = service


class QuotaExceededError(RemoteServiceError):
    """Remote embeddings are unavailable because of rate or billing limits."""


class RemoteUnavailableError(RemoteServiceError):
    """Any other remote failure: network, timeout, malformed response, index error."""
