"""
Search strategy selection and the fallback transition table.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

MIN_REMOTE_QUERY_LENGTH = 2


class SearchStrategy(str, Enum):
    """How a query is answered, from most to least authoritative."""

    SKIP = "skip"
    REMOTE_EMBEDDING = "remote_embedding"
    REMOTE_LOCAL_EMBEDDING = "remote_local_embedding"
    LOCAL_LEXICAL = "local_lexical"

    @property
    def is_remote(self) -> bool:
        return self in (SearchStrategy.REMOTE_EMBEDDING, SearchStrategy.REMOTE_LOCAL_EMBEDDING)


class InputPhase(str, Enum):
    IDLE = "idle"
    TYPING = "typing"
    SETTLED = "settled"


class FailureKind(str, Enum):
    QUOTA_EXCEEDED = "quota_exceeded"
    REMOTE_UNAVAILABLE = "remote_unavailable"


FALLBACK_TRANSITIONS: Mapping[tuple[SearchStrategy, FailureKind], SearchStrategy] = (
    MappingProxyType(
        {
            (SearchStrategy.REMOTE_EMBEDDING, FailureKind.QUOTA_EXCEEDED): (
                SearchStrategy.REMOTE_LOCAL_EMBEDDING
            ),
            (SearchStrategy.REMOTE_EMBEDDING, FailureKind.REMOTE_UNAVAILABLE): (
                SearchStrategy.LOCAL_LEXICAL
            ),
            (SearchStrategy.REMOTE_LOCAL_EMBEDDING, FailureKind.QUOTA_EXCEEDED): (
                SearchStrategy.LOCAL_LEXICAL
            ),
            (SearchStrategy.REMOTE_LOCAL_EMBEDDING, FailureKind.REMOTE_UNAVAILABLE): (
                SearchStrategy.LOCAL_LEXICAL
            ),
        }
    )
)


def next_strategy(strategy: SearchStrategy, failure: FailureKind) -> SearchStrategy:
    """Strategy to try after ``strategy`` failed with ``failure``."""
    return FALLBACK_TRANSITIONS.get((strategy, failure), SearchStrategy.LOCAL_LEXICAL)


@dataclass
class SearchStrategyState:
    """Per-session input state for one debounce cycle."""

    query: str = ""
    category: str | None = None
    phase: InputPhase = InputPhase.IDLE
    last_strategy: SearchStrategy | None = None
    last_failure: FailureKind | None = None

    @property
    def is_blank(self) -> bool:
        return not self.query.strip() and not self.category

    def on_keystroke(self, query: str, category: str | None = None) -> None:
        """New input: reset the cycle and enter TYPING (or IDLE when blank)."""
        self.query = query
        self.category = category or None
        self.last_strategy = None
        self.last_failure = None
        self.phase = InputPhase.IDLE if self.is_blank else InputPhase.TYPING

    def settle(self) -> None:
        """The quiet period elapsed without further input."""
        self.phase = InputPhase.IDLE if self.is_blank else InputPhase.SETTLED

    def record(self, strategy: SearchStrategy, failure: FailureKind | None = None) -> None:
        self.last_strategy = strategy
        self.last_failure = failure


def is_remote_eligible(query: str) -> bool:
    stripped = query.strip()
    return len(stripped) >= MIN_REMOTE_QUERY_LENGTH


def select_strategy(
    state: SearchStrategyState,
    *,
    remote_enabled: bool = True,
    embedding_enabled: bool = True,
) -> SearchStrategy:
    """
    Pick the first strategy to try for the current input.

    Typing always gets the fast local pass; a settled query of at least two
    non-blank characters goes to the vector index when one is configured.
    """
    if state.phase is InputPhase.IDLE or state.is_blank:
        return SearchStrategy.SKIP
    if not state.query.strip():
        # Category selected with no text: filtered pass-through.
        return SearchStrategy.LOCAL_LEXICAL
    if state.phase is InputPhase.TYPING:
        return SearchStrategy.LOCAL_LEXICAL
    if not remote_enabled or not is_remote_eligible(state.query):
        return SearchStrategy.LOCAL_LEXICAL

    first = (
        SearchStrategy.REMOTE_EMBEDDING
        if embedding_enabled
        else SearchStrategy.REMOTE_LOCAL_EMBEDDING
    )
    if state.last_failure is not None and state.last_strategy is not None:
        return next_strategy(state.last_strategy, state.last_failure)
    return first
