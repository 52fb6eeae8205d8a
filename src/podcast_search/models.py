"""
Episode records and scored search results.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A podcast episode in the corpus."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(description="Stable episode identifier")
    title: str
    description: str = Field(description="Short description shown in result cards")
    full_description: str | None = Field(default=None, alias="fullDescription")
    category: str
    duration: str = Field(description="Duration label, e.g. '32:15'")
    publish_date: str = Field(alias="publishDate")
    tags: tuple[str, ...] = ()

    @property
    def external_id(self) -> str:
        """Identifier as stored in the vector index."""
        return str(self.id)

    def searchable_text(self) -> str:
        """Concatenated, lowercased text used for lexical matching."""
        return " ".join(
            [
                self.title,
                self.description,
                self.full_description or "",
                " ".join(self.tags),
            ]
        ).lower()


@dataclass(frozen=True)
class ScoredDocument:
    """A corpus document paired with a per-query relevance score.

    ``score`` is ``None`` for pass-through results (no query). Lexical scores
    are integer weight sums, vector scores are 0-100 percentages.
    """

    document: Document
    score: int | None = None

    @property
    def id(self) -> int:
        return self.document.id

    def to_dict(self) -> dict:
        payload = self.document.model_dump(by_alias=True, mode="json")
        payload["relevanceScore"] = self.score
        return payload
