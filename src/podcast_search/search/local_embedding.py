"""
Deterministic hash-based embeddings computed without any remote call.

Used as a stand-in for the embedding API when it is over quota or not
configured. Vectors share the remote dimension so they can query the same
index.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from types import MappingProxyType

from ..config import DEFAULT_EMBEDDING_DIM

_STRIP_RE = re.compile(r"[^一-鿿A-Za-z0-9_\s]")
_SPACE_RE = re.compile(r"\s+")

_POSITION_MULTIPLIERS = (1, 31, 37)
_POSITION_WEIGHTS = (1.0, 0.7, 0.5)
ANCHOR_BOOST = 2.0

SEMANTIC_ANCHORS: Mapping[str, tuple[int, int, int]] = MappingProxyType(
    {
        "美食": (100, 200, 300),
        "旅遊": (150, 250, 350),
        "投資": (400, 500, 600),
        "財經": (450, 550, 650),
        "科技": (700, 800, 900),
        "企業": (750, 850, 950),
        "社會": (1000, 1100, 1200),
        "娛樂": (1300, 1400, 1500),
    }
)


def normalize_text(text: str) -> str:
    """Lowercase, keep word chars, whitespace and CJK ideographs, collapse spaces."""
    stripped = _STRIP_RE.sub(" ", text.lower())
    return _SPACE_RE.sub(" ", stripped).strip()


def word_hash(word: str) -> int:
    """31-multiplier rolling hash wrapped to a signed 32-bit integer."""
    value = 0
    for ch in word:
        value = (value * 31 + ord(ch)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def word_weight(word: str) -> float:
    return min(1.0, math.log(len(word) + 1) / 3)


def embed_locally(text: str, dim: int = DEFAULT_EMBEDDING_DIM) -> list[float]:
    """Return a unit-length (or all-zero) vector of length ``dim`` for ``text``."""
    if dim <= 0:
        raise ValueError(f"dim must be positive, got {dim}")

    normalized = normalize_text(text)
    vector = [0.0] * dim

    for word in normalized.split(" "):
        if not word:
            continue
        hashed = word_hash(word)
        weight = word_weight(word)
        for multiplier, scale in zip(_POSITION_MULTIPLIERS, _POSITION_WEIGHTS):
            vector[abs(hashed * multiplier) % dim] += weight * scale

    for keyword, positions in SEMANTIC_ANCHORS.items():
        if keyword in normalized:
            for pos in positions:
                if pos < dim:
                    vector[pos] += ANCHOR_BOOST

    magnitude = math.sqrt(sum(value * value for value in vector))
    if magnitude > 0:
        vector = [value / magnitude for value in vector]
    return vector


class LocalEmbedder:
    """Drop-in replacement for ``EmbeddingProvider.embed_query``."""

    def __init__(self, dim: int = DEFAULT_EMBEDDING_DIM) -> None:
        self.dim = dim

    def embed_query(self, query: str) -> list[float]:
        return embed_locally(query, self.dim)

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [embed_locally(text, self.dim) for text in texts]
