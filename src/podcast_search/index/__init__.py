"""Vector index backends for podcast search."""

from .base import VectorIndex, VectorMatch
from .memory import InMemoryVectorIndex
from .pinecone import PineconeIndex

__all__ = [
    "VectorIndex",
    "VectorMatch",
    "InMemoryVectorIndex",
    "PineconeIndex",
]
