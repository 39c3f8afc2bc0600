"""Chunk store interface consumed by the ingestion and retrieval pipelines."""

from abc import ABC, abstractmethod
from typing import Sequence

from pdfchat.models.chunk import RetrievedExcerpt


def format_vector_literal(vector: Sequence[float]) -> str:
    """Render a vector as ``[v1,v2,...]`` with 12 fractional digits.

    Uses a period as decimal separator independent of locale, which is
    the text form pgvector accepts for a ``::vector`` cast.
    """
    return "[" + ",".join(f"{float(v):.12f}" for v in vector) + "]"


def parse_vector_literal(literal: str) -> list[float]:
    """Inverse of format_vector_literal."""
    body = literal.strip().lstrip("[").rstrip("]").strip()
    if not body:
        return []
    return [float(part) for part in body.split(",")]


class ChunkStore(ABC):
    """Persistence for document chunks and their embeddings."""

    @abstractmethod
    def create_chunk(self, source_name: str, chunk_index: int, content: str) -> int:
        """Insert a chunk without metadata or embedding and return its id."""
        ...

    @abstractmethod
    def update_metadata(self, chunk_id: int, metadata_json: str) -> int:
        """Set the chunk's JSON metadata. Returns the number of rows updated."""
        ...

    @abstractmethod
    def update_embedding(self, chunk_id: int, vector_literal: str) -> int:
        """Set the chunk's embedding from a vector literal. Returns rows updated."""
        ...

    @abstractmethod
    def nearest_neighbors(self, vector: Sequence[float], k: int) -> list[RetrievedExcerpt]:
        """Return up to k embedded chunks ordered by ascending distance."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored chunks."""
        ...
