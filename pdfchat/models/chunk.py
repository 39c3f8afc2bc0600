"""Document Chunk data model."""

import math
from dataclasses import dataclass, field
from typing import Any, TypedDict

from pdfchat.exceptions import EmbeddingDimensionMismatch, InvalidEmbedding


class RetrievedExcerpt(TypedDict):
    """A nearest-neighbour row returned by the chunk store."""
    id: int
    content: str
    metadata: dict[str, Any]


@dataclass
class DocumentChunk:
    """A window of extracted PDF text sized for embedding and retrieval.

    The id is assigned by the store on create. The embedding is filled in
    by a second write once the vector is available.
    """

    source_name: str
    chunk_index: int
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    embedding: list[float] | None = None
    id: int | None = None

    def __post_init__(self):
        if not self.content or not self.content.strip():
            raise ValueError("content must not be empty")
        if self.chunk_index < 0:
            raise ValueError("chunk_index must be >= 0")


def validate_embedding(vector: list, expected_dimension: int | None = None) -> list[float]:
    """Check that every element is a finite number and the width matches.

    Returns the vector as a list of floats.

    Raises:
        EmbeddingDimensionMismatch: If expected_dimension is set and differs.
        InvalidEmbedding: If any element is null, non-numeric, NaN or infinite.
    """
    if expected_dimension and len(vector) != expected_dimension:
        raise EmbeddingDimensionMismatch(expected_dimension, len(vector))

    values = []
    for i, value in enumerate(vector):
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidEmbedding(f"embedding element {i} is not a number: {value!r}")
        if not math.isfinite(value):
            raise InvalidEmbedding(f"embedding element {i} is not finite: {value!r}")
        values.append(float(value))
    return values
