"""In-process chunk store using numpy for Euclidean nearest-neighbour search."""

import itertools
import json
import logging
import threading
from typing import Sequence

import numpy as np

from pdfchat.models.chunk import DocumentChunk, RetrievedExcerpt
from pdfchat.vectorstore.store import ChunkStore, parse_vector_literal

logger = logging.getLogger(__name__)


class InMemoryChunkStore(ChunkStore):
    """Chunk store that keeps every DocumentChunk in a dict keyed by id.

    Ids are assigned sequentially from 1. Chunks without an embedding are
    kept but never returned by nearest_neighbors.
    """

    def __init__(self):
        self._chunks: dict[int, DocumentChunk] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create_chunk(self, source_name: str, chunk_index: int, content: str) -> int:
        with self._lock:
            chunk_id = next(self._ids)
            self._chunks[chunk_id] = DocumentChunk(
                source_name=source_name,
                chunk_index=chunk_index,
                content=content,
                id=chunk_id,
            )
        return chunk_id

    def update_metadata(self, chunk_id: int, metadata_json: str) -> int:
        chunk = self._chunks.get(chunk_id)
        if chunk is None:
            return 0
        chunk.metadata = json.loads(metadata_json)
        return 1

    def update_embedding(self, chunk_id: int, vector_literal: str) -> int:
        chunk = self._chunks.get(chunk_id)
        if chunk is None:
            return 0
        chunk.embedding = parse_vector_literal(vector_literal)
        return 1

    def nearest_neighbors(self, vector: Sequence[float], k: int) -> list[RetrievedExcerpt]:
        embedded = [c for c in self._chunks.values() if c.embedding]
        if not embedded or k <= 0:
            return []

        query = np.asarray(vector, dtype=float)
        matrix = np.asarray([c.embedding for c in embedded], dtype=float)
        distances = np.linalg.norm(matrix - query, axis=1)
        # Stable sort keeps insertion order among equal distances
        order = np.argsort(distances, kind="stable")[:k]

        return [
            {
                "id": embedded[i].id,
                "content": embedded[i].content,
                "metadata": dict(embedded[i].metadata),
            }
            for i in order
        ]

    def get_chunk(self, chunk_id: int) -> DocumentChunk | None:
        return self._chunks.get(chunk_id)

    def chunks_for_source(self, source_name: str) -> list[DocumentChunk]:
        """All chunks of one source, in creation order."""
        return [c for c in self._chunks.values() if c.source_name == source_name]

    def count(self) -> int:
        return len(self._chunks)
