"""Ingestion pipeline orchestrator.

Wires together: pdf_extractor → chunker → embedding → chunk store.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator

from pdfchat.embedding.provider import EmbeddingProvider
from pdfchat.exceptions import EmbeddingDimensionMismatch, InvalidEmbedding
from pdfchat.ingestion.chunker import chunk_text
from pdfchat.ingestion.pdf_extractor import extract_text
from pdfchat.models.chunk import validate_embedding
from pdfchat.vectorstore.store import ChunkStore, format_vector_literal

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Turns an uploaded document into stored chunks with embeddings.

    Each chunk is handled in isolation: a missing, rejected, or unsaved
    embedding is logged and ingestion moves on to the next chunk. Only an
    embedding whose width differs from the storage column aborts the run.
    """

    def __init__(
        self,
        store: ChunkStore,
        embedder: EmbeddingProvider,
        extractor: Callable[[bytes], str] = extract_text,
        chunk_size: int = 800,
        chunk_overlap: int = 150,
        expected_dimension: int | None = None,
        embedding_workers: int = 1,
    ):
        self._store = store
        self._embedder = embedder
        self._extractor = extractor
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._expected_dimension = expected_dimension or None
        self._embedding_workers = max(1, embedding_workers)

    def ingest(self, source_name: str, file_bytes: bytes) -> dict:
        """Extract, chunk, embed and store one uploaded document.

        Re-ingesting the same bytes creates a new, independent set of
        chunk records.

        Returns a summary dict with counts and the created chunk ids.

        Raises:
            EmbeddingDimensionMismatch: If the embedding model's width does
                not match the configured storage width.
        """
        text = self._extractor(file_bytes)
        return self.ingest_text(source_name, text)

    def ingest_text(self, source_name: str, text: str) -> dict:
        """Chunk, embed and store already-extracted document text."""
        chunks = chunk_text(text, self._chunk_size, self._chunk_overlap)
        summary = {
            "source_name": source_name,
            "chunks_created": 0,
            "embeddings_stored": 0,
            "embeddings_missing": 0,
            "embeddings_rejected": 0,
            "chunk_ids": [],
        }
        if not chunks:
            logger.warning("No chunks produced for %s", source_name)
            return summary

        for index, (chunk, embedding) in enumerate(zip(chunks, self._embeddings(chunks))):
            logger.info("Processing chunk #%d (len=%d)", index, len(chunk))
            logger.info(
                "Embedding result for chunk %d: %s",
                index, "none" if not embedding else f"size={len(embedding)}",
            )

            chunk_id = self._store.create_chunk(source_name, index, chunk)
            summary["chunks_created"] += 1
            summary["chunk_ids"].append(chunk_id)
            logger.info("Saved chunk id=%s", chunk_id)

            self._save_metadata(chunk_id, {"source": source_name, "chunkIndex": index})

            if not embedding:
                logger.warning("Embedding is missing for id=%s chunk=%d, skipping embedding update", chunk_id, index)
                summary["embeddings_missing"] += 1
                continue

            try:
                vector = validate_embedding(embedding, self._expected_dimension)
            except EmbeddingDimensionMismatch:
                logger.error("Embedding dimension mismatch for id=%s; aborting ingestion of %s", chunk_id, source_name)
                raise
            except InvalidEmbedding as e:
                logger.error("Rejected embedding for id=%s: %s", chunk_id, e)
                summary["embeddings_rejected"] += 1
                continue

            if self._save_embedding(chunk_id, vector):
                summary["embeddings_stored"] += 1

        logger.info(
            "Ingested %s: %d chunks, %d embeddings stored",
            source_name, summary["chunks_created"], summary["embeddings_stored"],
        )
        return summary

    def _embeddings(self, chunks: list[str]) -> Iterator[list[float] | None]:
        """Embeddings in chunk order; computed lazily unless workers > 1."""
        if self._embedding_workers == 1:
            return (self._embed_chunk(chunk) for chunk in chunks)

        # Only the embedding calls run concurrently; writes stay sequential
        with ThreadPoolExecutor(max_workers=self._embedding_workers) as executor:
            return iter(list(executor.map(self._embed_chunk, chunks)))

    def _embed_chunk(self, chunk: str) -> list[float] | None:
        """Embed one chunk, retrying once on an empty result."""
        try:
            embedding = self._embedder.embed(chunk)
            if not embedding:
                logger.warning("First embed attempt returned nothing for chunk (len=%d), retrying", len(chunk))
                embedding = self._embedder.embed(chunk)
            return embedding
        except Exception as e:
            logger.error("Exception while embedding chunk (len=%d): %s", len(chunk), e)
            return None

    def _save_metadata(self, chunk_id: int, metadata: dict) -> None:
        try:
            self._store.update_metadata(chunk_id, json.dumps(metadata))
            logger.info("Saved metadata for id=%s", chunk_id)
        except Exception as e:
            logger.error("Failed to save metadata for id=%s: %s", chunk_id, e)

    def _save_embedding(self, chunk_id: int, vector: list[float]) -> bool:
        try:
            updated = self._store.update_embedding(chunk_id, format_vector_literal(vector))
        except Exception as e:
            logger.error("Failed to save embedding for id=%s: %s", chunk_id, e)
            return False

        logger.info("Embedding update touched %d rows for id=%s", updated, chunk_id)
        if updated == 0:
            logger.warning("Embedding update affected 0 rows for id=%s", chunk_id)
            return False
        return True
