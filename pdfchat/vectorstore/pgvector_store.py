"""PostgreSQL + pgvector chunk store."""

import logging
from typing import Sequence

import psycopg
from psycopg.rows import dict_row

from pdfchat.models.chunk import RetrievedExcerpt
from pdfchat.vectorstore.store import ChunkStore, format_vector_literal

logger = logging.getLogger(__name__)

TABLE_NAME = "document_chunks"


class PgVectorStore(ChunkStore):
    """Chunk store backed by a ``document_chunks`` table with a vector column.

    Holds one autocommit connection for the life of the store, opened on
    first use, so each statement commits on its own. Use the store as a
    context manager, or call close(), to release the connection.
    """

    def __init__(self, database_url: str):
        self._database_url = database_url
        self._conn: psycopg.Connection | None = None

    def _connection(self) -> psycopg.Connection:
        if self._conn is None or self._conn.closed:
            self._conn = psycopg.connect(self._database_url, row_factory=dict_row, autocommit=True)
            logger.debug("Opened connection for %s", TABLE_NAME)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "PgVectorStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def create_schema(self, dimension: int) -> None:
        """Create the pgvector extension and the chunk table if missing."""
        conn = self._connection()
        conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
            "id BIGSERIAL PRIMARY KEY, "
            "source_filename TEXT, "
            "chunk_index INTEGER, "
            "content TEXT, "
            "metadata JSONB, "
            f"embedding vector({int(dimension)}))"
        )
        logger.info("Ensured table %s with vector(%d)", TABLE_NAME, dimension)

    def create_chunk(self, source_name: str, chunk_index: int, content: str) -> int:
        row = self._connection().execute(
            f"INSERT INTO {TABLE_NAME} (source_filename, chunk_index, content) "
            "VALUES (%s, %s, %s) RETURNING id",
            (source_name, chunk_index, content),
        ).fetchone()
        return row["id"]

    def update_metadata(self, chunk_id: int, metadata_json: str) -> int:
        cur = self._connection().execute(
            f"UPDATE {TABLE_NAME} SET metadata = %s::jsonb WHERE id = %s",
            (metadata_json, chunk_id),
        )
        return cur.rowcount

    def update_embedding(self, chunk_id: int, vector_literal: str) -> int:
        logger.debug(
            "Embedding literal for id %s preview: %s",
            chunk_id,
            vector_literal[:200] + "..." if len(vector_literal) > 200 else vector_literal,
        )
        cur = self._connection().execute(
            f"UPDATE {TABLE_NAME} SET embedding = %s::vector WHERE id = %s",
            (vector_literal, chunk_id),
        )
        return cur.rowcount

    def nearest_neighbors(self, vector: Sequence[float], k: int) -> list[RetrievedExcerpt]:
        rows = self._connection().execute(
            f"SELECT id, content, metadata FROM {TABLE_NAME} "
            "WHERE embedding IS NOT NULL "
            "ORDER BY embedding <-> %s::vector LIMIT %s",
            (format_vector_literal(vector), k),
        ).fetchall()
        return [
            {"id": row["id"], "content": row["content"], "metadata": row["metadata"] or {}}
            for row in rows
        ]

    def count(self) -> int:
        row = self._connection().execute(f"SELECT COUNT(*) AS n FROM {TABLE_NAME}").fetchone()
        return row["n"]
