"""PostgreSQL + pgvector implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np
import psycopg
from pgvector.psycopg import register_vector
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from pdf_vectorstore.errors import DuplicateChunkError, SearchError, StorageError
from pdf_vectorstore.vectorstore.base import VectorStoreBase, validate_table_name

if TYPE_CHECKING:
    from pdf_vectorstore.ingestion.models import EnrichedRecord

logger = logging.getLogger(__name__)

MATCH_FUNCTION = "match_documents_enhanced"

# Cosine similarity for scoring, L2 ordering so the IVFFlat index is used.
MATCH_FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION match_documents_enhanced(
    query_embedding vector,
    match_threshold float,
    match_count int,
    table_name text
)
RETURNS TABLE (id bigint, content text, metadata jsonb, similarity float)
LANGUAGE plpgsql
AS $$
BEGIN
    RETURN QUERY EXECUTE format(
        'SELECT id, content, metadata, 1 - (embedding <=> $1) AS similarity
           FROM %I
          WHERE 1 - (embedding <=> $1) >= $2
          ORDER BY embedding <-> $1
          LIMIT $3',
        table_name
    )
    USING query_embedding, match_threshold, match_count;
END;
$$;
"""


def _as_vector(embedding: list[float]) -> np.ndarray:
    return np.asarray(embedding, dtype=np.float32)


class PgVectorStore(VectorStoreBase):
    """pgvector-backed vector store.

    Parameters
    ----------
    dsn:
        PostgreSQL connection string, credentials included.
    dimensions:
        Width of the ``embedding`` column; must match the embedding model.
    ivfflat_lists:
        Number of IVFFlat lists for the ANN index.
    """

    def __init__(self, dsn: str, *, dimensions: int = 1536, ivfflat_lists: int = 100) -> None:
        self._dsn = dsn
        self.dimensions = dimensions
        self.ivfflat_lists = ivfflat_lists

    # -- table lifecycle ------------------------------------------------------

    def table_has_rows(self, table_name: str) -> bool:
        """Probe *table_name* for a single row; a missing table counts as empty."""
        query = sql.SQL("SELECT id FROM {} LIMIT 1").format(sql.Identifier(table_name))
        try:
            with psycopg.connect(self._dsn) as conn:
                row = conn.execute(query).fetchone()
        except psycopg.errors.UndefinedTable:
            return False
        except psycopg.Error as exc:
            raise StorageError(f"Failed to inspect table {table_name}: {exc}") from exc
        return row is not None

    def ensure_table(self, table_name: str) -> None:
        validate_table_name(table_name)
        logger.info("Checking/creating table %s...", table_name)
        if self.table_has_rows(table_name):
            logger.info("Table %s already exists, skipping creation...", table_name)
            return

        table = sql.Identifier(table_name)
        statements = [
            sql.SQL("CREATE EXTENSION IF NOT EXISTS vector"),
            sql.SQL(
                "CREATE TABLE IF NOT EXISTS {table} ("
                " id BIGSERIAL PRIMARY KEY,"
                " content TEXT,"
                " embedding vector({dim}),"
                " metadata JSONB,"
                " source TEXT,"
                " chunk_hash TEXT UNIQUE"
                ")"
            ).format(table=table, dim=sql.SQL(str(int(self.dimensions)))),
            sql.SQL(
                "CREATE INDEX IF NOT EXISTS {index} ON {table}"
                " USING ivfflat (embedding vector_l2_ops) WITH (lists = {lists})"
            ).format(
                index=sql.Identifier(f"{table_name}_embedding_idx"),
                table=table,
                lists=sql.SQL(str(int(self.ivfflat_lists))),
            ),
            sql.SQL("CREATE INDEX IF NOT EXISTS {index} ON {table} (chunk_hash)").format(
                index=sql.Identifier(f"{table_name}_chunk_hash_idx"),
                table=table,
            ),
            sql.SQL(MATCH_FUNCTION_SQL),
        ]
        try:
            with psycopg.connect(self._dsn) as conn:
                for statement in statements:
                    conn.execute(statement)
        except psycopg.Error as exc:
            logger.error("Failed to create table %s: %s", table_name, exc)
            raise StorageError(f"Failed to create table: {exc}") from exc

        logger.info("Table %s is ready", table_name)

    # -- writes ---------------------------------------------------------------

    def upsert_records(self, table_name: str, records: list[EnrichedRecord]) -> None:
        if not records:
            return
        query = sql.SQL(
            "INSERT INTO {} (content, embedding, metadata, source, chunk_hash)"
            " VALUES (%s, %s, %s, %s, %s)"
            " ON CONFLICT (chunk_hash) DO NOTHING"
        ).format(sql.Identifier(validate_table_name(table_name)))
        params = [
            (
                record.content,
                _as_vector(record.embedding),
                Jsonb(record.metadata.model_dump()),
                record.source,
                record.chunk_hash,
            )
            for record in records
        ]
        try:
            with psycopg.connect(self._dsn) as conn:
                register_vector(conn)
                with conn.cursor() as cur:
                    cur.executemany(query, params)
        except psycopg.errors.UniqueViolation as exc:
            raise DuplicateChunkError(f"duplicate key value: {exc}") from exc
        except psycopg.Error as exc:
            raise StorageError(f"Failed to store batch: {exc}") from exc

    # -- reads ----------------------------------------------------------------

    def similarity_search(
        self,
        table_name: str,
        query_embedding: list[float],
        *,
        limit: int = 5,
        threshold: float = 0.8,
    ) -> list[dict[str, Any]]:
        if limit <= 0:
            return []
        query = sql.SQL("SELECT content, similarity, metadata FROM {}(%s, %s, %s, %s)").format(
            sql.Identifier(MATCH_FUNCTION)
        )
        params = (_as_vector(query_embedding), threshold, limit, validate_table_name(table_name))
        try:
            with psycopg.connect(self._dsn, row_factory=dict_row) as conn:
                register_vector(conn)
                rows = conn.execute(query, params).fetchall()
        except psycopg.Error as exc:
            raise SearchError(f"Similarity query failed: {exc}") from exc
        return [
            {
                "content": row["content"] or "",
                "similarity": float(row["similarity"]),
                "metadata": row["metadata"] or {},
            }
            for row in rows
        ]

    def health_check(self) -> bool:
        try:
            with psycopg.connect(self._dsn) as conn:
                conn.execute("SELECT 1")
            return True
        except psycopg.Error:
            logger.warning("PostgreSQL health-check failed", exc_info=True)
            return False
