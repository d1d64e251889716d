"""Chroma implementation of the vector-store abstraction.

Each table maps to a Chroma collection and ``chunk_hash`` doubles as the
record id, which gives the same ignore-on-conflict behaviour as the
PostgreSQL backend.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import chromadb

from pdf_vectorstore.errors import SearchError, StorageError
from pdf_vectorstore.vectorstore.base import VectorStoreBase, validate_table_name

if TYPE_CHECKING:
    from pdf_vectorstore.ingestion.models import EnrichedRecord

logger = logging.getLogger(__name__)


def _flatten_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool; JSON-encode the rest."""
    flat: dict[str, Any] = {}
    for key, value in metadata.items():
        if isinstance(value, (str, int, float, bool)):
            flat[key] = value
        elif value is not None:
            flat[key] = json.dumps(value, default=str)
    return flat


def _restore_metadata(metadata: dict[str, Any] | None) -> dict[str, Any]:
    restored = dict(metadata or {})
    raw = restored.get("original_metadata")
    if isinstance(raw, str):
        try:
            restored["original_metadata"] = json.loads(raw)
        except json.JSONDecodeError:
            pass
    return restored


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client; overrides *host* / *port* when given.
    """

    def __init__(
        self,
        *,
        host: str = "localhost",
        port: int = 8000,
        client: Any | None = None,
    ) -> None:
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)

    def _collection(self, table_name: str) -> Any:
        return self._client.get_or_create_collection(name=table_name, metadata={"hnsw:space": "l2"})

    # -- VectorStoreBase overrides --------------------------------------------

    def ensure_table(self, table_name: str) -> None:
        validate_table_name(table_name)
        logger.info("Checking/creating collection %s...", table_name)
        try:
            self._collection(table_name)
        except Exception as exc:
            logger.error("Failed to create collection %s: %s", table_name, exc)
            raise StorageError(f"Failed to create table: {exc}") from exc
        logger.info("Collection %s is ready", table_name)

    def upsert_records(self, table_name: str, records: list[EnrichedRecord]) -> None:
        unique: dict[str, EnrichedRecord] = {}
        for record in records:
            unique.setdefault(record.chunk_hash, record)
        if not unique:
            return

        try:
            collection = self._collection(table_name)
            existing = set(collection.get(ids=list(unique), include=[])["ids"])
            fresh = [record for hash_, record in unique.items() if hash_ not in existing]
            if not fresh:
                return
            collection.add(
                ids=[record.chunk_hash for record in fresh],
                embeddings=[record.embedding for record in fresh],
                documents=[record.content for record in fresh],
                metadatas=[
                    _flatten_metadata({**record.metadata.model_dump(), "source": record.source})
                    for record in fresh
                ],
            )
        except Exception as exc:
            raise StorageError(f"Failed to store batch: {exc}") from exc

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
        try:
            # Searching must not create the collection as a side effect.
            results = self._client.get_collection(name=table_name).query(
                query_embeddings=[query_embedding],
                n_results=limit,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise SearchError(f"Similarity query failed: {exc}") from exc

        docs = results.get("documents", [[]])[0]
        metas = results.get("metadatas", [[]])[0]
        distances = results.get("distances", [[]])[0]

        hits: list[dict[str, Any]] = []
        for content, meta, dist in zip(docs, metas, distances):
            # Chroma returns L2 distances; convert to a 0-1 similarity score.
            similarity = 1.0 / (1.0 + dist)
            if similarity < threshold:
                continue
            hits.append({"content": content or "", "similarity": similarity, "metadata": _restore_metadata(meta)})
        hits.sort(key=lambda hit: hit["similarity"], reverse=True)
        return hits

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
