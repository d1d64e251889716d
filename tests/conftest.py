"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import math
from typing import Any

import pytest
from langchain_core.embeddings import Embeddings

from pdf_vectorstore.ingestion.embedder import ChunkEmbedder
from pdf_vectorstore.ingestion.models import EnrichedRecord
from pdf_vectorstore.vectorstore.base import VectorStoreBase


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes for the external collaborators ────────────────────────────────


class FakeEmbeddings(Embeddings):
    """Deterministic, normalised 8-dimensional vectors derived from a hash of the text."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise RuntimeError("provider unavailable")
        digest = hashlib.sha256(text.encode()).digest()
        raw = [b - 127.5 for b in digest[:8]]
        norm = math.sqrt(sum(x * x for x in raw)) or 1.0
        return [x / norm for x in raw]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


class FakeVectorStore(VectorStoreBase):
    """In-memory store with ignore-on-conflict upserts and cosine scoring."""

    def __init__(self) -> None:
        self.tables: dict[str, list[EnrichedRecord]] = {}
        self.ensure_calls: list[str] = []
        self.upsert_batches: list[list[EnrichedRecord]] = []
        self.fail_with: Exception | None = None

    def ensure_table(self, table_name: str) -> None:
        self.ensure_calls.append(table_name)
        self.tables.setdefault(table_name, [])

    def upsert_records(self, table_name: str, records: list[EnrichedRecord]) -> None:
        self.upsert_batches.append(list(records))
        if self.fail_with is not None:
            raise self.fail_with
        rows = self.tables.setdefault(table_name, [])
        known = {row.chunk_hash for row in rows}
        for record in records:
            if record.chunk_hash not in known:
                rows.append(record)
                known.add(record.chunk_hash)

    def similarity_search(
        self,
        table_name: str,
        query_embedding: list[float],
        *,
        limit: int = 5,
        threshold: float = 0.8,
    ) -> list[dict[str, Any]]:
        hits = []
        for row in self.tables.get(table_name, []):
            similarity = sum(a * b for a, b in zip(row.embedding, query_embedding))
            if similarity >= threshold:
                hits.append(
                    {"content": row.content, "similarity": similarity, "metadata": row.metadata.model_dump()}
                )
        hits.sort(key=lambda h: h["similarity"], reverse=True)
        return hits[:limit]

    def health_check(self) -> bool:
        return True


@pytest.fixture()
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture()
def embedder(fake_embeddings: FakeEmbeddings) -> ChunkEmbedder:
    return ChunkEmbedder(fake_embeddings, "fake-embedding-model")


@pytest.fixture()
def fake_store() -> FakeVectorStore:
    return FakeVectorStore()
