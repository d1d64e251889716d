"""
Vector stores — table lifecycle, batched upserts and similarity queries.

Public surface
--------------
- :class:`VectorStoreBase` — abstract backend.
- :class:`PgVectorStore` — PostgreSQL + pgvector backend (default).
- :class:`ChromaVectorStore` — Chroma backend.
- :func:`get_vector_store` — build the backend named in the settings.
"""

from __future__ import annotations

from pdf_vectorstore.config import Settings, settings
from pdf_vectorstore.errors import ConfigurationError
from pdf_vectorstore.vectorstore.base import VectorStoreBase, validate_table_name

__all__ = [
    "ChromaVectorStore",
    "PgVectorStore",
    "VectorStoreBase",
    "get_vector_store",
    "validate_table_name",
]


def get_vector_store(config: Settings = settings) -> VectorStoreBase:
    """Return the backend selected by ``config.vector_backend``."""
    if config.vector_backend == "pgvector":
        from pdf_vectorstore.vectorstore.pgvector_store import PgVectorStore

        return PgVectorStore(config.database_url, dimensions=config.embedding_dimensions)
    if config.vector_backend == "chroma":
        from pdf_vectorstore.vectorstore.chroma_store import ChromaVectorStore

        return ChromaVectorStore(host=config.chroma_host, port=config.chroma_port)
    raise ConfigurationError(f"Unsupported vector_backend: {config.vector_backend!r}")


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import backends to avoid pulling in their drivers at import time."""
    if name == "PgVectorStore":
        from pdf_vectorstore.vectorstore.pgvector_store import PgVectorStore

        return PgVectorStore
    if name == "ChromaVectorStore":
        from pdf_vectorstore.vectorstore.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
