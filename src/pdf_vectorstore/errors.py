"""Exception hierarchy shared by the ingestion, storage and search layers."""

from __future__ import annotations


class PdfVectorStoreError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PdfVectorStoreError):
    """Required credentials or options are missing or invalid."""


class ProcessingError(PdfVectorStoreError):
    """A document could not be turned into stored chunks."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class LoadError(ProcessingError):
    """The PDF could not be read or parsed."""


class EmbeddingError(ProcessingError):
    """The embedding provider call failed."""


class StorageError(PdfVectorStoreError):
    """A write to the vector store failed."""

    def __init__(self, message: str, *, batch_index: int | None = None) -> None:
        super().__init__(message)
        self.batch_index = batch_index


class DuplicateChunkError(StorageError):
    """The store rejected a batch because a ``chunk_hash`` already exists."""


class SearchError(PdfVectorStoreError):
    """Embedding the query or running the similarity query failed."""
