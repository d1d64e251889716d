"""Domain models flowing through the ingestion pipeline."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PageSegment(BaseModel):
    """Text of a single physical PDF page.

    Attributes
    ----------
    text:
        Extracted page text (may be empty for blank or image-only pages).
    page_number:
        1-based page number within the source document.
    source:
        Path of the PDF the page came from.
    metadata:
        Loader-supplied metadata, passed through untouched.
    """

    text: str
    page_number: int
    source: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class Chunk(BaseModel):
    """A bounded text window cut from a :class:`PageSegment`."""

    text: str
    page_number: int
    source: str
    chunk_index: int = 0
    total_chunks: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)


class ChunkMetadata(BaseModel):
    """Metadata stored in the ``metadata`` JSON column of every row."""

    chunk_hash: str
    doc_id: str
    source_file: str
    file_path: str
    file_type: str = "pdf"
    doc_type: str
    page_number: int
    chunk_index: int
    total_chunks: int
    processed_at: str
    model_version: str
    chunk_size: int
    original_metadata: dict[str, Any] = Field(default_factory=dict)
    estimated_word_count: int
    contains_code: bool
    status: str = "processed"
    version: str = "1.0"


class EnrichedRecord(BaseModel):
    """The unit of storage: one chunk, its vector and its metadata."""

    content: str
    embedding: list[float]
    metadata: ChunkMetadata
    source: str
    chunk_hash: str

    def to_row(self) -> dict[str, Any]:
        """Return the record as a flat dict keyed by table column."""
        return {
            "content": self.content,
            "embedding": self.embedding,
            "metadata": self.metadata.model_dump(),
            "source": self.source,
            "chunk_hash": self.chunk_hash,
        }
