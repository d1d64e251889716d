"""Domain models for search results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SearchMatch(BaseModel):
    """A stored chunk returned by a similarity query.

    Attributes
    ----------
    content:
        The chunk text.
    similarity:
        Similarity score reported by the store (higher = more similar).
    metadata:
        The chunk's stored metadata (``source_file``, ``page_number``, …).
    """

    content: str
    similarity: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def source_file(self) -> str:
        return self.metadata.get("source_file", "unknown")

    @property
    def page_number(self) -> int | None:
        return self.metadata.get("page_number")

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.source_file} p.{self.page_number}] ({self.similarity:.2%}) {self.content[:120]}…"
