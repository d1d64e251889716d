"""Abstract base class for vector-store backends.

A backend owns the lifecycle of its tables (or collections): it creates
them on first write, stores :class:`EnrichedRecord` rows with
ignore-on-conflict semantics on ``chunk_hash``, and answers similarity
queries. Adding a backend only requires subclassing :class:`VectorStoreBase`.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pdf_vectorstore.errors import ConfigurationError

if TYPE_CHECKING:
    from pdf_vectorstore.ingestion.models import EnrichedRecord

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def validate_table_name(table_name: str) -> str:
    """Return *table_name* unchanged if it is a plain SQL identifier."""
    if not _TABLE_NAME_RE.match(table_name):
        raise ConfigurationError(f"Invalid table name: {table_name!r}")
    return table_name


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def ensure_table(self, table_name: str) -> None:
        """Create *table_name* with its indexes unless it already holds data.

        An existing table's schema is not verified.
        """
        ...

    @abstractmethod
    def upsert_records(self, table_name: str, records: list[EnrichedRecord]) -> None:
        """Insert *records*, silently skipping any whose ``chunk_hash`` exists.

        Raises
        ------
        DuplicateChunkError
            A unique-constraint violation escaped the ignore-on-conflict path.
        StorageError
            Any other write failure.
        """
        ...

    @abstractmethod
    def similarity_search(
        self,
        table_name: str,
        query_embedding: list[float],
        *,
        limit: int = 5,
        threshold: float = 0.8,
    ) -> list[dict[str, Any]]:
        """Return up to *limit* rows with similarity ≥ *threshold*, best first.

        Each result dict contains ``"content"``, ``"similarity"`` and
        ``"metadata"``.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
