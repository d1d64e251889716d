"""Chunk enrichment — hashing, classification and metadata construction.

The :class:`ChunkEnricher` is the single place where ``chunk_hash`` is
derived. By default the hash mixes in the run timestamp, so identical text
ingested in two different runs is stored twice; pass
``dedupe_across_runs=True`` to hash the content alone.
"""

from __future__ import annotations

import hashlib
import os
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from pdf_vectorstore.ingestion.models import Chunk, ChunkMetadata

CODE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"```[\s\S]*?```"),  # fenced block
    re.compile(r"\{[\s\S]*?\}"),  # brace block
    re.compile(r"function\s*\("),
    re.compile(r"class\s+\w+"),
    re.compile(r"import\s+.*from"),
    re.compile(r"const\s+\w+\s*="),
    re.compile(r"let\s+\w+\s*="),
    re.compile(r"var\s+\w+\s*="),
)


def contains_code(text: str, patterns: Iterable[re.Pattern[str]] = CODE_PATTERNS) -> bool:
    """Return ``True`` if any of *patterns* matches *text*."""
    return any(pattern.search(text) for pattern in patterns)


def classify_doc_type(source: str) -> str:
    """Classify a document as ``reporting_guide`` or ``release_notes`` by its path."""
    return "reporting_guide" if "reporting" in source.lower() else "release_notes"


def compute_chunk_hash(content: str, timestamp_ms: int | None = None) -> str:
    """SHA-256 hex digest of *content*, optionally salted with a run timestamp."""
    payload = content if timestamp_ms is None else f"{content}{timestamp_ms}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def estimate_word_count(text: str) -> int:
    return len(text.split())


class ChunkEnricher:
    """Builds :class:`ChunkMetadata` for the chunks of one ingestion run.

    Parameters
    ----------
    model_version:
        Embedding model identifier recorded on every chunk.
    run_started_at:
        Timestamp of the run; defaults to now (UTC).
    dedupe_across_runs:
        When ``True`` the chunk hash ignores the run timestamp.
    """

    def __init__(
        self,
        model_version: str,
        *,
        run_started_at: datetime | None = None,
        dedupe_across_runs: bool = False,
        code_patterns: Iterable[re.Pattern[str]] = CODE_PATTERNS,
    ) -> None:
        self.model_version = model_version
        self.run_started_at = run_started_at or datetime.now(timezone.utc)
        self.timestamp_ms = int(self.run_started_at.timestamp() * 1000)
        self.dedupe_across_runs = dedupe_across_runs
        self.code_patterns = tuple(code_patterns)

    def chunk_hash(self, content: str) -> str:
        if self.dedupe_across_runs:
            return compute_chunk_hash(content)
        return compute_chunk_hash(content, self.timestamp_ms)

    def new_doc_id(self) -> str:
        return f"doc_{self.timestamp_ms}_{os.urandom(4).hex()}"

    def build_metadata(self, chunk: Chunk) -> ChunkMetadata:
        """Return the stored metadata for *chunk*."""
        return ChunkMetadata(
            chunk_hash=self.chunk_hash(chunk.text),
            doc_id=self.new_doc_id(),
            source_file=Path(chunk.source).name,
            file_path=chunk.source,
            doc_type=classify_doc_type(chunk.source),
            page_number=chunk.page_number,
            chunk_index=chunk.chunk_index,
            total_chunks=chunk.total_chunks,
            processed_at=self.run_started_at.isoformat(),
            model_version=self.model_version,
            chunk_size=len(chunk.text),
            original_metadata=chunk.metadata,
            estimated_word_count=estimate_word_count(chunk.text),
            contains_code=contains_code(chunk.text, self.code_patterns),
        )
