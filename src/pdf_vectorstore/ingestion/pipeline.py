"""Ingestion pipeline — load → chunk → enrich/embed → store.

Documents are processed one after another. Within a document, chunks are
written in batches of ``batch_size``; each batch is embedded in
sub-batches of ``sub_batch_size`` whose requests run concurrently. Fixed
sleeps between sub-batches and batches keep the embedding request rate
down.

Usage::

    from pdf_vectorstore.ingestion.pipeline import load_documents

    load_documents(["docs/Reporting_Guide.pdf"], "pdf_chunks")
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Sequence
from pathlib import Path

from pdf_vectorstore.config import Settings, settings
from pdf_vectorstore.errors import (
    ConfigurationError,
    DuplicateChunkError,
    PdfVectorStoreError,
    ProcessingError,
    StorageError,
)
from pdf_vectorstore.ingestion.chunker import chunk_segments
from pdf_vectorstore.ingestion.embedder import ChunkEmbedder, get_embedding_function
from pdf_vectorstore.ingestion.enricher import ChunkEnricher
from pdf_vectorstore.ingestion.loader import load_pdf
from pdf_vectorstore.ingestion.models import Chunk, EnrichedRecord, PageSegment
from pdf_vectorstore.vectorstore import VectorStoreBase, get_vector_store

logger = logging.getLogger(__name__)


def _summarize_failures(failures: dict[str, PdfVectorStoreError], total: int) -> PdfVectorStoreError:
    """Fold per-document failures into one error of the most severe type.

    A single failure is returned as-is. Otherwise a write failure anywhere
    makes the summary a :class:`StorageError`; the first matching failure
    becomes its ``__cause__``.
    """
    if len(failures) == 1:
        return next(iter(failures.values()))

    details = "; ".join(f"{path}: {exc}" for path, exc in failures.items())
    message = f"{len(failures)} of {total} documents failed: {details}"
    storage_failures = [exc for exc in failures.values() if isinstance(exc, StorageError)]
    if storage_failures:
        error: PdfVectorStoreError = StorageError(message)
        error.__cause__ = storage_failures[0]
    else:
        error = ProcessingError(message)
        error.__cause__ = next(iter(failures.values()))
    return error


class PdfVectorLoader:
    """Loads PDFs into a vector store.

    Parameters
    ----------
    store:
        Destination backend; owns table creation and upserts.
    embedder:
        Embedding client shared by every chunk of the run.
    batch_size:
        Chunks per stored batch.
    sub_batch_size:
        Chunks embedded concurrently inside a batch.
    sub_batch_delay / batch_delay:
        Seconds to sleep after each sub-batch / stored batch.
    dedupe_across_runs:
        Hash chunk content without the run timestamp.
    continue_on_error:
        Record a failing document and move on instead of aborting the run.
    pdf_loader:
        Callable returning the pages of a path; defaults to :func:`load_pdf`.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: ChunkEmbedder,
        *,
        batch_size: int = 20,
        sub_batch_size: int = 5,
        sub_batch_delay: float = 0.5,
        batch_delay: float = 1.0,
        dedupe_across_runs: bool = False,
        continue_on_error: bool = False,
        pdf_loader: Callable[[str | Path], list[PageSegment]] = load_pdf,
    ) -> None:
        if batch_size <= 0 or sub_batch_size <= 0:
            raise ConfigurationError("batch_size and sub_batch_size must be positive")
        self._store = store
        self._embedder = embedder
        self.batch_size = batch_size
        self.sub_batch_size = sub_batch_size
        self.sub_batch_delay = sub_batch_delay
        self.batch_delay = batch_delay
        self.dedupe_across_runs = dedupe_across_runs
        self.continue_on_error = continue_on_error
        self._pdf_loader = pdf_loader

    @classmethod
    def from_settings(cls, config: Settings = settings) -> PdfVectorLoader:
        """Build a loader, its store and its embedder from *config*."""
        config.require_credentials()
        return cls(
            get_vector_store(config),
            ChunkEmbedder(get_embedding_function(config), config.embedding_model),
            batch_size=config.batch_size,
            sub_batch_size=config.sub_batch_size,
            sub_batch_delay=config.sub_batch_delay,
            batch_delay=config.batch_delay,
            dedupe_across_runs=config.dedupe_across_runs,
            continue_on_error=config.continue_on_error,
        )

    # -- public API -----------------------------------------------------------

    def load_documents(
        self,
        paths: Sequence[str | Path],
        table_name: str,
        chunk_size: int = 500,
        chunk_overlap: int = 50,
    ) -> None:
        """Blocking wrapper around :meth:`aload_documents`."""
        asyncio.run(self.aload_documents(paths, table_name, chunk_size, chunk_overlap))

    async def aload_documents(
        self,
        paths: Sequence[str | Path],
        table_name: str,
        chunk_size: int = 500,
        chunk_overlap: int = 50,
    ) -> None:
        """Ingest every PDF in *paths* into *table_name*.

        Raises
        ------
        ConfigurationError
            Invalid chunking options or table name.
        ProcessingError
            A document failed to load, chunk or embed. With
            ``continue_on_error`` failures are raised once at the end: a
            lone failure unchanged, several as one summary listing each.
        StorageError
            A non-duplicate write failure; under ``continue_on_error`` the
            summary is a ``StorageError`` whenever any document hit one.
        """
        if chunk_size <= 0 or not 0 <= chunk_overlap < chunk_size:
            raise ConfigurationError(
                f"Invalid chunking options: chunk_size={chunk_size}, chunk_overlap={chunk_overlap}"
            )

        logger.info("Starting PDF processing...")
        await asyncio.to_thread(self._store.ensure_table, table_name)

        # One enricher per run: every chunk shares the run timestamp.
        enricher = ChunkEnricher(self._embedder.model_name, dedupe_across_runs=self.dedupe_across_runs)

        failures: dict[str, PdfVectorStoreError] = {}
        for path in paths:
            try:
                await self._ingest_document(path, table_name, chunk_size, chunk_overlap, enricher)
            except PdfVectorStoreError as exc:
                if not self.continue_on_error:
                    logger.error("Error processing PDFs: %s", exc)
                    raise
                logger.error("Skipping %s after failure: %s", path, exc)
                failures[str(path)] = exc

        if failures:
            raise _summarize_failures(failures, len(paths))
        logger.info("PDF processing completed successfully")

    # -- internals ------------------------------------------------------------

    async def _ingest_document(
        self,
        path: str | Path,
        table_name: str,
        chunk_size: int,
        chunk_overlap: int,
        enricher: ChunkEnricher,
    ) -> None:
        source = str(path)
        logger.info("Processing PDF: %s", source)
        segments = await asyncio.to_thread(self._pdf_loader, path)

        try:
            chunks = chunk_segments(segments, chunk_size, chunk_overlap)
        except ValueError as exc:
            raise ProcessingError(f"Failed to split {source}: {exc}", source=source) from exc

        logger.info("Processing %d valid chunks...", len(chunks))
        await self.process_and_store_chunks(chunks, table_name, enricher)

    async def process_and_store_chunks(
        self,
        chunks: list[Chunk],
        table_name: str,
        enricher: ChunkEnricher,
    ) -> None:
        """Embed and store *chunks* batch by batch, in document order.

        A batch rejected for duplicate keys is skipped; any other failure
        is logged with its batch index and re-raised. Batches stored
        before the failure are not rolled back.
        """
        total_batches = math.ceil(len(chunks) / self.batch_size)
        for batch_index, start in enumerate(range(0, len(chunks), self.batch_size)):
            batch = chunks[start : start + self.batch_size]
            try:
                logger.info("Processing batch %d/%d", batch_index + 1, total_batches)
                records: list[EnrichedRecord] = []
                for sub_start in range(0, len(batch), self.sub_batch_size):
                    sub_batch = batch[sub_start : sub_start + self.sub_batch_size]
                    records.extend(await self._enrich_and_embed(sub_batch, enricher))
                    await asyncio.sleep(self.sub_batch_delay)

                logger.info("Storing batch %d/%d", batch_index + 1, total_batches)
                await asyncio.to_thread(self._store.upsert_records, table_name, records)
                logger.info("Successfully stored batch %d/%d", batch_index + 1, total_batches)

                await asyncio.sleep(self.batch_delay)
            except DuplicateChunkError:
                logger.warning("Skipping duplicate chunks in batch %d...", batch_index + 1)
                continue
            except PdfVectorStoreError as exc:
                logger.error(
                    "Error processing batch %d of %s: %s",
                    batch_index,
                    batch[0].source,
                    exc,
                )
                raise

    async def _enrich_and_embed(self, chunks: list[Chunk], enricher: ChunkEnricher) -> list[EnrichedRecord]:
        metadata = [enricher.build_metadata(chunk) for chunk in chunks]
        for chunk in chunks:
            logger.debug("Generating embedding for chunk %d/%d", chunk.chunk_index + 1, chunk.total_chunks)
        vectors = await self._embedder.embed_many([chunk.text for chunk in chunks])
        return [
            EnrichedRecord(
                content=chunk.text,
                embedding=vector,
                metadata=meta,
                source=chunk.source,
                chunk_hash=meta.chunk_hash,
            )
            for chunk, meta, vector in zip(chunks, metadata, vectors)
        ]


def load_documents(
    paths: Sequence[str | Path],
    table_name: str,
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
    *,
    config: Settings = settings,
) -> None:
    """Ingest *paths* into *table_name* using the backends named in *config*."""
    loader = PdfVectorLoader.from_settings(config)
    loader.load_documents(
        paths,
        table_name,
        chunk_size if chunk_size is not None else config.chunk_size,
        chunk_overlap if chunk_overlap is not None else config.chunk_overlap,
    )
