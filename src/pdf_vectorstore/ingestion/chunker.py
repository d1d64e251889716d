"""Text chunking strategies."""

from __future__ import annotations

import logging

from langchain_text_splitters import RecursiveCharacterTextSplitter

from pdf_vectorstore.ingestion.models import Chunk, PageSegment

logger = logging.getLogger(__name__)

# Paragraph, line, sentence end, clause, word, then a hard character cut.
SEPARATORS: list[str] = ["\n\n", "\n", ".", "!", "?", ";", ":", " ", ""]


def build_splitter(chunk_size: int = 500, chunk_overlap: int = 50) -> RecursiveCharacterTextSplitter:
    """Return the recursive splitter configured with :data:`SEPARATORS`."""
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=SEPARATORS,
    )


def split_segment(
    segment: PageSegment,
    splitter: RecursiveCharacterTextSplitter,
) -> list[Chunk]:
    """Split one page into chunks, dropping whitespace-only pieces.

    The returned chunks carry the page's number and source but no ordinal
    yet; :func:`chunk_segments` numbers them across the whole document.
    """
    chunks: list[Chunk] = []
    for piece in splitter.split_text(segment.text):
        text = piece.strip()
        if not text:
            logger.debug("Skipping empty chunk on page %d of %s", segment.page_number, segment.source)
            continue
        chunks.append(
            Chunk(
                text=text,
                page_number=segment.page_number,
                source=segment.source,
                metadata=segment.metadata,
            )
        )
    return chunks


def chunk_segments(
    segments: list[PageSegment],
    chunk_size: int = 500,
    chunk_overlap: int = 50,
) -> list[Chunk]:
    """Split *segments* into overlapping chunks for embedding.

    Parameters
    ----------
    segments:
        Pages produced by a loader, in document order.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.

    Returns
    -------
    list[Chunk]
        Non-empty chunks in document order. ``chunk_index`` is the 0-based
        position among them and ``total_chunks`` their count.
    """
    splitter = build_splitter(chunk_size, chunk_overlap)

    chunks: list[Chunk] = []
    for segment in segments:
        chunks.extend(split_segment(segment, splitter))

    total = len(chunks)
    return [chunk.model_copy(update={"chunk_index": i, "total_chunks": total}) for i, chunk in enumerate(chunks)]
