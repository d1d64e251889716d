"""Document loader — thin wrapper around LangChain's ``PyPDFLoader``."""

from __future__ import annotations

import logging
from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader

from pdf_vectorstore.errors import LoadError
from pdf_vectorstore.ingestion.models import PageSegment

logger = logging.getLogger(__name__)


def load_pdf(path: str | Path) -> list[PageSegment]:
    """Load a single PDF file as one :class:`PageSegment` per page.

    Parameters
    ----------
    path:
        Location of the PDF on disk.

    Returns
    -------
    list[PageSegment]
        Pages in document order, with 1-based ``page_number``.

    Raises
    ------
    LoadError
        If the file is missing or the PDF cannot be parsed.
    """
    source = str(path)
    if not Path(source).is_file():
        logger.error("PDF not found: %s", source)
        raise LoadError(f"PDF not found: {source}", source=source)

    try:
        documents = PyPDFLoader(source).load()
    except Exception as exc:
        logger.error("Failed to load PDF %s: %s", source, exc)
        raise LoadError(f"Failed to load PDF {source}: {exc}", source=source) from exc

    segments: list[PageSegment] = []
    for position, doc in enumerate(documents):
        # PyPDF reports 0-based page indices.
        page = doc.metadata.get("page", position)
        segments.append(
            PageSegment(
                text=doc.page_content,
                page_number=int(page) + 1,
                source=source,
                metadata=dict(doc.metadata),
            )
        )

    logger.info("Loaded %d pages from %s", len(segments), source)
    return segments
