"""
Ingestion — PDF loading, chunking, enrichment and embedding.

This module turns PDF files on disk into :class:`EnrichedRecord` rows and
hands them to a vector-store backend in paced batches.

Public surface
--------------
- :class:`PdfVectorLoader` — the load → chunk → embed → write pipeline.
- :func:`load_documents` — convenience entry point using global settings.
"""

from pdf_vectorstore.ingestion.models import Chunk, ChunkMetadata, EnrichedRecord, PageSegment
from pdf_vectorstore.ingestion.pipeline import PdfVectorLoader, load_documents

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "EnrichedRecord",
    "PageSegment",
    "PdfVectorLoader",
    "load_documents",
]
