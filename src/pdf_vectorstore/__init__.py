"""PDF ingestion into a vector store, with semantic search on top."""

__version__ = "0.1.0"
