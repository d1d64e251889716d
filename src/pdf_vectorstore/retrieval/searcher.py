"""Semantic search over an ingested table.

Usage::

    from pdf_vectorstore.retrieval.searcher import search

    for match in search("pdf_chunks", "How do I configure reports?", limit=5, threshold=0.7):
        print(match.similarity, match.source_file, match.page_number)
"""

from __future__ import annotations

import logging

from pdf_vectorstore.config import Settings, settings
from pdf_vectorstore.errors import EmbeddingError, SearchError
from pdf_vectorstore.ingestion.embedder import ChunkEmbedder, get_embedding_function
from pdf_vectorstore.retrieval.models import SearchMatch
from pdf_vectorstore.vectorstore import VectorStoreBase, get_vector_store

logger = logging.getLogger(__name__)


class SearchService:
    """Embeds a query and delegates ranking to the store.

    The embedder must be the one used at ingestion time; vectors from
    different models are not comparable.

    Parameters
    ----------
    store:
        Backend holding the ingested chunks.
    embedder:
        Embedding client for the query text.
    """

    def __init__(self, store: VectorStoreBase, embedder: ChunkEmbedder) -> None:
        self._store = store
        self._embedder = embedder

    def health_check(self) -> bool:
        """Return ``True`` when the backing store is reachable."""
        return self._store.health_check()

    @classmethod
    def from_settings(cls, config: Settings = settings) -> SearchService:
        config.require_credentials()
        return cls(
            get_vector_store(config),
            ChunkEmbedder(get_embedding_function(config), config.embedding_model),
        )

    def search(
        self,
        table_name: str,
        query: str,
        limit: int = 5,
        threshold: float = 0.8,
    ) -> list[SearchMatch]:
        """Return up to *limit* matches with similarity ≥ *threshold*, best first.

        Raises
        ------
        SearchError
            The query could not be embedded or the similarity query failed.
        """
        if limit <= 0:
            return []

        try:
            embedding = self._embedder.embed_query(query)
        except EmbeddingError as exc:
            logger.error("Failed to embed query for %s: %s", table_name, exc)
            raise SearchError(str(exc)) from exc

        try:
            hits = self._store.similarity_search(table_name, embedding, limit=limit, threshold=threshold)
        except SearchError as exc:
            logger.error("Similarity search on %s failed: %s", table_name, exc)
            raise

        matches = [
            SearchMatch(content=hit["content"], similarity=hit["similarity"], metadata=hit.get("metadata") or {})
            for hit in hits
        ]
        matches.sort(key=lambda match: match.similarity, reverse=True)
        logger.info("Search on %s returned %d matches", table_name, len(matches))
        return matches


def search(
    table_name: str,
    query: str,
    limit: int | None = None,
    threshold: float | None = None,
    *,
    config: Settings = settings,
) -> list[SearchMatch]:
    """Search *table_name* using the backends named in *config*."""
    return SearchService.from_settings(config).search(
        table_name,
        query,
        limit if limit is not None else config.search_limit,
        threshold if threshold is not None else config.search_threshold,
    )
