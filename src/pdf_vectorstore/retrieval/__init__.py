"""
Retrieval — query embedding and similarity search.

Public surface
--------------
- :class:`SearchService` — embeds a query and asks the store for matches.
- :class:`SearchMatch` — one ranked result.
- :func:`search` — convenience entry point using global settings.
"""

from pdf_vectorstore.retrieval.models import SearchMatch
from pdf_vectorstore.retrieval.searcher import SearchService, search

__all__ = ["SearchMatch", "SearchService", "search"]
