"""FastAPI application exposing semantic search as a REST API."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from pdf_vectorstore.config import settings
from pdf_vectorstore.errors import ConfigurationError, SearchError
from pdf_vectorstore.retrieval.models import SearchMatch
from pdf_vectorstore.retrieval.searcher import SearchService

app = FastAPI(
    title="PDF Vector Store API",
    version="0.1.0",
    description="Semantic search over PDF chunks stored in a vector database.",
)


@lru_cache(maxsize=1)
def get_search_service() -> SearchService:
    """Build the search service once per process from the global settings."""
    return SearchService.from_settings(settings)


# ── Request / Response schemas ────────────────────────────────────────
class SearchRequest(BaseModel):
    """Incoming search query."""

    table: str
    query: str
    limit: int = Field(default=5, ge=0)
    threshold: float = Field(default=0.8, ge=0.0, le=1.0)


class SearchResponse(BaseModel):
    """Ranked matches, best first."""

    matches: list[SearchMatch] = []


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
def health(response: Response, service: SearchService = Depends(get_search_service)) -> dict[str, str]:
    """Report whether the vector store is reachable; 503 when it is not."""
    if not service.health_check():
        response.status_code = 503
        return {"status": "degraded"}
    return {"status": "ok"}


@app.post("/search", response_model=SearchResponse)
def search(request: SearchRequest, service: SearchService = Depends(get_search_service)) -> SearchResponse:
    """Embed the query and return the closest stored chunks."""
    try:
        matches = service.search(request.table, request.query, request.limit, request.threshold)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SearchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return SearchResponse(matches=matches)
