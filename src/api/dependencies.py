"""FastAPI dependencies exposing the process-wide index and smart search."""

from __future__ import annotations

from fastapi import HTTPException, Request

from src.retrieval.index import SearchIndex
from src.retrieval.smart_search import SmartSearch


def get_search_index(request: Request) -> SearchIndex:
    index: SearchIndex | None = getattr(request.app.state, "search_index", None)
    if index is None:
        raise HTTPException(status_code=503, detail="Search index not loaded")
    return index


def get_smart_search(request: Request) -> SmartSearch:
    smart: SmartSearch | None = getattr(request.app.state, "smart_search", None)
    if smart is None:
        raise HTTPException(status_code=503, detail="Search index not loaded")
    return smart
