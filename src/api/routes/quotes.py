"""Quote search endpoints: simple lexical search and the multi-phase smart search."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.dependencies import get_search_index, get_smart_search
from src.api.models import QuoteOut, SearchRequest, SearchResponse, SmartSearchRequest, SmartSearchResponseOut
from src.retrieval.index import SearchIndex
from src.retrieval.quotes import search_result_to_quote
from src.retrieval.search import search
from src.retrieval.smart_search import SmartSearch
from src.search_config import SearchOptions, SmartSearchOptions

router = APIRouter()


@router.post("/api/search", response_model=SearchResponse)
async def search_quotes(
    request: SearchRequest,
    index: Annotated[SearchIndex, Depends(get_search_index)],
) -> SearchResponse:
    """Return the best-matching quotes for a query, with context and deep links."""
    results = search(
        index,
        request.query,
        SearchOptions(guest=request.guest, limit=request.limit, min_score=request.min_score),
    )
    quotes = [QuoteOut(**asdict(search_result_to_quote(r))) for r in results]
    return SearchResponse(query=request.query, results=quotes, count=len(quotes))


@router.post(
    "/api/search/smart",
    response_model=SmartSearchResponseOut,
    response_model_exclude_none=True,
)
async def search_quotes_smart(
    request: SmartSearchRequest,
    smart: Annotated[SmartSearch, Depends(get_smart_search)],
) -> SmartSearchResponseOut:
    """Run one step of the expand -> filter -> complete smart search.

    - query only -> expand: instructions to generate alternative terms
    - + expanded_terms -> filter: numbered candidates to choose from
    - + selected_indices -> complete: the chosen quotes
    """
    response = smart.run(
        request.query,
        SmartSearchOptions(guest=request.guest, limit=request.limit, min_score=request.min_score),
        expanded_terms=request.expanded_terms,
        selected_indices=request.selected_indices,
    )
    return SmartSearchResponseOut(**response.to_dict())
