"""Chat endpoint: retrieve quotes and have Claude compose a cited answer."""

from __future__ import annotations

import logging
from typing import Annotated

from anthropic import APIStatusError
from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_search_index
from src.api.models import ChatRequest
from src.retrieval.generation import Answer, answer_question
from src.retrieval.index import SearchIndex

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/chat", response_model=Answer, response_model_exclude_none=True)
async def chat(
    request: ChatRequest,
    index: Annotated[SearchIndex, Depends(get_search_index)],
) -> Answer:
    """Answer a question from the podcast archive with per-paragraph citations."""
    try:
        return answer_question(index, request.question)
    except APIStatusError as exc:
        # Upstream overload (529) or auth failure -- surface as 503 so clients get JSON
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc
    except ValueError as exc:
        logger.warning("Rejected model answer for %r: %s", request.question, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
