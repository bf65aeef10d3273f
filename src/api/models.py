"""Pydantic request/response schemas for the Podcast Quotes API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.search_config import GuestSort


class SearchRequest(BaseModel):
    """Request body for the /api/search endpoint."""

    query: str = Field(min_length=1)
    guest: str | None = None
    limit: int = Field(default=5, ge=1, le=20)
    min_score: float = Field(default=0.1, ge=0, le=1)


class QuoteOut(BaseModel):
    """A single quote with its deep link and surrounding context."""

    text: str
    speaker: str
    guest: str
    episode_title: str
    timestamp: str
    youtube_url: str
    relevance_score: float
    context_before: str | None = None
    context_after: str | None = None


class SearchResponse(BaseModel):
    query: str
    results: list[QuoteOut]
    count: int


class SmartSearchRequest(BaseModel):
    """Request body for /api/search/smart; the phase follows from which lists are present."""

    query: str = Field(min_length=1)
    guest: str | None = None
    limit: int = Field(default=5, ge=1, le=10)
    min_score: float = Field(default=0.05, ge=0, le=1)
    expanded_terms: list[str] | None = None
    selected_indices: list[int] | None = None


class ContinueWithOut(BaseModel):
    tool: str
    set_param: str
    description: str


class CandidateOut(BaseModel):
    index: int
    speaker: str
    guest: str
    episode_title: str
    text: str
    timestamp: str


class SmartSearchResponseOut(BaseModel):
    """Phase-tagged smart search response; inapplicable fields are omitted."""

    phase: str
    original_query: str | None = None
    instruction: str | None = None
    continue_with: ContinueWithOut | None = None
    candidates: list[CandidateOut] | None = None
    candidate_count: int | None = None
    results: str | None = None
    result_count: int | None = None


class GuestOut(BaseModel):
    guest: str
    folder_name: str
    title: str
    view_count: int


class GuestListResponse(BaseModel):
    count: int
    sort_by: GuestSort
    guests: list[GuestOut]


class EpisodeDetail(BaseModel):
    """Episode metadata, optionally with the full segmented transcript."""

    folder_name: str
    guest: str
    title: str
    youtube_url: str
    description: str
    duration: str
    view_count: int
    channel: str
    segment_count: int
    formatted: str
    segments: list[dict[str, Any]] | None = None


class ChatRequest(BaseModel):
    question: str = Field(min_length=1)


class JsonRpcParams(BaseModel):
    name: str | None = None
    arguments: dict[str, Any] = {}


class JsonRpcRequest(BaseModel):
    """Minimal JSON-RPC 2.0 envelope for ``tools/call``."""

    jsonrpc: str | None = "2.0"
    id: str | int | None = None
    method: str | None = None
    params: JsonRpcParams | None = None
