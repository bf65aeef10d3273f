"""Catalog endpoints: guest listing, episode detail and random quotes."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_search_index
from src.api.models import EpisodeDetail, GuestListResponse, GuestOut, QuoteOut
from src.ingestion.parsers import format_timestamp
from src.retrieval.index import SearchIndex
from src.retrieval.quotes import format_episode_detail, search_result_to_quote
from src.retrieval.search import find_episode, list_guests, random_segment
from src.search_config import GuestSort

router = APIRouter()


@router.get("/api/guests", response_model=GuestListResponse)
async def get_guests(
    index: Annotated[SearchIndex, Depends(get_search_index)],
    search: str | None = None,
    sort_by: GuestSort = GuestSort.NAME,
) -> GuestListResponse:
    """List guests, filtered by a guest/title substring and sorted by name or views."""
    guests = list_guests(index, search=search, sort_by=sort_by)
    return GuestListResponse(
        count=len(guests),
        sort_by=sort_by,
        guests=[GuestOut(**asdict(g)) for g in guests],
    )


@router.get("/api/episodes/{guest}", response_model=EpisodeDetail)
async def get_episode(
    guest: str,
    index: Annotated[SearchIndex, Depends(get_search_index)],
    include_transcript: bool = False,
) -> EpisodeDetail:
    """Get the first episode whose guest name contains *guest*."""
    episode = find_episode(index, guest)
    if episode is None:
        raise HTTPException(
            status_code=404,
            detail=f'No episode found for guest "{guest}". Use /api/guests to see available episodes.',
        )

    return EpisodeDetail(
        folder_name=episode.folder_name,
        guest=episode.guest,
        title=episode.title,
        youtube_url=episode.youtube_url,
        description=episode.description,
        duration=episode.duration or format_timestamp(episode.duration_seconds),
        view_count=episode.view_count,
        channel=episode.channel,
        segment_count=len(episode.segments),
        formatted=format_episode_detail(episode, include_transcript=include_transcript),
        segments=[asdict(s) for s in episode.segments] if include_transcript else None,
    )


@router.get("/api/random", response_model=QuoteOut)
async def random_wisdom(
    index: Annotated[SearchIndex, Depends(get_search_index)],
    topic: str | None = None,
) -> QuoteOut:
    """Return a random substantial quote, optionally about *topic*."""
    result = random_segment(index, topic=topic)
    if result is None:
        detail = f'No quotes found for topic "{topic}".' if topic else "No quotes available."
        raise HTTPException(status_code=404, detail=detail)
    return QuoteOut(**asdict(search_result_to_quote(result)))
