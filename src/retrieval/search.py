"""Lexical retrieval over the segment index, plus guest and random lookups."""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any

from lunr.exceptions import QueryParseError

from src.ingestion.models import Episode, TranscriptSegment
from src.retrieval.index import SearchIndex, normalize_guest_name, parse_ref
from src.search_config import GuestSort, SearchOptions

logger = logging.getLogger(__name__)

# Characters with meaning in lunr's query syntax.
_QUERY_SYNTAX_RE = re.compile(r"([+\-:^~*])")

RANDOM_MIN_TEXT_LENGTH = 100
RANDOM_TOPIC_OPTIONS = SearchOptions(limit=50, min_score=0.05)


@dataclass
class SearchResult:
    """A segment hit with its owning episode and lunr score."""

    segment: TranscriptSegment
    episode: Episode
    score: float
    matched_terms: list[str] = field(default_factory=list)
    segment_position: int | None = None


@dataclass(frozen=True)
class GuestSummary:
    guest: str
    folder_name: str
    title: str
    view_count: int


def escape_query(query: str) -> str:
    """Backslash-escape lunr query syntax characters in *query*."""
    return _QUERY_SYNTAX_RE.sub(r"\\\1", query)


def _guest_matches(filter_guest: str, episode_guest: str) -> bool:
    wanted = normalize_guest_name(filter_guest)
    actual = normalize_guest_name(episode_guest)
    return wanted in actual or actual in wanted


def _run_query(index: SearchIndex, query: str, fallback: str) -> list[dict[str, Any]]:
    try:
        return index.lunr_index.search(query)
    except QueryParseError:
        logger.debug("Query %r failed to parse; retrying escaped", query)

    try:
        return index.lunr_index.search(escape_query(fallback))
    except QueryParseError:
        logger.info("Query %r could not be parsed, returning no results", fallback)
        return []


def search(
    index: SearchIndex,
    query: str,
    options: SearchOptions | None = None,
) -> list[SearchResult]:
    """Search the index and return hits, best first.

    Args:
        index: The built search index.
        query: Free-text lunr query.
        options: Guest filter, result limit and minimum score.

    Returns:
        At most ``options.limit`` results, each scoring at least
        ``options.min_score``.  When a guest filter is given, every result
        belongs to an episode whose normalised guest name overlaps the
        filter.  Malformed queries yield an empty list rather than raising.
    """
    options = options or SearchOptions()
    guest = options.guest

    search_query = query
    if guest and normalize_guest_name(guest) in index.guest_to_folder:
        # Bias scoring toward the guest's episodes; the post-filter below is the real constraint
        search_query = f"{query} guest:{guest}"

    hits = _run_query(index, search_query, query)

    results: list[SearchResult] = []
    for hit in hits:
        if len(results) >= options.limit:
            break
        if hit["score"] < options.min_score:
            continue

        parsed = parse_ref(hit["ref"])
        if parsed is None:
            continue
        folder_name, position = parsed

        episode = index.episodes.get(folder_name)
        if episode is None or position >= len(episode.segments):
            continue
        if guest and not _guest_matches(guest, episode.guest):
            continue

        results.append(
            SearchResult(
                segment=episode.segments[position],
                episode=episode,
                score=hit["score"],
                matched_terms=list(hit["match_data"].metadata.keys()),
                segment_position=position,
            )
        )

    return results


def list_guests(
    index: SearchIndex,
    search: str | None = None,
    sort_by: GuestSort | str = GuestSort.NAME,
) -> list[GuestSummary]:
    """List every episode's guest, optionally filtered by guest or title substring."""
    if isinstance(sort_by, str):
        sort_by = GuestSort(sort_by)

    guests = [
        GuestSummary(
            guest=episode.guest,
            folder_name=episode.folder_name,
            title=episode.title,
            view_count=episode.view_count,
        )
        for episode in index.episodes.values()
    ]

    if search:
        needle = search.lower()
        guests = [g for g in guests if needle in g.guest.lower() or needle in g.title.lower()]

    if sort_by is GuestSort.VIEWS:
        return sorted(guests, key=lambda g: g.view_count, reverse=True)
    return sorted(guests, key=lambda g: g.guest.casefold())


def find_episode(index: SearchIndex, guest: str) -> Episode | None:
    """Return the first episode whose guest name contains *guest* (case-insensitive)."""
    needle = guest.lower()
    for episode in index.episodes.values():
        if needle in episode.guest.lower():
            return episode
    return None


def random_segment(
    index: SearchIndex,
    topic: str | None = None,
    rng: random.Random | None = None,
) -> SearchResult | None:
    """Pick a random quote, optionally about *topic*.

    Without a topic a random episode is chosen among those that have a
    segment of at least ``RANDOM_MIN_TEXT_LENGTH`` characters, then one of
    those segments.  With a topic, one of the broadened search hits is
    chosen.  Returns None when nothing qualifies.
    """
    rng = rng or random.Random()

    if topic:
        results = search(index, topic, RANDOM_TOPIC_OPTIONS)
        if not results:
            return None
        return rng.choice(results)

    candidates_by_episode: list[tuple[Episode, list[tuple[int, TranscriptSegment]]]] = []
    for episode in index.episodes.values():
        long_segments = [
            (position, segment)
            for position, segment in enumerate(episode.segments)
            if len(segment.text) >= RANDOM_MIN_TEXT_LENGTH
        ]
        if long_segments:
            candidates_by_episode.append((episode, long_segments))

    if not candidates_by_episode:
        return None

    episode, candidates = rng.choice(candidates_by_episode)
    position, segment = rng.choice(candidates)
    return SearchResult(
        segment=segment,
        episode=episode,
        score=1.0,
        matched_terms=[],
        segment_position=position,
    )
