"""Quote shaping: context enrichment, YouTube deep links and display formatting."""

from __future__ import annotations

from dataclasses import dataclass

from src.ingestion.models import Episode
from src.ingestion.parsers import format_timestamp
from src.retrieval.search import SearchResult

CONTEXT_CHARS = 200
DISPLAY_TEXT_CHARS = 500


@dataclass
class QuoteResult:
    """Display-ready quote derived from a search result and its episode."""

    text: str
    speaker: str
    guest: str
    episode_title: str
    timestamp: str
    youtube_url: str
    relevance_score: float
    context_before: str | None = None
    context_after: str | None = None


@dataclass
class SourceQuote:
    """Flat quote shape handed to transports and the answer composer."""

    quote: str
    guest: str
    episode_title: str
    episode_url: str | None = None
    episode_id: str | None = None


def build_youtube_url(video_id: str, timestamp_seconds: float = 0) -> str:
    """Build a YouTube watch URL, deep-linked when *timestamp_seconds* > 0."""
    if not video_id:
        return ""
    if timestamp_seconds > 0:
        return f"https://www.youtube.com/watch?v={video_id}&t={int(timestamp_seconds)}"
    return f"https://www.youtube.com/watch?v={video_id}"


def get_context(episode: Episode, position: int) -> tuple[str | None, str | None]:
    """Return the tail of the previous segment and the head of the next one."""
    segments = episode.segments
    if position < 0 or position >= len(segments):
        return None, None

    before = segments[position - 1].text[-CONTEXT_CHARS:] if position > 0 else None
    after = segments[position + 1].text[:CONTEXT_CHARS] if position < len(segments) - 1 else None
    return before, after


def locate_segment(result: SearchResult) -> int:
    """Find the result's segment position by timestamp and text, or -1."""
    for position, segment in enumerate(result.episode.segments):
        if segment.timestamp == result.segment.timestamp and segment.text == result.segment.text:
            return position
    return -1


def search_result_to_quote(result: SearchResult, segment_position: int | None = None) -> QuoteResult:
    """Convert a search hit into a :class:`QuoteResult` with surrounding context."""
    position = segment_position
    if position is None:
        position = result.segment_position
    if position is None:
        position = locate_segment(result)

    before, after = get_context(result.episode, position) if position >= 0 else (None, None)

    return QuoteResult(
        text=result.segment.text,
        speaker=result.segment.speaker,
        guest=result.episode.guest,
        episode_title=result.episode.title,
        timestamp=result.segment.timestamp,
        youtube_url=build_youtube_url(result.episode.video_id, result.segment.timestamp_seconds),
        relevance_score=result.score,
        context_before=before,
        context_after=after,
    )


def quote_to_source(result: SearchResult) -> SourceQuote:
    quote = search_result_to_quote(result)
    return SourceQuote(
        quote=quote.text,
        guest=quote.guest,
        episode_title=quote.episode_title,
        episode_url=quote.youtube_url or None,
        episode_id=result.episode.folder_name,
    )


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def format_quotes_for_display(quotes: list[QuoteResult]) -> str:
    """Render quotes as a numbered markdown block."""
    if not quotes:
        return "No matching quotes found."

    lines: list[str] = []
    for i, quote in enumerate(quotes, 1):
        lines.append(f'**{i}. {quote.speaker}** ({quote.guest} - "{quote.episode_title}")')
        lines.append(f"> {_truncate(quote.text, DISPLAY_TEXT_CHARS)}")
        lines.append(f"[Watch at {quote.timestamp}]({quote.youtube_url})")
        lines.append("")

    return "\n".join(lines)


def format_episode_detail(episode: Episode, include_transcript: bool = False) -> str:
    """Render an episode's metadata, and optionally its full transcript, as markdown."""
    duration = episode.duration or format_timestamp(episode.duration_seconds)
    parts = [
        f"# {episode.title}\n",
        f"**Guest:** {episode.guest}",
        f"**Duration:** {duration}",
        f"**Views:** {episode.view_count:,}",
        f"**YouTube:** {build_youtube_url(episode.video_id)}\n",
        f"**Description:**\n{episode.description}",
    ]

    if include_transcript:
        parts.append("\n---\n\n**Full Transcript:**\n")
        for segment in episode.segments:
            parts.append(f"**{segment.speaker} ({segment.timestamp}):**\n{segment.text}\n")

    return "\n".join(parts)
