"""Data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TranscriptSegment:
    """One speaker utterance with the timestamp it started at."""

    speaker: str
    timestamp: str  # "00:01:27" or "01:27", as written in the transcript
    timestamp_seconds: int
    text: str


@dataclass
class Episode:
    """A podcast episode with its metadata and parsed transcript."""

    folder_name: str  # e.g. "brian-chesky"; unique key across the corpus
    guest: str = "Unknown"
    title: str = "Unknown"
    youtube_url: str = ""
    video_id: str = ""
    description: str = ""
    duration_seconds: int = 0
    duration: str = ""
    view_count: int = 0
    channel: str = ""
    segments: list[TranscriptSegment] = field(default_factory=list)
    raw_text: str = ""
