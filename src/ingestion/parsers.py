"""Transcript parsers: front matter, timestamps, and speaker segments."""

from __future__ import annotations

import re
from typing import Any

import yaml

from src.ingestion.models import TranscriptSegment

# "Speaker Name (00:01:27):" -- speaker change with a timestamp
_SPEAKER_TIMESTAMP_RE = re.compile(r"^(.+?)\s*\((\d{1,2}:\d{2}:\d{2})\):?\s*$")
# "(00:01:27):" -- timestamp only, the previous speaker continues
_TIMESTAMP_ONLY_RE = re.compile(r"^\((\d{1,2}:\d{2}:\d{2})\):?\s*$")

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

DEFAULT_SPEAKER = "Unknown"
DEFAULT_TIMESTAMP = "00:00:00"


def parse_timestamp(ts: str) -> int:
    """Convert ``HH:MM:SS`` or ``MM:SS`` to whole seconds.

    Any other shape, or a non-numeric part, yields 0.  Ranges are not
    validated, so ``"00:75:00"`` is simply 4500.
    """
    parts = ts.strip().split(":")
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return 0
    if len(numbers) == 3:
        hours, minutes, seconds = numbers
        return hours * 3600 + minutes * 60 + seconds
    if len(numbers) == 2:
        minutes, seconds = numbers
        return minutes * 60 + seconds
    return 0


def format_timestamp(seconds: int) -> str:
    """Render *seconds* as a zero-padded ``HH:MM:SS`` string."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def split_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Split a ``---`` delimited YAML header from the transcript body.

    Returns:
        ``(metadata, body)``.  Content without a header yields an empty dict
        and the content unchanged.

    Raises:
        ValueError: If the header is not valid YAML or not a mapping.
    """
    content = content.removeprefix("\ufeff")
    match = _FRONT_MATTER_RE.match(content)
    if not match:
        return {}, content

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        msg = f"Invalid front matter: {exc}"
        raise ValueError(msg) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Front matter must be a mapping, got {type(data).__name__}"
        raise ValueError(msg)

    return data, content[match.end() :]


def parse_transcript_body(body: str) -> list[TranscriptSegment]:
    """Parse a transcript body into ordered speaker segments.

    Header lines look like ``Speaker Name (00:01:27):`` or ``(00:01:27):``.
    Every other non-blank line is spoken content for the current speaker;
    markdown headings (``# Title``) are skipped.  A header only closes the
    previous segment when text has accumulated, so back-to-back headers do
    not produce empty segments.  A body without any header becomes a single
    segment attributed to ``"Unknown"`` at ``00:00:00``.
    """
    segments: list[TranscriptSegment] = []

    speaker = DEFAULT_SPEAKER
    timestamp = DEFAULT_TIMESTAMP
    text_lines: list[str] = []

    def flush() -> None:
        if text_lines:
            segments.append(
                TranscriptSegment(
                    speaker=speaker,
                    timestamp=timestamp,
                    timestamp_seconds=parse_timestamp(timestamp),
                    text=" ".join(text_lines).strip(),
                )
            )
            text_lines.clear()

    for raw_line in body.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        speaker_match = _SPEAKER_TIMESTAMP_RE.match(line)
        if speaker_match:
            flush()
            speaker = speaker_match.group(1).strip()
            timestamp = speaker_match.group(2)
            continue

        timestamp_match = _TIMESTAMP_ONLY_RE.match(line)
        if timestamp_match:
            flush()
            timestamp = timestamp_match.group(1)
            continue

        if not line.startswith("#"):
            text_lines.append(line)

    flush()
    return segments
