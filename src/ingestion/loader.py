"""Corpus loading: discover transcript files -> parse -> Episode records."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from src.config import settings
from src.ingestion.models import Episode
from src.ingestion.parsers import parse_transcript_body, split_front_matter

logger = logging.getLogger(__name__)

TRANSCRIPT_FILENAME = "transcript.md"

# Layouts accepted under the data directory, relative to it.
DISCOVERY_PATTERNS = (
    f"episodes/*/{TRANSCRIPT_FILENAME}",
    f"*/{TRANSCRIPT_FILENAME}",
)


class EmptyCorpusError(RuntimeError):
    """Raised when no usable episodes could be loaded from the corpus."""


def _as_str(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    return str(value)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def discover_transcripts(data_dir: str | Path) -> list[Path]:
    """Return every transcript file under *data_dir*, sorted and de-duplicated."""
    root = Path(os.path.normpath(os.fspath(data_dir)))
    found: set[Path] = set()
    for pattern in DISCOVERY_PATTERNS:
        found.update(p for p in root.glob(pattern) if p.is_file())
    return sorted(found)


def load_transcript(file_path: str | Path, default_channel: str | None = None) -> Episode:
    """Read one transcript file and build its :class:`Episode`.

    Args:
        file_path: Path to a ``transcript.md`` file.  The name of its parent
            directory becomes the episode's ``folder_name``.
        default_channel: Channel used when the metadata has none.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the front matter is malformed.
    """
    path = Path(file_path)
    content = path.read_text(encoding="utf-8-sig")
    metadata, body = split_front_matter(content)

    return Episode(
        folder_name=path.parent.name,
        guest=_as_str(metadata.get("guest"), "Unknown"),
        title=_as_str(metadata.get("title"), "Unknown"),
        youtube_url=_as_str(metadata.get("youtube_url")),
        video_id=_as_str(metadata.get("video_id")),
        description=_as_str(metadata.get("description")),
        duration_seconds=_as_int(metadata.get("duration_seconds")),
        duration=_as_str(metadata.get("duration")),
        view_count=_as_int(metadata.get("view_count")),
        channel=_as_str(metadata.get("channel"), default_channel or settings.default_channel),
        segments=parse_transcript_body(body),
        raw_text=body,
    )


def load_all_transcripts(data_dir: str | Path) -> list[Episode]:
    """Load every transcript under *data_dir*.

    Files that fail to read or parse are logged and skipped, as are
    episodes whose body produced no segments.
    """
    files = discover_transcripts(data_dir)
    logger.info("Found %d transcript files in %s", len(files), data_dir)

    episodes: list[Episode] = []
    for file_path in files:
        try:
            episode = load_transcript(file_path)
        except Exception:
            logger.exception("Error loading transcript %s", file_path)
            continue

        if not episode.segments:
            logger.warning("Skipping %s: no transcript segments", file_path)
            continue
        episodes.append(episode)

    logger.info("Successfully loaded %d episodes", len(episodes))
    return episodes


def load_corpus(data_dir: str | Path) -> list[Episode]:
    """Load all transcripts, refusing to continue with an empty corpus.

    Raises:
        EmptyCorpusError: If no episode could be loaded.
    """
    episodes = load_all_transcripts(data_dir)
    if not episodes:
        msg = f"No transcripts found in {os.fspath(data_dir)!r}. Check TRANSCRIPTS_DIR."
        raise EmptyCorpusError(msg)
    return episodes
