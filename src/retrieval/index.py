"""Full-text index over transcript segments, backed by lunr."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass

from lunr import lunr
from lunr.index import Index

from src.ingestion.models import Episode

logger = logging.getLogger(__name__)

# Field boosts: what was said dominates, the episode title matters least.
FIELD_BOOSTS: dict[str, int] = {
    "text": 10,
    "speaker": 3,
    "guest": 2,
    "title": 1,
}

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


def normalize_guest_name(name: str) -> str:
    """Lower-case *name* and strip everything but letters, digits and spaces."""
    return _NON_ALNUM_RE.sub("", name.lower().strip())


@dataclass(frozen=True)
class IndexDocument:
    """One indexed segment: the fields lunr scores plus its position."""

    folder_name: str
    segment_position: int
    text: str
    speaker: str
    guest: str
    title: str

    @property
    def ref(self) -> str:
        return make_ref(self.folder_name, self.segment_position)

    def to_lunr(self) -> dict[str, str]:
        fields = {name: value for name, value in asdict(self).items() if name in FIELD_BOOSTS}
        return {"id": self.ref, **fields}


def make_ref(folder_name: str, segment_position: int) -> str:
    return f"{folder_name}:{segment_position}"


def parse_ref(ref: str) -> tuple[str, int] | None:
    """Split a document ref back into ``(folder_name, segment_position)``."""
    folder_name, sep, position = ref.rpartition(":")
    if not sep or not position.isdigit():
        return None
    return folder_name, int(position)


@dataclass
class SearchIndex:
    """Episodes, the guest lookup map and the lunr index.

    Built once by :func:`build_search_index` and only read afterwards.
    """

    episodes: dict[str, Episode]
    guest_to_folder: dict[str, str]
    lunr_index: Index

    @property
    def document_count(self) -> int:
        return sum(len(e.segments) for e in self.episodes.values())


def build_documents(episodes: list[Episode]) -> list[IndexDocument]:
    """One document per segment, in corpus order."""
    return [
        IndexDocument(
            folder_name=episode.folder_name,
            segment_position=position,
            text=segment.text,
            speaker=segment.speaker,
            guest=episode.guest,
            title=episode.title,
        )
        for episode in episodes
        for position, segment in enumerate(episode.segments)
    ]


def build_search_index(episodes: list[Episode]) -> SearchIndex:
    """Build the searchable index from loaded episodes.

    Guest names are keyed by :func:`normalize_guest_name`; when two episodes
    normalise to the same guest, the later one wins.
    """
    episodes_map: dict[str, Episode] = {}
    guest_to_folder: dict[str, str] = {}
    for episode in episodes:
        episodes_map[episode.folder_name] = episode
        guest_to_folder[normalize_guest_name(episode.guest)] = episode.folder_name

    documents = build_documents(list(episodes_map.values()))
    logger.info("Building search index with %d segments...", len(documents))

    lunr_index = lunr(
        ref="id",
        fields=[dict(field_name=name, boost=boost) for name, boost in FIELD_BOOSTS.items()],
        documents=[doc.to_lunr() for doc in documents],
    )

    logger.info("Search index built for %d episodes", len(episodes_map))
    return SearchIndex(
        episodes=episodes_map,
        guest_to_folder=guest_to_folder,
        lunr_index=lunr_index,
    )
