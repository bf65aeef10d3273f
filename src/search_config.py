"""Query configuration: option dataclasses and enums for the search entry points."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class GuestSort(str, Enum):
    """Sort orders for the guest listing."""

    NAME = "name"
    VIEWS = "views"


class SearchPhase(str, Enum):
    """Phases of the multi-step smart search protocol."""

    EXPAND = "expand"
    FILTER = "filter"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SearchOptions:
    """Options for a single lexical search.

    ``guest`` narrows results to one guest's episodes, ``limit`` caps the
    number of hits and ``min_score`` drops hits below that lunr score.
    """

    guest: str | None = None
    limit: int = 10
    min_score: float = 0.1


@dataclass(frozen=True)
class SmartSearchOptions:
    """Options for the multi-phase smart search.

    ``min_score`` applies to every per-term search in the filter phase and
    defaults lower than :class:`SearchOptions` so that paraphrased terms
    still surface candidates.  ``limit`` caps the final selection.
    """

    guest: str | None = None
    limit: int = 5
    min_score: float = 0.05
