"""Shared fixtures: a small on-disk transcript corpus and the index built from it."""

from __future__ import annotations

import pathlib

import pytest

from src.ingestion.loader import load_all_transcripts
from src.ingestion.models import Episode
from src.retrieval.index import SearchIndex, build_search_index

CHESKY_TRANSCRIPT = """---
guest: Brian Chesky
title: "Brian Chesky's new playbook"
youtube_url: https://www.youtube.com/watch?v=4ef0juAMqoE
video_id: 4ef0juAMqoE
description: Airbnb's CEO on design, founder mode and product reviews.
duration_seconds: 5400
duration: "1:30:00"
view_count: 250000
---
# Brian Chesky's new playbook

## Transcript

Brian Chesky (00:00:05):
I love design thinking. Every product decision at Airbnb starts with the guest experience and how it feels end to end.

Lenny (00:00:12):
Tell me more about how you run product reviews.

Brian Chesky (00:00:20):
I review every launch myself. Founders should be in the details, especially on design and brand.
(00:00:45):
Hiring great designers matters more than any process you put in place.
"""

JULIE_TRANSCRIPT = """---
guest: Julie Zhuo
title: "The making of a manager"
video_id: julieVid01
view_count: 900000
---
Julie Zhuo (00:01:00):
Imposter syndrome hit me hard when I became a manager at twenty five. I felt like a fraud every single day for a year.

Lenny (00:01:30):
How did you get past feeling like a fraud?

Julie Zhuo (00:02:00):
I learned that feedback is a gift, and that managers grow by asking their team for honest feedback every week.
"""

SHREYAS_TRANSCRIPT = """---
guest: Shreyas Doshi
title: Product sense and pre-mortems
video_id: shreyasVid
view_count: 500000
---
Shreyas Doshi (00:03:10):
Run a pre-mortem before every major launch so the team names its fears about growth and retention early.

Lenny (00:03:40):
What is the difference between high leverage and low leverage work?
"""


def write_episode(root: pathlib.Path, folder: str, content: str) -> pathlib.Path:
    episode_dir = root / "episodes" / folder
    episode_dir.mkdir(parents=True, exist_ok=True)
    path = episode_dir / "transcript.md"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def corpus_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    write_episode(tmp_path, "brian-chesky", CHESKY_TRANSCRIPT)
    write_episode(tmp_path, "julie-zhuo", JULIE_TRANSCRIPT)
    write_episode(tmp_path, "shreyas-doshi", SHREYAS_TRANSCRIPT)
    return tmp_path


@pytest.fixture
def episodes(corpus_dir: pathlib.Path) -> list[Episode]:
    return load_all_transcripts(corpus_dir)


@pytest.fixture
def index(episodes: list[Episode]) -> SearchIndex:
    return build_search_index(episodes)

