"""Tests for the ingestion pipeline -- timestamps, front matter, segment parsing and loading."""

from __future__ import annotations

import pathlib

import pytest

from conftest import CHESKY_TRANSCRIPT, write_episode
from src.ingestion.loader import (
    EmptyCorpusError,
    discover_transcripts,
    load_all_transcripts,
    load_corpus,
    load_transcript,
)
from src.ingestion.parsers import (
    format_timestamp,
    parse_timestamp,
    parse_transcript_body,
    split_front_matter,
)


class TestTimestamps:
    def test_hours_minutes_seconds(self) -> None:
        assert parse_timestamp("01:02:03") == 3723

    def test_minutes_seconds(self) -> None:
        assert parse_timestamp("01:27") == 87

    def test_other_shapes_are_zero(self) -> None:
        assert parse_timestamp("87") == 0
        assert parse_timestamp("1:2:3:4") == 0
        assert parse_timestamp("aa:bb") == 0

    def test_ranges_not_validated(self) -> None:
        assert parse_timestamp("00:75:00") == 4500

    def test_format_zero_pads(self) -> None:
        assert format_timestamp(87) == "00:01:27"
        assert format_timestamp(0) == "00:00:00"

    @pytest.mark.parametrize("seconds", [0, 59, 60, 3599, 3600, 5400, 86399])
    def test_round_trip(self, seconds: int) -> None:
        assert parse_timestamp(format_timestamp(seconds)) == seconds


class TestFrontMatter:
    def test_splits_metadata_and_body(self) -> None:
        metadata, body = split_front_matter(CHESKY_TRANSCRIPT)
        assert metadata["guest"] == "Brian Chesky"
        assert metadata["view_count"] == 250000
        assert metadata["duration"] == "1:30:00"
        assert body.lstrip().startswith("# Brian Chesky's new playbook")

    def test_no_front_matter(self) -> None:
        metadata, body = split_front_matter("Speaker (00:00:01):\nHello.")
        assert metadata == {}
        assert body == "Speaker (00:00:01):\nHello."

    def test_malformed_yaml_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid front matter"):
            split_front_matter("---\nguest: [unclosed\n---\nbody")

    def test_leading_bom_ignored(self) -> None:
        metadata, body = split_front_matter("\ufeff---\nguest: Bom Guest\n---\nA (00:00:01):\nHello.")
        assert metadata == {"guest": "Bom Guest"}
        assert body == "A (00:00:01):\nHello."

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(ValueError, match="must be a mapping"):
            split_front_matter("---\n- a\n- b\n---\nbody")


class TestSegmentParser:
    def test_speaker_headers(self) -> None:
        body = """Brian Chesky (00:00:05):
I love design thinking.

Lenny (00:00:12):
Tell me more.
"""
        segments = parse_transcript_body(body)
        assert len(segments) == 2
        assert segments[0].speaker == "Brian Chesky"
        assert segments[0].timestamp == "00:00:05"
        assert segments[0].timestamp_seconds == 5
        assert segments[0].text == "I love design thinking."
        assert segments[1].speaker == "Lenny"

    def test_multiline_content_joined_with_spaces(self) -> None:
        body = "Lenny (00:00:01):\n  First line.  \nSecond line.\n"
        segments = parse_transcript_body(body)
        assert segments[0].text == "First line. Second line."

    def test_timestamp_only_header_keeps_speaker(self) -> None:
        body = "Julie (00:01:00):\nFirst thought.\n(00:01:30):\nSecond thought.\n"
        segments = parse_transcript_body(body)
        assert [(s.speaker, s.timestamp) for s in segments] == [
            ("Julie", "00:01:00"),
            ("Julie", "00:01:30"),
        ]

    def test_headers_without_content_are_absorbed(self) -> None:
        body = "Lenny (00:00:01):\n(00:00:02):\nJulie (00:00:03):\nOnly this.\n"
        segments = parse_transcript_body(body)
        assert len(segments) == 1
        assert segments[0].speaker == "Julie"
        assert segments[0].timestamp == "00:00:03"

    def test_segment_count_matches_headers_with_content(self) -> None:
        body = "\n".join(
            [
                "A (00:00:01):",
                "one",
                "B (00:00:02):",
                "C (00:00:03):",
                "three",
                "(00:00:04):",
                "four",
                "D (00:00:05):",
            ]
        )
        assert len(parse_transcript_body(body)) == 3

    def test_markdown_headings_skipped(self) -> None:
        body = "# Episode title\n## Transcript\nLenny (00:00:01):\nHello.\n"
        segments = parse_transcript_body(body)
        assert len(segments) == 1
        assert segments[0].text == "Hello."

    def test_no_headers_single_unknown_segment(self) -> None:
        segments = parse_transcript_body("Just some text.\nAnd more.")
        assert len(segments) == 1
        assert segments[0].speaker == "Unknown"
        assert segments[0].timestamp == "00:00:00"
        assert segments[0].text == "Just some text. And more."

    def test_speaker_name_trimmed(self) -> None:
        segments = parse_transcript_body("Brian Chesky   (00:00:05):   \nHi.")
        assert segments[0].speaker == "Brian Chesky"

    def test_single_digit_hour_and_optional_colon(self) -> None:
        segments = parse_transcript_body("Lenny (1:02:03)\nLate in the episode.")
        assert segments[0].timestamp == "1:02:03"
        assert segments[0].timestamp_seconds == 3723

    def test_empty_body(self) -> None:
        assert parse_transcript_body("") == []
        assert parse_transcript_body("\n\n# Only a heading\n") == []


class TestLoader:
    def test_load_transcript_metadata(self, corpus_dir: pathlib.Path) -> None:
        episode = load_transcript(corpus_dir / "episodes" / "brian-chesky" / "transcript.md")
        assert episode.folder_name == "brian-chesky"
        assert episode.guest == "Brian Chesky"
        assert episode.title == "Brian Chesky's new playbook"
        assert episode.video_id == "4ef0juAMqoE"
        assert episode.duration_seconds == 5400
        assert episode.view_count == 250000
        assert episode.channel == "Lenny's Podcast"
        assert len(episode.segments) == 4
        assert "I love design thinking." in episode.raw_text

    def test_metadata_defaults(self, tmp_path: pathlib.Path) -> None:
        path = write_episode(tmp_path, "mystery", "Someone (00:00:01):\nHello there.\n")
        episode = load_transcript(path, default_channel="Other Show")
        assert episode.guest == "Unknown"
        assert episode.title == "Unknown"
        assert episode.youtube_url == ""
        assert episode.video_id == ""
        assert episode.description == ""
        assert episode.duration_seconds == 0
        assert episode.view_count == 0
        assert episode.channel == "Other Show"

    def test_bom_prefixed_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "episodes" / "bom-guest" / "transcript.md"
        path.parent.mkdir(parents=True)
        content = "---\nguest: Bom Guest\ntitle: T\n---\nA (00:00:01):\nHello there.\n"
        path.write_bytes(b"\xef\xbb\xbf" + content.encode("utf-8"))
        episode = load_transcript(path)
        assert episode.guest == "Bom Guest"
        assert episode.title == "T"
        assert [(s.speaker, s.text) for s in episode.segments] == [("A", "Hello there.")]

    def test_load_all_sorted(self, corpus_dir: pathlib.Path) -> None:
        episodes = load_all_transcripts(corpus_dir)
        assert [e.folder_name for e in episodes] == ["brian-chesky", "julie-zhuo", "shreyas-doshi"]

    def test_bad_file_skipped(self, corpus_dir: pathlib.Path) -> None:
        write_episode(corpus_dir, "broken", "---\nguest: [unclosed\n---\nLenny (00:00:01):\nHi.\n")
        episodes = load_all_transcripts(corpus_dir)
        assert "broken" not in {e.folder_name for e in episodes}
        assert len(episodes) == 3

    def test_episode_without_segments_skipped(self, corpus_dir: pathlib.Path) -> None:
        write_episode(corpus_dir, "empty", "---\nguest: Nobody\n---\n# Heading only\n")
        episodes = load_all_transcripts(corpus_dir)
        assert "empty" not in {e.folder_name for e in episodes}

    def test_flat_layout_discovered(self, tmp_path: pathlib.Path) -> None:
        flat = tmp_path / "guest-one"
        flat.mkdir()
        (flat / "transcript.md").write_text("A (00:00:01):\nHello.\n", encoding="utf-8")
        assert [p.parent.name for p in discover_transcripts(tmp_path)] == ["guest-one"]

    def test_unnormalized_path(self, corpus_dir: pathlib.Path) -> None:
        messy = f"{corpus_dir}/episodes/../"
        assert len(discover_transcripts(messy)) == 3

    def test_empty_corpus_is_fatal(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(EmptyCorpusError):
            load_corpus(tmp_path)

    def test_load_corpus_returns_episodes(self, corpus_dir: pathlib.Path) -> None:
        assert len(load_corpus(corpus_dir)) == 3
