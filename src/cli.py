"""Command-line access to the podcast quote index.

Entry point
-----------
Run as a module::

    python -m src.cli search "product-market fit" --guest "Brian Chesky"
    python -m src.cli smart "imposter syndrome"
    python -m src.cli smart "imposter syndrome" --terms "feeling like a fraud" "self doubt"
    python -m src.cli guests --sort-by views
    python -m src.cli episode "chesky" --transcript
    python -m src.cli random --topic leadership
    python -m src.cli serve --port 8989

Each invocation loads and indexes the corpus, so smart search phases run in
one process: pass ``--terms`` and ``--select`` together to go straight from
filtering to the final quotes.

Use ``--help`` for full argument documentation.
"""

from __future__ import annotations

import argparse
import logging
import sys

from src.config import settings
from src.ingestion.loader import EmptyCorpusError, load_corpus
from src.retrieval.index import SearchIndex, build_search_index
from src.retrieval.quotes import format_episode_detail, format_quotes_for_display, search_result_to_quote
from src.retrieval.search import find_episode, list_guests, random_segment, search
from src.retrieval.smart_search import SmartSearch, format_smart_search_response
from src.search_config import GuestSort, SearchOptions, SmartSearchOptions

logger = logging.getLogger(__name__)


def _load_index(data_dir: str) -> SearchIndex:
    return build_search_index(load_corpus(data_dir))


def cmd_search(index: SearchIndex, args: argparse.Namespace) -> str:
    results = search(
        index,
        args.query,
        SearchOptions(guest=args.guest, limit=args.limit, min_score=args.min_score),
    )
    if not results:
        return f'No quotes found for "{args.query}". Try a different search term or remove the guest filter.'
    quotes = [search_result_to_quote(r) for r in results]
    return f'Found {len(quotes)} quote(s) for "{args.query}":\n\n{format_quotes_for_display(quotes)}'


def cmd_smart(index: SearchIndex, args: argparse.Namespace) -> str:
    smart = SmartSearch(index)
    options = SmartSearchOptions(guest=args.guest, limit=args.limit, min_score=args.min_score)

    response = smart.run(args.query, options, expanded_terms=args.terms)
    if args.terms is not None and args.select is not None:
        response = smart.run(
            args.query,
            options,
            expanded_terms=args.terms,
            selected_indices=args.select,
        )
    return format_smart_search_response(response)


def cmd_guests(index: SearchIndex, args: argparse.Namespace) -> str:
    guests = list_guests(index, search=args.search, sort_by=args.sort_by)
    if not guests:
        return f'No guests found matching "{args.search}".' if args.search else "No guests found."
    lines = [f'- **{g.guest}**: "{g.title}" ({g.view_count:,} views)' for g in guests]
    return f"Found {len(guests)} episode(s):\n\n" + "\n".join(lines)


def cmd_episode(index: SearchIndex, args: argparse.Namespace) -> str:
    episode = find_episode(index, args.guest)
    if episode is None:
        return f'No episode found for guest "{args.guest}". Use the guests command to see available episodes.'
    return format_episode_detail(episode, include_transcript=args.transcript)


def cmd_random(index: SearchIndex, args: argparse.Namespace) -> str:
    result = random_segment(index, topic=args.topic)
    if result is None:
        return f'No quotes found for topic "{args.topic}".' if args.topic else "No quotes available."
    formatted = format_quotes_for_display([search_result_to_quote(result)])
    heading = f'Here\'s wisdom about "{args.topic}":' if args.topic else "Here's some random wisdom:"
    return f"{heading}\n\n{formatted}"


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from src.api.main import attach_index, create_app

    app = create_app()
    attach_index(app, _load_index(args.data_dir))
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search podcast transcripts for quotes.")
    parser.add_argument(
        "--data-dir",
        default=settings.transcripts_dir,
        help="Directory holding the transcript corpus (default: %(default)s)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="Lexical quote search")
    p_search.add_argument("query")
    p_search.add_argument("--guest")
    p_search.add_argument("--limit", type=int, default=5)
    p_search.add_argument("--min-score", type=float, default=0.1)

    p_smart = sub.add_parser("smart", help="Multi-phase smart search")
    p_smart.add_argument("query")
    p_smart.add_argument("--guest")
    p_smart.add_argument("--limit", type=int, default=5)
    p_smart.add_argument("--min-score", type=float, default=0.05)
    p_smart.add_argument("--terms", nargs="+", help="Expanded search terms (filter phase)")
    p_smart.add_argument("--select", nargs="+", type=int, help="Candidate indices (complete phase)")

    p_guests = sub.add_parser("guests", help="List guests")
    p_guests.add_argument("--search")
    p_guests.add_argument("--sort-by", choices=[s.value for s in GuestSort], default=GuestSort.NAME.value)

    p_episode = sub.add_parser("episode", help="Show one episode by guest name")
    p_episode.add_argument("guest")
    p_episode.add_argument("--transcript", action="store_true", help="Include the full transcript")

    p_random = sub.add_parser("random", help="Random quote, optionally on a topic")
    p_random.add_argument("--topic")

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=settings.api_host)
    p_serve.add_argument("--port", type=int, default=settings.api_port)

    return parser


COMMANDS = {
    "search": cmd_search,
    "smart": cmd_smart,
    "guests": cmd_guests,
    "episode": cmd_episode,
    "random": cmd_random,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "serve":
            cmd_serve(args)
            return 0
        index = _load_index(args.data_dir)
    except EmptyCorpusError as exc:
        logger.error("%s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    output = COMMANDS[args.command](index, args)
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
