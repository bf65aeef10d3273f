"""Multi-phase smart search: expand -> filter -> complete.

Lexical search misses paraphrases ("imposter syndrome" vs. "feeling like a
fraud").  The smart search hands term expansion and relevance judgement to
the calling LLM and stays mechanical itself:

1. **expand** -- called with only a query; returns instructions asking the
   caller for alternative search terms.
2. **filter** -- called with ``expanded_terms``; searches every term, merges
   the hits and returns numbered candidates for the caller to choose from.
3. **complete** -- called with ``expanded_terms`` and ``selected_indices``;
   returns the chosen quotes.

The phase is inferred from which arguments are present.  Phase 2 candidates
are kept in a :class:`SessionCache` under a key derived from the query and
the sorted expanded terms, so the phase 3 call needs no session id.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import Any

from src.retrieval.index import SearchIndex
from src.retrieval.quotes import format_quotes_for_display, search_result_to_quote
from src.retrieval.search import SearchResult, search
from src.search_config import SearchOptions, SearchPhase, SmartSearchOptions

logger = logging.getLogger(__name__)

TOOL_NAME = "search_quotes_smart"
DEFAULT_SESSION_CAPACITY = 10
PER_TERM_LIMIT = 15
MAX_CANDIDATES = 30
CANDIDATE_TEXT_CHARS = 400


@dataclass
class ContinueWith:
    tool: str
    set_param: str
    description: str


@dataclass
class CandidateQuote:
    """Truncated projection of a search hit offered for selection."""

    index: int
    speaker: str
    guest: str
    episode_title: str
    text: str
    timestamp: str


@dataclass
class SmartSearchResponse:
    """Phase-tagged response; fields that do not apply to a phase stay None."""

    phase: SearchPhase
    original_query: str | None = None
    instruction: str | None = None
    continue_with: ContinueWith | None = None
    candidates: list[CandidateQuote] | None = None
    candidate_count: int | None = None
    results: str | None = None
    result_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form with inapplicable fields omitted."""
        data = {key: value for key, value in asdict(self).items() if value is not None}
        data["phase"] = self.phase.value
        return data


class SessionCache:
    """Bounded, insertion-ordered store of phase 2 candidates.

    Holds at most *capacity* sessions; inserting beyond that evicts the
    oldest.  Replacing an existing key keeps its original position.
    """

    def __init__(self, capacity: int = DEFAULT_SESSION_CAPACITY) -> None:
        if capacity < 1:
            msg = f"capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._entries: OrderedDict[str, list[SearchResult]] = OrderedDict()
        self._lock = threading.Lock()

    def put(self, key: str, candidates: list[SearchResult]) -> None:
        with self._lock:
            self._entries[key] = candidates
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted smart search session %r", evicted)

    def get(self, key: str) -> list[SearchResult] | None:
        with self._lock:
            return self._entries.get(key)

    def pop(self, key: str) -> list[SearchResult] | None:
        with self._lock:
            return self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def session_key(query: str, expanded_terms: list[str]) -> str:
    return f"{query}::{','.join(sorted(expanded_terms))}"


def merge_results(result_lists: list[list[SearchResult]]) -> list[SearchResult]:
    """Merge hits keyed by ``folder_name:timestamp``, keeping the best score.

    A later hit replaces an earlier one only when its score is strictly
    higher.  Returns the merged hits sorted by score, best first.
    """
    merged: dict[str, SearchResult] = {}
    for results in result_lists:
        for result in results:
            key = f"{result.episode.folder_name}:{result.segment.timestamp}"
            existing = merged.get(key)
            if existing is None or result.score > existing.score:
                merged[key] = result
    return sorted(merged.values(), key=lambda r: r.score, reverse=True)


def _expand_instruction(query: str) -> str:
    return (
        f'Generate 5-7 alternative search terms or phrases related to "{query}".\n'
        "Think about:\n"
        "- Synonyms and related concepts\n"
        "- How people might describe this topic differently\n"
        "- Related problems or solutions\n"
        "- Industry jargon vs. plain language\n\n"
        "Return ONLY a JSON array of strings, like:\n"
        '["term 1", "term 2", "term 3", "term 4", "term 5"]\n\n'
        "Do not include any other text or explanation."
    )


def _filter_instruction(query: str, count: int) -> str:
    return (
        f"Review these {count} candidate quotes and select the ones that truly "
        f'and directly discuss "{query}".\n\n'
        "For each candidate, consider:\n"
        f"- Does it actually talk about {query}, or just mention related words?\n"
        "- Is the insight valuable and substantive?\n"
        f'- Would someone searching for "{query}" find this helpful?\n\n'
        "Return ONLY a JSON array of the index numbers for the most relevant quotes "
        "(up to 5-7 best matches), ranked by relevance:\n"
        "[2, 7, 0, 15, 11]\n\n"
        "If none of the candidates are truly relevant, return an empty array: []\n\n"
        "Do not include any other text or explanation."
    )


def _to_candidate(index: int, result: SearchResult) -> CandidateQuote:
    text = result.segment.text
    if len(text) > CANDIDATE_TEXT_CHARS:
        text = text[:CANDIDATE_TEXT_CHARS] + "..."
    return CandidateQuote(
        index=index,
        speaker=result.segment.speaker,
        guest=result.episode.guest,
        episode_title=result.episode.title,
        text=text,
        timestamp=result.segment.timestamp,
    )


class SmartSearch:
    """Runs the three-phase protocol against one index and session cache."""

    def __init__(self, index: SearchIndex, cache: SessionCache | None = None) -> None:
        self.index = index
        self.cache = cache if cache is not None else SessionCache()

    def run(
        self,
        query: str,
        options: SmartSearchOptions | None = None,
        expanded_terms: list[str] | None = None,
        selected_indices: list[int] | None = None,
    ) -> SmartSearchResponse:
        """Dispatch to the phase implied by the arguments present."""
        options = options or SmartSearchOptions()

        if expanded_terms is not None and selected_indices is not None:
            return self.complete(query, expanded_terms, selected_indices, options.limit)
        if expanded_terms is not None:
            return self.filter(query, expanded_terms, options)
        return self.expand(query)

    def expand(self, query: str) -> SmartSearchResponse:
        logger.debug("Smart search expand phase for %r", query)
        return SmartSearchResponse(
            phase=SearchPhase.EXPAND,
            original_query=query,
            instruction=_expand_instruction(query),
            continue_with=ContinueWith(
                tool=TOOL_NAME,
                set_param="expanded_terms",
                description=(
                    f"Call {TOOL_NAME} again with the same query and add the "
                    "expanded_terms parameter with your JSON array"
                ),
            ),
        )

    def filter(
        self,
        query: str,
        expanded_terms: list[str],
        options: SmartSearchOptions,
    ) -> SmartSearchResponse:
        term_options = SearchOptions(
            guest=options.guest,
            limit=PER_TERM_LIMIT,
            min_score=options.min_score,
        )
        per_term = [search(self.index, term, term_options) for term in [query, *expanded_terms]]
        candidates = merge_results(per_term)[:MAX_CANDIDATES]

        logger.debug(
            "Smart search filter phase for %r: %d terms, %d candidates",
            query,
            len(per_term),
            len(candidates),
        )

        if not candidates:
            return SmartSearchResponse(
                phase=SearchPhase.COMPLETE,
                results=(
                    f'No quotes found for "{query}" even with expanded search terms. '
                    "Try a different topic."
                ),
                result_count=0,
            )

        self.cache.put(session_key(query, expanded_terms), candidates)

        projected = [_to_candidate(i, result) for i, result in enumerate(candidates)]
        return SmartSearchResponse(
            phase=SearchPhase.FILTER,
            original_query=query,
            candidates=projected,
            candidate_count=len(projected),
            instruction=_filter_instruction(query, len(projected)),
            continue_with=ContinueWith(
                tool=TOOL_NAME,
                set_param="selected_indices",
                description=(
                    f"Call {TOOL_NAME} again with the same query, expanded_terms, "
                    "and add the selected_indices parameter with your JSON array"
                ),
            ),
        )

    def complete(
        self,
        query: str,
        expanded_terms: list[str],
        selected_indices: list[int],
        limit: int,
    ) -> SmartSearchResponse:
        key = session_key(query, expanded_terms)
        candidates = self.cache.get(key)

        if candidates is None:
            return SmartSearchResponse(
                phase=SearchPhase.COMPLETE,
                results=f'Session expired. Please start a new search for "{query}".',
                result_count=0,
            )

        valid = [i for i in selected_indices if 0 <= i < len(candidates)][:limit]
        if not valid:
            return SmartSearchResponse(
                phase=SearchPhase.COMPLETE,
                results=(
                    f'No relevant quotes found for "{query}" after filtering. The search '
                    "returned candidates but none matched the topic closely enough."
                ),
                result_count=0,
            )

        quotes = [search_result_to_quote(candidates[i]) for i in valid]
        self.cache.pop(key)

        formatted = format_quotes_for_display(quotes)
        return SmartSearchResponse(
            phase=SearchPhase.COMPLETE,
            results=f'Found {len(quotes)} relevant quote(s) for "{query}":\n\n{formatted}',
            result_count=len(quotes),
        )


def format_smart_search_response(response: SmartSearchResponse) -> str:
    """Render a smart search response as markdown for text-only transports."""
    if response.phase is SearchPhase.COMPLETE:
        return response.results or "No results found."

    lines: list[str] = []
    next_step = response.continue_with.description if response.continue_with else ""

    if response.phase is SearchPhase.EXPAND:
        lines.append("## Search Query Expansion Needed\n")
        lines.append(f'**Original query:** "{response.original_query}"\n')
        lines.append("### Instructions\n")
        lines.append(response.instruction or "")
        lines.append("\n### Next Step\n")
        lines.append(f"{next_step}\n")
        lines.append(
            f'Example: `{TOOL_NAME}(query="{response.original_query}", '
            'expanded_terms=["term1", "term2", ...])`'
        )
    else:
        lines.append(f"## Found {response.candidate_count} Candidates - Filtering Needed\n")
        lines.append(f'**Original query:** "{response.original_query}"\n')
        lines.append("### Candidate Quotes\n")
        for candidate in response.candidates or []:
            lines.append(f"**[{candidate.index}]** {candidate.speaker} ({candidate.guest})")
            lines.append(f"> {candidate.text}")
            lines.append("")
        lines.append("### Instructions\n")
        lines.append(response.instruction or "")
        lines.append("\n### Next Step\n")
        lines.append(next_step)

    return "\n".join(lines)
