"""Claude-powered answer composition with per-paragraph citations."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Literal

from anthropic import Anthropic
from pydantic import BaseModel, Field, ValidationError

from src.config import settings
from src.retrieval.index import SearchIndex
from src.retrieval.quotes import SourceQuote, quote_to_source
from src.retrieval.search import search
from src.search_config import SearchOptions

ANSWER_SEARCH_OPTIONS = SearchOptions(limit=5, min_score=0.1)
NO_RESULTS_MESSAGE = "No relevant podcast quotes found for this topic."


class Citation(BaseModel):
    guest: str
    episode_title: str
    episode_url: str | None = None
    episode_id: str | None = None


class CitedQuote(Citation):
    quote: str


class Paragraph(BaseModel):
    text: str
    citations: list[Citation] = Field(min_length=1)
    quotes: list[CitedQuote] = []


class AnswerPayload(BaseModel):
    paragraphs: list[Paragraph] = Field(min_length=1)


class Answer(BaseModel):
    """Outcome of :func:`answer_question`."""

    kind: Literal["answer", "no_results"]
    paragraphs: list[Paragraph] = []
    message: str | None = None


_CITATION_PROPERTIES: dict[str, Any] = {
    "guest": {"type": "string"},
    "episode_title": {"type": "string"},
    "episode_url": {"type": "string"},
    "episode_id": {"type": "string"},
}

# Tool definition for Claude structured output
ANSWER_TOOL: dict[str, Any] = {
    "name": "compose_answer",
    "description": (
        "Return the answer as paragraphs. Every paragraph cites at least one "
        "episode from the provided quotes."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "paragraphs": {
                "type": "array",
                "minItems": 1,
                "items": {
                    "type": "object",
                    "properties": {
                        "text": {"type": "string"},
                        "citations": {
                            "type": "array",
                            "minItems": 1,
                            "items": {
                                "type": "object",
                                "properties": _CITATION_PROPERTIES,
                                "required": ["guest", "episode_title"],
                            },
                        },
                        "quotes": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {"quote": {"type": "string"}, **_CITATION_PROPERTIES},
                                "required": ["quote", "guest", "episode_title"],
                            },
                        },
                    },
                    "required": ["text", "citations", "quotes"],
                },
            },
        },
        "required": ["paragraphs"],
    },
}

SYSTEM_PROMPT = (
    "You are a research assistant for a podcast archive. Answer the question "
    "using only the quotes provided.\n\n"
    "Rules:\n"
    "- Write a clear, calm, analytical response.\n"
    "- Every paragraph must include at least one citation.\n"
    "- Copy episode_url and episode_id exactly from the quotes you cite.\n"
    "- Use the compose_answer tool to return your answer."
)


def _parse_tool_response(response: Any) -> AnswerPayload:
    """Validate the compose_answer tool input from a Claude response."""
    for block in response.content:
        if block.type != "tool_use" or block.name != ANSWER_TOOL["name"]:
            continue

        data = block.input
        if isinstance(data, str):
            data = json.loads(data)

        try:
            payload = AnswerPayload.model_validate(data)
        except ValidationError as exc:
            msg = f"Answer failed schema validation: {exc}"
            raise ValueError(msg) from exc

        for paragraph in payload.paragraphs:
            for source in [*paragraph.citations, *paragraph.quotes]:
                if not source.episode_url and not source.episode_id:
                    raise ValueError("Citation missing episode_url or episode_id.")
        return payload

    raise ValueError("Claude did not call the compose_answer tool.")


def generate_answer(question: str, quotes: list[SourceQuote]) -> AnswerPayload:
    """Compose a cited answer to *question* from retrieved quotes.

    Args:
        question: The user's question.
        quotes: Retrieved quotes with their episode metadata.

    Returns:
        The validated answer paragraphs.

    Raises:
        ValueError: If the model's reply is missing or fails validation.
    """
    client = Anthropic(api_key=settings.anthropic_api_key)
    results = json.dumps({"results": [asdict(q) for q in quotes]}, ensure_ascii=False)

    response = client.messages.create(
        model=settings.llm_model,
        max_tokens=settings.answer_max_tokens,
        temperature=0.2,
        system=SYSTEM_PROMPT,
        tools=[ANSWER_TOOL],
        tool_choice={"type": "tool", "name": ANSWER_TOOL["name"]},
        messages=[
            {
                "role": "user",
                "content": f"Quotes from the podcast archive:\n\n{results}\n\nQuestion: {question}",
            }
        ],
    )
    return _parse_tool_response(response)


def answer_question(index: SearchIndex, question: str) -> Answer:
    """Retrieve quotes for *question* and compose a cited answer."""
    results = search(index, question, ANSWER_SEARCH_OPTIONS)
    if not results:
        return Answer(kind="no_results", message=NO_RESULTS_MESSAGE)

    payload = generate_answer(question, [quote_to_source(r) for r in results])
    return Answer(kind="answer", paragraphs=payload.paragraphs)
