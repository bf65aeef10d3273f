"""JSON-RPC 2.0 ``tools/call`` endpoint exposing quote search to LLM tool clients."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from src.api.dependencies import get_search_index
from src.api.models import JsonRpcRequest
from src.config import settings
from src.retrieval.index import SearchIndex
from src.retrieval.quotes import quote_to_source
from src.retrieval.search import search
from src.search_config import SearchOptions

router = APIRouter()

TOOL_NAME = "podcast_quotes.search"

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


def _rpc_error(status_code: int, request_id: Any, code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}},
    )


@router.post("/rpc")
async def rpc(
    body: JsonRpcRequest,
    index: Annotated[SearchIndex, Depends(get_search_index)],
    authorization: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    """Handle ``tools/call`` for the quote search tool.

    When ``MCP_SERVER_AUTH_TOKEN`` is set, requests must carry it as a
    bearer token.
    """
    token = settings.mcp_server_auth_token
    if token and authorization != f"Bearer {token}":
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    if body.method != "tools/call":
        return _rpc_error(400, body.id, METHOD_NOT_FOUND, "Method not found")

    params = body.params
    if params is None or params.name != TOOL_NAME:
        return _rpc_error(400, body.id, METHOD_NOT_FOUND, "Tool not found")

    args = params.arguments
    query = str(args.get("query") or "").strip()
    if not query:
        return _rpc_error(400, body.id, INVALID_PARAMS, "Missing query")

    try:
        options = SearchOptions(
            guest=str(args["guest"]) if args.get("guest") else None,
            limit=int(args.get("limit") or 5),
            min_score=float(args.get("min_score") if args.get("min_score") is not None else 0.1),
        )
    except (TypeError, ValueError) as exc:
        return _rpc_error(400, body.id, INVALID_PARAMS, f"Invalid arguments: {exc}")

    results = search(index, query, options)
    quotes = [asdict(quote_to_source(r)) for r in results]

    return JSONResponse(
        status_code=200,
        content={"jsonrpc": "2.0", "id": body.id, "result": {"results": quotes}},
    )
