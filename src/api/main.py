import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.chat import router as chat_router
from src.api.routes.episodes import router as episodes_router
from src.api.routes.quotes import router as quotes_router
from src.api.routes.rpc import router as rpc_router
from src.config import settings
from src.ingestion.loader import load_corpus
from src.retrieval.index import SearchIndex, build_search_index
from src.retrieval.smart_search import SessionCache, SmartSearch

logger = logging.getLogger(__name__)


def attach_index(app: FastAPI, index: SearchIndex) -> None:
    """Install the index and a fresh smart search session cache on *app*."""
    app.state.search_index = index
    app.state.smart_search = SmartSearch(index, SessionCache(settings.session_cache_size))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # An empty corpus raises EmptyCorpusError here and aborts startup.
    if getattr(app.state, "search_index", None) is None:
        logger.info("Loading transcripts from %s", settings.transcripts_dir)
        episodes = load_corpus(settings.transcripts_dir)
        attach_index(app, build_search_index(episodes))
    yield


def create_app(index: SearchIndex | None = None) -> FastAPI:
    """Build the API app, optionally around an already-built index."""
    app = FastAPI(
        title="Podcast Quotes API",
        description="Lexical quote search and cited answers over podcast transcripts",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
        ],
        allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(quotes_router)
    app.include_router(episodes_router)
    app.include_router(chat_router)
    app.include_router(rpc_router)

    @app.get("/health")
    async def health() -> dict[str, str | int]:
        index = getattr(app.state, "search_index", None)
        episodes = len(index.episodes) if index is not None else 0
        return {"status": "healthy" if index is not None else "loading", "episodes": episodes}

    if index is not None:
        attach_index(app, index)
    return app


app = create_app()
