from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime configuration for the quote index, the API and the CLI.

    Every field can be set through an environment variable of the same
    name (case-insensitive) or a ``.env`` file in the working directory.
    """

    # Corpus
    transcripts_dir: str = "data/transcripts"
    default_channel: str = "Lenny's Podcast"

    # Answer composition
    anthropic_api_key: str = ""
    llm_model: str = "claude-sonnet-4-20250514"
    answer_max_tokens: int = 2048

    # Serving
    api_host: str = "0.0.0.0"
    api_port: int = 8989
    mcp_server_auth_token: str = ""  # Empty disables bearer auth on /rpc
    session_cache_size: int = 10
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build the process-wide settings once.

    An unreadable ``.env`` falls back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
