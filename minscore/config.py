"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "MinScoreCriteria"
    debug: bool = False

    # Remote taxonomy API
    uniform_api_host: str = "https://uniform.app"
    uniform_api_key: str = ""
    context_api_timeout: float = 15.0  # seconds, per request

    # Taxonomy cache
    taxonomy_cache_ttl: float = 300.0  # 5 minutes from last successful fetch
    taxonomy_max_retries: int = 2  # additional attempts after the first
    taxonomy_retry_backoff: float = 0.5  # seconds, doubled per attempt

    # Criteria edits: reject non-numeric minScore input instead of storing NaN
    strict_min_score: bool = False

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

        self.uniform_api_host = os.getenv("UNIFORM_API_HOST", self.uniform_api_host).rstrip("/")
        # Legacy: the hosted editor read the key from the public build env
        self.uniform_api_key = (
            os.getenv("UNIFORM_API_KEY") or os.getenv("NEXT_PUBLIC_UNIFORM_API_KEY") or ""
        )
        self.context_api_timeout = float(
            os.getenv("CONTEXT_API_TIMEOUT", str(self.context_api_timeout))
        )

        self.taxonomy_cache_ttl = float(
            os.getenv("TAXONOMY_CACHE_TTL", str(self.taxonomy_cache_ttl))
        )
        self.taxonomy_max_retries = int(
            os.getenv("TAXONOMY_MAX_RETRIES", str(self.taxonomy_max_retries))
        )
        self.taxonomy_retry_backoff = float(
            os.getenv("TAXONOMY_RETRY_BACKOFF", str(self.taxonomy_retry_backoff))
        )

        self.strict_min_score = os.getenv("STRICT_MIN_SCORE", "false").lower() == "true"
