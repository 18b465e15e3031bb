# slip_service/config.py
from functools import lru_cache
from typing import List
from typing import Optional

import structlog
from pydantic import Field
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- API Gateway Configuration ---
    UVICORN_HOST: str = "127.0.0.1"
    UVICORN_PORT: int = 8000
    UVICORN_RELOAD: bool = False

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # --- Team Alias Cache ---
    REDIS_URL: Optional[str] = None
    TEAM_ALIAS_TTL_SECONDS: int = 60 * 60 * 24 * 30  # 30 days

    # --- Page Fetching ---
    STATIC_FETCH_TIMEOUT: float = 10.0
    RENDERED_FETCH_TIMEOUT: float = 45.0
    SCROLL_PASSES: int = 3
    SCROLL_PAUSE_MS: int = 1000
    SCRAPE_MAX_ATTEMPTS: int = Field(3, ge=1, le=10)
    SCRAPE_BACKOFF_MIN: float = 1.0
    SCRAPE_BACKOFF_MAX: float = 10.0

    # --- Extraction Thresholds ---
    ODDS_MIN: float = 1.01
    ODDS_MAX: float = 1000.0
    MAX_TOTAL_ODDS: float = 1_000_000.0
    MIN_TEAM_NAME_LENGTH: int = 3
    DOCUMENT_WINDOW_CAP: int = 100_000
    PROXIMITY_WINDOW: int = 400
    TEAM_CONTEXT_CHARS: int = 50

    # --- Rate Limits ---
    SCRAPE_RATE_LIMIT: str = "20/hour"
    PARSE_RATE_LIMIT: str = "60/minute"

    # --- CORS Configuration ---
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    model_config = {"env_file": ".env", "case_sensitive": True}

    @model_validator(mode="after")
    def check_odds_bounds(self) -> "Settings":
        if self.ODDS_MIN >= self.ODDS_MAX:
            raise ValueError(
                f"ODDS_MIN ({self.ODDS_MIN}) must be lower than ODDS_MAX ({self.ODDS_MAX})."
            )
        if self.MAX_TOTAL_ODDS < self.ODDS_MAX:
            raise ValueError("MAX_TOTAL_ODDS must not be lower than ODDS_MAX.")
        return self


@lru_cache()
def get_settings() -> Settings:
    """Loads settings once per process."""
    settings = Settings()
    structlog.get_logger(__name__).debug(
        "settings_loaded",
        log_level=settings.LOG_LEVEL,
        redis_enabled=bool(settings.REDIS_URL),
    )
    return settings
