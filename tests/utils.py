# tests/utils.py
from datetime import datetime
from datetime import timezone
from pathlib import Path
from typing import List
from typing import Optional

from slip_service.config import Settings
from slip_service.core.page_fetcher import FetchedDocument
from slip_service.models import Platform

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
FIXED_NOW = datetime(2025, 12, 20, 12, 0, tzinfo=timezone.utc)

# Long enough to keep the header figures clear of the first team pairing.
HEADER_FILLER = (
    "Max Bonus GHS 0.00\n"
    "Selections in this slip are listed below\n"
    "Settled by the bookmaker at full time\n"
)


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def get_test_settings(**overrides) -> Settings:
    """Settings that ignore any local .env and never wait between retries."""
    values = dict(
        REDIS_URL=None,
        LOG_LEVEL="DEBUG",
        SCRAPE_MAX_ATTEMPTS=3,
        SCRAPE_BACKOFF_MIN=0,
        SCRAPE_BACKOFF_MAX=0,
        SCROLL_PASSES=2,
        SCROLL_PAUSE_MS=0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sporty_line(home: str, away: str, prediction: str = "Home", odds: str = "1.85") -> str:
    """One SportyBet selection as it reads in the rendered page text."""
    return f"{home} - {away} prematch {prediction}{odds}"


def sporty_text_slip(lines: List[str], header_odds: Optional[str] = None, code: str = "ABC123") -> str:
    header = f"Booking Code {code}\n"
    if header_odds:
        header += f"Odds {header_odds}\n"
    return header + HEADER_FILLER + "\n".join(lines)


class FakeFetcher:
    """Stands in for PageFetcher: returns canned HTML or raises queued errors."""

    def __init__(self, html: str = "", errors=()):
        self.html = html
        self.errors = list(errors)
        self.calls = 0
        self.closed = False

    async def fetch(self, platform, booking_code, url=None):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return FetchedDocument(
            platform=Platform.coerce(platform),
            booking_code=booking_code,
            url=url or "http://test/share",
            html=self.html,
            engine="fake",
        )

    async def close(self):
        self.closed = True
