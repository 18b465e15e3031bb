# slip_service/engine.py

import asyncio
from datetime import datetime
from functools import partial
from typing import Optional
from typing import Union

import structlog
from tenacity import AsyncRetrying
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from .config import get_settings
from .core.exceptions import FetchTimeout
from .core.exceptions import TransportFailure
from .core.page_fetcher import PageFetcher
from .extraction import ExtractionThresholds
from .extraction import SlipDocument
from .extraction import extract_slip
from .models import Platform
from .models import SlipRecord
from .team_aliases import NullTeamLookup
from .team_aliases import RedisTeamAliasCache
from .team_aliases import TeamLookup

log = structlog.get_logger(__name__)


class BookingCodeEngine:
    """
    Turns a booking code into a Slip Record.

    ``scrape`` fetches the share page and hands it to the extraction pipeline.
    Parsing is a pure step with no I/O, exposed on its own as ``parse_document``.
    """

    def __init__(self, config=None, fetcher: Optional[PageFetcher] = None, team_lookup: Optional[TeamLookup] = None):
        self.logger = structlog.get_logger(__name__)
        self.config = config or get_settings()
        self.thresholds = ExtractionThresholds.from_settings(self.config)
        self.fetcher = fetcher or PageFetcher(settings=self.config)
        if team_lookup is None:
            team_lookup = (
                RedisTeamAliasCache(self.config.REDIS_URL, ttl_seconds=self.config.TEAM_ALIAS_TTL_SECONDS)
                if self.config.REDIS_URL
                else NullTeamLookup()
            )
        self.team_lookup = team_lookup
        self.logger.info("BookingCodeEngine initialized.", team_lookup=type(team_lookup).__name__)

    def parse_document(
        self,
        platform: Union[Platform, str],
        booking_code: str,
        document: Union[SlipDocument, str],
        now: Optional[datetime] = None,
    ) -> SlipRecord:
        return extract_slip(
            platform,
            booking_code,
            document,
            thresholds=self.thresholds,
            team_lookup=self.team_lookup,
            now=now,
        )

    async def parse_document_in_executor(
        self,
        platform: Union[Platform, str],
        booking_code: str,
        document: Union[SlipDocument, str],
        now: Optional[datetime] = None,
    ) -> SlipRecord:
        """Runs ``parse_document`` on the default executor. Parsing and team lookups stay off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.parse_document, platform, booking_code, document, now=now))

    async def scrape(self, platform: Union[Platform, str], booking_code: str, url: Optional[str] = None) -> SlipRecord:
        fetched = await self.fetcher.fetch(platform, booking_code, url=url)
        return await self.parse_document_in_executor(fetched.platform, booking_code, fetched.html)

    async def scrape_with_retry(
        self, platform: Union[Platform, str], booking_code: str, url: Optional[str] = None
    ) -> SlipRecord:
        """Retries transient fetch failures with exponential backoff. Other fetch errors surface at once."""
        retryer = AsyncRetrying(
            stop=stop_after_attempt(self.config.SCRAPE_MAX_ATTEMPTS),
            wait=wait_exponential(multiplier=1, min=self.config.SCRAPE_BACKOFF_MIN, max=self.config.SCRAPE_BACKOFF_MAX),
            retry=retry_if_exception_type((FetchTimeout, TransportFailure)),
            reraise=True,
        )
        async for attempt in retryer:
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    self.logger.warning("Retrying booking code scrape", booking_code=booking_code, attempt=attempt_number)
                return await self.scrape(platform, booking_code, url=url)

    async def close(self):
        await self.fetcher.close()
        close_lookup = getattr(self.team_lookup, "close", None)
        if close_lookup is not None:
            close_lookup()
