"""
Page Fetcher - per-platform share page retrieval
Location: slip_service/core/page_fetcher.py

Script-rendered share pages (SportyBet) go through a scrapling browser
session that waits for slip content and scrolls to trigger lazy loading.
Static pages use a plain httpx GET with browser headers. Every failure
surfaces as one of the typed fetch errors.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union

import httpx
import structlog
from scrapling.fetchers import AsyncDynamicSession

from ..models import Platform
from .exceptions import (
    AccessDenied,
    DocumentUnavailable,
    ErrorCategory,
    FetchError,
    FetchTimeout,
    TransportFailure,
)


class FetchEngine(Enum):
    """Available fetch engines"""
    PLAYWRIGHT = "playwright"  # scrapling AsyncDynamicSession - for script-rendered pages
    HTTPX = "httpx"            # static HTML


SHARE_URL_TEMPLATES = {
    Platform.SPORTYBET: "http://www.sportybet.com/gh/?shareCode={code}",
    Platform.BET9JA: "https://web.bet9ja.com/share/{code}",
    Platform.ONEXBET: "https://1xbet.com/en/share/{code}",
    Platform.BETWAY: "https://betway.com.gh/share/{code}",
    Platform.MOZZARTBET: "https://www.mozzartbet.com/gh/share/{code}",
}

CONTENT_INDICATOR = (
    '.bet-item, .match-item, [class*="bet"], [class*="match"], '
    '[class*="slip"], [class*="selection"]'
)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

SCRIPT_RENDERED_PLATFORMS = {Platform.SPORTYBET}


def build_share_url(platform: Union[Platform, str], booking_code: str) -> str:
    platform = Platform.coerce(platform)
    template = SHARE_URL_TEMPLATES.get(platform)
    if template is None:
        name = str(platform.value if platform is not Platform.OTHER else "other").lower()
        template = "https://" + name + ".com/share/{code}"
    return template.format(code=booking_code)


@dataclass
class FetchStrategy:
    """Per-platform fetch configuration"""
    engine: FetchEngine = FetchEngine.HTTPX
    timeout: float = 10.0

    # Browser-only tuning
    wait_for_selector: Optional[str] = None
    scroll_passes: int = 0
    scroll_pause_ms: int = 1000
    block_resources: bool = False


@dataclass
class FetchedDocument:
    platform: Platform
    booking_code: str
    url: str
    html: str
    engine: str
    status: int = 200


class PageFetcher:
    """
    Fetches bookmaker share pages.

    The browser session and the httpx client are created lazily and shared
    across fetches. Both can be injected, which is how the tests drive it.
    """

    BOT_KEYWORDS = [
        "please verify you are human",
        "checking your browser",
        "attention required",
        "access denied",
        "captcha-delivery",
        "perimeterx",
    ]

    def __init__(self, settings=None, http_client: Optional[httpx.AsyncClient] = None, browser_session: Any = None):
        if settings is None:
            from ..config import get_settings

            settings = get_settings()
        self.settings = settings
        self.logger = structlog.get_logger(self.__class__.__name__)
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._browser_session = browser_session
        self._owns_browser_session = browser_session is None
        self._lock = asyncio.Lock()

    def strategy_for(self, platform: Platform) -> FetchStrategy:
        if platform in SCRIPT_RENDERED_PLATFORMS:
            return FetchStrategy(
                engine=FetchEngine.PLAYWRIGHT,
                timeout=self.settings.RENDERED_FETCH_TIMEOUT,
                wait_for_selector=CONTENT_INDICATOR,
                scroll_passes=self.settings.SCROLL_PASSES,
                scroll_pause_ms=self.settings.SCROLL_PAUSE_MS,
            )
        return FetchStrategy(engine=FetchEngine.HTTPX, timeout=self.settings.STATIC_FETCH_TIMEOUT)

    async def fetch(self, platform: Union[Platform, str], booking_code: str, url: Optional[str] = None) -> FetchedDocument:
        platform = Platform.coerce(platform)
        url = url or build_share_url(platform, booking_code)
        strategy = self.strategy_for(platform)
        self.logger.info(
            "Attempting fetch",
            engine=strategy.engine.value,
            platform=platform.value,
            booking_code=booking_code,
            url=url[:100],
        )

        try:
            if strategy.engine == FetchEngine.PLAYWRIGHT:
                status, html = await asyncio.wait_for(self._fetch_rendered(url, strategy), timeout=strategy.timeout)
            else:
                status, html = await self._fetch_static(url, strategy)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            self.logger.warning("Fetch timed out", url=url[:100], timeout=strategy.timeout, error_category=ErrorCategory.TIMEOUT.value)
            raise FetchTimeout(platform.value, booking_code, f"Timed out after {strategy.timeout}s", url=url) from e
        except httpx.HTTPError as e:
            self.logger.warning("Transport error", url=url[:100], error=str(e)[:200], error_category=ErrorCategory.NETWORK.value)
            raise TransportFailure(platform.value, booking_code, str(e) or e.__class__.__name__, url=url) from e
        except FetchError:
            raise
        except Exception as e:
            # Browser navigation and driver errors
            self.logger.warning("Navigation failed", url=url[:100], error=str(e)[:200], error_category=ErrorCategory.NETWORK.value)
            raise TransportFailure(platform.value, booking_code, f"Navigation failed: {e}", url=url) from e

        self._raise_for_status(platform, booking_code, url, status)

        if self._is_bot_detected(html):
            self.logger.warning("Bot detection triggered on successful HTTP status", url=url[:100], error_category=ErrorCategory.BOT_DETECTION.value)
            raise AccessDenied(
                platform.value, booking_code, "Blocked by bot protection", url=url, status_code=status,
                category=ErrorCategory.BOT_DETECTION,
            )

        self.logger.info("Fetch successful", engine=strategy.engine.value, status=status, size_bytes=len(html))
        return FetchedDocument(
            platform=platform,
            booking_code=booking_code,
            url=url,
            html=html,
            engine=strategy.engine.value,
            status=status,
        )

    def _raise_for_status(self, platform: Platform, booking_code: str, url: str, status: int) -> None:
        if status < 400:
            return
        if status in (404, 410):
            raise DocumentUnavailable(platform.value, booking_code, f"HTTP {status}: booking code not found", url=url, status_code=status)
        if status in (401, 403):
            raise AccessDenied(platform.value, booking_code, f"HTTP {status}: access forbidden", url=url, status_code=status)
        raise TransportFailure(platform.value, booking_code, f"HTTP {status}", url=url, status_code=status)

    def _is_bot_detected(self, html: str) -> bool:
        if not html:
            return False
        text_lower = html.lower()
        return any(kw in text_lower for kw in self.BOT_KEYWORDS)

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            async with self._lock:
                if self._http_client is None:
                    self._http_client = httpx.AsyncClient(follow_redirects=True, headers=DEFAULT_HEADERS)
        return self._http_client

    async def _get_browser_session(self, strategy: FetchStrategy):
        if self._browser_session is None:
            async with self._lock:
                if self._browser_session is None:
                    session = AsyncDynamicSession(headless=True, disable_resources=strategy.block_resources)
                    await session.start()
                    self._browser_session = session
        return self._browser_session

    async def _fetch_static(self, url: str, strategy: FetchStrategy) -> Tuple[int, str]:
        client = await self._get_http_client()
        response = await client.get(url, timeout=strategy.timeout)
        return response.status_code, response.text

    async def _fetch_rendered(self, url: str, strategy: FetchStrategy) -> Tuple[int, str]:
        session = await self._get_browser_session(strategy)
        response = await session.fetch(
            url,
            timeout=int(strategy.timeout * 1000),
            wait_selector=strategy.wait_for_selector,
            page_action=self._scroll_action(strategy),
            network_idle=True,
        )
        status = getattr(response, "status", 200)
        return status, self._response_html(response)

    @staticmethod
    def _scroll_action(strategy: FetchStrategy):
        async def scroll_to_bottom(page):
            for _ in range(strategy.scroll_passes):
                await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
                await page.wait_for_timeout(strategy.scroll_pause_ms)
            return page

        return scroll_to_bottom

    @staticmethod
    def _response_html(response) -> str:
        # scrapling 0.3.x may leave .text empty; html_content/body are reliable
        html = getattr(response, "html_content", None)
        if html:
            return str(html)
        body = getattr(response, "body", b"")
        if isinstance(body, bytes):
            return body.decode("utf-8", errors="replace")
        return str(body or "")

    async def close(self) -> None:
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
        if self._browser_session is not None and self._owns_browser_session:
            await self._browser_session.close()
            self._browser_session = None
