# tests/test_page_fetcher.py
import asyncio
from types import SimpleNamespace

import httpx
import pytest
import respx

from slip_service.core.exceptions import AccessDenied
from slip_service.core.exceptions import DocumentUnavailable
from slip_service.core.exceptions import ErrorCategory
from slip_service.core.exceptions import FetchTimeout
from slip_service.core.exceptions import TransportFailure
from slip_service.core.page_fetcher import CONTENT_INDICATOR
from slip_service.core.page_fetcher import FetchEngine
from slip_service.core.page_fetcher import PageFetcher
from slip_service.core.page_fetcher import build_share_url
from slip_service.models import Platform
from tests.utils import get_test_settings
from tests.utils import read_fixture

BET9JA_URL = "https://web.bet9ja.com/share/B9J4321"


class FakePage:
    def __init__(self):
        self.actions = []

    async def evaluate(self, script):
        self.actions.append(("evaluate", script))

    async def wait_for_timeout(self, ms):
        self.actions.append(("wait", ms))


class FakeBrowserSession:
    """Mimics the browser session's fetch: runs the page action and returns a response."""

    def __init__(self, html="", status=200, error=None, delay=0.0):
        self.html = html
        self.status = status
        self.error = error
        self.delay = delay
        self.page = FakePage()
        self.calls = []
        self.closed = False

    async def fetch(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        await kwargs["page_action"](self.page)
        return SimpleNamespace(status=self.status, html_content=self.html, body=self.html.encode())

    async def close(self):
        self.closed = True


@pytest.fixture
def fetcher():
    return PageFetcher(settings=get_test_settings())


# --- Static (httpx) fetches ---


@pytest.mark.asyncio
@respx.mock
async def test_static_fetch_returns_page(fetcher):
    html = read_fixture("bet9ja_share_page.html")
    route = respx.get(BET9JA_URL).mock(return_value=httpx.Response(200, text=html))

    fetched = await fetcher.fetch(Platform.BET9JA, "B9J4321")

    assert route.called
    assert fetched.html == html
    assert fetched.engine == FetchEngine.HTTPX.value
    assert fetched.url == BET9JA_URL
    assert fetched.status == 200
    await fetcher.close()


@pytest.mark.asyncio
@respx.mock
async def test_explicit_url_overrides_share_template(fetcher):
    route = respx.get("https://mirror.example/slip/B9J4321").mock(return_value=httpx.Response(200, text="<p>ok</p>"))

    await fetcher.fetch("bet9ja", "B9J4321", url="https://mirror.example/slip/B9J4321")

    assert route.called
    await fetcher.close()


@pytest.mark.parametrize(
    "status,error_type,category",
    [
        (404, DocumentUnavailable, ErrorCategory.NOT_FOUND),
        (410, DocumentUnavailable, ErrorCategory.NOT_FOUND),
        (403, AccessDenied, ErrorCategory.ACCESS_DENIED),
        (500, TransportFailure, ErrorCategory.NETWORK),
    ],
)
@pytest.mark.asyncio
@respx.mock
async def test_error_statuses_map_to_typed_errors(fetcher, status, error_type, category):
    respx.get(BET9JA_URL).mock(return_value=httpx.Response(status, text="nope"))

    with pytest.raises(error_type) as excinfo:
        await fetcher.fetch(Platform.BET9JA, "B9J4321")

    assert excinfo.value.status_code == status
    assert excinfo.value.category == category
    assert excinfo.value.booking_code == "B9J4321"
    await fetcher.close()


@pytest.mark.asyncio
@respx.mock
async def test_connect_timeout_is_fetch_timeout(fetcher):
    respx.get(BET9JA_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))

    with pytest.raises(FetchTimeout):
        await fetcher.fetch(Platform.BET9JA, "B9J4321")
    await fetcher.close()


@pytest.mark.asyncio
@respx.mock
async def test_connection_error_is_transport_failure(fetcher):
    respx.get(BET9JA_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(TransportFailure) as excinfo:
        await fetcher.fetch(Platform.BET9JA, "B9J4321")

    assert "connection refused" in str(excinfo.value)
    await fetcher.close()


@pytest.mark.asyncio
@respx.mock
async def test_bot_wall_on_success_status_is_access_denied(fetcher):
    respx.get(BET9JA_URL).mock(
        return_value=httpx.Response(200, text="<html><body>Checking your browser before accessing</body></html>")
    )

    with pytest.raises(AccessDenied) as excinfo:
        await fetcher.fetch(Platform.BET9JA, "B9J4321")

    assert excinfo.value.category == ErrorCategory.BOT_DETECTION
    await fetcher.close()


# --- Script-rendered (browser) fetches ---


@pytest.mark.asyncio
async def test_rendered_fetch_waits_for_content_and_scrolls():
    html = read_fixture("sportybet_share_page.html")
    session = FakeBrowserSession(html=html)
    fetcher = PageFetcher(settings=get_test_settings(SCROLL_PASSES=3), browser_session=session)

    fetched = await fetcher.fetch(Platform.SPORTYBET, "ABC123")

    url, kwargs = session.calls[0]
    assert url == "http://www.sportybet.com/gh/?shareCode=ABC123"
    assert kwargs["wait_selector"] == CONTENT_INDICATOR
    assert kwargs["network_idle"] is True
    assert [action for action, _ in session.page.actions].count("evaluate") == 3
    assert fetched.html == html
    assert fetched.engine == FetchEngine.PLAYWRIGHT.value


@pytest.mark.asyncio
async def test_rendered_fetch_timeout():
    session = FakeBrowserSession(delay=1.0)
    fetcher = PageFetcher(settings=get_test_settings(RENDERED_FETCH_TIMEOUT=0.05), browser_session=session)

    with pytest.raises(FetchTimeout) as excinfo:
        await fetcher.fetch(Platform.SPORTYBET, "ABC123")

    assert excinfo.value.category == ErrorCategory.TIMEOUT


@pytest.mark.asyncio
async def test_navigation_error_is_transport_failure():
    session = FakeBrowserSession(error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
    fetcher = PageFetcher(settings=get_test_settings(), browser_session=session)

    with pytest.raises(TransportFailure) as excinfo:
        await fetcher.fetch(Platform.SPORTYBET, "ABC123")

    assert "Navigation failed" in str(excinfo.value)


@pytest.mark.asyncio
async def test_rendered_error_status_is_mapped():
    session = FakeBrowserSession(html="gone", status=404)
    fetcher = PageFetcher(settings=get_test_settings(), browser_session=session)

    with pytest.raises(DocumentUnavailable):
        await fetcher.fetch(Platform.SPORTYBET, "ABC123")


@pytest.mark.asyncio
async def test_injected_session_is_not_closed_by_fetcher():
    session = FakeBrowserSession(html="<div>ok</div>")
    fetcher = PageFetcher(settings=get_test_settings(), browser_session=session)

    await fetcher.close()

    assert session.closed is False


# --- Share URLs ---


@pytest.mark.parametrize(
    "platform,expected",
    [
        (Platform.SPORTYBET, "http://www.sportybet.com/gh/?shareCode=CODE1"),
        ("Bet9ja", "https://web.bet9ja.com/share/CODE1"),
        ("1xbet", "https://1xbet.com/en/share/CODE1"),
        ("unknown", "https://other.com/share/CODE1"),
    ],
)
def test_build_share_url(platform, expected):
    assert build_share_url(platform, "CODE1") == expected
