import sys
from pathlib import Path

import pytest
import pytest_asyncio

# =============================================================================
# 1. SYSTEM PATH INJECTION
# =============================================================================
# Makes 'slip_service' and 'tests.utils' importable regardless of where pytest is run from.
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from slip_service.extraction import ExtractionThresholds  # noqa: E402
from tests.utils import FIXED_NOW  # noqa: E402
from tests.utils import FakeFetcher  # noqa: E402
from tests.utils import get_test_settings  # noqa: E402


# =============================================================================
# 2. SETTINGS & SHARED VALUES
# =============================================================================
@pytest.fixture
def test_settings():
    return get_test_settings()


@pytest.fixture
def thresholds():
    return ExtractionThresholds()


@pytest.fixture
def now():
    return FIXED_NOW


# =============================================================================
# 3. FASTAPI APP & CLIENT
# =============================================================================
@pytest.fixture
def app(test_settings):
    from slip_service.api import app as fastapi_app
    from slip_service.api import limiter
    from slip_service.engine import BookingCodeEngine
    from slip_service.team_aliases import NullTeamLookup

    # ASGITransport does not run the lifespan hook, so the engine is attached here.
    fastapi_app.state.engine = BookingCodeEngine(
        config=test_settings, fetcher=FakeFetcher(), team_lookup=NullTeamLookup()
    )
    limiter.enabled = False
    yield fastapi_app
    limiter.enabled = True
    fastapi_app.state.engine = None


@pytest_asyncio.fixture
async def client(app):
    from httpx import ASGITransport
    from httpx import AsyncClient

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        ac.app = app
        yield ac
