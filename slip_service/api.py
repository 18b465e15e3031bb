# slip_service/api.py

from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from fastapi import Depends
from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from . import __version__
from .config import get_settings
from .core.exceptions import FetchError
from .engine import BookingCodeEngine
from .extraction.slip_text import detect_platform
from .extraction.slip_text import extract_booking_code
from .logging_config import configure_logging
from .middleware.error_handler import UserFriendlyException
from .middleware.error_handler import user_friendly_exception_handler
from .middleware.error_handler import validation_exception_handler
from .models import ParseDocumentRequest
from .models import ParseTextRequest
from .models import ScrapeRequest
from .models import SlipRecord

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    log.info("slip_service_starting", version=__version__)
    settings = get_settings()
    app.state.engine = BookingCodeEngine(config=settings)
    log.info("booking_code_engine_ready", team_lookup=type(app.state.engine.team_lookup).__name__)

    yield

    log.info("slip_service_stopping")
    if getattr(app.state, "engine", None):
        await app.state.engine.close()
    log.info("slip_service_stopped")


limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="Booking Code Slip API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(SlowAPIMiddleware)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(UserFriendlyException, user_friendly_exception_handler)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def get_engine(request: Request) -> BookingCodeEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Engine is not ready")
    return engine


@app.get("/health")
async def health_check():
    return {"status": "ok", "timestamp": datetime.now().isoformat()}


@app.post("/api/scrape-booking-code", response_model=SlipRecord)
@limiter.limit(lambda: get_settings().SCRAPE_RATE_LIMIT)
async def scrape_booking_code(
    request: Request,
    payload: ScrapeRequest,
    engine: BookingCodeEngine = Depends(get_engine),
):
    try:
        return await engine.scrape_with_retry(payload.platform, payload.booking_code, url=payload.url)
    except FetchError as e:
        log.warning(
            "Booking code scrape failed",
            platform=payload.platform.value,
            booking_code=payload.booking_code,
            error_category=e.category.value,
            error=str(e),
        )
        raise UserFriendlyException.from_fetch_error(e)
    except Exception:
        log.error("Error in /api/scrape-booking-code", exc_info=True)
        raise UserFriendlyException(error_key="default")


@app.post("/api/parse-booking-document", response_model=SlipRecord)
@limiter.limit(lambda: get_settings().PARSE_RATE_LIMIT)
async def parse_booking_document(
    request: Request,
    payload: ParseDocumentRequest,
    engine: BookingCodeEngine = Depends(get_engine),
):
    return await engine.parse_document_in_executor(payload.platform, payload.booking_code, payload.document)


@app.post("/api/parse-slip-text", response_model=SlipRecord)
@limiter.limit(lambda: get_settings().PARSE_RATE_LIMIT)
async def parse_slip_text(
    request: Request,
    payload: ParseTextRequest,
    engine: BookingCodeEngine = Depends(get_engine),
):
    platform = payload.platform or detect_platform(payload.text)
    booking_code = payload.booking_code or extract_booking_code(payload.text)
    if not booking_code:
        raise UserFriendlyException(error_key="BookingCodeMissing", status_code=422)
    return await engine.parse_document_in_executor(platform, booking_code, payload.text)
