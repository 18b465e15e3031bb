# slip_service/middleware/error_handler.py

from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.exceptions import AccessDenied
from ..core.exceptions import DocumentUnavailable
from ..core.exceptions import FetchError
from ..core.exceptions import FetchTimeout
from ..user_friendly_errors import ERROR_MAP

FETCH_ERROR_STATUS = {
    DocumentUnavailable: 404,
    AccessDenied: 403,
    FetchTimeout: 504,
}


class UserFriendlyException(Exception):
    """An error with a message fit for end users, looked up in ERROR_MAP by key."""

    def __init__(self, error_key: str, status_code: int = 500, details: Optional[str] = None):
        entry = ERROR_MAP.get(error_key, ERROR_MAP["default"])
        self.error_key = error_key if error_key in ERROR_MAP else "default"
        self.status_code = status_code
        self.details = details
        self.message = entry["message"]
        self.suggestion = entry["suggestion"]
        super().__init__(self.message)

    @classmethod
    def from_fetch_error(cls, exc: FetchError) -> "UserFriendlyException":
        # Anything not listed is an upstream failure.
        status_code = next(
            (code for error_type, code in FETCH_ERROR_STATUS.items() if isinstance(exc, error_type)),
            502,
        )
        return cls(error_key=type(exc).__name__, status_code=status_code, details=str(exc))

    def to_payload(self) -> dict:
        return {
            "error": {
                "code": self.error_key,
                "message": self.message,
                "suggestion": self.suggestion,
                "details": self.details,
            }
        }


async def user_friendly_exception_handler(request: Request, exc: UserFriendlyException):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _field_name(location) -> str:
    """'bookingCode' for ('body', 'bookingCode'); nested paths are dotted."""
    parts = [str(part) for part in location if part not in ("body", "query", "path")]
    return ".".join(parts) or "unknown"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reports request validation failures field by field."""
    errors = [
        {"field": _field_name(error.get("loc", ())), "message": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"detail": "Invalid request parameters", "errors": errors})
