# slip_service/core/exceptions.py
"""
Custom, application-specific exceptions for the slip extraction service.

Only the fetch layer raises. Extraction never fails on thin documents: an
empty match list or a missing total is a valid Slip Record, so there is no
exception for those outcomes.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Error categories for better diagnostics"""

    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    BOT_DETECTION = "bot_detection"
    TIMEOUT = "timeout"
    NETWORK = "network"
    UNKNOWN = "unknown"


class SlipServiceException(Exception):
    """Base class for all custom exceptions in this application."""

    pass


class FetchError(SlipServiceException):
    """Base class for all page fetch errors."""

    category = ErrorCategory.UNKNOWN

    def __init__(
        self,
        platform: str,
        booking_code: str,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        category: Optional[ErrorCategory] = None,
    ):
        self.platform = platform
        self.booking_code = booking_code
        self.url = url
        self.status_code = status_code
        if category is not None:
            self.category = category
        super().__init__(f"[{platform}:{booking_code}] {message}")


class DocumentUnavailable(FetchError):
    """Raised when the share page does not exist (invalid or expired code)."""

    category = ErrorCategory.NOT_FOUND


class AccessDenied(FetchError):
    """Raised for HTTP 401/403 responses, private slips or bot walls."""

    category = ErrorCategory.ACCESS_DENIED


class FetchTimeout(FetchError):
    """Raised when the page could not be fetched within the time limit."""

    category = ErrorCategory.TIMEOUT


class TransportFailure(FetchError):
    """Raised for connection errors, navigation failures and unexpected statuses."""

    category = ErrorCategory.NETWORK
