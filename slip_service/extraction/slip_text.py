# slip_service/extraction/slip_text.py
"""Platform and booking-code detection for free slip text (pasted or OCR output)."""

import re
from typing import Optional

from ..models import Platform

PLATFORM_KEYWORDS = (
    (re.compile(r"SPORTY\s*BET"), Platform.SPORTYBET),
    (re.compile(r"BET\s*9\s*JA"), Platform.BET9JA),
    (re.compile(r"\b1\s*X\s*BET\b"), Platform.ONEXBET),
    (re.compile(r"BETWAY"), Platform.BETWAY),
    (re.compile(r"MOZZART"), Platform.MOZZARTBET),
)

CODE = r"([A-Z0-9]{6,12})\b"
LABELLED_CODE_PATTERNS = (
    re.compile(r"BOOKING\s+CODE[:\s]*" + CODE),
    re.compile(r"SHARING\s+CODE[:\s]*" + CODE),
    re.compile(r"SHARE\s+CODE[:\s]*" + CODE),
    re.compile(r"SLIP\s+CODE[:\s]*" + CODE),
    re.compile(r"BET\s+ID[:\s]*" + CODE),
    re.compile(r"\bCODE[:\s]+" + CODE),
)
# Bare tokens must carry a digit so brand names and words are not mistaken for codes.
BARE_CODE = re.compile(r"\b(?=[A-Z0-9]*\d)(?=[A-Z0-9]*[A-Z])([A-Z0-9]{8,12})\b")


def detect_platform(text: Optional[str]) -> Platform:
    upper = (text or "").upper()
    for pattern, platform in PLATFORM_KEYWORDS:
        if pattern.search(upper):
            return platform
    return Platform.OTHER


def extract_booking_code(text: Optional[str]) -> Optional[str]:
    upper = (text or "").upper()
    for pattern in LABELLED_CODE_PATTERNS:
        found = pattern.search(upper)
        if found:
            return found.group(1)
    found = BARE_CODE.search(upper)
    return found.group(1) if found else None
