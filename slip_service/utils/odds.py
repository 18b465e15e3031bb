"""Odds and amount parsing utilities."""

import re
from typing import Callable, Iterator, Optional, Tuple

# A dotted decimal that is not part of a longer figure. "22.12" inside the date
# "22.12.2025" and "1.85" inside "1,001.85" are both rejected.
DECIMAL_PATTERN = re.compile(r"(?<![\d.,/])(\d+\.\d+)(?!\d)(?![./-]\d)")
AMOUNT_PATTERN = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?")

EVENS_TOKENS = frozenset({"EVN", "EVEN", "EVS", "EVENS"})
EMPTY_TOKENS = frozenset({"", "-", "--", "N/A", "SUSP", "SUSPENDED"})
FRACTIONAL_ODDS = re.compile(r"(\d+)\s*[/-]\s*(\d+)")
AMERICAN_ODDS = re.compile(r"([+-])(\d+)")
DECIMAL_ODDS = re.compile(r"\d+(?:[.,]\d+)?")


def _from_fractional(numerator: int, denominator: int) -> Optional[float]:
    if denominator == 0:
        return None
    return round(numerator / denominator + 1.0, 2)


def _from_american(sign: str, line: int) -> Optional[float]:
    if line == 0:
        return None
    payout = line / 100 if sign == "+" else 100 / line
    return round(payout + 1.0, 2)


def parse_odds_to_decimal(raw) -> Optional[float]:
    """
    Reads an odds value as shown in a data attribute or cell.

    Accepts decimal ("3.50", European "3,50"), fractional ("5/2"),
    American ("+250", "-150") and evens ("EVS"). Decimal values are kept as
    shown. Returns None for anything else, including decimals below 1.0.
    """
    if raw is None:
        return None
    token = str(raw).strip().upper()
    if token in EMPTY_TOKENS:
        return None
    if token in EVENS_TOKENS:
        return 2.0

    fractional = FRACTIONAL_ODDS.fullmatch(token)
    if fractional:
        return _from_fractional(int(fractional.group(1)), int(fractional.group(2)))

    american = AMERICAN_ODDS.fullmatch(token)
    if american:
        return _from_american(american.group(1), int(american.group(2)))

    if DECIMAL_ODDS.fullmatch(token):
        value = float(token.replace(",", "."))
        return value if value >= 1.0 else None
    return None


def iter_decimals(text: str, start: int = 0, end: Optional[int] = None) -> Iterator[Tuple[int, float]]:
    """Yields (offset, value) for every dotted decimal in text[start:end], in document order."""
    if not text:
        return
    end = len(text) if end is None else min(end, len(text))
    start = max(0, start)
    # Scan past the slice end so a figure cut by the boundary is still seen whole.
    for match in DECIMAL_PATTERN.finditer(text, start):
        if match.start(1) >= end:
            break
        yield match.start(1), float(match.group(1))


def first_decimal(text: str, accept: Callable[[float], bool], start: int = 0, end: Optional[int] = None) -> Optional[float]:
    """Returns the first decimal in the slice that satisfies ``accept``."""
    for _, value in iter_decimals(text, start, end):
        if accept(value):
            return value
    return None


def last_decimal(text: str, accept: Callable[[float], bool], start: int = 0, end: Optional[int] = None) -> Optional[float]:
    """Returns the last decimal in the slice that satisfies ``accept``."""
    found = None
    for _, value in iter_decimals(text, start, end):
        if accept(value):
            found = value
    return found


def parse_amount(raw: Optional[str]) -> Optional[float]:
    """Parses a money amount such as '1,250.00' or '10'. Thousands commas are dropped."""
    if not raw:
        return None
    match = AMOUNT_PATTERN.search(raw)
    if not match:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return None
