# slip_service/utils/text.py
# Centralized text, team name and token normalization utilities
import re
import unicodedata
from typing import Optional

from ..models import Market
from ..models import Prediction

LEADING_ORDINAL = re.compile(r"^\s*\d+\s*[.)]\s*")
PARENTHETICAL = re.compile(r"\([^)]*\)")
CLUB_SUFFIXES = re.compile(r"\b(fc|cf|sc|fk|afc|cfc)\b")

EXACT_PREDICTIONS = {
    "1": Prediction.HOME,
    "X": Prediction.DRAW,
    "2": Prediction.AWAY,
    "1X": Prediction.HOME,
    "X2": Prediction.AWAY,
    "12": Prediction.HOME,
    "GG": Prediction.YES,
    "NG": Prediction.NO,
}

# Checked in order; totals words before the side words so "Over 2.5" is not read as "2".
PREDICTION_KEYWORDS = [
    (re.compile(r"\bOVER\b"), Prediction.OVER),
    (re.compile(r"\bUNDER\b"), Prediction.UNDER),
    (re.compile(r"\b(YES|BTTS|GG)\b"), Prediction.YES),
    (re.compile(r"\b(NO|NG)\b"), Prediction.NO),
    (re.compile(r"\b(DRAW|X)\b"), Prediction.DRAW),
    (re.compile(r"\b(AWAY|2)\b"), Prediction.AWAY),
    (re.compile(r"\b(HOME|1)\b"), Prediction.HOME),
]

MARKET_KEYWORDS = [
    (re.compile(r"DOUBLE\s+CHANCE|\bDC\b"), Market.DOUBLE_CHANCE),
    (re.compile(r"BTTS|BOTH\s+TEAMS|\bGG\b|\bNG\b"), Market.BTTS),
    (re.compile(r"HANDICAP|SPREAD|\bAH\b"), Market.SPREADS),
    (re.compile(r"\bOVER\b|\bUNDER\b|TOTAL|\bO/U\b"), Market.TOTALS),
    (re.compile(r"1X2|MATCH\s+RESULT|\b3\s*WAY\b"), Market.H2H),
]


def clean_text(text: Optional[str]) -> Optional[str]:
    """Strips leading/trailing whitespace and collapses internal whitespace."""
    if not text:
        return None
    return " ".join(text.strip().split())


def clean_team_name(name: Optional[str]) -> str:
    """
    Normalizes a raw team name as scraped from a slip.

    Strips leading ordinal numerals ("1. Arsenal"), parenthetical annotations
    ("Arsenal (W)") and collapses whitespace.
    """
    if not name:
        return ""
    name = LEADING_ORDINAL.sub("", name)
    name = PARENTHETICAL.sub(" ", name)
    return clean_text(name.strip(" -|:,")) or ""


def normalize_team_key(name: Optional[str]) -> str:
    """
    Builds the lookup key for a team name: lowercase, accents removed,
    punctuation dropped, common club suffixes (FC, AFC, ...) removed.
    """
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = re.sub(r"[^\w\s]", " ", stripped)
    stripped = CLUB_SUFFIXES.sub(" ", stripped)
    return " ".join(stripped.split())


def normalize_prediction(token: Optional[str]) -> Prediction:
    """Maps a displayed prediction token to a Prediction. Unrecognised tokens default to HOME."""
    if not token:
        return Prediction.HOME
    upper = token.strip().upper()
    if upper in EXACT_PREDICTIONS:
        return EXACT_PREDICTIONS[upper]
    for pattern, prediction in PREDICTION_KEYWORDS:
        if pattern.search(upper):
            return prediction
    return Prediction.HOME


def normalize_market(keyword: Optional[str]) -> Market:
    """Maps a market keyword to a Market. Anything unrecognised is a head-to-head market."""
    if not keyword:
        return Market.H2H
    upper = keyword.strip().upper()
    for pattern, market in MARKET_KEYWORDS:
        if pattern.search(upper):
            return market
    return Market.H2H
