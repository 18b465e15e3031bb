# slip_service/extraction/totals.py
"""
Slip-level metadata: combined odds, stake and potential payout.

Total odds come from a seven-step cascade, first success wins. A figure that
sits next to a team pairing is a per-match price, not the slip total, so the
zone-based steps skip decimals within ``team_context_chars`` of one.
"""

import math
import re
from dataclasses import dataclass
from typing import Callable
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

import structlog

from ..models import ResolvedMatch
from ..models import SlipTotals
from ..utils.odds import iter_decimals
from ..utils.odds import parse_amount
from .document import SlipDocument
from .rulesets import ParserRuleset
from .thresholds import DEFAULT_THRESHOLDS
from .thresholds import ExtractionThresholds

log = structlog.get_logger(__name__)

TEAM_SEPARATOR = re.compile(r"(?i:\bvs?\.?)\s+[A-Z]|\s[-–]\s+[A-Z]|(?i:\bprematch\b)")
LONE_DECIMAL = re.compile(r"\d+\.\d+")

HEADER_ODDS_PATTERNS = (
    re.compile(r"\bOdds\s+(\d+\.\d+)", re.IGNORECASE),
    re.compile(r"\bOdds\s*:\s*(\d+\.\d+)", re.IGNORECASE),
)
ODDS_BEFORE_BONUS = re.compile(r"\bOdds\b([\s\S]{0,200}?)Max\s+Bonus", re.IGNORECASE)
ODDS_TOKEN = re.compile(r"\bOdds\b", re.IGNORECASE)
LABELLED_TOTAL = re.compile(r"\b(?:Total|Combined|Accumulator)\s+Odds\s*:?\s*(\d+\.\d+)", re.IGNORECASE)
ODDS_WITH_VALUE = re.compile(r"\bOdds\s*:?\s*(\d+\.\d+)", re.IGNORECASE)
MAX_BONUS = re.compile(r"Max\s+Bonus", re.IGNORECASE)
SUMMARY_KEYWORD = re.compile(r"\bStake\b|\b(?:Potential|Possible)\s+Win|\bTo\s+Win\b", re.IGNORECASE)
SUMMARY_LABEL = re.compile(r"\b(Odds|Summary|Total|Stake|Win|Bonus|Payout)\b", re.IGNORECASE)

CURRENCY = r"(?:GHS|GH₵|₵|NGN|₦|KES|KSh|UGX|TZS|ZMW|USD|\$|€|£)?"
AMOUNT = r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
STAKE_PATTERN = re.compile(r"\bStake\b\s*:?\s*" + CURRENCY + r"\s*" + AMOUNT, re.IGNORECASE)
POTENTIAL_WIN_PATTERNS = (
    re.compile(
        r"\b(?:(?:Potential|Possible)\s+(?:Win(?:nings)?|Payout)|Payout)\s*:?\s*" + CURRENCY + r"\s*" + AMOUNT,
        re.IGNORECASE,
    ),
    re.compile(r"\bTo\s+Win\s*:?\s*" + CURRENCY + r"\s*" + AMOUNT, re.IGNORECASE),
)
PAYOUT_RANGE = re.compile(AMOUNT + r"\s*~\s*" + CURRENCY + r"\s*" + AMOUNT)


@dataclass(frozen=True)
class TotalsContext:
    document: SlipDocument
    matches: Sequence[ResolvedMatch]
    ruleset: ParserRuleset
    thresholds: ExtractionThresholds
    header_zone: Tuple[int, int]

    @property
    def text(self) -> str:
        return self.document.text

    def near_team(self, start: int, end: int) -> bool:
        reach = self.thresholds.team_context_chars
        context = self.text[max(0, start - reach): end + reach]
        return bool(TEAM_SEPARATOR.search(context))

    def qualifies(self, value: float, start: int, end: int) -> bool:
        return self.thresholds.is_total_odds(value) and not self.near_team(start, end)


def locate_header_zone(
    text: str,
    ruleset: ParserRuleset,
    thresholds: ExtractionThresholds,
    first_match_offset: Optional[int] = None,
) -> Tuple[int, int]:
    """Zone around the 'Booking Code' anchor; without one, the document head before the first match."""
    for anchor in ruleset.header_anchors:
        found = re.search(anchor, text, re.IGNORECASE)
        if found:
            return (
                max(0, found.start() - thresholds.header_zone_before),
                min(len(text), found.start() + thresholds.header_zone_after),
            )
    if first_match_offset is not None:
        return 0, first_match_offset
    return 0, min(len(text), thresholds.header_zone_after)


def total_from_odds_element(ctx: TotalsContext) -> Optional[float]:
    for selector in ctx.ruleset.odds_selectors:
        for node in ctx.document.css(selector):
            own_text = node.text(strip=True)
            if not LONE_DECIMAL.fullmatch(own_text):
                continue
            value = float(own_text)
            if not ctx.thresholds.is_total_odds(value):
                continue
            parent = node.parent
            parent_text = parent.text(separator=" ", strip=True) if parent is not None else ""
            if TEAM_SEPARATOR.search(parent_text):
                continue
            return value
    return None


def total_from_header_odds(ctx: TotalsContext) -> Optional[float]:
    text = ctx.text
    zone_start, zone_end = ctx.header_zone

    for pattern in HEADER_ODDS_PATTERNS:
        for found in pattern.finditer(text, zone_start, zone_end):
            value = float(found.group(1))
            if ctx.qualifies(value, found.start(1), found.end(1)):
                return value

    for found in ODDS_BEFORE_BONUS.finditer(text, zone_start, zone_end):
        for position, value in iter_decimals(text, found.start(1), found.end(1)):
            if ctx.qualifies(value, position, position + len(str(value))):
                return value

    for token in ODDS_TOKEN.finditer(text, zone_start, zone_end):
        for position, value in iter_decimals(text, token.end(), zone_end):
            if ctx.qualifies(value, position, position + len(str(value))):
                return value
    return None


def total_from_labelled_total(ctx: TotalsContext) -> Optional[float]:
    for found in LABELLED_TOTAL.finditer(ctx.text):
        value = float(found.group(1))
        if ctx.thresholds.is_total_odds(value):
            return value
    return None


def total_from_max_bonus(ctx: TotalsContext) -> Optional[float]:
    text = ctx.text
    for bonus in MAX_BONUS.finditer(text):
        window_start = max(0, bonus.start() - ctx.thresholds.max_bonus_lookback)
        preceding = list(ODDS_WITH_VALUE.finditer(text, window_start, bonus.start()))
        for found in reversed(preceding):
            value = float(found.group(1))
            if ctx.thresholds.is_total_odds(value):
                return value
    return None


def total_from_summary_zone(ctx: TotalsContext) -> Optional[float]:
    text = ctx.text
    keyword = SUMMARY_KEYWORD.search(text)
    if keyword is None:
        return None
    reach = ctx.thresholds.summary_zone_chars
    zone_start, zone_end = max(0, keyword.start() - reach), min(len(text), keyword.end() + reach)
    for position, value in iter_decimals(text, zone_start, zone_end):
        labels = SUMMARY_LABEL.findall(text, max(0, position - ctx.thresholds.summary_keyword_reach), position)
        if not labels or labels[-1].lower() not in ("odds", "summary", "total"):
            continue
        if ctx.qualifies(value, position, position + len(str(value))):
            return value
    return None


def total_from_header_decimal(ctx: TotalsContext) -> Optional[float]:
    zone_start, zone_end = ctx.header_zone
    for position, value in iter_decimals(ctx.text, zone_start, zone_end):
        if ctx.qualifies(value, position, position + len(str(value))):
            return value
    return None


def total_from_product(ctx: TotalsContext) -> Optional[float]:
    if not ctx.matches:
        return None
    return round(math.prod(match.odds for match in ctx.matches), 2)


TOTAL_ODDS_STEPS: Tuple[Callable[[TotalsContext], Optional[float]], ...] = (
    total_from_odds_element,
    total_from_header_odds,
    total_from_labelled_total,
    total_from_max_bonus,
    total_from_summary_zone,
    total_from_header_decimal,
    total_from_product,
)


def extract_stake(text: str) -> Optional[float]:
    found = STAKE_PATTERN.search(text or "")
    return parse_amount(found.group(1)) if found else None


def extract_potential_win(text: str) -> Optional[float]:
    text = text or ""
    for pattern in POTENTIAL_WIN_PATTERNS:
        found = pattern.search(text)
        if found:
            return parse_amount(found.group(1))
    found = PAYOUT_RANGE.search(text)
    if found:
        return parse_amount(found.group(2))
    return None


def extract_total_odds(
    document: SlipDocument,
    matches: Sequence[ResolvedMatch],
    ruleset: ParserRuleset,
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
    first_match_offset: Optional[int] = None,
) -> Optional[float]:
    ctx = TotalsContext(
        document=document,
        matches=matches,
        ruleset=ruleset,
        thresholds=thresholds,
        header_zone=locate_header_zone(document.text, ruleset, thresholds, first_match_offset),
    )
    for step in TOTAL_ODDS_STEPS:
        value = step(ctx)
        if value is not None:
            log.debug("total_odds_found", step=step.__name__, total_odds=value)
            return value
    return None


def extract_totals(
    document: SlipDocument,
    matches: List[ResolvedMatch],
    ruleset: ParserRuleset,
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
    first_match_offset: Optional[int] = None,
) -> SlipTotals:
    return SlipTotals(
        total_odds=extract_total_odds(document, matches, ruleset, thresholds, first_match_offset),
        stake=extract_stake(document.text),
        potential_win=extract_potential_win(document.text),
    )
