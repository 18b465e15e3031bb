# slip_service/extraction/matches.py
"""
Match extraction.

The primary pass runs every ruleset pattern over the window after the
sharing-code marker and pools the hits in offset order. When it finds
nothing, a secondary pass reads the betslip display region instead.
"""

import re
from typing import List
from typing import Optional
from typing import Tuple

import structlog

from ..models import CandidateMatch
from ..utils.odds import first_decimal
from ..utils.text import clean_team_name
from ..utils.text import normalize_market
from .document import SlipDocument
from .document import node_text
from .rulesets import ParserRuleset
from .thresholds import DEFAULT_THRESHOLDS
from .thresholds import ExtractionThresholds

log = structlog.get_logger(__name__)

DATE_FRAGMENT = re.compile(r"\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}")
BETSLIP_LINE = re.compile(r"^[ \t]*(?P<home>[^\n]+?)\s+(?:vs\.?|v)\s+(?P<away>[^\n]+?)[ \t]*$", re.MULTILINE)
SECONDARY_PREDICTION = re.compile(r"\b(Home|Away|Draw|Over|Under|Yes|No|GG|NG|1X|X2|12)\b", re.IGNORECASE)


def locate_marker(text: str, ruleset: ParserRuleset, booking_code: str) -> Optional[Tuple[int, int]]:
    """Span of the first sharing-code marker found, trying the ruleset markers in preference order."""
    for regex in ruleset.marker_regexes(booking_code):
        found = regex.search(text)
        if found:
            return found.span()
    return None


def _spans_overlap(start: int, end: int, span: Optional[Tuple[int, int]]) -> bool:
    return span is not None and start < span[1] and span[0] < end


def extract_primary_candidates(
    document: SlipDocument,
    ruleset: ParserRuleset,
    booking_code: str,
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
) -> List[CandidateMatch]:
    text = document.text
    marker = locate_marker(text, ruleset, booking_code)
    window_start = marker[0] if marker else 0
    window_end = min(len(text), window_start + thresholds.document_window_cap)
    if marker is None:
        log.debug("sharing_marker_not_found", platform=ruleset.platform.value)

    hits = []
    for rank, pattern in enumerate(ruleset.match_patterns):
        for found in pattern.regex.finditer(text, window_start, window_end):
            start, end = found.span()
            if _spans_overlap(start, end, marker):
                continue
            if DATE_FRAGMENT.search(found.group(0)):
                continue
            home = clean_team_name(found.group("home"))
            away = clean_team_name(found.group("away"))
            if min(len(home), len(away)) < thresholds.min_team_name_length:
                continue
            groups = found.groupdict()
            hits.append(
                (
                    start,
                    rank,
                    CandidateMatch(
                        home_team_raw=found.group("home"),
                        away_team_raw=found.group("away"),
                        prediction_raw=groups.get("prediction"),
                        source_offset=start,
                        pattern_id=pattern.pattern_id,
                        market=pattern.market,
                    ),
                )
            )

    hits.sort(key=lambda hit: (hit[0], hit[1]))
    return [candidate for _, _, candidate in hits]


def locate_betslip_region(
    document: SlipDocument,
    ruleset: ParserRuleset,
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
) -> Optional[Tuple[int, str]]:
    """(offset, text) of the first betslip display node with enough text, in ranked locator order."""
    for locator in ruleset.betslip_locators:
        for node in document.css(locator):
            region_text = node_text(node)
            if len(region_text) >= thresholds.betslip_min_text_length:
                return document.offset_of(region_text), region_text
    return None


def extract_betslip_candidates(
    document: SlipDocument,
    ruleset: ParserRuleset,
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
) -> List[CandidateMatch]:
    region = locate_betslip_region(document, ruleset, thresholds)
    if region is None:
        return []
    region_offset, region_text = region
    market_regex = re.compile(r"\b(" + "|".join(ruleset.secondary_markets) + r")\b", re.IGNORECASE)

    candidates = []
    for found in BETSLIP_LINE.finditer(region_text):
        home = clean_team_name(found.group("home"))
        away = clean_team_name(found.group("away"))
        if min(len(home), len(away)) < thresholds.min_team_name_length:
            continue
        following = region_text[found.end(): found.end() + thresholds.betslip_lookahead]
        if first_decimal(following, thresholds.is_match_odds) is None:
            continue
        prediction = SECONDARY_PREDICTION.search(following)
        if prediction is None:
            continue
        market = market_regex.search(following)
        candidates.append(
            CandidateMatch(
                home_team_raw=found.group("home"),
                away_team_raw=found.group("away"),
                prediction_raw=prediction.group(1),
                source_offset=region_offset + found.start(),
                pattern_id="betslip_display",
                market=normalize_market(market.group(1) if market else None),
            )
        )
    return candidates


def extract_matches(
    document: SlipDocument,
    ruleset: ParserRuleset,
    booking_code: str,
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
) -> List[CandidateMatch]:
    """Primary pattern pass, falling back to the betslip display when it finds nothing."""
    candidates = extract_primary_candidates(document, ruleset, booking_code, thresholds)
    if candidates:
        return candidates

    candidates = extract_betslip_candidates(document, ruleset, thresholds)
    log.info(
        "betslip_fallback_used",
        platform=ruleset.platform.value,
        booking_code=booking_code,
        candidates=len(candidates),
    )
    return candidates
