# slip_service/extraction/odds.py
"""
Odds resolution for a single match.

Six stateless strategies run in a fixed order and the first in-range value
wins. Each strategy returns None when it finds nothing usable. When every
strategy misses, the resolver returns the sentinel ``UNRESOLVED_ODDS``.
"""

import re
from dataclasses import dataclass
from typing import Callable
from typing import Optional
from typing import Pattern
from typing import Tuple

import structlog

from ..utils.odds import first_decimal
from ..utils.odds import iter_decimals
from ..utils.odds import last_decimal
from ..utils.odds import parse_odds_to_decimal
from .document import SlipDocument
from .rulesets import ParserRuleset
from .thresholds import DEFAULT_THRESHOLDS
from .thresholds import ExtractionThresholds

log = structlog.get_logger(__name__)

UNRESOLVED_ODDS = 1.0


def team_regex(name: str) -> Pattern:
    """Case-insensitive, whole-word regex for a team name with flexible inner whitespace."""
    words = [re.escape(word) for word in name.split()]
    return re.compile(r"(?<!\w)" + r"\s+".join(words) + r"(?!\w)", re.IGNORECASE)


@dataclass(frozen=True)
class OddsQuery:
    home: str
    away: str
    offset: int
    document: SlipDocument
    ruleset: ParserRuleset
    thresholds: ExtractionThresholds
    betslip_text: Optional[str] = None

    @property
    def home_regex(self) -> Pattern:
        return team_regex(self.home)

    @property
    def away_regex(self) -> Pattern:
        return team_regex(self.away)

    @property
    def slip_text(self) -> str:
        return self.betslip_text if self.betslip_text is not None else self.document.text

    def in_range(self, value: float) -> bool:
        return self.thresholds.is_match_odds(value)


def from_team_element(query: OddsQuery) -> Optional[float]:
    """An element naming exactly one of the two teams, with an in-range decimal."""
    home_re, away_re = query.home_regex, query.away_regex
    for _, text in query.document.element_texts:
        home_hit = home_re.search(text)
        away_hit = away_re.search(text)
        if bool(home_hit) == bool(away_hit):
            continue
        name_end = (home_hit or away_hit).end()
        value = first_decimal(text, query.in_range, name_end)
        if value is None:
            value = first_decimal(text, query.in_range)
        if value is not None:
            return value
    return None


def from_betslip_display(query: OddsQuery) -> Optional[float]:
    """'home v away' in the betslip text, then the first in-range decimal shortly after."""
    text = query.slip_text
    pair = re.compile(
        query.home_regex.pattern + r"\s+(?:vs\.?|v)\s+" + query.away_regex.pattern, re.IGNORECASE
    )
    for found in pair.finditer(text):
        value = first_decimal(text, query.in_range, found.end(), found.end() + query.thresholds.betslip_odds_span)
        if value is not None:
            return value
    return None


def from_dual_team_proximity(query: OddsQuery) -> Optional[float]:
    """Both team names within a short span; the occurrence nearest the match offset wins."""
    text = query.document.text
    span = query.thresholds.dual_team_span
    pair = re.compile(
        query.home_regex.pattern + r"[\s\S]{0,%d}?" % span + query.away_regex.pattern, re.IGNORECASE
    )
    best: Optional[Tuple[int, float]] = None
    for found in pair.finditer(text):
        value = first_decimal(text, query.in_range, found.end(), found.end() + span)
        if value is None:
            value = last_decimal(text, query.in_range, found.start() - span, found.start())
        if value is None:
            continue
        distance = abs(found.start() - query.offset)
        if best is None or distance < best[0]:
            best = (distance, value)
    return best[1] if best else None


def from_nearest_decimal(query: OddsQuery) -> Optional[float]:
    """The in-range decimal closest to the match offset."""
    text = query.document.text
    window = query.thresholds.proximity_window
    best: Optional[Tuple[int, float]] = None
    for position, value in iter_decimals(text, query.offset - window, query.offset + window):
        if not query.in_range(value):
            continue
        distance = abs(position - query.offset)
        if best is None or distance < best[0]:
            best = (distance, value)
    return best[1] if best else None


def from_market_qualified_betslip(query: OddsQuery) -> Optional[float]:
    """'home v away ... <market keyword> ... <decimal>' in the betslip text."""
    text = query.slip_text
    span = query.thresholds.betslip_odds_span
    pair = re.compile(
        query.home_regex.pattern
        + r"\s+(?:vs\.?|v)\s+"
        + query.away_regex.pattern
        + r"[\s\S]{0,%d}?\b(?:1X2|Over|Under|BTTS)\b" % span,
        re.IGNORECASE,
    )
    for found in pair.finditer(text):
        value = first_decimal(text, query.in_range, found.end(), found.end() + query.thresholds.market_odds_span)
        if value is not None:
            return value
    return None


def from_odds_attribute(query: OddsQuery) -> Optional[float]:
    """An element with an odds-like data attribute whose text names one of the teams."""
    if not query.ruleset.odds_attributes:
        return None
    selector = ", ".join(f"[{attribute}]" for attribute in query.ruleset.odds_attributes)
    home_re, away_re = query.home_regex, query.away_regex
    for node in query.document.css(selector):
        text = node.text(separator=" ", strip=True)
        if not (home_re.search(text) or away_re.search(text)):
            continue
        for attribute in query.ruleset.odds_attributes:
            value = parse_odds_to_decimal(node.attributes.get(attribute))
            if value is not None and query.in_range(value):
                return value
    return None


ODDS_STRATEGIES: Tuple[Callable[[OddsQuery], Optional[float]], ...] = (
    from_team_element,
    from_betslip_display,
    from_dual_team_proximity,
    from_nearest_decimal,
    from_market_qualified_betslip,
    from_odds_attribute,
)


def resolve_odds(
    home: str,
    away: str,
    offset: int,
    document: SlipDocument,
    ruleset: ParserRuleset,
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
    betslip_text: Optional[str] = None,
) -> float:
    """Runs the strategy cascade for one match. Never raises; returns UNRESOLVED_ODDS on a miss."""
    query = OddsQuery(
        home=home,
        away=away,
        offset=offset,
        document=document,
        ruleset=ruleset,
        thresholds=thresholds,
        betslip_text=betslip_text,
    )
    for strategy in ODDS_STRATEGIES:
        value = strategy(query)
        if value is not None and query.in_range(value):
            return value
        log.debug("odds_strategy_missed", strategy=strategy.__name__, home=home, away=away)

    log.info("odds_unresolved", home=home, away=away)
    return UNRESOLVED_ODDS
