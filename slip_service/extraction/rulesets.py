# slip_service/extraction/rulesets.py
"""
Per-platform parser rulesets.

A ruleset bundles what the extractors need to know about one bookmaker's
share page: the sharing-code marker, the ordered match patterns, where the
betslip display lives, and which elements carry odds. ``select_ruleset`` never
fails; anything it does not recognise gets the generic ruleset.
"""

import re
from dataclasses import dataclass
from dataclasses import field
from typing import Pattern
from typing import Tuple
from typing import Union

from ..models import Market
from ..models import Platform

# A team name: starts with a capital, words joined by spaces or tabs only, so a
# name never runs across a line break. At most six words of 40 characters each,
# which keeps every match attempt short on long single-line text.
TEAM = r"[A-ZÀ-Þ][\w.'&]{0,39}(?:[ \t]+[\w.'&()/-]{1,40}){0,5}?"
PREDICTION_TOKENS = r"(?i:Home|Away|Draw|Over|Under|Yes|No|GG|NG|1X|X2|12|1|X|2)"
# Pattern end: end of line, an odds figure, or a column separator.
LINE_END = r"(?=[ \t]*(?:$|\d|\||•))"


@dataclass(frozen=True)
class MatchPattern:
    pattern_id: str
    regex: Pattern
    market: Market = Market.H2H


@dataclass(frozen=True)
class ParserRuleset:
    platform: Platform
    marker_patterns: Tuple[str, ...]
    match_patterns: Tuple[MatchPattern, ...]
    betslip_locators: Tuple[str, ...] = ()
    odds_selectors: Tuple[str, ...] = ()
    odds_attributes: Tuple[str, ...] = ("data-odds", "data-odd", "data-price", "data-value")
    header_anchors: Tuple[str, ...] = (r"Booking\s+Code", r"Sharing\s+Code")
    secondary_markets: Tuple[str, ...] = field(
        default=(r"1X2", r"Over", r"Under", r"BTTS", r"GG", r"NG", r"Handicap", r"Double\s+Chance")
    )

    def marker_regexes(self, booking_code: str):
        """Marker regexes in preference order, with the booking code substituted."""
        code = re.escape(booking_code or "")
        compiled = []
        for template in self.marker_patterns:
            if "{code}" in template and not code:
                continue
            compiled.append(re.compile(template.replace("{code}", code), re.IGNORECASE))
        return compiled


def _compile(pattern: str) -> Pattern:
    return re.compile(pattern, re.MULTILINE)


SPORTY_PREMATCH = MatchPattern(
    "sporty_prematch",
    _compile(
        rf"(?P<home>{TEAM})\s+-\s+(?P<away>{TEAM})\s+(?i:prematch|live)\s+(?P<prediction>{PREDICTION_TOKENS})"
    ),
)
TEAM_VS_TEAM = MatchPattern(
    "team_vs_team",
    _compile(rf"(?P<home>{TEAM})\s+(?:vs\.?|VS\.?|v|V)\s+(?P<away>{TEAM}){LINE_END}"),
)
TEAM_DASH_TEAM = MatchPattern(
    "team_dash_team",
    _compile(rf"(?P<home>{TEAM})[ \t]+[-–][ \t]+(?P<away>{TEAM}){LINE_END}"),
)

SHARE_MARKERS = (r"Sharing\s+Code\s*:?\s*{code}", r"Sharing\s+Code")
BOOKING_MARKERS = (r"Booking\s+Code\s*:?\s*{code}", r"(?:Sharing|Booking)\s+Code")

GENERIC_BETSLIP_LOCATORS = (
    '[class*="betslip"]',
    '[id*="betslip"]',
    '[class*="bet-slip"]',
    '[class*="slip"]',
    '[id*="bet"]',
)
GENERIC_ODDS_SELECTORS = ('[class*="odds"]', '[class*="odd"]', "[data-odds]")

GENERIC_RULESET = ParserRuleset(
    platform=Platform.OTHER,
    marker_patterns=BOOKING_MARKERS,
    match_patterns=(TEAM_VS_TEAM,),
    betslip_locators=GENERIC_BETSLIP_LOCATORS,
    odds_selectors=GENERIC_ODDS_SELECTORS,
)

RULESETS = {
    Platform.SPORTYBET: ParserRuleset(
        platform=Platform.SPORTYBET,
        marker_patterns=SHARE_MARKERS,
        match_patterns=(SPORTY_PREMATCH,),
        betslip_locators=(".m-betslip-wrapper", '[class*="betslip"]', '[id*="bet"]'),
        odds_selectors=('[class*="total-odds"]', '[class*="odds"]', "[data-odds]"),
    ),
    Platform.BET9JA: ParserRuleset(
        platform=Platform.BET9JA,
        marker_patterns=BOOKING_MARKERS,
        match_patterns=(TEAM_DASH_TEAM, TEAM_VS_TEAM),
        betslip_locators=(".betslip", '[class*="betslip"]', '[class*="coupon"]'),
        odds_selectors=GENERIC_ODDS_SELECTORS,
    ),
    Platform.ONEXBET: ParserRuleset(
        platform=Platform.ONEXBET,
        marker_patterns=BOOKING_MARKERS,
        match_patterns=(TEAM_DASH_TEAM, TEAM_VS_TEAM),
        betslip_locators=('[class*="coupon"]', '[class*="betslip"]'),
        odds_selectors=('[class*="coef"]',) + GENERIC_ODDS_SELECTORS,
        odds_attributes=("data-coef", "data-odds", "data-price"),
    ),
    Platform.BETWAY: ParserRuleset(
        platform=Platform.BETWAY,
        marker_patterns=BOOKING_MARKERS,
        match_patterns=(TEAM_VS_TEAM, TEAM_DASH_TEAM),
        betslip_locators=('[class*="betslip"]', '[data-testid*="betslip"]'),
        odds_selectors=GENERIC_ODDS_SELECTORS,
    ),
    Platform.MOZZARTBET: ParserRuleset(
        platform=Platform.MOZZARTBET,
        marker_patterns=BOOKING_MARKERS,
        match_patterns=(TEAM_DASH_TEAM, TEAM_VS_TEAM),
        betslip_locators=('[class*="ticket"]', '[class*="betslip"]'),
        odds_selectors=GENERIC_ODDS_SELECTORS,
    ),
}


def select_ruleset(platform: Union[Platform, str, None]) -> ParserRuleset:
    """Returns the ruleset for a platform. Unknown platforms get the generic team-vs-team ruleset."""
    return RULESETS.get(Platform.coerce(platform), GENERIC_RULESET)
