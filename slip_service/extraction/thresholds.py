# slip_service/extraction/thresholds.py
"""Named heuristic constants for the extraction engine."""

from dataclasses import dataclass
from dataclasses import replace


@dataclass(frozen=True)
class ExtractionThresholds:
    # Odds ranges
    min_odds: float = 1.01
    max_odds: float = 1000.0
    max_total_odds: float = 1_000_000.0

    # Match extraction
    min_team_name_length: int = 3
    document_window_cap: int = 100_000
    betslip_min_text_length: int = 20
    betslip_lookahead: int = 300

    # Odds resolution spans
    betslip_odds_span: int = 300
    dual_team_span: int = 200
    proximity_window: int = 400
    market_odds_span: int = 100

    # Totals zones
    header_zone_before: int = 200
    header_zone_after: int = 800
    summary_zone_chars: int = 300
    summary_keyword_reach: int = 60
    max_bonus_lookback: int = 200
    team_context_chars: int = 50

    # Date plausibility, in hours from now
    stale_after_hours: float = -24.0
    suspicious_past_hours: float = -2.0
    suspicious_future_hours: float = 8760.0

    @classmethod
    def from_settings(cls, settings) -> "ExtractionThresholds":
        return cls(
            min_odds=settings.ODDS_MIN,
            max_odds=settings.ODDS_MAX,
            max_total_odds=settings.MAX_TOTAL_ODDS,
            min_team_name_length=settings.MIN_TEAM_NAME_LENGTH,
            document_window_cap=settings.DOCUMENT_WINDOW_CAP,
            proximity_window=settings.PROXIMITY_WINDOW,
            team_context_chars=settings.TEAM_CONTEXT_CHARS,
        )

    def override(self, **changes) -> "ExtractionThresholds":
        return replace(self, **changes)

    def is_match_odds(self, value) -> bool:
        return value is not None and self.min_odds <= value <= self.max_odds

    def is_total_odds(self, value) -> bool:
        return value is not None and self.min_odds <= value <= self.max_total_odds


DEFAULT_THRESHOLDS = ExtractionThresholds()
