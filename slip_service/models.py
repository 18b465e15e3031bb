# slip_service/models.py

from datetime import datetime
from enum import Enum
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class SlipBaseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Enumerations ---
class Platform(str, Enum):
    SPORTYBET = "SportyBet"
    BET9JA = "Bet9ja"
    ONEXBET = "1xBet"
    BETWAY = "Betway"
    MOZZARTBET = "MozzartBet"
    OTHER = "Other"

    @classmethod
    def coerce(cls, value) -> "Platform":
        """Resolves a platform from its value or name, case-insensitively. Unknown values map to OTHER."""
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member
        return cls.OTHER


class Prediction(str, Enum):
    HOME = "home"
    AWAY = "away"
    DRAW = "draw"
    OVER = "over"
    UNDER = "under"
    YES = "yes"
    NO = "no"


class Market(str, Enum):
    H2H = "h2h"
    TOTALS = "totals"
    BTTS = "btts"
    SPREADS = "spreads"
    DOUBLE_CHANCE = "double_chance"


# --- Extraction Data Models ---
class CandidateMatch(SlipBaseModel):
    """A raw, unvalidated team pairing found in the document."""

    home_team_raw: str = Field(..., alias="homeTeamRaw")
    away_team_raw: str = Field(..., alias="awayTeamRaw")
    prediction_raw: Optional[str] = Field(None, alias="predictionRaw")
    source_offset: int = Field(..., alias="sourceOffset")
    pattern_id: str = Field(..., alias="patternId")
    market: Market = Market.H2H


class ResolvedMatch(SlipBaseModel):
    home_team: str = Field(..., alias="homeTeam")
    away_team: str = Field(..., alias="awayTeam")
    prediction: Prediction
    market: Market = Market.H2H
    odds: float
    match_date: Optional[datetime] = Field(None, alias="matchDate")
    match_date_suspicious: bool = Field(False, alias="matchDateSuspicious")
    home_team_id: Optional[str] = Field(None, alias="homeTeamId")
    away_team_id: Optional[str] = Field(None, alias="awayTeamId")

    def dedup_key(self) -> tuple:
        date_key = self.match_date.isoformat() if self.match_date else "nodate"
        return (self.home_team, self.away_team, date_key, self.odds)


class SlipTotals(SlipBaseModel):
    total_odds: Optional[float] = Field(None, alias="totalOdds")
    stake: Optional[float] = None
    potential_win: Optional[float] = Field(None, alias="potentialWin")


class SlipRecord(SlipBaseModel):
    platform: Platform
    booking_code: str = Field(..., alias="bookingCode")
    matches: List[ResolvedMatch] = []
    total_odds: Optional[float] = Field(None, alias="totalOdds")
    stake: Optional[float] = None
    potential_win: Optional[float] = Field(None, alias="potentialWin")
    earliest_match_date: Optional[datetime] = Field(None, alias="earliestMatchDate")


# --- API Request Models ---
MAX_DOCUMENT_LENGTH = 2_000_000
MAX_SLIP_TEXT_LENGTH = 100_000


class ScrapeRequest(SlipBaseModel):
    platform: Platform
    booking_code: str = Field(..., alias="bookingCode", min_length=3, max_length=32)
    url: Optional[str] = None


class ParseDocumentRequest(SlipBaseModel):
    platform: Platform
    booking_code: str = Field(..., alias="bookingCode", min_length=3, max_length=32)
    document: str = Field(..., min_length=1, max_length=MAX_DOCUMENT_LENGTH)


class ParseTextRequest(SlipBaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_SLIP_TEXT_LENGTH)
    platform: Optional[Platform] = None
    booking_code: Optional[str] = Field(None, alias="bookingCode")
