# slip_service/extraction/aggregator.py
"""
Extraction pipeline: ruleset → candidates → per-match odds and date →
dedup reduce → slip totals → Slip Record.

``extract_slip`` is a pure function of its inputs. Given the same document,
booking code, platform and ``now``, it returns an equal record.
"""

from datetime import datetime
from datetime import timezone
from typing import Iterable
from typing import List
from typing import Optional
from typing import Union

import structlog

from ..models import Platform
from ..models import ResolvedMatch
from ..models import SlipRecord
from ..models import SlipTotals
from ..team_aliases import TeamLookup
from ..team_aliases import lookup_team_id
from ..utils.text import clean_team_name
from ..utils.text import normalize_prediction
from .dates import extract_match_date
from .document import SlipDocument
from .matches import extract_matches
from .matches import locate_betslip_region
from .odds import UNRESOLVED_ODDS
from .odds import resolve_odds
from .rulesets import select_ruleset
from .thresholds import DEFAULT_THRESHOLDS
from .thresholds import ExtractionThresholds
from .totals import extract_totals

log = structlog.get_logger(__name__)


def dedupe_matches(matches: Iterable[ResolvedMatch]) -> List[ResolvedMatch]:
    """Keeps the first of each (home, away, date, odds) tuple, in the order given."""
    seen = set()
    unique = []
    for match in matches:
        key = match.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(match)
    return unique


def aggregate(
    platform: Platform,
    booking_code: str,
    matches: List[ResolvedMatch],
    totals: SlipTotals,
) -> SlipRecord:
    dated = [match.match_date for match in matches if match.match_date is not None]
    return SlipRecord(
        platform=platform,
        booking_code=booking_code,
        matches=matches,
        total_odds=totals.total_odds,
        stake=totals.stake,
        potential_win=totals.potential_win,
        earliest_match_date=min(dated) if dated else None,
    )


def extract_slip(
    platform: Union[Platform, str],
    booking_code: str,
    document: Union[SlipDocument, str],
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
    team_lookup: Optional[TeamLookup] = None,
    now: Optional[datetime] = None,
) -> SlipRecord:
    platform = Platform.coerce(platform)
    if not isinstance(document, SlipDocument):
        document = SlipDocument(document)
    now = now or datetime.now(timezone.utc)
    ruleset = select_ruleset(platform)

    candidates = extract_matches(document, ruleset, booking_code, thresholds)
    region = locate_betslip_region(document, ruleset, thresholds)
    betslip_text = region[1] if region else None

    resolved = []
    for candidate in candidates:
        home = clean_team_name(candidate.home_team_raw)
        away = clean_team_name(candidate.away_team_raw)
        odds = resolve_odds(
            home,
            away,
            candidate.source_offset,
            document,
            ruleset,
            thresholds,
            betslip_text=betslip_text,
        )
        kickoff = extract_match_date(candidate.source_offset, document.text, now, thresholds)
        resolved.append(
            ResolvedMatch(
                home_team=home,
                away_team=away,
                prediction=normalize_prediction(candidate.prediction_raw),
                market=candidate.market,
                odds=odds,
                match_date=kickoff.value if kickoff else None,
                match_date_suspicious=kickoff.suspicious if kickoff else False,
                home_team_id=lookup_team_id(team_lookup, home),
                away_team_id=lookup_team_id(team_lookup, away),
            )
        )

    matches = dedupe_matches(resolved)
    first_offset = candidates[0].source_offset if candidates else None
    totals = extract_totals(document, matches, ruleset, thresholds, first_offset)

    if not matches:
        log.info("no_matches_found", platform=platform.value, booking_code=booking_code)
    elif any(match.odds == UNRESOLVED_ODDS for match in matches) or totals.total_odds is None:
        log.info(
            "partial_extraction",
            platform=platform.value,
            booking_code=booking_code,
            matches=len(matches),
            total_odds=totals.total_odds,
        )
    else:
        log.info(
            "slip_extracted",
            platform=platform.value,
            booking_code=booking_code,
            matches=len(matches),
            total_odds=totals.total_odds,
        )
    return aggregate(platform, booking_code, matches, totals)
