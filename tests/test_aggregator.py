# tests/test_aggregator.py
import time
from datetime import datetime
from datetime import timezone

import pytest

from slip_service.extraction import aggregate
from slip_service.extraction import dedupe_matches
from slip_service.extraction import extract_slip
from slip_service.models import Platform
from slip_service.models import Prediction
from slip_service.models import ResolvedMatch
from slip_service.models import SlipTotals
from slip_service.team_aliases import InMemoryTeamLookup
from tests.utils import FIXED_NOW
from tests.utils import read_fixture
from tests.utils import sporty_line
from tests.utils import sporty_text_slip


def resolved(home="Arsenal", away="Chelsea", odds=1.85, match_date=None):
    return ResolvedMatch(
        home_team=home,
        away_team=away,
        prediction=Prediction.HOME,
        odds=odds,
        match_date=match_date,
    )


# --- SportyBet text scenarios ---


def test_header_odds_become_slip_total():
    text = sporty_text_slip([sporty_line("Arsenal", "Chelsea")], header_odds="3.40")

    record = extract_slip(Platform.SPORTYBET, "ABC123", text, now=FIXED_NOW)

    assert len(record.matches) == 1
    match = record.matches[0]
    assert (match.home_team, match.away_team) == ("Arsenal", "Chelsea")
    assert match.prediction == Prediction.HOME
    assert match.odds == 1.85
    assert record.total_odds == 3.40


def test_total_falls_back_to_product_without_header_odds():
    text = sporty_text_slip([sporty_line("Arsenal", "Chelsea")])

    record = extract_slip(Platform.SPORTYBET, "ABC123", text, now=FIXED_NOW)

    assert record.total_odds == 1.85


def test_kickoff_date_near_match_is_attached():
    line = sporty_line("Arsenal", "Chelsea").ljust(50) + "22/12/2025 18:45"
    text = sporty_text_slip([line])

    record = extract_slip(Platform.SPORTYBET, "ABC123", text, now=FIXED_NOW)

    match = record.matches[0]
    assert match.match_date == datetime(2025, 12, 22, 18, 45, tzinfo=timezone.utc)
    assert match.match_date_suspicious is False
    assert record.earliest_match_date == match.match_date


def test_stale_kickoff_date_is_dropped():
    line = sporty_line("Arsenal", "Chelsea").ljust(50) + "22/12/2025 18:45"
    text = sporty_text_slip([line])
    later = datetime(2025, 12, 24, 0, 45, tzinfo=timezone.utc)

    record = extract_slip(Platform.SPORTYBET, "ABC123", text, now=later)

    assert record.matches[0].match_date is None
    assert record.earliest_match_date is None


def test_dotted_kickoff_date_is_not_read_as_odds():
    text = "Booking Code B9J1\n22.12.2025 18:45\nArsenal - Chelsea\n"

    record = extract_slip(Platform.BET9JA, "B9J1", text, now=FIXED_NOW)

    match = record.matches[0]
    assert match.odds == 1.0
    assert match.match_date == datetime(2025, 12, 22, 18, 45, tzinfo=timezone.utc)


def test_betslip_display_fallback_builds_record():
    record = extract_slip(
        Platform.SPORTYBET, "XYZ789", read_fixture("sportybet_betslip_only.html"), now=FIXED_NOW
    )

    assert len(record.matches) == 1
    match = record.matches[0]
    assert match.prediction == Prediction.AWAY
    assert match.odds == 1.38
    assert record.total_odds == 1.38


def test_empty_document_yields_empty_record():
    record = extract_slip(Platform.SPORTYBET, "ABC123", "", now=FIXED_NOW)

    assert record.matches == []
    assert record.total_odds is None
    assert record.earliest_match_date is None


def test_long_single_line_document_is_parsed_quickly():
    started = time.perf_counter()

    record = extract_slip(Platform.BET9JA, "B9J1", "Word " * 20000, now=FIXED_NOW)

    assert record.matches == []
    assert time.perf_counter() - started < 5


# --- Deduplication ---


def test_same_fixture_on_two_dates_is_kept_twice():
    first = "22/12/2025 18:45 " + sporty_line("Arsenal", "Chelsea")
    second = "29/12/2025 20:00 " + sporty_line("Arsenal", "Chelsea")
    text = sporty_text_slip([first, "." * 450, second])

    record = extract_slip(Platform.SPORTYBET, "ABC123", text, now=FIXED_NOW)

    assert len(record.matches) == 2
    assert [m.match_date.day for m in record.matches] == [22, 29]
    assert record.earliest_match_date == datetime(2025, 12, 22, 18, 45, tzinfo=timezone.utc)


def test_identical_entries_from_two_patterns_collapse():
    text = "Arsenal - Chelsea 1.85\n" + ("." * 500) + "\nArsenal v Chelsea 1.85"

    record = extract_slip(Platform.BET9JA, "B9J1", text, now=FIXED_NOW)

    assert len(record.matches) == 1
    assert record.matches[0].odds == 1.85


def test_dedupe_keeps_first_of_each_tuple():
    kickoff = datetime(2025, 12, 22, 18, 45, tzinfo=timezone.utc)
    matches = [
        resolved(odds=1.85),
        resolved(odds=1.85),
        resolved(odds=1.90),
        resolved(odds=1.85, match_date=kickoff),
    ]

    unique = dedupe_matches(matches)

    assert unique == [matches[0], matches[2], matches[3]]
    assert unique[0] is matches[0]


def test_aggregate_sets_earliest_date():
    early = datetime(2025, 12, 21, 15, 0, tzinfo=timezone.utc)
    late = datetime(2025, 12, 28, 15, 0, tzinfo=timezone.utc)
    matches = [resolved(match_date=late), resolved(home="Roma", match_date=early), resolved(home="Lazio")]

    record = aggregate(Platform.BET9JA, "B9J1", matches, SlipTotals(total_odds=5.0, stake=2.0))

    assert record.earliest_match_date == early
    assert record.total_odds == 5.0
    assert record.stake == 2.0
    assert record.potential_win is None


# --- Whole-slip properties ---


def test_product_of_match_odds_when_no_total_is_shown():
    text = "Napoli - Roma 1.50\nInter - Milan 2.00\nLazio - Torino 3.95"

    record = extract_slip(Platform.BET9JA, "B9J1", text, now=FIXED_NOW)

    assert [m.odds for m in record.matches] == [1.50, 2.00, 3.95]
    assert record.total_odds == pytest.approx(11.85)


def test_extraction_is_repeatable():
    document = read_fixture("sportybet_share_page.html")

    first = extract_slip(Platform.SPORTYBET, "ABC123", document, now=FIXED_NOW)
    second = extract_slip(Platform.SPORTYBET, "ABC123", document, now=FIXED_NOW)

    assert first == second


def test_unknown_platform_uses_generic_rules():
    record = extract_slip("somebook", "CODE1", "Arsenal v Chelsea 2.10", now=FIXED_NOW)

    assert record.platform == Platform.OTHER
    assert record.matches[0].odds == 2.10


# --- Fixture pages ---


def test_sportybet_share_page():
    record = extract_slip(Platform.SPORTYBET, "ABC123", read_fixture("sportybet_share_page.html"), now=FIXED_NOW)

    assert [(m.home_team, m.away_team, m.prediction, m.odds) for m in record.matches] == [
        ("Arsenal", "Chelsea", Prediction.HOME, 1.85),
        ("Liverpool", "Everton", Prediction.AWAY, 2.08),
    ]
    assert [m.match_date for m in record.matches] == [
        datetime(2025, 12, 22, 18, 45, tzinfo=timezone.utc),
        datetime(2025, 12, 23, 20, 0, tzinfo=timezone.utc),
    ]
    assert record.total_odds == 3.85
    assert record.stake == 10.0
    assert record.potential_win == 38.5
    assert record.earliest_match_date == datetime(2025, 12, 22, 18, 45, tzinfo=timezone.utc)


def test_bet9ja_share_page():
    record = extract_slip(Platform.BET9JA, "B9J4321", read_fixture("bet9ja_share_page.html"), now=FIXED_NOW)

    assert [(m.home_team, m.away_team, m.prediction, m.odds) for m in record.matches] == [
        ("Napoli", "Roma", Prediction.HOME, 2.15),
        ("Inter", "Milan", Prediction.HOME, 3.30),
    ]
    assert record.total_odds == 7.10
    assert record.stake == 1000.0
    assert record.potential_win == 7100.0


# --- Team ids ---


def test_team_ids_come_from_lookup():
    lookup = InMemoryTeamLookup(entries={"Arsenal FC": "42"})
    text = sporty_text_slip([sporty_line("Arsenal", "Chelsea")])

    record = extract_slip(Platform.SPORTYBET, "ABC123", text, team_lookup=lookup, now=FIXED_NOW)

    assert record.matches[0].home_team_id == "42"
    assert record.matches[0].away_team_id is None
    assert lookup.stats("Arsenal")["match_count"] == 2
