from .aggregator import aggregate
from .aggregator import dedupe_matches
from .aggregator import extract_slip
from .document import SlipDocument
from .rulesets import select_ruleset
from .thresholds import DEFAULT_THRESHOLDS
from .thresholds import ExtractionThresholds

__all__ = [
    "aggregate",
    "dedupe_matches",
    "extract_slip",
    "select_ruleset",
    "SlipDocument",
    "ExtractionThresholds",
    "DEFAULT_THRESHOLDS",
]
