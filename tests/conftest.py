"""
Test Configuration

Shared fixtures: a small pinned rule set whose encodings can be traced by hand.
"""

import sys
from pathlib import Path

import pytest

# Add the parent directory to path to import phonetic_names
sys.path.insert(0, str(Path(__file__).parent.parent))

from phonetic_names.beider_morse import BuiltinRuleSource, RuleTableRegistry

PINNED_LANGUAGES = {
    "gen": ("english", "german"),
    "ash": ("english", "german"),
    "sep": ("english", "german"),
}

PINNED_HEURISTICS = {
    "gen": (
        ("sch", "german", True),
        ("w", "german", True),
        ("th", "english", True),
        ("k", "english", False),
    ),
}

_GENERIC_TABLES = {
    "gen_rules_any": (
        ("sch", "", "", "(S[german]|sk[english])"),
        ("c", "", "[ei]", "ts"),
        ("c", "", "", "k"),
        ("w", "", "", "(v[german]|w[english])"),
        ("a", "", "$", "(a|ah)"),
    ),
    "gen_rules_english": (
        ("sh", "", "", "S"),
        ("th", "", "", "t"),
    ),
    "gen_rules_german": (
        ("sch", "", "", "S"),
        ("w", "", "", "v"),
    ),
    "gen_approx_common": (
        ("ah", "", "$", "a"),
        ("kk", "", "", "k"),
    ),
    "gen_approx_any": (),
    "gen_approx_english": (("S", "", "", "s"),),
    "gen_approx_german": (),
    "gen_exact_common": (),
    "gen_exact_any": (),
    "gen_exact_english": (),
    "gen_exact_german": (),
}


def _pinned_tables():
    tables = dict(_GENERIC_TABLES)
    # Ashkenazi and Sephardic share the generic rules
    for convention in ("ash", "sep"):
        for name in _GENERIC_TABLES:
            tables[convention + name[len("gen") :]] = ("#include " + name,)
    return tables


PINNED_TABLES = _pinned_tables()


@pytest.fixture
def pinned_source():
    """Rule source over the pinned tables."""
    return BuiltinRuleSource(PINNED_TABLES, PINNED_LANGUAGES, PINNED_HEURISTICS)


@pytest.fixture
def pinned_registry(pinned_source):
    """Fresh registry over the pinned tables."""
    return RuleTableRegistry(pinned_source)
