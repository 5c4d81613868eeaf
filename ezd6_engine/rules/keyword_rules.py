"""
Keyword rule table.

A roll keyword (#brutal, #magick, ...) decides the crit threshold of a
roll, whether a rolled 1 spoils the whole pool, and which follow-up actions
(karma, confirm, burning ones) a player may take. Rules are partial
overrides layered as: base < "default" entry < keyword entry.
"""

from dataclasses import replace
from typing import Any, Optional
import re

from ezd6_engine.data_models import DieKind, KeywordRule


BASE_KEYWORD_RULE = KeywordRule(
    allow_karma=True,
    allow_confirm=True,
    crit_value=6,
    one_always_fail=False,
    allow_burn_ones=False,
    roll_power=False,
    roll_dialogue="",
)

DEFAULT_KEYWORD = "default"

# Partial overrides; a missing field keeps the previous layer's value.
KEYWORD_RULES: dict[str, dict[str, Any]] = {
    "default": {"allow_karma": True, "allow_confirm": True, "crit_value": 6},
    "magick": {
        "allow_karma": False,
        "allow_confirm": False,
        "crit_value": 6,
        "one_always_fail": True,
        "allow_burn_ones": True,
        "roll_power": True,
        "roll_dialogue": "Choose power level",
    },
    "miracle": {
        "allow_karma": False,
        "allow_confirm": False,
        "crit_value": 6,
        "one_always_fail": True,
        "roll_power": True,
        "roll_dialogue": "Choose prayer urgency",
    },
    "attack": {"allow_karma": True, "allow_confirm": True, "crit_value": 6},
    "brutal": {"allow_karma": True, "allow_confirm": True, "crit_value": 5},
    "fliptoffate": {"allow_karma": False, "allow_confirm": False, "crit_value": 4},
    "anythingbut1": {"allow_karma": False, "allow_confirm": False, "crit_value": 2},
    "target3": {"allow_karma": True, "allow_confirm": False, "crit_value": 3},
    "target4": {"allow_karma": True, "allow_confirm": False, "crit_value": 4},
    "target5": {"allow_karma": True, "allow_confirm": False, "crit_value": 5},
    "target6": {"allow_karma": True, "allow_confirm": False, "crit_value": 6},
}

_HASH_KEYWORD = re.compile(r"#([A-Za-z0-9_-]+)")


def known_keywords() -> list[str]:
    """Keywords with an entry in the table, in table order."""
    return list(KEYWORD_RULES)


def resolve_keyword_rule(keyword: Optional[str]) -> KeywordRule:
    """
    Resolve the full rule for a keyword.

    Total over all input: an unknown keyword (or None) gets the base record
    overlaid with the "default" entry. Matching is case-sensitive.
    """
    rule = replace(BASE_KEYWORD_RULE, **KEYWORD_RULES.get(DEFAULT_KEYWORD, {}))
    override = KEYWORD_RULES.get(keyword or "", {})
    return replace(rule, **override) if override else rule


def extract_keyword(text: Optional[str]) -> Optional[str]:
    """
    Find the roll keyword in free flavor text.

    A '#word' token wins; otherwise the first known keyword appearing as a
    whole word. Returns the lower-cased keyword or None.
    """
    if not text:
        return None

    match = _HASH_KEYWORD.search(text)
    if match:
        return match.group(1).lower()

    lowered = text.lower()
    for key in KEYWORD_RULES:
        if key == DEFAULT_KEYWORD:
            continue
        if re.search(rf"\b{re.escape(key)}\b", lowered):
            return key

    return None


def choose_die_kind(value: int, crit_value: int) -> DieKind:
    """Colour of a highlighted die: green on a crit, red on a 1."""
    if value >= crit_value:
        return DieKind.GREEN
    if value == 1:
        return DieKind.RED
    return DieKind.GREY
