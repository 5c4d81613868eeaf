"""Keyword rules and tag normalization."""

from ezd6_engine.rules.keyword_rules import (
    BASE_KEYWORD_RULE,
    KEYWORD_RULES,
    choose_die_kind,
    extract_keyword,
    known_keywords,
    resolve_keyword_rule,
)
from ezd6_engine.rules.tag_options import (
    DEFAULT_TAG_OPTIONS,
    HEALTH_TAG,
    KARMA_TAG,
    STRESS_TAG,
    get_tag_options,
    make_normalizer,
    normalize_keyword,
    normalize_optional_tag,
    normalize_tag,
)

__all__ = [
    "BASE_KEYWORD_RULE",
    "KEYWORD_RULES",
    "choose_die_kind",
    "extract_keyword",
    "known_keywords",
    "resolve_keyword_rule",
    "DEFAULT_TAG_OPTIONS",
    "HEALTH_TAG",
    "KARMA_TAG",
    "STRESS_TAG",
    "get_tag_options",
    "make_normalizer",
    "normalize_keyword",
    "normalize_optional_tag",
    "normalize_tag",
]
