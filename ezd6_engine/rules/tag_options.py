"""
Tag options and tag normalization.

Tags name keywords and resources (#brutal, #karma, ...). Tag-linked
resources and keyword lookups both compare normalized tags, so every caller
goes through normalize_tag.
"""

from typing import Callable, Iterable, Optional
import re


TagNormalizer = Callable[[str], str]

FALLBACK_TAG = "#task"

# Plain decimal numbers only; "1_0" and "0x3" are tags, "2.0" is index 2
_NUMERIC = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

DEFAULT_TAG_OPTIONS: tuple[str, ...] = (
    "#task",
    "#default",
    "#attack",
    "#brutal",
    "#magick",
    "#miracle",
    "#scroll",
    "#karma",
    "#stress",
    "#health",
    "#heroDie",
    "#fliptOfFate",
    "#anythingBut1",
    "#magicksave",
    "#target3",
    "#target4",
    "#target5",
    "#target6",
)

KARMA_TAG = "#karma"
STRESS_TAG = "#stress"
HEALTH_TAG = "#health"


def get_tag_options(custom_tags: Optional[Iterable[str]] = None) -> list[str]:
    """Default tags followed by custom ones, without duplicates."""
    options = list(DEFAULT_TAG_OPTIONS)
    for tag in custom_tags or ():
        if isinstance(tag, str) and tag not in options:
            options.append(tag)
    return options


def _option_index(text: str) -> Optional[int]:
    """Integer value of a numeric tag, None for anything else."""
    if not _NUMERIC.fullmatch(text):
        return None
    number = float(text)
    return int(number) if number.is_integer() else None


def normalize_tag(tag: object, options: Optional[list[str]] = None) -> str:
    """
    Normalize a tag for comparison.

    Trims and lower-cases the tag and guarantees a leading '#'. A bare
    integer picks the Nth entry of the tag options. Empty input is '#task'.
    """
    if options is None:
        options = list(DEFAULT_TAG_OPTIONS)
    trimmed = str(tag if tag is not None else "").strip()
    if not trimmed:
        return FALLBACK_TAG

    index = _option_index(trimmed)
    if index is not None and 0 <= index < len(options) and options[index]:
        trimmed = options[index].strip()

    lowered = trimmed.lower()
    return lowered if lowered.startswith("#") else f"#{lowered}"


def normalize_optional_tag(tag: object, normalize: Optional[TagNormalizer] = None) -> str:
    """Like normalize_tag, but blank input stays blank instead of '#task'."""
    if tag is None:
        return ""
    text = str(tag).strip()
    if not text:
        return ""
    return (normalize or normalize_tag)(text)


def normalize_keyword(tag: object) -> str:
    """Keyword table key for a tag: '#Brutal' -> 'brutal', '' -> 'default'."""
    text = str(tag if tag is not None else "").strip()
    if not text:
        return "default"
    return normalize_tag(text)[1:] or "default"


def make_normalizer(custom_tags: Optional[Iterable[str]] = None) -> TagNormalizer:
    """Bind normalize_tag to a configured tag list."""
    options = get_tag_options(custom_tags)

    def _normalize(tag: str) -> str:
        return normalize_tag(tag, options)

    return _normalize
