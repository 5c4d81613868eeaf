"""
Dice pool evaluation.

Given already-rolled d6 values, decides which die is the active result,
which dice are highlighted, and whether the karma (+1) and confirm
follow-ups are currently legal.

Evaluation Rules:
- kh keeps the first highest available die, kl the first lowest
- Burned dice never count, but stay in the pool for display
- A locked result index forces the result while its die is unburned
- Fail-on-one keywords make any available 1 spoil a kh pool
- Highlight and transparency are derived together in one final pass
"""

from typing import Optional, Sequence
import logging

from ezd6_engine.data_models import (
    Die,
    EngineError,
    KeepMode,
    KeywordRule,
    ParsedRoll,
    coerce_int,
)
from ezd6_engine.rules.keyword_rules import resolve_keyword_rule

logger = logging.getLogger(__name__)

MIN_DIE_VALUE = 1
MAX_DIE_VALUE = 6


class InvalidDieValueError(EngineError):
    """A die value outside 1..6 entered evaluation."""
    pass


def _checked_values(values: Sequence[int], strict: bool) -> list[int]:
    """Clamp die values into 1..6, or raise in strict mode."""
    checked: list[int] = []
    for index, raw in enumerate(values):
        value = coerce_int(raw)
        if value is not None and MIN_DIE_VALUE <= value <= MAX_DIE_VALUE:
            checked.append(value)
            continue
        if strict:
            raise InvalidDieValueError(
                f"Die {index} has value {raw!r}, expected {MIN_DIE_VALUE}..{MAX_DIE_VALUE}"
            )
        clamped = MIN_DIE_VALUE if value is None else max(MIN_DIE_VALUE, min(MAX_DIE_VALUE, value))
        logger.warning(f"Die {index} value {raw!r} out of range, clamped to {clamped}")
        checked.append(clamped)
    return checked


def _select_result(
    values: list[int],
    available: list[int],
    mode: KeepMode,
    burned: list[bool],
    locked_index: Optional[int],
) -> Optional[int]:
    if locked_index is not None and 0 <= locked_index < len(values) and not burned[locked_index]:
        return locked_index
    if not available:
        return None
    pick = min if mode == KeepMode.KEEP_LOWEST else max
    target = pick(values[i] for i in available)
    return next(i for i in available if values[i] == target)


def _highlighted(
    values: list[int],
    available: list[int],
    mode: KeepMode,
    rule: KeywordRule,
    result_index: Optional[int],
    has_ones: bool,
    rolled_all_crit: bool,
) -> set[int]:
    """Indices of the dice that count toward the outcome."""
    if result_index is None:
        return set()

    crit = rule.crit_value
    active = values[result_index]
    ones = {i for i in available if values[i] == 1}
    crits = {i for i in available if values[i] >= crit}
    highlight = {result_index}

    if mode == KeepMode.KEEP_LOWEST:
        if active == 1:
            highlight |= ones
        elif active >= crit and rolled_all_crit:
            highlight |= crits
    else:
        if rule.one_always_fail and has_ones:
            highlight |= ones
        elif active >= crit:
            highlight |= crits
        elif active == 1:
            highlight |= ones

    return highlight


def _build_dice(values: list[int], burned: list[bool], highlight: set[int]) -> tuple[Die, ...]:
    """Derive highlight and transparency for every die in one pass."""
    return tuple(
        Die(
            value=value,
            highlight=index in highlight,
            transparent=burned[index] or index not in highlight,
        )
        for index, value in enumerate(values)
    )


def evaluate_dice(
    values: Sequence[int],
    keyword: str = "default",
    mode: KeepMode = KeepMode.KEEP_HIGHEST,
    burned: Optional[Sequence[bool]] = None,
    locked_index: Optional[int] = None,
    rolled_all_crit: bool = False,
    strict: bool = False,
) -> ParsedRoll:
    """
    Evaluate a rolled pool.

    Args:
        values: Rolled die values (1..6), in roll order
        keyword: Roll keyword selecting the rule (see resolve_keyword_rule)
        mode: Keep highest ("kh") or keep lowest ("kl")
        burned: Per-die burn flags; missing entries count as unburned
        locked_index: Result index to force while its die is unburned
        rolled_all_crit: The original, pre-burn pool was all crits. Only
            used for the kl all-crit highlight; never inferred here.
        strict: Raise InvalidDieValueError on out-of-range values instead
            of clamping them

    Returns:
        A new ParsedRoll; identical inputs give identical output
    """
    rule = resolve_keyword_rule(keyword)
    keep = KeepMode.parse(mode)
    dice_values = _checked_values(values, strict)
    burn_flags = [bool(flag) for flag in (burned or ())][: len(dice_values)]
    burn_flags += [False] * (len(dice_values) - len(burn_flags))

    available = [i for i in range(len(dice_values)) if not burn_flags[i]]
    result_index = _select_result(dice_values, available, keep, burn_flags, locked_index)
    active_value = 0 if result_index is None else dice_values[result_index]
    has_ones = any(dice_values[i] == 1 for i in available)

    highlight = _highlighted(
        dice_values, available, keep, rule, result_index, has_ones, rolled_all_crit
    )
    dice = _build_dice(dice_values, burn_flags, highlight)

    ones_block = rule.one_always_fail and has_ones
    selected = result_index is not None
    can_karma = (
        rule.allow_karma
        and not ones_block
        and selected
        and 2 <= active_value < rule.crit_value
    )
    can_confirm = (
        rule.allow_confirm
        and not ones_block
        and selected
        and active_value >= rule.crit_value
    )

    logger.debug(
        f"Evaluated {dice_values} #{keyword} {keep.value}: "
        f"result={result_index} karma={can_karma} confirm={can_confirm}"
    )

    return ParsedRoll(
        dice=dice,
        can_karma=can_karma,
        can_confirm=can_confirm,
        has_ones=has_ones,
        rule=rule,
        result_index=result_index,
    )


def roll_is_all_crit(values: Sequence[int], keyword: str = "default") -> bool:
    """
    Whether a freshly rolled pool is all crits for its keyword.

    Callers compute this once, on the original pool, and pass it to
    evaluate_dice as rolled_all_crit for every later evaluation.
    """
    if not values:
        return False
    crit = resolve_keyword_rule(keyword).crit_value
    return all((coerce_int(v) or 0) >= crit for v in values)
