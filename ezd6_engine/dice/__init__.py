"""Dice pool evaluation and roll follow-ups."""

from ezd6_engine.dice.dice_evaluator import (
    InvalidDieValueError,
    evaluate_dice,
    roll_is_all_crit,
)
from ezd6_engine.dice.pool_builder import (
    build_die_kinds,
    build_roll_formula,
    build_roll_title,
    build_standard_roll_kinds,
    pool_mode,
    step_pool_size,
)
from ezd6_engine.dice.roll_session import (
    Confirmation,
    RollActions,
    RollSession,
    modify_result,
)

__all__ = [
    "InvalidDieValueError",
    "evaluate_dice",
    "roll_is_all_crit",
    "build_die_kinds",
    "build_roll_formula",
    "build_roll_title",
    "build_standard_roll_kinds",
    "pool_mode",
    "step_pool_size",
    "Confirmation",
    "RollActions",
    "RollSession",
    "modify_result",
]
