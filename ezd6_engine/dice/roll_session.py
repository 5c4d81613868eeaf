"""
Follow-up state of a single roll.

A rolled pool stays live after it is posted: a player may bump the result
with karma, confirm a crit with an extra die, or burn a 1 away. RollSession
keeps the persistent part of that state and re-evaluates the pool from the
original values after every action.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence
import logging

from ezd6_engine.data_models import KeepMode, ParsedRoll, coerce_int
from ezd6_engine.dice.dice_evaluator import evaluate_dice, roll_is_all_crit
from ezd6_engine.observability.run_log import get_run_log

logger = logging.getLogger(__name__)

MAX_FACE = 6


def modify_result(value: int, increase_by: int = 1) -> int:
    """A 1 or a 6 is final; anything else moves up, capped at 6."""
    if value in (1, MAX_FACE):
        return value
    return min(MAX_FACE, value + increase_by)


@dataclass
class Confirmation:
    """An extra die rolled to confirm a crit."""
    value: int
    delta: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"value": self.value, "delta": self.delta}


@dataclass(frozen=True)
class RollActions:
    """Follow-up actions currently offered for a roll."""
    can_burn: bool = False
    can_karma: bool = False
    can_confirm: bool = False

    @property
    def any(self) -> bool:
        return self.can_burn or self.can_karma or self.can_confirm


@dataclass
class RollSession:
    """
    Persistent state of one rolled pool.

    The result die is locked on the first evaluation so later karma bumps
    keep pointing at the same die; burning that die releases the lock.
    """

    original_dice: list[int]
    keyword: str = "default"
    mode: KeepMode = KeepMode.KEEP_HIGHEST
    delta_dice: list[int] = field(default_factory=list)
    burned: list[bool] = field(default_factory=list)
    confirmations: list[Confirmation] = field(default_factory=list)
    locked_result_index: Optional[int] = None
    initial_all_crit: bool = False

    def __post_init__(self):
        self.mode = KeepMode.parse(self.mode)
        self.original_dice = list(self.original_dice)
        size = len(self.original_dice)
        self.delta_dice = (list(self.delta_dice) + [0] * size)[:size]
        self.burned = (list(self.burned) + [False] * size)[:size]
        self._parsed: Optional[ParsedRoll] = None
        self.refresh()

    @classmethod
    def from_roll(
        cls,
        values: Sequence[int],
        keyword: str = "default",
        mode: KeepMode = KeepMode.KEEP_HIGHEST,
    ) -> "RollSession":
        """Start a session for a freshly rolled pool."""
        return cls(
            original_dice=list(values),
            keyword=keyword,
            mode=mode,
            initial_all_crit=roll_is_all_crit(values, keyword),
        )

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    @property
    def parsed(self) -> ParsedRoll:
        return self._parsed

    def _resolved_lock(self) -> Optional[int]:
        index = self.locked_result_index
        if index is None or not 0 <= index < len(self.original_dice):
            return None
        return None if self.burned[index] else index

    def refresh(self) -> ParsedRoll:
        """Re-evaluate the pool from the current state."""
        self._parsed = evaluate_dice(
            self.original_dice,
            self.keyword,
            self.mode,
            self.burned,
            self._resolved_lock(),
            self.initial_all_crit,
        )
        if self.locked_result_index is None and self._parsed.result_index is not None:
            self.locked_result_index = self._parsed.result_index

        get_run_log().log_evaluation(
            keyword=self.keyword,
            mode=self.mode.value,
            values=list(self.original_dice),
            burned=list(self.burned),
            result_index=self._parsed.result_index,
            can_karma=self._parsed.can_karma,
            can_confirm=self._parsed.can_confirm,
        )
        return self._parsed

    @property
    def active_index(self) -> int:
        return self._parsed.result_index if self._parsed.result_index is not None else 0

    @property
    def active_value(self) -> int:
        """Latest confirmation die when there is one, else the result die."""
        if self.confirmations:
            return self.confirmations[-1].value
        if not self.original_dice:
            return 0
        return self.original_dice[self.active_index]

    @property
    def active_delta(self) -> int:
        if self.confirmations:
            return self.confirmations[-1].delta
        if not self.delta_dice:
            return 0
        return self.delta_dice[self.active_index]

    def only_ones_left(self) -> bool:
        available = [v for v, burned in zip(self.original_dice, self.burned) if not burned]
        return bool(available) and all(v == 1 for v in available)

    def available_actions(self) -> RollActions:
        """Which of burn, karma and confirm the roll currently offers."""
        parsed = self._parsed
        rule = parsed.rule
        can_burn = rule.allow_burn_ones and parsed.has_ones
        if not can_burn and self.only_ones_left():
            return RollActions()

        if self.confirmations:
            value = self.active_value
            ones_block = rule.one_always_fail and parsed.has_ones
            return RollActions(
                can_burn=can_burn,
                can_karma=rule.allow_karma and not ones_block and 2 <= value < rule.crit_value,
                can_confirm=rule.allow_confirm and not ones_block and value >= rule.crit_value,
            )

        return RollActions(
            can_burn=can_burn,
            can_karma=parsed.can_karma,
            can_confirm=parsed.can_confirm,
        )

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def apply_karma(self, increase_by: int = 1) -> Optional[int]:
        """
        Bump the active result.

        Returns the new active value, or None when karma is not offered.
        """
        if not self.available_actions().can_karma:
            logger.warning(f"Karma not available for #{self.keyword} roll {self.original_dice}")
            return None

        new_value = modify_result(self.active_value, increase_by)
        if self.confirmations:
            self.confirmations[-1].value = new_value
            self.confirmations[-1].delta += 1
        else:
            index = self.active_index
            self.original_dice[index] = new_value
            self.delta_dice[index] += 1

        self.refresh()
        return new_value

    def confirm(self, value: int) -> bool:
        """Add a confirmation die rolled by the host."""
        if not self.available_actions().can_confirm:
            logger.warning(f"Confirm not available for #{self.keyword} roll {self.original_dice}")
            return False
        self.confirmations.append(Confirmation(value=value))
        self.refresh()
        return True

    def burn_one(self) -> Optional[int]:
        """
        Burn the first unburned 1.

        Returns the burned index, or None when nothing could be burned.
        """
        if not self.available_actions().can_burn:
            return None
        index = next(
            (i for i, v in enumerate(self.original_dice) if v == 1 and not self.burned[i]),
            None,
        )
        if index is None:
            return None

        self.burned[index] = True
        self.delta_dice[index] = 0
        if self.locked_result_index == index:
            self.locked_result_index = None

        self.refresh()
        return index

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Flags stored on the host's roll message."""
        return {
            "originalDice": list(self.original_dice),
            "deltaDice": list(self.delta_dice),
            "burnedOnes": list(self.burned),
            "confirmations": [c.to_dict() for c in self.confirmations],
            "lockedResultIndex": self.locked_result_index,
            "mode": self.mode.value,
            "keyword": self.keyword,
            "initialAllCrit": self.initial_all_crit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RollSession":
        original = [coerce_int(v, 1) for v in data.get("originalDice", [])]
        keyword = data.get("keyword") or "default"
        all_crit = data.get("initialAllCrit")
        if not isinstance(all_crit, bool):
            all_crit = roll_is_all_crit(original, keyword)
        locked = data.get("lockedResultIndex")
        return cls(
            original_dice=original,
            keyword=keyword,
            mode=KeepMode.parse(data.get("mode")),
            delta_dice=[coerce_int(v, 0) for v in data.get("deltaDice", [])],
            burned=[bool(v) for v in data.get("burnedOnes", [])],
            confirmations=[
                Confirmation(value=coerce_int(c.get("value"), 1), delta=coerce_int(c.get("delta"), 0))
                for c in data.get("confirmations", [])
            ],
            locked_result_index=locked if isinstance(locked, int) and not isinstance(locked, bool) else None,
            initial_all_crit=all_crit,
        )
