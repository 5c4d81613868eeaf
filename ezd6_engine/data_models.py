"""
Shared data structures for the EZD6 roll and resource engine.

Holds the records exchanged between the keyword rules, the dice evaluator
and the replenishment engine, plus the DiceRoller that stands in for the
host's random number source.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
import math
import random
import uuid


# =============================================================================
# ENUMS
# =============================================================================


class KeepMode(str, Enum):
    """Which die of a pool is the active result."""
    KEEP_HIGHEST = "kh"
    KEEP_LOWEST = "kl"

    @classmethod
    def parse(cls, raw: Any) -> "KeepMode":
        """Read a mode from host data; anything but 'kl' keeps highest."""
        if isinstance(raw, KeepMode):
            return raw
        if isinstance(raw, str) and raw.strip().lower() == "kl":
            return cls.KEEP_LOWEST
        return cls.KEEP_HIGHEST


class ReplenishLogic(str, Enum):
    """How a capped resource is refilled from its funding resource."""
    DISABLED = "disabled"
    RESET = "reset"      # Full pool resets to zero
    RESTORE = "restore"  # Non-full pool regains one unit

    @classmethod
    def parse(cls, raw: Any) -> "ReplenishLogic":
        """Unknown or missing values mean disabled."""
        if isinstance(raw, ReplenishLogic):
            return raw
        if raw == "reset":
            return cls.RESET
        if raw == "restore":
            return cls.RESTORE
        return cls.DISABLED


class DiceChangeBehavior(str, Enum):
    """What a resource does when a roll result is bumped."""
    NONE = "none"
    KARMA = "karma"    # Spend one per +1
    STRESS = "stress"  # Gain one per +1


class DieKind(str, Enum):
    """Die face colours used when drawing a pool."""
    GREY = "grey"
    GREEN = "green"
    RED = "red"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class EngineError(ValueError):
    """Malformed data reached the engine from the persistence layer."""
    pass


# =============================================================================
# VALUE COERCION
# =============================================================================


def coerce_int(raw: Any, fallback: Optional[int] = None) -> Optional[int]:
    """
    Floor a host value to an int.

    Host documents may hold strings, floats, None or NaN where a number is
    expected. Non-finite or non-numeric input returns the fallback.
    """
    if isinstance(raw, bool):
        return int(raw)
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return math.floor(number)


def clamp_int(value: int, minimum: int, maximum: int) -> int:
    """Clamp value into [minimum, maximum]."""
    return max(minimum, min(maximum, value))


# =============================================================================
# DICE AND RANDOMIZATION
# =============================================================================


class DiceRoller:
    """
    Centralized randomization interface.

    The engine itself never rolls; DiceRoller plays the host's random
    number source for the CLI and for tests. All rolls are logged.
    """

    _instance = None
    _seed: Optional[int] = None
    _roll_log: list = []

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def set_seed(cls, seed: int) -> None:
        """Set random seed for reproducibility."""
        cls._seed = seed
        random.seed(seed)

    @classmethod
    def roll(cls, dice: str, reason: str = "") -> "DiceResult":
        """
        Roll dice using notation like '3d6', '2d6kh' or '2d6kl'.

        A keep suffix makes the total the kept die; without one the total
        is the sum of the dice.

        Args:
            dice: Dice notation string
            reason: Why this roll is being made (for logging)

        Returns:
            DiceResult with individual rolls and total
        """
        notation = dice.strip().lower()
        keep: Optional[KeepMode] = None
        if notation.endswith(("kh", "kl")):
            keep = KeepMode(notation[-2:])
            notation = notation[:-2]

        num_dice, die_size = notation.split("d")
        num_dice = int(num_dice) if num_dice else 1
        die_size = int(die_size)

        rolls = [random.randint(1, die_size) for _ in range(num_dice)]
        if not rolls:
            total = 0
        elif keep == KeepMode.KEEP_LOWEST:
            total = min(rolls)
        elif keep == KeepMode.KEEP_HIGHEST:
            total = max(rolls)
        else:
            total = sum(rolls)

        result = DiceResult(
            notation=dice,
            rolls=rolls,
            total=total,
            reason=reason,
            keep=keep,
        )

        cls._roll_log.append(result)
        _log_roll_event(result)
        return result

    @classmethod
    def roll_d6(cls, num_dice: int = 1, reason: str = "") -> "DiceResult":
        """Convenience method for plain d6 rolls."""
        return cls.roll(f"{num_dice}d6", reason)

    @classmethod
    def roll_pool(
        cls,
        num_dice: int,
        mode: KeepMode = KeepMode.KEEP_HIGHEST,
        reason: str = "",
    ) -> "DiceResult":
        """Roll an EZD6 pool, e.g. 3d6kh."""
        mode = KeepMode.parse(mode)
        return cls.roll(f"{num_dice}d6{mode.value}", reason)

    @classmethod
    def get_roll_log(cls) -> list:
        """Get the complete roll log for the session."""
        return cls._roll_log.copy()

    @classmethod
    def clear_roll_log(cls) -> None:
        """Clear the roll log."""
        cls._roll_log = []


def _log_roll_event(result: "DiceResult") -> None:
    # Lazy import: observability depends on this module
    from ezd6_engine.observability.run_log import get_run_log

    get_run_log().log_roll(
        notation=result.notation,
        rolls=list(result.rolls),
        total=result.total,
        reason=result.reason,
    )


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    total: int
    reason: str
    keep: Optional[KeepMode] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.notation}: {self.rolls} = {self.total}"


# =============================================================================
# KEYWORD RULES
# =============================================================================


@dataclass(frozen=True)
class KeywordRule:
    """
    Resolved behaviour of a roll keyword.

    Every field is always set; see rules.keyword_rules for how partial
    overrides are layered on the base record.
    """
    allow_karma: bool = True
    allow_confirm: bool = True
    crit_value: int = 6
    one_always_fail: bool = False
    allow_burn_ones: bool = False
    roll_power: bool = False
    roll_dialogue: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowKarma": self.allow_karma,
            "allowConfirm": self.allow_confirm,
            "critValue": self.crit_value,
            "oneAlwaysFail": self.one_always_fail,
            "allowBurnOnes": self.allow_burn_ones,
            "rollPower": self.roll_power,
            "rollDialogue": self.roll_dialogue,
        }


# =============================================================================
# EVALUATED ROLLS
# =============================================================================


@dataclass(frozen=True)
class Die:
    """One die of an evaluated pool."""
    value: int
    highlight: bool = False
    transparent: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "highlight": self.highlight,
            "transparent": self.transparent,
        }


@dataclass(frozen=True)
class ParsedRoll:
    """
    Outcome of evaluating a rolled pool.

    Built fresh by evaluate_dice on every evaluation; burning a die or
    locking a result produces a new ParsedRoll instead of editing one.
    """
    dice: tuple[Die, ...]
    can_karma: bool
    can_confirm: bool
    has_ones: bool
    rule: KeywordRule
    result_index: Optional[int]

    @property
    def active_value(self) -> int:
        """Value of the result die, 0 when nothing was selected."""
        if self.result_index is None:
            return 0
        return self.dice[self.result_index].value

    @property
    def highlighted_indices(self) -> list[int]:
        return [i for i, die in enumerate(self.dice) if die.highlight]

    def to_dict(self) -> dict[str, Any]:
        return {
            "dice": [die.to_dict() for die in self.dice],
            "canKarma": self.can_karma,
            "canConfirm": self.can_confirm,
            "hasOnes": self.has_ones,
            "rule": self.rule.to_dict(),
            "resultIndex": self.result_index,
        }


# =============================================================================
# RESOURCES
# =============================================================================


DEFAULT_RESOURCE_ICON = "icons/svg/d20-black.svg"


def create_id(prefix: str) -> str:
    """Short random id in the host's 'res-xxxxxx' style."""
    return f"{prefix}-{uuid.uuid4().hex[:6]}"


@dataclass
class Resource:
    """
    A finite pool owned by a character or archetype.

    Linked to a funding resource by tag (replenish_tag matched against the
    other resource's roll_keyword), never by stored id.
    """
    id: str = field(default_factory=lambda: create_id("res"))
    title: str = "Resource"
    value: int = 0
    default_value: int = 0
    max_value: int = 0  # 0 = uncapped
    number_of_dice: int = 0
    roll_keyword: str = "default"
    replenish_logic: ReplenishLogic = ReplenishLogic.DISABLED
    replenish_tag: str = ""
    replenish_cost: int = 1

    # Sheet-side details
    description: str = ""
    icon: str = DEFAULT_RESOURCE_ICON
    locked: bool = False
    dice_change_behavior: DiceChangeBehavior = DiceChangeBehavior.NONE
    used_for_dice_burn: bool = False

    def __post_init__(self):
        self.replenish_logic = ReplenishLogic.parse(self.replenish_logic)
        if not isinstance(self.dice_change_behavior, DiceChangeBehavior):
            try:
                self.dice_change_behavior = DiceChangeBehavior(self.dice_change_behavior)
            except ValueError:
                self.dice_change_behavior = DiceChangeBehavior.NONE

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the host document's field names."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "value": self.value,
            "defaultValue": self.default_value,
            "maxValue": self.max_value,
            "numberOfDice": self.number_of_dice,
            "rollKeyword": self.roll_keyword,
            "replenishLogic": self.replenish_logic.value,
            "replenishTag": self.replenish_tag,
            "replenishCost": self.replenish_cost,
            "locked": self.locked,
            "diceChangeBehavior": self.dice_change_behavior.value,
            "usedForDiceBurn": self.used_for_dice_burn,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Resource":
        """
        Build a resource from a host document snapshot.

        Numeric fields are coerced the way the sheet reads them: value falls
        back to defaultValue, then to the legacy defaultMaxValue/maxValue. A
        negative value is kept as stored; the replenishment readers warn
        about it or reject it.
        """
        default_value = coerce_int(data.get("defaultValue"))
        if default_value is None:
            default_value = coerce_int(
                data.get("defaultMaxValue", data.get("maxValue", 0)), 0
            )
        max_value = coerce_int(data.get("maxValue"))
        if max_value is None:
            max_value = coerce_int(data.get("defaultMaxValue", 0), 0)

        return cls(
            id=str(data.get("id") or create_id("res")),
            title=str(data.get("title") or "Resource"),
            description=str(data.get("description") or ""),
            icon=str(data.get("icon") or DEFAULT_RESOURCE_ICON),
            value=coerce_int(data.get("value"), default_value),
            default_value=max(0, default_value),
            max_value=max(0, max_value),
            number_of_dice=clamp_int(coerce_int(data.get("numberOfDice"), 0), 0, 3),
            roll_keyword=str(data.get("rollKeyword") or data.get("tag") or "default"),
            replenish_logic=ReplenishLogic.parse(data.get("replenishLogic")),
            replenish_tag=str(data.get("replenishTag") or ""),
            replenish_cost=clamp_int(coerce_int(data.get("replenishCost"), 1), 1, 100),
            locked=bool(data.get("locked", False)),
            dice_change_behavior=data.get("diceChangeBehavior", "none"),
            used_for_dice_burn=bool(data.get("usedForDiceBurn", False)),
        )


@dataclass(frozen=True)
class ReplenishState:
    """Whether and how a replenish control is offered. Never persisted."""
    visible: bool = False
    mode: Optional[ReplenishLogic] = None
    disabled: bool = True
    target: Optional[Resource] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "mode": self.mode.value if self.mode else None,
            "disabled": self.disabled,
            "target": self.target.id if self.target else None,
        }


@dataclass(frozen=True)
class ReplenishDelta:
    """Numeric effect of applying a replenish action."""
    resource_delta: int = 0
    target_delta: int = 0
    resource_value: Optional[int] = None
    target_value: Optional[int] = None

    @property
    def applied(self) -> bool:
        return self.resource_value is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "resourceDelta": self.resource_delta,
            "targetDelta": self.target_delta,
            "resourceValue": self.resource_value,
            "targetValue": self.target_value,
        }
