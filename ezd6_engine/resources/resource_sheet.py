"""
Resource list of one owner (a character or an archetype).

Holds the resources, applies the sheet's value conventions, and runs the
resource side of roll follow-ups and replenishment. Every value change is
recorded in the run log.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, TYPE_CHECKING
import logging

from ezd6_engine.data_models import (
    DEFAULT_RESOURCE_ICON,
    DiceChangeBehavior,
    ReplenishDelta,
    ReplenishLogic,
    ReplenishState,
    Resource,
    clamp_int,
    coerce_int,
    create_id,
)
from ezd6_engine.observability.run_log import get_run_log
from ezd6_engine.resources.replenishment import (
    UNAVAILABLE,
    apply_replenish,
    get_replenish_state,
    replenish_cost,
    resource_max_value,
    resource_tag,
    resource_value,
)
from ezd6_engine.rules.tag_options import (
    HEALTH_TAG,
    KARMA_TAG,
    STRESS_TAG,
    TagNormalizer,
    make_normalizer,
    normalize_optional_tag,
)

if TYPE_CHECKING:
    from ezd6_engine.dice.roll_session import RollSession

logger = logging.getLogger(__name__)

DEFAULT_MAX_ICONS = 6


@dataclass(frozen=True)
class CounterLayout:
    """How a resource counter is drawn."""
    numeric: bool  # "3 / 10" text plus one icon
    normal_icons: int
    faded_icons: int


def counter_layout(current_value: int, max_value: int, max_icons: int = DEFAULT_MAX_ICONS) -> CounterLayout:
    """
    Choose between an icon row and a numeric counter.

    Capped pools draw one icon per unit plus faded icons for spent units
    while they fit in max_icons. Uncapped pools draw one faded icon at zero.
    """
    current = max(0, current_value)
    cap = max(0, max_value)
    max_icons = max(1, max_icons)

    if cap > 0:
        numeric = current > max_icons or (current == max_icons and cap > max_icons)
        if numeric:
            return CounterLayout(numeric=True, normal_icons=1, faded_icons=0)
        normal = min(current, max_icons)
        faded = max(0, min(max_icons - normal, cap - current))
        return CounterLayout(numeric=False, normal_icons=normal, faded_icons=faded)

    if current <= 0:
        return CounterLayout(numeric=False, normal_icons=0, faded_icons=1)
    if current > max_icons:
        return CounterLayout(numeric=True, normal_icons=1, faded_icons=0)
    return CounterLayout(numeric=False, normal_icons=current, faded_icons=0)


def build_resource_from_item(item: dict[str, Any], normalize: Optional[TagNormalizer] = None) -> Resource:
    """
    Convert a dropped resource item into a sheet resource.

    Item fields live under item["system"]; the value defaults to 1.
    """
    system = item.get("system") or {}
    value = max(0, coerce_int(system.get("value", system.get("defaultValue", 1)), 1))
    max_value = max(0, coerce_int(system.get("maxValue", system.get("defaultMaxValue", 0)), 0))
    logic = ReplenishLogic.parse(system.get("replenishLogic"))
    tag = system.get("tag")

    return Resource(
        id=create_id("res"),
        title=item.get("name") or "Resource",
        icon=item.get("img") or DEFAULT_RESOURCE_ICON,
        description=system.get("description") if isinstance(system.get("description"), str) else "",
        value=value,
        default_value=value,
        max_value=max_value,
        number_of_dice=clamp_int(coerce_int(system.get("numberOfDice"), 0), 0, 3),
        roll_keyword=tag if isinstance(tag, str) else "default",
        replenish_logic=logic,
        replenish_tag=normalize_optional_tag(system.get("replenishTag"), normalize),
        replenish_cost=clamp_int(coerce_int(system.get("replenishCost"), 1), 1, 100),
    )


class ResourceSheet:
    """
    The resources of one owner.

    Replenishment links are resolved by scanning this list, so both sides
    of a link must belong to the same sheet. With strict set, a negative
    stored value raises InvalidResourceValueError instead of reading as 0.
    """

    def __init__(
        self,
        resources: Optional[Iterable[Resource]] = None,
        custom_tags: Optional[Iterable[str]] = None,
        owner_name: str = "",
        strict: bool = False,
    ):
        self.resources: list[Resource] = list(resources or [])
        self.owner_name = owner_name
        self.strict = strict
        self._normalize = make_normalizer(custom_tags)

    @classmethod
    def from_dicts(
        cls,
        entries: Iterable[dict[str, Any]],
        custom_tags: Optional[Iterable[str]] = None,
        owner_name: str = "",
        strict: bool = False,
    ) -> "ResourceSheet":
        return cls(
            [Resource.from_dict(entry) for entry in entries], custom_tags, owner_name, strict
        )

    def to_dicts(self) -> list[dict[str, Any]]:
        return [resource.to_dict() for resource in self.resources]

    def normalize(self, tag: str) -> str:
        return self._normalize(tag)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def add_resource(self, **fields: Any) -> Resource:
        """Create a resource with sheet defaults and append it."""
        default_value = fields.pop("default_value", 0)
        fields.setdefault("value", default_value)
        resource = Resource(default_value=default_value, **fields)
        self.resources.append(resource)
        logger.debug(f"Added resource {resource.title!r} ({resource.id})")
        return resource

    def add_resource_from_item(self, item: dict[str, Any]) -> Resource:
        resource = build_resource_from_item(item, self._normalize)
        self.resources.append(resource)
        logger.debug(f"Added resource {resource.title!r} from item")
        return resource

    def remove_resource(self, resource_id: str) -> bool:
        resource = self.get(resource_id)
        if resource is None:
            return False
        self.resources.remove(resource)
        return True

    def get(self, resource_id: str) -> Optional[Resource]:
        return next((r for r in self.resources if r.id == resource_id), None)

    def find_by_tag(self, tag: str) -> Optional[Resource]:
        """First resource whose roll keyword normalizes to tag."""
        wanted = self._normalize(tag)
        return next((r for r in self.resources if resource_tag(r, self._normalize) == wanted), None)

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def _value(self, resource: Resource) -> int:
        return resource_value(resource, self.strict)

    def _log_context(self) -> Optional[dict[str, Any]]:
        return {"owner": self.owner_name} if self.owner_name else None

    def _set_value(self, resource: Resource, new_value: int, reason: str) -> int:
        old_value = self._value(resource)
        resource.value = max(0, new_value)
        get_run_log().log_resource_change(
            resource_id=resource.id,
            resource_name=resource.title,
            old_value=old_value,
            new_value=resource.value,
            max_value=resource_max_value(resource),
            reason=reason,
            context=self._log_context(),
        )
        return resource.value

    def adjust_resource(self, resource_id: str, delta: int, reason: str = "adjust") -> Optional[int]:
        """Add delta to a resource, never going below zero. Returns the new value."""
        resource = self.get(resource_id)
        if resource is None:
            logger.warning(f"Cannot adjust unknown resource {resource_id!r}")
            return None
        return self._set_value(resource, self._value(resource) + delta, reason)

    def counter_layout(self, resource: Resource, max_icons: int = DEFAULT_MAX_ICONS) -> CounterLayout:
        return counter_layout(self._value(resource), resource_max_value(resource), max_icons)

    # -------------------------------------------------------------------------
    # Replenishment
    # -------------------------------------------------------------------------

    def replenish_state(self, resource_id: str) -> ReplenishState:
        resource = self.get(resource_id)
        if resource is None:
            return UNAVAILABLE
        return get_replenish_state(resource, self.resources, self._normalize, self.strict)

    def replenish(self, resource_id: str) -> ReplenishDelta:
        """
        Read the replenish state and apply it if it is offered and affordable.

        Returns empty deltas when nothing was applied.
        """
        resource = self.get(resource_id)
        if resource is None:
            return ReplenishDelta()
        state = get_replenish_state(resource, self.resources, self._normalize, self.strict)
        if not state.visible or state.disabled:
            logger.info(f"Replenish of {resource.title!r} not available")
            return ReplenishDelta()

        before = self._value(resource)
        target_before = self._value(state.target)
        delta = apply_replenish(resource, state, self.strict)

        log = get_run_log()
        reason = f"replenish ({state.mode.value})"
        log.log_resource_change(
            resource.id,
            resource.title,
            before,
            resource.value,
            resource_max_value(resource),
            reason,
            self._log_context(),
        )
        log.log_resource_change(
            state.target.id,
            state.target.title,
            target_before,
            state.target.value,
            resource_max_value(state.target),
            f"{reason} cost {replenish_cost(resource)}",
            self._log_context(),
        )
        return delta

    # -------------------------------------------------------------------------
    # Roll follow-ups
    # -------------------------------------------------------------------------

    def dice_change_resource(self) -> tuple[DiceChangeBehavior, Optional[Resource]]:
        """The first #karma or #stress resource and how it pays for +1."""
        for resource in self.resources:
            tag = resource_tag(resource, self._normalize)
            if tag == KARMA_TAG:
                return DiceChangeBehavior.KARMA, resource
            if tag == STRESS_TAG:
                return DiceChangeBehavior.STRESS, resource
        return DiceChangeBehavior.NONE, None

    def can_pay_dice_change(self) -> bool:
        behavior, resource = self.dice_change_resource()
        if behavior == DiceChangeBehavior.KARMA:
            return self._value(resource) > 0
        return True

    def spend_for_dice_change(self) -> bool:
        """Pay for a +1: karma costs one, stress adds one. False if unaffordable."""
        behavior, resource = self.dice_change_resource()
        if behavior == DiceChangeBehavior.KARMA:
            if self._value(resource) <= 0:
                return False
            self._set_value(resource, self._value(resource) - 1, "karma +1")
        elif behavior == DiceChangeBehavior.STRESS:
            self._set_value(resource, self._value(resource) + 1, "stress +1")
        return True

    def spend_for_burn(self) -> bool:
        """Pay one #health to burn a 1. False if no health is left."""
        health = self.find_by_tag(HEALTH_TAG)
        if health is None:
            return True
        if self._value(health) <= 0:
            return False
        self._set_value(health, self._value(health) - 1, "burn 1")
        return True

    def apply_karma(self, session: "RollSession") -> Optional[int]:
        """Pay for and apply a +1 to a roll. Returns the new active value."""
        if not session.available_actions().can_karma:
            return None
        if not self.spend_for_dice_change():
            return None
        return session.apply_karma()

    def burn_one(self, session: "RollSession") -> Optional[int]:
        """Pay for and burn a 1 in a roll. Returns the burned index."""
        if not session.available_actions().can_burn:
            return None
        if not self.spend_for_burn():
            return None
        return session.burn_one()
