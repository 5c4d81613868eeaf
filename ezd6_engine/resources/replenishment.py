"""
Resource replenishment.

A capped resource can be refilled by spending another resource of the same
owner. The funding resource is found by tag at evaluation time: the first
other resource whose normalized roll keyword equals this resource's
normalized replenish tag. Renaming a tag re-pairs resources; a tag that
matches nothing simply leaves replenishment unavailable.

Modes:
- reset: offered when the pool is full; empties it
- restore: offered when the pool has room; adds one unit
Both cost replenish_cost units of the funding resource.
"""

from typing import Optional, Sequence
import logging

from ezd6_engine.data_models import (
    EngineError,
    ReplenishDelta,
    ReplenishLogic,
    ReplenishState,
    Resource,
    clamp_int,
    coerce_int,
)
from ezd6_engine.rules.tag_options import TagNormalizer, normalize_optional_tag, normalize_tag

logger = logging.getLogger(__name__)

MIN_REPLENISH_COST = 1
MAX_REPLENISH_COST = 100

UNAVAILABLE = ReplenishState(visible=False, mode=None, disabled=True, target=None)


class InvalidResourceValueError(EngineError):
    """A negative resource value entered replenishment."""
    pass


# =============================================================================
# VALUE READERS
# =============================================================================


def resource_value(resource: Resource, strict: bool = False) -> int:
    """Current value, floored and never below zero."""
    value = coerce_int(resource.value)
    if value is None:
        value = max(0, coerce_int(resource.default_value, 0))
    if value < 0:
        if strict:
            raise InvalidResourceValueError(
                f"Resource {resource.id!r} has negative value {resource.value}"
            )
        logger.warning(f"Resource {resource.id!r} has negative value {resource.value}, treating as 0")
        return 0
    return value


def resource_max_value(resource: Resource) -> int:
    """Cap of the resource; 0 means uncapped."""
    return max(0, coerce_int(resource.max_value, 0))


def resource_dice_count(resource: Resource) -> int:
    """Rollable dice of a resource, 0..3."""
    return clamp_int(coerce_int(resource.number_of_dice, 0), 0, 3)


def replenish_cost(resource: Resource) -> int:
    return clamp_int(coerce_int(resource.replenish_cost, 1), MIN_REPLENISH_COST, MAX_REPLENISH_COST)


def resource_tag(resource: Resource, normalize: TagNormalizer = normalize_tag) -> str:
    """Normalized tag a resource is known by (its roll keyword)."""
    return normalize(resource.roll_keyword or "default")


# =============================================================================
# STATE AND APPLICATION
# =============================================================================


def find_replenish_target(
    resource: Resource,
    all_resources: Sequence[Resource],
    normalize: TagNormalizer = normalize_tag,
) -> Optional[Resource]:
    """The other resource carrying this resource's replenish tag, if any."""
    target_tag = normalize_optional_tag(resource.replenish_tag, normalize)
    if not target_tag:
        return None
    for entry in all_resources:
        if entry.id == resource.id:
            continue
        if resource_tag(entry, normalize) == target_tag:
            return entry
    return None


def get_replenish_state(
    resource: Resource,
    all_resources: Sequence[Resource],
    normalize: TagNormalizer = normalize_tag,
    strict: bool = False,
) -> ReplenishState:
    """
    Decide whether a replenish action is offered and if it is affordable.

    Args:
        resource: The resource to replenish
        all_resources: Every resource of the same owner
        normalize: Tag normalization function
        strict: Raise InvalidResourceValueError on negative values

    Returns:
        ReplenishState; mode is set only when the action is visible
    """
    logic = ReplenishLogic.parse(resource.replenish_logic)
    max_value = resource_max_value(resource)
    if logic == ReplenishLogic.DISABLED or max_value <= 0:
        return UNAVAILABLE

    target = find_replenish_target(resource, all_resources, normalize)
    if target is None:
        logger.debug(f"No resource tagged {resource.replenish_tag!r} to replenish {resource.id!r}")
        return UNAVAILABLE

    current = resource_value(resource, strict)
    disabled = resource_value(target, strict) < replenish_cost(resource)

    if logic == ReplenishLogic.RESET:
        visible = current >= max_value
    else:
        visible = current < max_value

    return ReplenishState(
        visible=visible,
        mode=logic if visible else None,
        disabled=disabled,
        target=target,
    )


def apply_replenish(resource: Resource, state: ReplenishState, strict: bool = False) -> ReplenishDelta:
    """
    Apply a replenish action to the resource and its funding target.

    Callers check state.disabled first; the target is still clamped at
    zero here. Both resources are updated in place.
    """
    if state.mode is None or state.target is None:
        return ReplenishDelta()

    target = state.target
    cost = replenish_cost(resource)
    current = resource_value(resource, strict)
    target_current = resource_value(target, strict)

    if state.disabled:
        logger.warning(
            f"Replenishing {resource.id!r} with {target.id!r} below cost ({target_current} < {cost})"
        )

    if state.mode == ReplenishLogic.RESET:
        new_value = 0
    else:
        new_value = min(resource_max_value(resource), current + 1)
    new_target = max(0, target_current - cost)

    resource.value = new_value
    target.value = new_target

    logger.info(
        f"Replenished {resource.title} ({state.mode.value}): {current} -> {new_value}, "
        f"{target.title}: {target_current} -> {new_target}"
    )

    return ReplenishDelta(
        resource_delta=new_value - current,
        target_delta=new_target - target_current,
        resource_value=new_value,
        target_value=new_target,
    )


def can_show_replenish(resource: Resource, state: ReplenishState) -> bool:
    """
    Whether a sheet should draw the replenish control.

    A resource that can still be rolled offers its roll instead.
    """
    if resource_dice_count(resource) > 0 and resource_value(resource) > 0:
        return False
    return state.visible and state.mode is not None and state.target is not None


def build_replenish_title(mode: ReplenishLogic, cost: int, target_tag: str) -> str:
    if mode == ReplenishLogic.RESET:
        return f"Reset by spending {cost} {target_tag}".strip()
    return f"Restore 1 by spending {cost} {target_tag}".strip()
