"""Resource economy: replenishment and per-owner resource lists."""

from ezd6_engine.resources.replenishment import (
    InvalidResourceValueError,
    apply_replenish,
    build_replenish_title,
    can_show_replenish,
    find_replenish_target,
    get_replenish_state,
    replenish_cost,
    resource_dice_count,
    resource_max_value,
    resource_tag,
    resource_value,
)
from ezd6_engine.resources.resource_sheet import (
    CounterLayout,
    ResourceSheet,
    build_resource_from_item,
    counter_layout,
)

__all__ = [
    "InvalidResourceValueError",
    "apply_replenish",
    "build_replenish_title",
    "can_show_replenish",
    "find_replenish_target",
    "get_replenish_state",
    "replenish_cost",
    "resource_dice_count",
    "resource_max_value",
    "resource_tag",
    "resource_value",
    "CounterLayout",
    "ResourceSheet",
    "build_resource_from_item",
    "counter_layout",
]
