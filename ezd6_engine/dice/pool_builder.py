"""
Pool sizing helpers for quick rolls.

A quick-roll pool is a signed die count: positive pools keep the highest
die, negative pools keep the lowest. -1 and 0 are not pools, so stepping
jumps straight between 1 and -2.
"""

from ezd6_engine.data_models import DieKind, KeepMode


MIN_POOL_SIZE = -6
MAX_POOL_SIZE = 6


def clamp_pool_size(count: int) -> int:
    return max(MIN_POOL_SIZE, min(MAX_POOL_SIZE, count))


def step_pool_size(current: int, delta: int) -> int:
    """Move a signed pool size one step up or down."""
    if delta < 0:
        if current <= MIN_POOL_SIZE:
            return MIN_POOL_SIZE
        if current == 1:
            return -2
        return clamp_pool_size(current - 1)
    if current >= MAX_POOL_SIZE:
        return MAX_POOL_SIZE
    if current == -2:
        return 1
    return clamp_pool_size(current + 1)


def pool_mode(count: int) -> KeepMode:
    return KeepMode.KEEP_LOWEST if count < 0 else KeepMode.KEEP_HIGHEST


def build_roll_formula(count: int) -> str:
    """'3d6kh' for 3, '2d6kl' for -2."""
    return f"{abs(count)}d6{pool_mode(count).value}"


def build_roll_title(count: int, tag: str = "#default", label: str = "Roll") -> str:
    return f"{label} {build_roll_formula(count)} {tag}".strip()


def build_die_kinds(count: int) -> list[DieKind]:
    """
    Die faces shown on a pool button.

    One grey die plus a green die per bonus die, or a red die per penalty
    die followed by the grey one.
    """
    if count == 0:
        return []
    rest = max(0, abs(count) - 1)
    if count > 0:
        return [DieKind.GREY] + [DieKind.GREEN] * rest
    return [DieKind.RED] * rest + [DieKind.GREY]


def build_standard_roll_kinds(count: int) -> list[DieKind]:
    """Faces for a sheet roll button of count dice."""
    if count <= 0:
        return []
    return [DieKind.GREY if index == 0 else DieKind.GREEN for index in range(count)]
