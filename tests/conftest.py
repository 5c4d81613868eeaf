"""
Pytest fixtures for the EZD6 engine test suite.

Provides reusable fixtures for seeded dice, a clean run log, and sample
resource lists.
"""

import pytest

from ezd6_engine.data_models import DiceRoller, ReplenishLogic, Resource
from ezd6_engine.observability.run_log import get_run_log, reset_run_log
from ezd6_engine.resources.resource_sheet import ResourceSheet


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    DiceRoller.clear_roll_log()
    DiceRoller.set_seed(42)
    yield DiceRoller()
    DiceRoller.clear_roll_log()


# =============================================================================
# RUN LOG FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def clean_run_log():
    """Every test starts with an empty, unpaused run log."""
    log = reset_run_log()
    log.resume()
    yield log
    get_run_log().resume()
    reset_run_log()


# =============================================================================
# RESOURCE FIXTURES
# =============================================================================


@pytest.fixture
def karma_resource():
    """A funding resource tagged #karma."""
    return Resource(id="res-karma", title="Karma", value=5, roll_keyword="#karma")


@pytest.fixture
def reset_resource():
    """A full pool that resets by spending two karma."""
    return Resource(
        id="res-hero",
        title="Hero Die",
        value=3,
        default_value=3,
        max_value=3,
        roll_keyword="#heroDie",
        replenish_logic=ReplenishLogic.RESET,
        replenish_tag="#karma",
        replenish_cost=2,
    )


@pytest.fixture
def restore_resource():
    """A pool with room that restores one unit for one karma."""
    return Resource(
        id="res-luck",
        title="Luck",
        value=1,
        max_value=3,
        roll_keyword="#luck",
        replenish_logic=ReplenishLogic.RESTORE,
        replenish_tag="#karma",
        replenish_cost=1,
    )


@pytest.fixture
def sample_sheet(karma_resource, reset_resource, restore_resource):
    """A sheet holding karma, health and two replenishable pools."""
    health = Resource(id="res-health", title="Health", value=3, max_value=3, roll_keyword="#health")
    return ResourceSheet(
        [karma_resource, reset_resource, restore_resource, health],
        owner_name="Test Hero",
    )
