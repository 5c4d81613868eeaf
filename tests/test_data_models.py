"""
Unit tests for shared data models.

Tests DiceRoller, value coercion and Resource serialization from
ezd6_engine/data_models.py.
"""

import math

import pytest

from ezd6_engine.data_models import (
    DiceChangeBehavior,
    DiceResult,
    DiceRoller,
    KeepMode,
    ReplenishDelta,
    ReplenishLogic,
    Resource,
    coerce_int,
)
from ezd6_engine.observability.run_log import get_run_log
from ezd6_engine.resources import InvalidResourceValueError, resource_value


class TestDiceRoller:
    """Tests for DiceRoller class."""

    def test_singleton_pattern(self):
        """Test that DiceRoller is a singleton."""
        assert DiceRoller() is DiceRoller()

    def test_roll_sums_without_keep(self, seeded_dice):
        """Test plain notation sums the dice."""
        result = seeded_dice.roll("3d6", "plain")
        assert isinstance(result, DiceResult)
        assert len(result.rolls) == 3
        assert result.total == sum(result.rolls)
        assert result.keep is None

    def test_roll_pool_keep_highest(self, seeded_dice):
        """Test a kh pool totals its highest die."""
        result = seeded_dice.roll_pool(4, KeepMode.KEEP_HIGHEST, "attack")
        assert result.notation == "4d6kh"
        assert result.total == max(result.rolls)

    def test_roll_pool_keep_lowest(self, seeded_dice):
        """Test a kl pool totals its lowest die."""
        result = seeded_dice.roll_pool(2, "kl", "penalty")
        assert result.notation == "2d6kl"
        assert result.total == min(result.rolls)

    def test_roll_d6_convenience(self, seeded_dice):
        """Test d6 convenience method."""
        result = seeded_dice.roll_d6(2)
        assert len(result.rolls) == 2
        assert all(1 <= r <= 6 for r in result.rolls)

    def test_seeded_reproducibility(self):
        """Test that seeded rolls are reproducible."""
        DiceRoller.set_seed(7)
        first = DiceRoller.roll("5d6").rolls
        DiceRoller.set_seed(7)
        second = DiceRoller.roll("5d6").rolls
        assert first == second

    def test_rolls_are_logged(self, seeded_dice):
        """Test rolls reach the roll log and the run log."""
        seeded_dice.roll_pool(3, reason="logged")
        assert len(seeded_dice.get_roll_log()) == 1
        rolls = get_run_log().get_rolls()
        assert len(rolls) == 1
        assert rolls[0].reason == "logged"

    def test_clear_roll_log(self, seeded_dice):
        """Test clearing the roll log."""
        seeded_dice.roll_d6()
        seeded_dice.clear_roll_log()
        assert seeded_dice.get_roll_log() == []


class TestCoercion:
    """Tests for host value coercion."""

    @pytest.mark.parametrize(
        "raw, expected",
        [(3, 3), (3.9, 3), ("4", 4), ("2.5", 2), (True, 1), (-1.5, -2)],
    )
    def test_coerce_numbers(self, raw, expected):
        """Test numbers and numeric strings are floored."""
        assert coerce_int(raw) == expected

    @pytest.mark.parametrize("raw", [None, "abc", math.nan, math.inf, [], {}])
    def test_coerce_falls_back(self, raw):
        """Test non-numeric input gives the fallback."""
        assert coerce_int(raw, 9) == 9


class TestKeepMode:
    def test_unknown_mode_keeps_highest(self):
        """Test unknown modes keep highest."""
        assert KeepMode.parse("xx") == KeepMode.KEEP_HIGHEST
        assert KeepMode.parse(None) == KeepMode.KEEP_HIGHEST

    def test_kl_is_case_insensitive(self):
        """Test kl parsing ignores case and spaces."""
        assert KeepMode.parse(" KL ") == KeepMode.KEEP_LOWEST


class TestResource:
    """Tests for Resource serialization."""

    def test_from_dict_coerces_values(self):
        """Test host values are coerced and clamped."""
        resource = Resource.from_dict(
            {
                "id": "res-a",
                "title": "Stress",
                "value": "2.7",
                "maxValue": "4",
                "replenishCost": 500,
                "numberOfDice": 9,
                "replenishLogic": "restore",
                "diceChangeBehavior": "stress",
            }
        )
        assert resource.value == 2
        assert resource.max_value == 4
        assert resource.replenish_cost == 100
        assert resource.number_of_dice == 3
        assert resource.replenish_logic == ReplenishLogic.RESTORE
        assert resource.dice_change_behavior == DiceChangeBehavior.STRESS

    def test_from_dict_defaults(self):
        """Test defaults for a sparse document."""
        resource = Resource.from_dict({"defaultValue": 2})
        assert resource.value == 2
        assert resource.roll_keyword == "default"
        assert resource.replenish_logic == ReplenishLogic.DISABLED
        assert resource.id.startswith("res-")

    def test_from_dict_legacy_tag(self):
        """Test the legacy 'tag' field is read."""
        resource = Resource.from_dict({"tag": "#karma", "value": 1})
        assert resource.roll_keyword == "#karma"

    def test_negative_value_is_kept_for_readers(self, caplog):
        """Test a negative value survives loading and warns when read."""
        resource = Resource.from_dict({"id": "res-k", "value": -4})
        assert resource.value == -4
        assert resource_value(resource) == 0
        assert "negative value" in caplog.text

    def test_negative_value_rejected_when_strict(self):
        """Test a negative stored value fails a strict read."""
        resource = Resource.from_dict({"id": "res-k", "value": -4})
        with pytest.raises(InvalidResourceValueError):
            resource_value(resource, strict=True)

    def test_unknown_logic_and_behavior(self):
        """Test unknown enum strings fall back."""
        resource = Resource(replenish_logic="sometimes", dice_change_behavior="chaos")
        assert resource.replenish_logic == ReplenishLogic.DISABLED
        assert resource.dice_change_behavior == DiceChangeBehavior.NONE

    def test_to_dict_round_trip_keys(self):
        """Test serialization keys survive a reload."""
        resource = Resource(id="res-x", title="Karma", value=2, roll_keyword="#karma")
        data = resource.to_dict()
        assert data["rollKeyword"] == "#karma"
        assert data["replenishLogic"] == "disabled"
        assert Resource.from_dict(data) == resource


class TestReplenishDelta:
    def test_empty_delta_not_applied(self):
        """Test an empty delta reports nothing applied."""
        assert not ReplenishDelta().applied

    def test_applied_delta(self):
        """Test an applied delta."""
        delta = ReplenishDelta(resource_delta=-3, target_delta=-2, resource_value=0, target_value=3)
        assert delta.applied
        assert delta.to_dict()["targetValue"] == 3
