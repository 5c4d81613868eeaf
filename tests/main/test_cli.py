"""
Tests for the command line entry point and engine configuration.
"""

import json
from pathlib import Path

import pytest

from ezd6_engine.main import (
    EngineConfig,
    create_config_from_args,
    main,
    parse_arguments,
)


def _output(capsys) -> dict:
    return json.loads(capsys.readouterr().out)


def _set_karma(path: Path, value: int) -> None:
    resources = json.loads(path.read_text(encoding="utf-8"))
    for entry in resources:
        if entry["id"] == "res-karma":
            entry["value"] = value
    path.write_text(json.dumps(resources), encoding="utf-8")


@pytest.fixture
def sheet_file(tmp_path):
    """A JSON resource list with a full hero die pool and five karma."""
    path = tmp_path / "sheet.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "res-hero",
                    "title": "Hero Die",
                    "value": 3,
                    "maxValue": 3,
                    "rollKeyword": "#heroDie",
                    "replenishLogic": "reset",
                    "replenishTag": "#karma",
                    "replenishCost": 2,
                },
                {"id": "res-karma", "title": "Karma", "value": 5, "rollKeyword": "#karma"},
            ]
        ),
        encoding="utf-8",
    )
    return path


class TestEngineConfig:

    def test_defaults(self):
        """Test default configuration."""
        config = EngineConfig()
        assert config.default_keyword == "default"
        assert config.default_mode == "kh"
        assert not config.strict_validation

    def test_path_coercion(self):
        """Test the run log path becomes a Path."""
        config = EngineConfig(run_log_path="logs/run.json")
        assert config.run_log_path == Path("logs/run.json")

    def test_unknown_mode_becomes_kh(self):
        """Test an unknown default mode becomes kh."""
        assert EngineConfig(default_mode="median").default_mode == "kh"

    def test_from_file_ignores_unknown_keys(self, tmp_path, caplog):
        """Test unknown config keys warn and are ignored."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"custom_tags": ["#sneak"], "colour": "red"}), encoding="utf-8")
        config = EngineConfig.from_file(path)
        assert config.custom_tags == ["#sneak"]
        assert "#sneak" in config.tag_options()
        assert "colour" in caplog.text

    def test_from_file_rejects_non_object(self, tmp_path):
        """Test a config file must hold an object."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            EngineConfig.from_file(path)

    def test_cli_flags_override_file(self, tmp_path):
        """Test --strict overrides the config file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"strict_validation": False}), encoding="utf-8")
        args = parse_arguments(["--config", str(path), "--strict", "rule", "brutal"])
        config = create_config_from_args(args)
        assert config.strict_validation


class TestRuleCommand:

    def test_rule(self, capsys):
        """Test the rule command."""
        assert main(["rule", "brutal"]) == 0
        output = _output(capsys)
        assert output["keyword"] == "brutal"
        assert output["rule"]["critValue"] == 5

    def test_rule_normalizes_tag(self, capsys):
        """Test the rule command accepts tags."""
        assert main(["rule", "#Magick"]) == 0
        assert _output(capsys)["rule"]["oneAlwaysFail"] is True


class TestEvaluateCommand:

    def test_evaluate_fail_on_one(self, capsys):
        """Test evaluating a magick pool."""
        assert main(["evaluate", "6", "3", "1", "--keyword", "magick"]) == 0
        output = _output(capsys)
        assert output["resultIndex"] == 0
        assert output["canKarma"] is False
        assert [d["highlight"] for d in output["dice"]] == [True, False, True]

    def test_evaluate_keep_lowest_with_burn(self, capsys):
        """Test evaluating kl with a burned die."""
        assert main(["evaluate", "1", "4", "2", "--mode", "kl", "--burn", "0"]) == 0
        assert _output(capsys)["resultIndex"] == 2

    def test_evaluate_lock(self, capsys):
        """Test evaluating with a locked result."""
        assert main(["evaluate", "6", "3", "--lock", "1"]) == 0
        output = _output(capsys)
        assert output["resultIndex"] == 1
        assert output["canKarma"] is True

    def test_strict_rejects_bad_die(self):
        """Test --strict turns a bad die into exit code 2."""
        assert main(["--strict", "evaluate", "9"]) == 2

    def test_default_mode_from_config(self, tmp_path, capsys):
        """Test the configured default mode."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"default_mode": "kl"}), encoding="utf-8")
        assert main(["--config", str(path), "evaluate", "2", "5"]) == 0
        assert _output(capsys)["resultIndex"] == 0


class TestRollCommand:

    def test_roll_is_reproducible(self, capsys):
        """Test seeded rolls repeat."""
        assert main(["roll", "3", "--seed", "5"]) == 0
        first = _output(capsys)
        assert main(["roll", "3", "--seed", "5"]) == 0
        second = _output(capsys)
        assert first["formula"] == "3d6kh"
        assert len(first["rolls"]) == 3
        assert first["rolls"] == second["rolls"]

    def test_negative_pool_keeps_lowest(self, capsys):
        """Test a negative count rolls keep-lowest."""
        assert main(["roll", "-2", "--keyword", "attack", "--seed", "1"]) == 0
        output = _output(capsys)
        assert output["formula"] == "2d6kl"
        assert output["state"]["mode"] == "kl"
        assert output["parsed"]["dice"][output["parsed"]["resultIndex"]]["value"] == min(output["rolls"])

    def test_empty_pool(self):
        """Test a zero pool is refused."""
        assert main(["roll", "0"]) == 1

    def test_run_log_saved(self, tmp_path, capsys):
        """Test --run-log saves the session."""
        log_path = tmp_path / "run.json"
        assert main(["--run-log", str(log_path), "roll", "2", "--seed", "3"]) == 0
        data = json.loads(log_path.read_text(encoding="utf-8"))
        assert data["seed"] == 3
        assert {e["event_type"] for e in data["events"]} == {"roll", "evaluation"}


class TestReplenishCommand:

    def test_negative_target_rejected_when_strict(self, sheet_file):
        """A negative stored value fails strict validation with exit code 2."""
        _set_karma(sheet_file, -4)
        assert main(["--strict", "replenish", str(sheet_file), "res-hero"]) == 2

    def test_negative_target_warns_by_default(self, sheet_file, capsys, caplog):
        """Without --strict a negative value reads as 0 and is reported."""
        _set_karma(sheet_file, -4)
        assert main(["replenish", str(sheet_file), "res-hero"]) == 0
        assert _output(capsys)["state"]["disabled"] is True
        assert "negative value" in caplog.text

    def test_state(self, sheet_file, capsys):
        """Test printing the replenish state."""
        assert main(["replenish", str(sheet_file), "res-hero"]) == 0
        output = _output(capsys)
        assert output["state"] == {
            "visible": True,
            "mode": "reset",
            "disabled": False,
            "target": "res-karma",
        }
        assert output["offered"] is True
        assert output["title"] == "Reset by spending 2 #karma"
        assert "delta" not in output

    def test_apply_and_write(self, sheet_file, capsys):
        """Test applying and writing back."""
        assert main(["replenish", str(sheet_file), "res-hero", "--apply", "--write"]) == 0
        output = _output(capsys)
        assert output["delta"]["resourceValue"] == 0
        assert output["delta"]["targetValue"] == 3
        saved = {r["id"]: r["value"] for r in json.loads(sheet_file.read_text(encoding="utf-8"))}
        assert saved == {"res-hero": 0, "res-karma": 3}

    def test_apply_without_write_leaves_file(self, sheet_file, capsys):
        """Test --apply alone leaves the file."""
        before = sheet_file.read_text(encoding="utf-8")
        assert main(["replenish", str(sheet_file), "res-hero", "--apply"]) == 0
        assert sheet_file.read_text(encoding="utf-8") == before

    def test_unknown_resource(self, sheet_file):
        """Test an unknown resource id fails."""
        assert main(["replenish", str(sheet_file), "res-nope"]) == 1

    def test_missing_file(self, tmp_path):
        """Test a missing file fails."""
        assert main(["replenish", str(tmp_path / "missing.json"), "res-hero"]) == 1

    def test_resources_under_key(self, tmp_path, capsys):
        """Test resources nested under a key."""
        path = tmp_path / "actor.json"
        path.write_text(
            json.dumps({"resources": [{"id": "res-a", "value": 1, "maxValue": 2}]}),
            encoding="utf-8",
        )
        assert main(["replenish", str(path), "res-a"]) == 0
        assert _output(capsys)["state"]["visible"] is False
