"""
EZD6 engine - command line entry point.

Exposes the keyword rules, dice evaluation and replenishment engine for
inspection from a shell, and holds the engine configuration.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from ezd6_engine import __version__
from ezd6_engine.data_models import DiceRoller, EngineError, KeepMode
from ezd6_engine.dice import (
    RollSession,
    build_roll_formula,
    evaluate_dice,
    pool_mode,
)
from ezd6_engine.observability import get_run_log
from ezd6_engine.resources import (
    ResourceSheet,
    build_replenish_title,
    can_show_replenish,
    replenish_cost,
)
from ezd6_engine.rules import get_tag_options, normalize_keyword, resolve_keyword_rule


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class EngineConfig:
    """Configuration for the engine and its CLI."""

    custom_tags: list[str] = field(default_factory=list)
    default_keyword: str = "default"
    default_mode: str = "kh"

    # Raise on malformed dice/resource data instead of clamping it
    strict_validation: bool = False

    run_log_path: Optional[Path] = None
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.run_log_path, str):
            self.run_log_path = Path(self.run_log_path)
        self.default_mode = KeepMode.parse(self.default_mode).value

    def tag_options(self) -> list[str]:
        return get_tag_options(self.custom_tags)

    @classmethod
    def from_file(cls, path: Path) -> "EngineConfig":
        """Load a JSON config file. Unknown keys are ignored."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must hold a JSON object")

        known = {f.name for f in fields(cls)}
        for key in sorted(set(data) - known):
            logger.warning(f"Ignoring unknown config key: {key}")
        return cls(**{k: v for k, v in data.items() if k in known})


# =============================================================================
# COMMANDS
# =============================================================================

def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def cmd_rule(args: argparse.Namespace, config: EngineConfig) -> int:
    keyword = normalize_keyword(args.keyword)
    _print_json({"keyword": keyword, "rule": resolve_keyword_rule(keyword).to_dict()})
    return 0


def cmd_evaluate(args: argparse.Namespace, config: EngineConfig) -> int:
    keyword = normalize_keyword(args.keyword or config.default_keyword)
    mode = KeepMode.parse(args.mode or config.default_mode)
    burned = [index in set(args.burn or []) for index in range(len(args.values))]
    parsed = evaluate_dice(
        args.values,
        keyword,
        mode,
        burned,
        args.lock,
        args.all_crit,
        strict=config.strict_validation,
    )
    _print_json(parsed.to_dict())
    return 0


def cmd_roll(args: argparse.Namespace, config: EngineConfig) -> int:
    if args.count == 0:
        logger.error("A pool needs at least one die")
        return 1
    if args.seed is not None:
        DiceRoller.set_seed(args.seed)
        get_run_log().set_seed(args.seed)

    keyword = normalize_keyword(args.keyword or config.default_keyword)
    mode = pool_mode(args.count)
    result = DiceRoller.roll_pool(abs(args.count), mode, reason=f"#{keyword} roll")
    session = RollSession.from_roll(result.rolls, keyword, mode)
    actions = session.available_actions()

    _print_json(
        {
            "formula": build_roll_formula(args.count),
            "keyword": keyword,
            "rolls": result.rolls,
            "parsed": session.parsed.to_dict(),
            "actions": {
                "burn": actions.can_burn,
                "karma": actions.can_karma,
                "confirm": actions.can_confirm,
            },
            "state": session.to_dict(),
        }
    )
    return 0


def _load_resources(path: Path) -> list[dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("resources", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must hold a list of resources")
    return data


def cmd_replenish(args: argparse.Namespace, config: EngineConfig) -> int:
    sheet = ResourceSheet.from_dicts(
        _load_resources(args.file), config.custom_tags, strict=config.strict_validation
    )
    resource = sheet.get(args.resource_id)
    if resource is None:
        logger.error(f"No resource with id {args.resource_id!r} in {args.file}")
        return 1

    state = sheet.replenish_state(resource.id)
    output: dict[str, Any] = {
        "state": state.to_dict(),
        "offered": can_show_replenish(resource, state),
    }
    if state.mode is not None and state.target is not None:
        output["title"] = build_replenish_title(
            state.mode, replenish_cost(resource), sheet.normalize(state.target.roll_keyword)
        )

    if args.apply:
        delta = sheet.replenish(resource.id)
        output["delta"] = delta.to_dict()
        output["resources"] = sheet.to_dicts()
        if args.write and delta.applied:
            with open(args.file, "w", encoding="utf-8") as f:
                json.dump(sheet.to_dicts(), f, indent=2)
            logger.info(f"Wrote updated resources to {args.file}")

    _print_json(output)
    return 0


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="EZD6 roll resolution and resource economy engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ezd6_engine.main rule brutal
  python -m ezd6_engine.main evaluate 6 3 1 --keyword magick
  python -m ezd6_engine.main roll -2 --keyword attack --seed 7
  python -m ezd6_engine.main replenish sheet.json res-hero --apply
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON engine configuration file",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on malformed dice or resource values instead of clamping",
    )
    parser.add_argument(
        "--run-log",
        type=Path,
        help="Save the run log to this file on exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    rule_parser = subparsers.add_parser("rule", help="Show the resolved rule of a keyword")
    rule_parser.add_argument("keyword", type=str)
    rule_parser.set_defaults(handler=cmd_rule)

    eval_parser = subparsers.add_parser("evaluate", help="Evaluate rolled dice values")
    eval_parser.add_argument("values", type=int, nargs="+")
    eval_parser.add_argument("--keyword", type=str)
    eval_parser.add_argument("--mode", choices=["kh", "kl"])
    eval_parser.add_argument("--burn", type=int, action="append", help="Index of a burned die")
    eval_parser.add_argument("--lock", type=int, help="Force the result index")
    eval_parser.add_argument(
        "--all-crit",
        action="store_true",
        help="The original pool was all crits",
    )
    eval_parser.set_defaults(handler=cmd_evaluate)

    roll_parser = subparsers.add_parser("roll", help="Roll and evaluate a pool (negative = keep lowest)")
    roll_parser.add_argument("count", type=int)
    roll_parser.add_argument("--keyword", type=str)
    roll_parser.add_argument("--seed", type=int)
    roll_parser.set_defaults(handler=cmd_roll)

    rep_parser = subparsers.add_parser("replenish", help="Show or apply replenishment of a resource")
    rep_parser.add_argument("file", type=Path, help="JSON list of resources")
    rep_parser.add_argument("resource_id", type=str)
    rep_parser.add_argument("--apply", action="store_true")
    rep_parser.add_argument("--write", action="store_true", help="Write applied changes back to the file")
    rep_parser.set_defaults(handler=cmd_replenish)

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> EngineConfig:
    """Create EngineConfig from the config file and parsed arguments."""
    config = EngineConfig.from_file(args.config) if args.config else EngineConfig()
    if args.strict:
        config.strict_validation = True
    if args.run_log:
        config.run_log_path = args.run_log
    if args.verbose:
        config.verbose = True
    return config


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    try:
        config = create_config_from_args(args)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load config: {e}")
        return 1

    try:
        code = args.handler(args, config)
    except EngineError as e:
        logger.error(f"Invalid engine input: {e}")
        code = 2
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        code = 1

    if config.run_log_path:
        get_run_log().save(str(config.run_log_path))

    return code


if __name__ == "__main__":
    sys.exit(main())
