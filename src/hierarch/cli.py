"""
Hierarch CLI

Usage:
    hierarch run --config hierarch.yaml --activity activity.json --directory directory.json
    hierarch run --activity activity.json --directory directory.json --period 2026-W42 --dry-run
    hierarch grace --state role-logs/grace-tracking.json
    hierarch validate --config hierarch.yaml

Without --config, configuration is read from the environment (after
loading --env-file, if given).
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from . import __version__
from .canon import format_timestamp
from .collaborators import JsonActivitySource, JsonMembershipDirectory, JsonRoleMutator
from .config import EngineConfig, config_from_env, load_config
from .engine import RoleUpdateRun
from .exceptions import ConfigError, GraceStoreError, HierarchError, RunAbortedError
from .logs import configure_logging
from .report import FileReporter, render_summary
from .store import JsonGraceStore


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ABORTED = 2


def _load(args: argparse.Namespace) -> EngineConfig:
    if args.config:
        return load_config(args.config)
    return config_from_env()


def _print_config_error(error: HierarchError) -> None:
    print(f"Configuration error: {error}", file=sys.stderr)
    for err in error.details.get("errors", []):
        print(f"  - {err['field']}: {err['error']}", file=sys.stderr)


def cmd_run(args: argparse.Namespace) -> int:
    """Execute one role update run with the file-backed collaborators."""
    try:
        config = _load(args)
    except ConfigError as e:
        _print_config_error(e)
        return EXIT_ERROR

    run = RoleUpdateRun(
        config=config,
        activity=JsonActivitySource(args.activity),
        directory=JsonMembershipDirectory(args.directory),
        store=JsonGraceStore(args.state or config.state_path),
        mutator=JsonRoleMutator(args.journal) if args.journal else None,
        reporters=[FileReporter(config.logs_dir)],
    )

    try:
        record = run.execute(period=args.period, dry_run=args.dry_run)
    except RunAbortedError as e:
        print(f"Run aborted: {e}", file=sys.stderr)
        return EXIT_ABORTED

    print(render_summary(record))
    return EXIT_OK


def cmd_grace(args: argparse.Namespace) -> int:
    """List the users currently in a grace period."""
    path = args.state
    if path is None:
        try:
            path = _load(args).state_path
        except ConfigError as e:
            _print_config_error(e)
            return EXIT_ERROR

    try:
        state = JsonGraceStore(path).read()
    except GraceStoreError as e:
        print(f"Cannot read grace state: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.json:
        print(json.dumps(state.to_dict(), indent=2, sort_keys=True))
        return EXIT_OK

    print(f"GRACE RECORDS ({len(state.records)})")
    if state.period:
        print(f"Last period: {state.period}")
    print("-" * 60)
    for user_id, record in sorted(state.records.items()):
        print(
            f"  {record.display_name:<24} {user_id:<20} weeks out: {record.weeks_out}"
            f"  since {format_timestamp(record.first_week_out)}"
        )
    if not state.records:
        print("  None")
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate configuration and print the effective settings."""
    try:
        config = _load(args)
    except ConfigError as e:
        _print_config_error(e)
        return EXIT_ERROR

    print("CONFIGURATION VALID")
    print("-" * 40)
    for name, value in config.summary().items():
        print(f"  {name:<16} {value}")
    print(f"  {'state_path':<16} {config.state_path}")
    print(f"  {'logs_dir':<16} {config.logs_dir}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Hierarch role qualification engine",
        prog="hierarch",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $HIERARCH_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        default="json",
        help="Log output format",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Load environment variables from this file first",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Run one role update")
    run_parser.add_argument("--config", help="Configuration file (YAML or JSON)")
    run_parser.add_argument("--activity", required=True, help="Mention counts JSON file")
    run_parser.add_argument("--directory", required=True, help="Membership directory JSON file")
    run_parser.add_argument("--state", help="Grace state file (overrides config)")
    run_parser.add_argument("--journal", help="Append role changes to this JSONL file")
    run_parser.add_argument("--period", help="Period label, e.g. 2026-W42")
    run_parser.add_argument("--dry-run", action="store_true",
                            help="Compute and report only; change nothing")
    run_parser.set_defaults(func=cmd_run)

    # Grace command
    grace_parser = subparsers.add_parser("grace", help="List grace records")
    grace_parser.add_argument("--config", help="Configuration file (for state_path)")
    grace_parser.add_argument("--state", help="Grace state file")
    grace_parser.add_argument("--json", action="store_true", help="Print raw state as JSON")
    grace_parser.set_defaults(func=cmd_grace)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate configuration")
    validate_parser.add_argument("--config", help="Configuration file (YAML or JSON)")
    validate_parser.set_defaults(func=cmd_validate)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    if args.env_file:
        load_dotenv(args.env_file, override=False)
    try:
        configure_logging(args.log_level, args.log_format)
    except ValueError as e:
        print(f"Logging error: {e}", file=sys.stderr)
        return EXIT_ERROR

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
