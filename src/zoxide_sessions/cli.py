"""CLI entry point.

Usage:
    zoxide-sessions                 # interactive picker
    zoxide-sessions list            # reconciled list, one row per line
    zoxide-sessions names           # session name, score and path per directory
    zoxide-sessions --config ~/my.toml --verbose
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from . import __version__
from .config_loader import Config, load_config
from .items import CandidateDirectory, display_text
from .logging_config import setup_logger, trace_context
from .reconcile import combine_items
from .zellij import ZellijHost, run_launch_request
from .zoxide import build_candidates, query_zoxide, zoxide_error_message


def _load_candidates(config: Config) -> list[CandidateDirectory] | None:
    result = query_zoxide()
    if result.is_err():
        print(zoxide_error_message(result.error), file=sys.stderr)
        return None
    return build_candidates(result.value, config)


def run_list(config: Config, host: ZellijHost) -> int:
    candidates = _load_candidates(config)
    if candidates is None:
        return 1

    sessions = []
    recoverable = []
    listed = host.list_sessions()
    if listed.is_ok():
        sessions, recoverable = listed.value
    else:
        print(f"Failed to list sessions: {listed.error.message}", file=sys.stderr)

    for item in combine_items(sessions, recoverable, candidates, config):
        print(display_text(item))
    return 0


def run_names(config: Config) -> int:
    candidates = _load_candidates(config)
    if candidates is None:
        return 1
    for candidate in candidates:
        print(f"{candidate.session_name}\t{candidate.ranking:g}\t{candidate.directory}")
    return 0


def run_pick(config: Config, host: ZellijHost) -> int:
    # Textual is only needed for the interactive picker
    from .app import PickerApp
    from .state import PickerState

    state = PickerState(config, host)
    PickerApp(state).run()

    if host.launch_request is None:
        logger.info("Picker closed without action", operation="run_pick", status="cancelled")
        return 0
    with trace_context():
        return run_launch_request(host.launch_request)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="zoxide-sessions",
        description="Pick or create Zellij sessions from zoxide's ranked directories",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["pick", "list", "names"],
        default="pick",
        help="pick (default): interactive picker; list: print the item list; "
             "names: print generated session names",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Config file (default: ~/.config/zoxide-sessions/config.toml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Also write JSONL logs to stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args(argv)

    # Console logs would draw over the picker
    setup_logger(console=args.verbose and args.command != "pick", console_level="DEBUG")

    config_result = load_config(args.config)
    if config_result.is_err():
        print(f"Config error: {config_result.error.message}", file=sys.stderr)
        return 1
    config = config_result.value

    host = ZellijHost()
    if args.command == "pick":
        return run_pick(config, host)
    with trace_context():
        if args.command == "list":
            return run_list(config, host)
        return run_names(config)


if __name__ == "__main__":
    sys.exit(main())
