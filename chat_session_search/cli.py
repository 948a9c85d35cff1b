#!/usr/bin/env python3
"""CLI entry point for chat-session-search.

Search and browse VS Code chat sessions stored under the per-workspace
storage directories.

Usage:
    chat-session-search find [PATTERN] [options]
    chat-session-search workspaces
    chat-session-search find-workspace PATTERN
    chat-session-search sessions [--project PATH]
    chat-session-search show-workspace PATTERN
    chat-session-search show-session ID [--project PATH]
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

import yaml

from .config import DEFAULT_CONFIG_PATH, SearchConfig, load_config
from .errors import StorageRootMissing
from .formatter import (
    NO_WORKSPACES,
    format_search_report,
    format_session_details,
    format_session_table,
    format_workspace_details,
    format_workspace_table,
)
from .search import SearchCriteria, search_sessions
from .session import find_session, list_sessions, load_workspace_sessions
from .workspace import WorkspaceDescriptor, discover_workspaces, find_workspaces, locate_storage_root

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def setup_logging(level: str) -> None:
    """Configure logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _resolve_config(args: argparse.Namespace, environ: dict[str, str] | None = None) -> SearchConfig:
    """Merge config file, environment and command line options."""
    config = load_config(args.config, environ)
    overrides: dict = {}
    if args.storage_root is not None:
        overrides["storage_root"] = args.storage_root
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    return dataclasses.replace(config, **overrides) if overrides else config


def _discover(config: SearchConfig) -> list[WorkspaceDescriptor] | None:
    """Discover all workspaces, or print a notice and return None."""
    try:
        root = locate_storage_root(config.storage_root)
    except StorageRootMissing as e:
        logger.info(str(e))
        print(NO_WORKSPACES)
        return None
    return discover_workspaces(
        root,
        sessions_dir_name=config.sessions_dir_name,
        descriptor_name=config.descriptor_name,
        extension=config.session_extension,
    )


# ---------------------------------------------------------------------------
# Command implementations
# ---------------------------------------------------------------------------


def _cmd_find(args: argparse.Namespace, config: SearchConfig) -> int:
    """Run the filtered parallel search."""
    try:
        criteria = SearchCriteria.from_strings(
            pattern=args.pattern,
            workspace_filter=args.workspace,
            title_only=args.title_only,
            search_content=args.content,
            after=args.after,
            before=args.before,
            limit=args.limit if args.limit is not None else config.default_limit,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    outcome = search_sessions(criteria, config)
    print(format_search_report(outcome))
    return EXIT_OK


def _cmd_workspaces(args: argparse.Namespace, config: SearchConfig) -> int:
    """List every workspace."""
    workspaces = _discover(config)
    if workspaces is None:
        return EXIT_OK
    if not workspaces:
        print(NO_WORKSPACES)
        return EXIT_OK
    print(format_workspace_table(workspaces))
    return EXIT_OK


def _cmd_find_workspace(args: argparse.Namespace, config: SearchConfig) -> int:
    """List workspaces matching a pattern and the paths of their sessions."""
    workspaces = _discover(config)
    if workspaces is None:
        return EXIT_OK

    matching = find_workspaces(workspaces, args.pattern)
    if not matching:
        print(f"No workspaces found matching '{args.pattern}'")
        return EXIT_OK

    print(format_workspace_table(matching))
    for ws in matching:
        if not ws.has_sessions:
            continue
        print(f"\nSessions for {ws.project_path or '(none)'}:")
        for summary in load_workspace_sessions(ws, config.session_extension):
            print(f"  {summary.path}")
    return EXIT_OK


def _cmd_sessions(args: argparse.Namespace, config: SearchConfig) -> int:
    """List every parsed session."""
    workspaces = _discover(config)
    if workspaces is None:
        return EXIT_OK

    summaries = list_sessions(workspaces, args.project, config.session_extension)
    if not summaries:
        print("No chat sessions found.")
        return EXIT_OK
    print(format_session_table(summaries))
    return EXIT_OK


def _cmd_show_workspace(args: argparse.Namespace, config: SearchConfig) -> int:
    """Show details of every workspace matching a pattern."""
    workspaces = _discover(config)
    if workspaces is None:
        return EXIT_OK

    matching = find_workspaces(workspaces, args.pattern)
    if not matching:
        print(f"No workspace found matching '{args.pattern}'")
        return EXIT_OK

    blocks = [
        format_workspace_details(ws, load_workspace_sessions(ws, config.session_extension))
        for ws in matching
    ]
    print("\n\n".join(blocks))
    return EXIT_OK


def _cmd_show_session(args: argparse.Namespace, config: SearchConfig) -> int:
    """Show details of the first session matching an id."""
    workspaces = _discover(config)
    if workspaces is None:
        return EXIT_OK

    summary = find_session(workspaces, args.session_id, args.project, config.session_extension)
    if summary is None:
        print(f"No session found matching '{args.session_id}'")
        return EXIT_OK
    print(format_session_details(summary))
    return EXIT_OK


_COMMANDS = {
    "find": _cmd_find,
    "workspaces": _cmd_workspaces,
    "find-workspace": _cmd_find_workspace,
    "sessions": _cmd_sessions,
    "show-workspace": _cmd_show_workspace,
    "show-session": _cmd_show_session,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="chat-session-search",
        description="Search VS Code chat sessions across workspaces",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # List the 50 most recent sessions
    chat-session-search find

    # Sessions whose id or title mentions "auth", in projects matching "api"
    chat-session-search find auth -w api

    # Also search message content, only sessions from March 2025
    chat-session-search find "race condition" --content --after 2025-03-01 --before 2025-03-31
""",
    )
    parser.add_argument(
        "--storage-root",
        type=Path,
        default=None,
        help="Workspace storage directory (default: platform VS Code location)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to config.yaml (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of scan worker threads",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # find
    find_parser = subparsers.add_parser("find", help="Search sessions by id, title or content")
    find_parser.add_argument(
        "pattern",
        nargs="?",
        default="",
        help="Case-insensitive substring (empty lists all sessions)",
    )
    find_parser.add_argument(
        "-w",
        "--workspace",
        type=str,
        default=None,
        help="Only workspaces whose hash or project path contains this",
    )
    find_parser.add_argument(
        "--title-only",
        action="store_true",
        help="Never search message content",
    )
    find_parser.add_argument(
        "-c",
        "--content",
        action="store_true",
        help="Also search message content (slower)",
    )
    find_parser.add_argument(
        "--after",
        type=str,
        default=None,
        help="Only sessions modified on or after this date (YYYY-MM-DD, UTC)",
    )
    find_parser.add_argument(
        "--before",
        type=str,
        default=None,
        help="Only sessions modified on or before this date (YYYY-MM-DD, UTC)",
    )
    find_parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=None,
        help="Maximum number of results (default: from config, 50)",
    )

    # workspaces
    subparsers.add_parser("workspaces", help="List all workspaces")

    # find-workspace
    find_ws_parser = subparsers.add_parser(
        "find-workspace",
        help="Find workspaces by hash or project path ('.' = current directory name)",
    )
    find_ws_parser.add_argument("pattern", type=str, help="Search pattern")

    # sessions
    sessions_parser = subparsers.add_parser("sessions", help="List all sessions")
    sessions_parser.add_argument(
        "--project",
        type=str,
        default=None,
        help="Only sessions of this project path",
    )

    # show-workspace
    show_ws_parser = subparsers.add_parser("show-workspace", help="Show workspace details")
    show_ws_parser.add_argument("pattern", type=str, help="Workspace hash or project path fragment")

    # show-session
    show_session_parser = subparsers.add_parser("show-session", help="Show session details")
    show_session_parser.add_argument("session_id", type=str, help="Session id or file name fragment")
    show_session_parser.add_argument(
        "--project",
        type=str,
        default=None,
        help="Only sessions of this project path",
    )

    return parser


# ---------------------------------------------------------------------------
# Main Entry Point
# ---------------------------------------------------------------------------


def main(args: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, 1 for errors, 2 for invalid options).
    """
    parser = _create_parser()
    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return EXIT_USAGE

    setup_logging(parsed.log_level)

    try:
        config = _resolve_config(parsed)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        return _COMMANDS[parsed.command](parsed, config)
    except OSError as e:
        logger.error(f"Cannot read workspace storage: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
