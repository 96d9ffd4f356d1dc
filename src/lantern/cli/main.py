#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""
Lantern CLI - run the bot and manage its session.

Commands:
  lantern run                   Run the bot until logout or Ctrl-C
  lantern session status        Show whether local credentials exist
  lantern session fetch [TOKEN] Download the remote session into the store
  lantern session check TOKEN   Validate a session token offline
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from ..core.config import BotSettings, get_config
from ..core.exceptions import LanternException
from ..core.logging import configure_logging
from ..runtime.process import EXIT_FATAL, EXIT_OK, build_fetcher, run_bot
from ..session.store import CredentialStore
from ..session.token import SessionToken

logger = logging.getLogger(__name__)


def _settings_from_args(args: argparse.Namespace) -> BotSettings:
    settings = get_config()
    overrides: dict[str, Any] = {}
    if getattr(args, "port", None) is not None:
        overrides["port"] = args.port
    if getattr(args, "session_dir", None) is not None:
        overrides["session_dir"] = args.session_dir
    if getattr(args, "log_level", None):
        overrides["log_level"] = args.log_level.upper()
    return settings.model_copy(update=overrides) if overrides else settings


def output_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


# ============================================================================
# Commands
# ============================================================================


def cmd_run(args: argparse.Namespace) -> int:
    """Run the bot."""
    settings = _settings_from_args(args)
    configure_logging(level=settings.log_level, log_file=settings.log_file)
    try:
        return asyncio.run(run_bot(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return EXIT_OK


def cmd_session_status(args: argparse.Namespace) -> int:
    """Report on the local credential bundle."""
    settings = _settings_from_args(args)
    store = CredentialStore(settings.session_dir)
    bundle = store.load_or_none()
    if bundle is None:
        print(f"No local session in {store.directory}")
        print("Next start will download the remote session or ask for pairing.")
        return 1

    print(f"Session: {store.creds_path}")
    print(f"  Size:       {len(bundle)} bytes")
    print(f"  Registered: {'yes' if bundle.is_registered else 'no'}")
    keys = store.list_keys()
    if keys:
        print(f"  Key files:  {len(keys)}")
    return 0


def cmd_session_fetch(args: argparse.Namespace) -> int:
    """Download the remote session into the local store."""
    settings = _settings_from_args(args)
    token = args.token or settings.session_id
    if not token:
        output_error("No session token given (pass TOKEN or set SESSION_ID)")
        return 1

    store = CredentialStore(settings.session_dir)
    if store.exists() and not args.force:
        output_error(f"Session already exists at {store.creds_path} (use --force to replace)")
        return 1

    store.ensure_dir()
    fetcher = build_fetcher(settings, store)
    bundle = asyncio.run(fetcher.fetch(token))
    print(f"Session saved to {store.creds_path} ({len(bundle)} bytes)")
    return 0


def cmd_session_check(args: argparse.Namespace) -> int:
    """Validate token syntax without any network access."""
    settings = _settings_from_args(args)
    token = SessionToken.parse(args.token, marker=settings.session_marker)
    print(f"Token OK: file {token.file_reference}")
    return 0


# ============================================================================
# Entry point
# ============================================================================


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Lantern chat bot runtime",
        prog="lantern",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Run command
    run_parser = subparsers.add_parser("run", help="Run the bot")
    run_parser.add_argument("--port", "-p", type=int, default=None, help="Liveness server port")
    run_parser.add_argument("--session-dir", type=Path, default=None, help="Credential directory")
    run_parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level",
    )
    run_parser.set_defaults(func=cmd_run)

    # Session commands
    session_parser = subparsers.add_parser("session", help="Manage the stored session")
    session_parser.add_argument("--session-dir", type=Path, default=None, help="Credential directory")
    session_sub = session_parser.add_subparsers(dest="session_command", required=True)

    status_parser = session_sub.add_parser("status", help="Show local session status")
    status_parser.set_defaults(func=cmd_session_status)

    fetch_parser = session_sub.add_parser("fetch", help="Download the remote session")
    fetch_parser.add_argument("token", nargs="?", default=None, help="Session token (default: SESSION_ID)")
    fetch_parser.add_argument("--force", "-f", action="store_true", help="Replace an existing session")
    fetch_parser.set_defaults(func=cmd_session_fetch)

    check_parser = session_sub.add_parser("check", help="Validate a session token")
    check_parser.add_argument("token", help="Session token to validate")
    check_parser.set_defaults(func=cmd_session_check)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = app()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except LanternException as e:
        output_error(e.message)
        logger.debug("Command failed", exc_info=True)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
