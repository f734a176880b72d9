# Copyright 2025 icecake0141
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review for correctness and security.

"""
Command-line interface for ProxyDash.

This module contains the main entry point, command-line argument handling and
the frame loop. The frame loop is the only owner of the live proxy tree: it
merges trees handed over by the poller thread, applies key commands and
renders, all on the main thread.
"""

import argparse
import logging
import os
import queue
import sys
import termios
import threading
import time
import tty
from datetime import datetime
from typing import Any, Dict, List, Optional

from proxydash.client import DEFAULT_CONTROLLER_URL, ControllerClient, InvalidControllerUrl
from proxydash.config import load_config
from proxydash.input_keys import COMMAND_DOWN, COMMAND_QUIT, COMMAND_TOGGLE, COMMAND_UP, key_to_command, read_key
from proxydash.model import ProxyTree
from proxydash.poller import snapshot_worker
from proxydash.theme import DEFAULT_STYLES, build_glyphs
from proxydash.ui_render import (
    build_display_rows,
    build_status_row,
    format_rows,
    get_terminal_size,
    prepare_terminal_for_exit,
    render_display,
)

logger = logging.getLogger(__name__)

FRAME_INTERVAL_SECONDS = 0.05


def _configure_logging(log_level: str, log_file: Optional[str]) -> None:
    """
    Configure logging handlers for CLI execution.

    The dashboard owns the terminal, so records only go to a file when one is
    given and are dropped otherwise.
    """
    handlers: List[logging.Handler] = [logging.NullHandler()]
    if log_file:
        handlers = [logging.FileHandler(os.path.expanduser(log_file), encoding="utf-8")]
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


# Hardcoded defaults for config-overridable fields.
# Applied after config merging for any field still set to None.
_HARDCODED_DEFAULTS: Dict[str, Any] = {
    "controller_url": DEFAULT_CONTROLLER_URL,
    "interval": 2.0,
    "timeout": 3.0,
    "color": True,
    "log_level": "WARNING",
}


def _apply_config_to_args(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """
    Overlay config file values onto a parsed argument namespace.

    Only fields that are still ``None`` (i.e. not explicitly set on the CLI)
    are updated. Glyph overrides come only from the config file.
    """
    for key, value in config.items():
        if key == "glyphs":
            args.glyphs = value
        elif hasattr(args, key) and getattr(args, key) is None:
            setattr(args, key, value)


def handle_options(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse and validate command-line arguments."""
    parser = argparse.ArgumentParser(
        description="ProxyDash - Browse proxy groups and their latency from a Clash-compatible controller",
    )
    parser.add_argument(
        "controller_url",
        nargs="?",
        default=None,
        help=f"Controller base URL (default: {DEFAULT_CONTROLLER_URL})",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=None,
        help="Seconds between snapshot refreshes (default: 2.0, range: 0.2-300.0)",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds for each refresh (default: 3.0)",
    )
    parser.add_argument(
        "--no-color",
        dest="color",
        action="store_false",
        default=None,
        help="Disable colored output",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path; without it nothing is logged while the dashboard runs",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file path (default: ~/.proxydash.conf)",
    )
    parser.add_argument(
        "--no-config",
        action="store_true",
        default=False,
        help="Skip loading the config file",
    )

    args = parser.parse_args(argv)
    args.glyphs = {}

    if not args.no_config:
        try:
            config = load_config(args.config)
            _apply_config_to_args(args, config)
        except ValueError as exc:
            parser.error(str(exc))

    for field, default in _HARDCODED_DEFAULTS.items():
        if getattr(args, field, None) is None:
            setattr(args, field, default)

    if not 0.2 <= args.interval <= 300.0:
        parser.error("--interval must be between 0.2 and 300.0 seconds.")
    if args.timeout <= 0:
        parser.error("--timeout must be a positive number of seconds.")
    return args


def _build_state(args: argparse.Namespace) -> Dict[str, Any]:
    """Initialize the runtime state owned by the frame loop."""
    return {
        "tree": ProxyTree(),
        "glyphs": build_glyphs(args.glyphs),
        "styles": dict(DEFAULT_STYLES),
        "result_queue": queue.Queue(),
        "stop_event": threading.Event(),
        "updated_at": None,
        "status_message": "Connecting...",
        "status_is_error": False,
        "running": True,
        "updated": True,
        "last_term_size": None,
    }


def _handle_user_input(key: str, state: Dict[str, Any]) -> None:
    """Apply one key press to the live tree."""
    command = key_to_command(key)
    tree: ProxyTree = state["tree"]
    if command == COMMAND_QUIT:
        state["running"] = False
    elif command == COMMAND_UP:
        tree.move_cursor(-1)
    elif command == COMMAND_DOWN:
        tree.move_cursor(1)
    elif command == COMMAND_TOGGLE:
        tree.toggle()
    else:
        return
    state["updated"] = True


def _update_render_state(state: Dict[str, Any]) -> None:
    """Drain poller results and merge fresh trees into the live tree."""
    while True:
        try:
            kind, payload = state["result_queue"].get_nowait()
        except queue.Empty:
            break
        if kind == "tree":
            if state["tree"].merge(payload):
                logger.debug("Merged snapshot with %d groups.", len(payload.groups))
                state["updated"] = True
            state["updated_at"] = datetime.now()
            if state["status_message"] is not None:
                state["status_message"] = None
                state["status_is_error"] = False
                state["updated"] = True
        elif kind == "error":
            state["status_message"] = payload
            state["status_is_error"] = True
            state["updated"] = True


def _render_frame(args: argparse.Namespace, state: Dict[str, Any]) -> None:
    """Render the current tree if anything changed since the last frame."""
    term_size = get_terminal_size(fallback=(80, 24))
    if term_size != state["last_term_size"]:
        state["last_term_size"] = term_size
        state["updated"] = True
    if not state["updated"]:
        return

    status_row = build_status_row(
        state["tree"],
        args.controller_url,
        state["updated_at"],
        state["status_message"],
        state["status_is_error"],
    )
    rows = build_display_rows(state["tree"], term_size.columns, term_size.lines, state["glyphs"], status_row)
    lines = format_rows(rows, term_size.columns, term_size.lines, state["styles"], args.color)
    render_display(lines)
    state["updated"] = False


def run(args: argparse.Namespace) -> int:
    """Run the dashboard until the operator quits."""
    try:
        _configure_logging(args.log_level, args.log_file)
    except OSError as exc:
        print(f"Error: cannot open log file '{args.log_file}': {exc}", file=sys.stderr)
        return 2
    try:
        client = ControllerClient(args.controller_url, timeout=args.timeout)
    except InvalidControllerUrl as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    state = _build_state(args)
    poller = threading.Thread(
        target=snapshot_worker,
        args=(client, state["result_queue"], state["stop_event"], args.interval),
        daemon=True,
    )
    poller.start()
    logger.info("Polling %s every %.1fs.", client.base_url, args.interval)

    stdin_fd: Optional[int] = None
    original_term: Optional[List[Any]] = None
    if sys.stdin.isatty():
        stdin_fd = sys.stdin.fileno()
        original_term = termios.tcgetattr(stdin_fd)

    try:
        if stdin_fd is not None:
            tty.setcbreak(stdin_fd)
        sys.stdout.write("\x1b[?25l")
        while state["running"]:
            key = read_key()
            if key:
                _handle_user_input(key, state)
            _update_render_state(state)
            _render_frame(args, state)
            time.sleep(FRAME_INTERVAL_SECONDS)
    except KeyboardInterrupt:
        state["running"] = False
    finally:
        state["stop_event"].set()
        poller.join(timeout=1.0)
        client.close()
        if stdin_fd is not None and original_term is not None:
            termios.tcsetattr(stdin_fd, termios.TCSADRAIN, original_term)
        sys.stdout.write("\x1b[?25h")
        sys.stdout.flush()

    prepare_terminal_for_exit()
    return 0


def main() -> None:
    """Main entrypoint for the CLI - parses arguments and runs the application."""
    args = handle_options()
    sys.exit(run(args))
