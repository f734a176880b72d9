#!/usr/bin/env python3
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
# Review required for correctness, security, and licensing.

"""
Keyboard input handling for ProxyDash using the readchar library.

This module reads keys without blocking, names arrow and enter keys, and maps
keys onto the dashboard's navigation commands.
"""

import select
import sys
from typing import Optional

import readchar
import readchar.key

# Navigation commands understood by the frame loop
COMMAND_UP = "up"
COMMAND_DOWN = "down"
COMMAND_TOGGLE = "toggle"
COMMAND_QUIT = "quit"

_KEY_COMMANDS = {
    "arrow_up": COMMAND_UP,
    "k": COMMAND_UP,
    "arrow_down": COMMAND_DOWN,
    "j": COMMAND_DOWN,
    "enter": COMMAND_TOGGLE,
    " ": COMMAND_TOGGLE,
    "arrow_right": COMMAND_TOGGLE,
    "l": COMMAND_TOGGLE,
    "q": COMMAND_QUIT,
    "Q": COMMAND_QUIT,
}


def parse_escape_sequence(seq: str) -> Optional[str]:
    """
    Parse ANSI escape sequence to identify arrow keys.

    Args:
        seq: The escape sequence string (without the leading ESC)

    Returns:
        String identifier for arrow keys ('arrow_up', 'arrow_down', etc.)
        or None if sequence is not recognized
    """
    arrow_map = {
        "A": "arrow_up",
        "B": "arrow_down",
        "C": "arrow_right",
        "D": "arrow_left",
    }
    if not seq:
        return None
    if seq[0] in ("[", "O") and seq[-1] in arrow_map:
        return arrow_map[seq[-1]]
    return None


def map_readchar_key(key_value: str) -> str:
    """
    Map readchar key constants to ProxyDash key names.

    Returns 'arrow_up', 'arrow_down', 'arrow_left', 'arrow_right' or 'enter'
    for those keys and the original key value otherwise.
    """
    key_map = {
        readchar.key.UP: "arrow_up",
        readchar.key.DOWN: "arrow_down",
        readchar.key.LEFT: "arrow_left",
        readchar.key.RIGHT: "arrow_right",
        readchar.key.ENTER: "enter",
        readchar.key.CR: "enter",
        readchar.key.LF: "enter",
    }
    if key_value in key_map:
        return key_map[key_value]

    # readchar returns full sequences like "\x1b[1;5A" for modified arrows
    if key_value and key_value[0] == "\x1b" and len(key_value) > 1:
        parsed = parse_escape_sequence(key_value[1:])
        if parsed:
            return parsed

    return key_value


def key_to_command(key: Optional[str]) -> Optional[str]:
    """Map a key name to a navigation command, or None if the key is unbound."""
    if key is None:
        return None
    return _KEY_COMMANDS.get(key)


def read_key() -> Optional[str]:
    """
    Read a key from stdin without blocking.

    Returns None when stdin is not a terminal or no input is pending.
    """
    if not sys.stdin.isatty():
        return None

    ready, _, _ = select.select([sys.stdin], [], [], 0)
    if not ready:
        return None

    return map_readchar_key(readchar.readkey())
