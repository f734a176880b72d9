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
Unit tests for input_keys module - key decoding and navigation commands.
"""

import os
import sys
import unittest
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

import readchar  # noqa: E402

from proxydash.input_keys import (  # noqa: E402, isort: skip
    COMMAND_DOWN,
    COMMAND_QUIT,
    COMMAND_TOGGLE,
    COMMAND_UP,
    key_to_command,
    map_readchar_key,
    parse_escape_sequence,
    read_key,
)


class TestParseEscapeSequence(unittest.TestCase):
    """Test escape sequence parsing."""

    def test_standard_arrow_keys(self) -> None:
        self.assertEqual(parse_escape_sequence("[A"), "arrow_up")
        self.assertEqual(parse_escape_sequence("[B"), "arrow_down")
        self.assertEqual(parse_escape_sequence("[C"), "arrow_right")
        self.assertEqual(parse_escape_sequence("[D"), "arrow_left")

    def test_application_mode_arrows(self) -> None:
        self.assertEqual(parse_escape_sequence("OA"), "arrow_up")
        self.assertEqual(parse_escape_sequence("OB"), "arrow_down")

    def test_modified_arrows(self) -> None:
        self.assertEqual(parse_escape_sequence("[1;5A"), "arrow_up")
        self.assertEqual(parse_escape_sequence("[1;2B"), "arrow_down")

    def test_unknown_sequences(self) -> None:
        self.assertIsNone(parse_escape_sequence(""))
        self.assertIsNone(parse_escape_sequence("[Z"))
        self.assertIsNone(parse_escape_sequence("xA"))


class TestMapReadcharKey(unittest.TestCase):
    """Test mapping readchar constants to key names."""

    def test_arrow_constants(self) -> None:
        self.assertEqual(map_readchar_key(readchar.key.UP), "arrow_up")
        self.assertEqual(map_readchar_key(readchar.key.DOWN), "arrow_down")
        self.assertEqual(map_readchar_key(readchar.key.RIGHT), "arrow_right")

    def test_enter(self) -> None:
        self.assertEqual(map_readchar_key("\r"), "enter")
        self.assertEqual(map_readchar_key("\n"), "enter")

    def test_full_escape_sequence(self) -> None:
        self.assertEqual(map_readchar_key("\x1b[1;5B"), "arrow_down")

    def test_plain_characters_pass_through(self) -> None:
        self.assertEqual(map_readchar_key("j"), "j")
        self.assertEqual(map_readchar_key("\x1b"), "\x1b")


class TestKeyToCommand(unittest.TestCase):
    """Test key name to navigation command mapping."""

    def test_bindings(self) -> None:
        self.assertEqual(key_to_command("arrow_up"), COMMAND_UP)
        self.assertEqual(key_to_command("k"), COMMAND_UP)
        self.assertEqual(key_to_command("arrow_down"), COMMAND_DOWN)
        self.assertEqual(key_to_command("j"), COMMAND_DOWN)
        self.assertEqual(key_to_command("enter"), COMMAND_TOGGLE)
        self.assertEqual(key_to_command(" "), COMMAND_TOGGLE)
        self.assertEqual(key_to_command("q"), COMMAND_QUIT)

    def test_unbound(self) -> None:
        self.assertIsNone(key_to_command("x"))
        self.assertIsNone(key_to_command("arrow_left"))
        self.assertIsNone(key_to_command(None))


class TestReadKey(unittest.TestCase):
    """Test non-blocking key reads."""

    @patch("proxydash.input_keys.sys.stdin")
    def test_not_a_tty(self, mock_stdin: MagicMock) -> None:
        mock_stdin.isatty.return_value = False
        self.assertIsNone(read_key())

    @patch("proxydash.input_keys.select.select", return_value=([], [], []))
    @patch("proxydash.input_keys.sys.stdin")
    def test_no_input_pending(self, mock_stdin: MagicMock, _mock_select: MagicMock) -> None:
        mock_stdin.isatty.return_value = True
        self.assertIsNone(read_key())

    @patch("proxydash.input_keys.readchar.readkey", return_value=readchar.key.DOWN)
    @patch("proxydash.input_keys.sys.stdin")
    def test_reads_and_maps_key(self, mock_stdin: MagicMock, _mock_readkey: MagicMock) -> None:
        mock_stdin.isatty.return_value = True
        with patch("proxydash.input_keys.select.select", return_value=([mock_stdin], [], [])):
            self.assertEqual(read_key(), "arrow_down")


if __name__ == "__main__":
    unittest.main()
