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
# Review for correctness and security.

"""
Pytest configuration helpers for ProxyDash tests.

Installs ``logging.captured_logs`` so unittest-style tests can assert on
warnings from the poller, config loader and glyph table.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import Iterator, List

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import proxydash.ui_render  # noqa: E402


class RecordListHandler(logging.Handler):
    """Logging handler that keeps every record it receives."""

    def __init__(self, level: int) -> None:
        super().__init__(level)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@contextmanager
def captured_logs(logger_name: str, level: int = logging.WARNING) -> Iterator[List[logging.LogRecord]]:
    """Capture records from one proxydash logger during the context."""
    logger = logging.getLogger(logger_name)
    handler = RecordListHandler(level)
    saved = (logger.level, logger.propagate)
    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)
        logger.setLevel(saved[0])
        logger.propagate = saved[1]


logging.captured_logs = captured_logs


@pytest.fixture(autouse=True)
def reset_render_cache() -> Iterator[None]:
    """Start every test with no previously rendered frame."""
    proxydash.ui_render.LAST_RENDER_LINES = None
    yield
    proxydash.ui_render.LAST_RENDER_LINES = None
