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
Snapshot polling for ProxyDash.

The worker fetches and converts snapshots on its own thread and hands fresh
trees to the frame loop through a queue. It never touches the live tree; the
frame loop owns it and does the merge.
"""

import logging
import queue
import threading
from typing import Any, Tuple

from proxydash.client import ControllerError
from proxydash.model import ProxyTree, SnapshotFormatError

logger = logging.getLogger(__name__)


def fetch_tree(client: Any) -> ProxyTree:
    """Fetch one snapshot and convert it into a fresh tree."""
    return ProxyTree.from_snapshot(client.get_proxies())


def poll_once(client: Any) -> Tuple[str, Any]:
    """
    Run one fetch-and-convert cycle.

    Returns:
        ``("tree", ProxyTree)`` on success, ``("error", message)`` on a
        controller or snapshot format failure.
    """
    try:
        return "tree", fetch_tree(client)
    except ControllerError as exc:
        logger.warning("Controller request failed: %s", exc)
        return "error", str(exc)
    except SnapshotFormatError as exc:
        logger.warning("Rejected malformed snapshot: %s", exc)
        return "error", f"Bad snapshot: {exc}"


def snapshot_worker(client: Any, result_queue: "queue.Queue[Tuple[str, Any]]", stop_event: threading.Event, interval: float):
    """
    Worker thread for periodic snapshot polling.

    Args:
        client: Object with a ``get_proxies()`` method
        result_queue: Queue for ``(kind, payload)`` results
        stop_event: Threading event to signal worker shutdown
        interval: Seconds to wait between polls
    """
    while not stop_event.is_set():
        try:
            result = poll_once(client)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception("Snapshot poll failed unexpectedly")
            result = ("error", f"Refresh failed: {exc}")
        result_queue.put(result)
        if stop_event.wait(interval):
            break
