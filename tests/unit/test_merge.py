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
Unit tests for ProxyTree.merge - folding fresh snapshots into the live tree.
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from proxydash.model import ProxyTree  # noqa: E402


def build_tree(groups, delays=None):
    """
    Build a tree from ``{group_name: [member, ...]}`` with leaf members.

    ``delays`` optionally maps member names to their latest delay.
    """
    delays = delays or {}
    snapshot = {}
    for name, members in groups.items():
        snapshot[name] = {"type": "Selector", "all": list(members)}
        for member in members:
            history = [{"delay": delays[member]}] if member in delays else []
            snapshot[member] = {"type": "Vmess", "history": history, "udp": False}
    return ProxyTree.from_snapshot(snapshot)


class TestMergeNoOp(unittest.TestCase):
    """Identical snapshots leave the live tree alone."""

    def test_merge_identical_content_is_noop(self):
        live = build_tree({"A": ["a1", "a2", "a3"], "B": ["b1", "b2"]})
        live.cursor = 1
        live.expanded = True
        live.groups[0].cursor = 2
        live.groups[1].cursor = 1
        groups_before = list(live.groups)

        changed = live.merge(build_tree({"A": ["a1", "a2", "a3"], "B": ["b1", "b2"]}))

        self.assertFalse(changed)
        self.assertEqual(live.cursor, 1)
        self.assertTrue(live.expanded)
        self.assertEqual([g.cursor for g in live.groups], [2, 1])
        for before, after in zip(groups_before, live.groups):
            self.assertIs(before, after)

    def test_merge_into_itself(self):
        live = build_tree({"A": ["a1", "a2"]})
        live.groups[0].cursor = 1
        self.assertFalse(live.merge(live))
        self.assertEqual(live.groups[0].cursor, 1)

    def test_unchanged_group_object_is_kept(self):
        live = build_tree({"A": ["a1"], "B": ["b1"]})
        original_a = live.groups[0]
        changed = live.merge(build_tree({"A": ["a1"], "B": ["b1", "b2"]}))
        self.assertTrue(changed)
        self.assertIs(live.groups[0], original_a)
        self.assertEqual(len(live.groups[1].members), 2)


class TestMergeCursor(unittest.TestCase):
    """Changed groups take new content but keep the operator's cursor."""

    def test_cursor_preserved_when_member_added(self):
        live = build_tree({"A": ["a1", "a2", "a3"]})
        live.groups[0].cursor = 2

        live.merge(build_tree({"A": ["a1", "a2", "a3", "a4"]}))

        self.assertEqual(len(live.groups[0].members), 4)
        self.assertEqual(live.groups[0].cursor, 2)

    def test_cursor_preserved_when_latency_changes(self):
        live = build_tree({"A": ["a1", "a2"]}, delays={"a1": 100})
        live.groups[0].cursor = 1

        self.assertTrue(live.merge(build_tree({"A": ["a1", "a2"]}, delays={"a1": 300})))

        self.assertEqual(live.groups[0].members[0].history.delay, 300)
        self.assertEqual(live.groups[0].cursor, 1)

    def test_cursor_clamped_when_group_shrinks(self):
        live = build_tree({"A": ["a1", "a2", "a3", "a4", "a5"]})
        live.groups[0].cursor = 4

        live.merge(build_tree({"A": ["a1", "a2"]}))

        self.assertEqual(live.groups[0].cursor, 1)

    def test_incoming_cursor_is_ignored(self):
        live = build_tree({"A": ["a1", "a2", "a3"]})
        live.groups[0].cursor = 0
        incoming = build_tree({"A": ["a1", "a2", "a3", "a4"]})
        incoming.groups[0].cursor = 3

        live.merge(incoming)

        self.assertEqual(live.groups[0].cursor, 0)

    def test_tree_cursor_and_mode_untouched(self):
        live = build_tree({"A": ["a1"], "B": ["b1"]})
        live.cursor = 1
        live.expanded = True

        live.merge(build_tree({"A": ["a1", "a2"], "B": ["b1"], "C": ["c1"]}))

        self.assertEqual(live.cursor, 1)
        self.assertTrue(live.expanded)

    def test_active_member_change_is_applied(self):
        live = build_tree({"A": ["a1", "a2"]})
        incoming_snapshot = {
            "A": {"type": "Selector", "all": ["a1", "a2"], "now": "a2"},
            "a1": {"type": "Vmess"},
            "a2": {"type": "Vmess"},
        }
        live.merge(ProxyTree.from_snapshot(incoming_snapshot))
        self.assertEqual(live.groups[0].current, 1)
        self.assertEqual(live.groups[0].cursor, 0)


class TestMergeGroupSet(unittest.TestCase):
    """New groups are appended, missing groups are retained."""

    def test_new_group_appended(self):
        live = build_tree({"A": ["a1"]})
        self.assertTrue(live.merge(build_tree({"A": ["a1"], "B": ["b1"]})))
        self.assertEqual([g.name for g in live.groups], ["A", "B"])

    def test_missing_group_retained(self):
        live = build_tree({"A": ["a1"], "C": ["c1"]})
        live.merge(build_tree({"A": ["a1", "a2"]}))
        self.assertEqual([g.name for g in live.groups], ["A", "C"])
        self.assertEqual(len(live.groups[1].members), 1)

    def test_new_groups_not_resorted(self):
        live = build_tree({"M": ["m1"]})
        live.merge(build_tree({"A": ["a1"], "M": ["m1"], "Z": ["z1"]}))
        self.assertEqual([g.name for g in live.groups], ["M", "A", "Z"])

    def test_merge_into_empty_tree(self):
        live = ProxyTree()
        live.merge(build_tree({"B": ["b1"], "A": ["a1"]}))
        self.assertEqual([g.name for g in live.groups], ["A", "B"])
        self.assertEqual(live.cursor, 0)

    def test_new_group_keeps_its_initial_cursor(self):
        live = build_tree({"A": ["a1"]})
        snapshot = {
            "A": {"type": "Selector", "all": ["a1"]},
            "B": {"type": "Selector", "all": ["b1", "b2"], "now": "b2"},
            "a1": {"type": "Vmess"},
            "b1": {"type": "Vmess"},
            "b2": {"type": "Vmess"},
        }
        live.merge(ProxyTree.from_snapshot(snapshot))
        self.assertEqual(live.groups[1].cursor, 1)


if __name__ == "__main__":
    unittest.main()
