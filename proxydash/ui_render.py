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
ProxyDash UI Rendering Module

This module turns a proxy tree into rows of styled spans and writes them to
the terminal. Layout functions are pure: they take the tree, the viewport
size and a glyph table and return rows of ``Span(text, role)``. Roles are
only mapped to ANSI codes in the formatting step at the end.
"""

import enum
import os
import sys
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from proxydash.model import ProxyGroup, ProxyItem, ProxyTree
from proxydash.theme import ANSI_RESET

PANEL_TITLE = "Proxies"
GROUP_LOOK_BEHIND = 2
MEMBER_LOOK_BEHIND = 4
KEY_HINTS = "up/down: move | enter: expand/collapse | q: quit"

# Global state for rendering
LAST_RENDER_LINES: Optional[List[str]] = None


class Span(NamedTuple):
    """A run of text drawn with one style role."""

    text: str
    role: str = "text"


Row = List[Span]


class FocusStatus(enum.Enum):
    NONE = "none"
    FOCUSED = "focused"
    EXPANDED = "expanded"


# ============================================================================
# Span Utilities
# ============================================================================


def row_width(row: Sequence[Span]) -> int:
    """Get the visible width of a row."""
    return sum(len(span.text) for span in row)


def row_text(row: Sequence[Span]) -> str:
    """Get the plain text of a row."""
    return "".join(span.text for span in row)


def fit_row(row: Sequence[Span], width: int) -> Row:
    """Truncate or pad a row to exactly ``width`` visible columns."""
    fitted: Row = []
    remaining = max(0, width)
    for span in row:
        if remaining <= 0:
            break
        text = span.text[:remaining]
        if text:
            fitted.append(Span(text, span.role))
            remaining -= len(text)
    if remaining > 0:
        fitted.append(Span(" " * remaining))
    return fitted


def colorize_text(text: str, role: str, styles: Dict[str, str], use_color: bool) -> str:
    """Apply the ANSI code for a style role to text."""
    if not use_color or not text:
        return text
    color = styles.get(role)
    if not color:
        return text
    return f"{color}{text}{ANSI_RESET}"


def format_row(row: Sequence[Span], width: int, styles: Dict[str, str], use_color: bool) -> str:
    """Format a row of spans as a terminal line of exactly ``width`` columns."""
    return "".join(colorize_text(span.text, span.role, styles, use_color) for span in fit_row(row, width))


def format_rows(
    rows: Sequence[Sequence[Span]],
    width: int,
    height: int,
    styles: Dict[str, str],
    use_color: bool,
) -> List[str]:
    """Format rows for the terminal, padded and cut to the viewport."""
    lines = [format_row(row, width, styles, use_color) for row in rows[:height]]
    while len(lines) < height:
        lines.append(" " * width)
    return lines


# ============================================================================
# Latency Styling
# ============================================================================


def latency_role(delay: int) -> str:
    """Map a delay in milliseconds to its latency style role."""
    if delay <= 0:
        return "no_latency"
    if delay <= 200:
        return "low_latency"
    if delay <= 400:
        return "mid_latency"
    return "high_latency"


def build_summary_glyph(item: ProxyItem, glyphs: Dict[str, str]) -> Span:
    """Build the one-glyph latency indicator for a member in a summary row."""
    if not item.proxy_type.is_normal:
        return Span(glyphs["not_proxy"], "not_proxy")
    if item.history is None:
        return Span(glyphs["no_latency"], "no_latency")
    role = latency_role(item.history.delay)
    return Span(glyphs[role], role)


def build_latency_cell(item: ProxyItem, glyphs: Dict[str, str]) -> Span:
    """Build the latency column of an expanded member row."""
    if item.history is not None:
        if item.history.delay > 0:
            return Span(str(item.history.delay), latency_role(item.history.delay))
        return Span(glyphs["no_latency_sign"], "no_latency")
    if not item.proxy_type.is_normal:
        return Span("")
    return Span(glyphs["no_latency_sign"], "no_latency")


# ============================================================================
# Group Layout
# ============================================================================


def _clamp(index: int, length: int) -> int:
    if length <= 0:
        return 0
    return min(max(index, 0), length - 1)


def compute_member_skip(cursor: int) -> int:
    """Number of members scrolled off above an expanded group's list."""
    return max(0, cursor - MEMBER_LOOK_BEHIND)


def compute_summary_chunk(width: int, indicator_width: int) -> int:
    """Glyphs per summary row; each glyph takes two columns."""
    return max(1, max(0, width - indicator_width - 2) // 2)


def build_group_header(group: ProxyGroup, status: FocusStatus, glyphs: Dict[str, str]) -> Row:
    """Build the ``<indicator><name> <type> <count>`` row of a group."""
    indicator_role = "focused_indicator" if status is FocusStatus.FOCUSED else "unfocused_indicator"
    count = len(group.members)
    if status is FocusStatus.EXPANDED:
        count_text = f"{_clamp(group.cursor, count) + 1}/{count}" if count else "0/0"
    else:
        count_text = str(count)
    return [
        Span(glyphs[indicator_role], indicator_role),
        Span(group.name, "name"),
        Span(" "),
        Span(str(group.proxy_type), "type"),
        Span(" "),
        Span(count_text, "count"),
    ]


def build_summary_rows(group: ProxyGroup, width: int, status: FocusStatus, glyphs: Dict[str, str]) -> List[Row]:
    """Wrap a group's member glyphs into rows that fit ``width``."""
    indicator_role = "focused_indicator" if status is FocusStatus.FOCUSED else "unfocused_indicator"
    indicator = Span(glyphs[indicator_role], indicator_role)
    summary = [build_summary_glyph(item, glyphs) for item in group.members]
    chunk = compute_summary_chunk(width, len(indicator.text))
    return [[indicator] + summary[start : start + chunk] for start in range(0, len(summary), chunk)]


def build_member_rows(group: ProxyGroup, glyphs: Dict[str, str]) -> List[Row]:
    """Build one row per member, starting a few members above the cursor."""
    count = len(group.members)
    cursor = _clamp(group.cursor, count)
    current = group.current if group.current is not None and 0 <= group.current < count else None
    skip = compute_member_skip(cursor)

    rows: List[Row] = []
    for index in range(skip, count):
        item = group.members[index]
        if index == cursor:
            prefix = Span(glyphs["pointed_indicator"], "pointed_indicator")
        else:
            prefix = Span(glyphs["expanded_indicator"], "expanded_indicator")
        if index == current:
            name_role = "current"
        elif index == cursor:
            name_role = "cursor"
        else:
            name_role = "text"
        rows.append(
            [
                prefix,
                Span(" "),
                Span(item.name, name_role),
                Span(" "),
                Span(str(item.proxy_type), "type"),
                Span(" "),
                build_latency_cell(item, glyphs),
            ]
        )
    return rows


def render_group_rows(group: ProxyGroup, width: int, status: FocusStatus, glyphs: Dict[str, str]) -> List[Row]:
    """Render a group as its header followed by either members or summary glyphs."""
    rows = [build_group_header(group, status, glyphs)]
    if status is FocusStatus.EXPANDED:
        rows.extend(build_member_rows(group, glyphs))
    else:
        rows.extend(build_summary_rows(group, width, status, glyphs))
    return rows


# ============================================================================
# Tree Layout
# ============================================================================


def compute_tree_skip(cursor: int, expanded: bool) -> int:
    """Number of groups scrolled off above the visible window."""
    if expanded:
        return max(0, cursor)
    return max(0, cursor - GROUP_LOOK_BEHIND)


def resolve_focus_status(index: int, cursor: int, expanded: bool) -> FocusStatus:
    if index != cursor:
        return FocusStatus.NONE
    return FocusStatus.EXPANDED if expanded else FocusStatus.FOCUSED


def render_tree_rows(tree: ProxyTree, width: int, height: int, glyphs: Dict[str, str]) -> List[Row]:
    """Render the visible groups of a tree, cut to ``height`` rows."""
    if height <= 0 or not tree.groups:
        return []
    cursor = _clamp(tree.cursor, len(tree.groups))
    skip = compute_tree_skip(cursor, tree.expanded)

    rows: List[Row] = []
    for index in range(skip, len(tree.groups)):
        status = resolve_focus_status(index, cursor, tree.expanded)
        rows.extend(render_group_rows(tree.groups[index], width, status, glyphs))
        if len(rows) >= height:
            break
    return rows[:height]


# ============================================================================
# Box/Panel Utilities
# ============================================================================


def resolve_boxed_dimensions(width: int, height: int, boxed: bool) -> Tuple[int, int, bool]:
    """Resolve dimensions for boxed content."""
    if not boxed or width < 2 or height < 3:
        return width, height, False
    return width - 2, height - 2, True


def box_rows(
    rows: Sequence[Sequence[Span]],
    width: int,
    height: int,
    title: str,
    focused: bool,
    glyphs: Dict[str, str],
) -> List[Row]:
    """Draw a titled box around rows."""
    inner_width, inner_height, can_box = resolve_boxed_dimensions(width, height, True)
    if not can_box:
        return [fit_row(row, width) for row in rows[:height]]
    role = "focused_border" if focused else "border"
    corner, horizontal, vertical = glyphs[role]
    title_text = f"{horizontal} {title} " if inner_width >= len(title) + 3 else ""
    top = corner + (title_text + horizontal * inner_width)[:inner_width] + corner
    boxed: List[Row] = [[Span(top, role)]]
    for row in list(rows[:inner_height]) + [[]] * max(0, inner_height - len(rows)):
        boxed.append([Span(vertical, role)] + fit_row(row, inner_width) + [Span(vertical, role)])
    boxed.append([Span(corner + horizontal * inner_width + corner, role)])
    return boxed


def render_proxy_panel(tree: ProxyTree, width: int, height: int, glyphs: Dict[str, str]) -> List[Row]:
    """Render the tree inside its titled border; the border is highlighted while expanded."""
    inner_width, inner_height, _ = resolve_boxed_dimensions(width, height, True)
    rows = render_tree_rows(tree, inner_width, inner_height, glyphs)
    return box_rows(rows, width, height, PANEL_TITLE, tree.expanded, glyphs)


def build_status_row(
    tree: ProxyTree,
    controller_url: str,
    updated_at: Optional[datetime],
    message: Optional[str] = None,
    is_error: bool = False,
) -> Row:
    """Build the bottom status row."""
    updated = updated_at.strftime("%H:%M:%S") if updated_at else "never"
    mode = "expanded" if tree.expanded else "collapsed"
    parts = [f"{controller_url}", f"Groups: {len(tree.groups)}", f"Mode: {mode}", f"Updated: {updated}"]
    row = [Span(" | ".join(parts), "status")]
    if message:
        row.append(Span(" | "))
        row.append(Span(message, "error" if is_error else "status"))
    else:
        row.append(Span(" | "))
        row.append(Span(KEY_HINTS, "status"))
    return row


def build_display_rows(
    tree: ProxyTree,
    width: int,
    height: int,
    glyphs: Dict[str, str],
    status_row: Row,
) -> List[Row]:
    """Compose the proxy panel and the status row into one frame."""
    if width <= 0 or height <= 0:
        return []
    if height < 2:
        return [status_row]
    return render_proxy_panel(tree, width, height - 1, glyphs) + [status_row]


# ============================================================================
# Terminal Utilities
# ============================================================================


def get_terminal_size(fallback: Tuple[int, int] = (80, 24)) -> os.terminal_size:
    """
    Get the terminal size by directly querying the terminal.

    Uses os.get_terminal_size() on stdout, stderr, then stdin so that the
    size follows terminal resizes instead of COLUMNS/LINES.
    """
    for stream in (sys.stdout, sys.stderr, sys.stdin):
        try:
            if stream.isatty():
                return os.get_terminal_size(stream.fileno())
        except (AttributeError, ValueError, OSError):
            continue
    return os.terminal_size(fallback)


def render_display(lines: List[str]) -> None:
    """Write a frame to the terminal, redrawing only lines that changed."""
    global LAST_RENDER_LINES
    if not lines:
        return

    if LAST_RENDER_LINES is None:
        sys.stdout.write("\x1b[2J\x1b[H")
        output_chunks = []
        for index, line in enumerate(lines):
            output_chunks.append(f"\x1b[{index + 1};1H\x1b[2K{line}")
        sys.stdout.write("".join(output_chunks))
        sys.stdout.flush()
        LAST_RENDER_LINES = lines
        return

    max_lines = max(len(LAST_RENDER_LINES), len(lines))
    output_chunks = []
    for index in range(max_lines):
        previous_line = LAST_RENDER_LINES[index] if index < len(LAST_RENDER_LINES) else None
        current_line = lines[index] if index < len(lines) else ""
        if previous_line == current_line and index < len(lines):
            continue
        output_chunks.append(f"\x1b[{index + 1};1H\x1b[2K{current_line}")

    if output_chunks:
        sys.stdout.write("".join(output_chunks))
        sys.stdout.flush()

    LAST_RENDER_LINES = lines


def prepare_terminal_for_exit() -> None:
    """Prepare the terminal for exit by clearing the screen area."""
    if not sys.stdout.isatty():
        return
    term_size = get_terminal_size(fallback=(80, 24))
    sys.stdout.write("\n" * term_size.lines)
    sys.stdout.flush()
