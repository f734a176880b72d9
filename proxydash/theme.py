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
Style table for ProxyDash.

Rendering code only ever names a semantic role. The glyph table maps glyph
roles to the text drawn for them and the style table maps style roles to ANSI
codes. Both are passed into the render functions rather than looked up here.
"""

import logging
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

ANSI_RESET = "\x1b[0m"

DEFAULT_GLYPHS: Dict[str, str] = {
    "focused_indicator": "> ",
    "unfocused_indicator": "  ",
    "expanded_indicator": "  ",
    "pointed_indicator": "->",
    "no_latency": "■ ",
    "low_latency": "■ ",
    "mid_latency": "■ ",
    "high_latency": "■ ",
    "not_proxy": "□ ",
    "no_latency_sign": "-",
    "border": "+-|",
    "focused_border": "#=#",
}

DEFAULT_STYLES: Dict[str, str] = {
    "text": "",
    "name": "\x1b[1;37m",  # Bold white
    "type": "\x1b[90m",  # Dark gray
    "count": "\x1b[32m",  # Green
    "current": "\x1b[1;34m",  # Bold blue
    "cursor": "\x1b[94m",  # Light blue
    "no_latency": "\x1b[90m",  # Dark gray
    "low_latency": "\x1b[32m",  # Green
    "mid_latency": "\x1b[33m",  # Yellow
    "high_latency": "\x1b[31m",  # Red
    "not_proxy": "\x1b[34m",  # Blue
    "focused_indicator": "\x1b[1;33m",  # Bold yellow
    "unfocused_indicator": "",
    "expanded_indicator": "",
    "pointed_indicator": "\x1b[1;33m",  # Bold yellow
    "border": "",
    "focused_border": "\x1b[1;36m",  # Bold cyan
    "status": "\x1b[37m",  # White
    "error": "\x1b[31m",  # Red
}


def build_glyphs(overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Return the default glyph table with config overrides applied.

    Unknown roles are ignored with a warning. Border glyphs need exactly three
    characters (corner, horizontal, vertical); invalid values keep the default.
    """
    glyphs = dict(DEFAULT_GLYPHS)
    for role, value in (overrides or {}).items():
        if role not in glyphs:
            logger.warning("Unknown glyph role '%s'; ignoring.", role)
            continue
        if role in ("border", "focused_border") and len(value) != 3:
            logger.warning("Glyph '%s' must be three characters (corner, horizontal, vertical); ignoring.", role)
            continue
        glyphs[role] = value
    return glyphs
