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
Startup settings for ProxyDash.

Settings come from ``~/.proxydash.conf``, written either as INI or as YAML.
Both formats carry the same two sections: ``default`` for dashboard settings
and ``glyphs`` for glyph role overrides. Each reader only extracts the raw
sections; typing and validation happen once in ``_normalize_sections``.

Priority order: CLI args > ~/.proxydash.conf > hardcoded defaults
"""

import configparser
import logging
import os
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.proxydash.conf")

SETTING_TYPES: Dict[str, type] = {
    "controller_url": str,
    "interval": float,
    "timeout": float,
    "color": bool,
    "log_level": str,
    "log_file": str,
}

_BOOL_WORDS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}

RawSections = Tuple[Mapping[str, Any], Mapping[str, Any]]


def _coerce_setting(key: str, raw_value: Any) -> Any:
    """Convert one ``default`` value to the type the dashboard expects."""
    expected = SETTING_TYPES[key]
    if isinstance(raw_value, expected):
        return raw_value
    if expected is bool:
        word = str(raw_value).strip().lower()
        if word not in _BOOL_WORDS:
            raise ValueError(f"Setting '{key}' must be a boolean (true/false, yes/no, on/off, 1/0), got {raw_value!r}")
        return _BOOL_WORDS[word]
    try:
        return expected(raw_value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Setting '{key}' must be a {expected.__name__}, got {raw_value!r}") from exc


def _normalize_sections(default: Mapping[str, Any], glyphs: Mapping[str, Any], path: str) -> Dict[str, Any]:
    """Type the ``default`` section and collect glyph overrides under ``glyphs``."""
    settings: Dict[str, Any] = {}
    for key, value in default.items():
        if key not in SETTING_TYPES:
            logger.warning("Ignoring unknown setting '%s' in '%s'.", key, path)
        elif value is not None:
            settings[key] = _coerce_setting(key, value)

    overrides = {str(role): str(text) for role, text in glyphs.items() if text is not None}
    if overrides:
        settings["glyphs"] = overrides
    return settings


def _read_ini_sections(path: str) -> RawSections:
    parser = configparser.ConfigParser(delimiters=("=", ":"), interpolation=None)
    try:
        if not parser.read(path, encoding="utf-8"):
            raise ValueError(f"Config file '{path}' could not be read.")
    except configparser.Error as exc:
        raise ValueError(f"Invalid config file '{path}': {exc}") from exc

    default = dict(parser.items("default")) if parser.has_section("default") else {}
    glyphs = {}
    if parser.has_section("glyphs"):
        # Quote a glyph value to keep its trailing space
        glyphs = {role: text.strip('"') for role, text in parser.items("glyphs")}
    return default, glyphs


def _read_yaml_sections(path: str) -> RawSections:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in config file '{path}': {exc}") from exc
    except OSError as exc:
        raise ValueError(f"Cannot read config file '{path}': {exc}") from exc

    if data is None:
        return {}, {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file '{path}' must hold a mapping of sections, got {type(data).__name__}.")

    sections = []
    for name in ("default", "glyphs"):
        section = data.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Section '{name}' in '{path}' must be a mapping.")
        sections.append(section)
    return sections[0], sections[1]


def load_ini_config(path: str) -> Dict[str, Any]:
    """
    Load an INI config file with ``[default]`` and ``[glyphs]`` sections.

    Raises:
        ValueError: If the file is unreadable, malformed, or has a badly typed setting.
    """
    return _normalize_sections(*_read_ini_sections(path), path)


def load_yaml_config(path: str) -> Dict[str, Any]:
    """Load a YAML config file with ``default:`` and ``glyphs:`` mappings."""
    return _normalize_sections(*_read_yaml_sections(path), path)


def config_format(path: str) -> str:
    """
    Guess the format of a config file: ``"ini"`` or ``"yaml"``.

    The first line that is neither blank nor a ``#`` comment decides: a
    ``[section]`` header means INI. Empty or unreadable files count as INI.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                stripped = line.strip()
                if stripped and not stripped.startswith("#"):
                    return "ini" if stripped.startswith("[") else "yaml"
    except OSError:
        pass
    return "ini"


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load startup settings, or an empty dict when there is no config file.

    Raises:
        ValueError: If the file exists but cannot be used.
    """
    path = path or DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        return {}

    file_format = config_format(path)
    logger.debug("Loading %s config from '%s'.", file_format, path)
    if file_format == "yaml":
        return load_yaml_config(path)
    return load_ini_config(path)
