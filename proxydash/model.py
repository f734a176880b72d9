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
Proxy tree data model for ProxyDash.

This module contains the proxy group tree shown by the dashboard, the
conversion from a raw controller snapshot into that tree, and the merge that
folds a fresh snapshot into the live tree while keeping navigation state.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class SnapshotFormatError(ValueError):
    """Raised when a controller snapshot is malformed or has broken cross references."""


class ProxyType(enum.Enum):
    """Proxy role as reported by the controller's ``type`` tag."""

    SELECTOR = "Selector"
    URL_TEST = "URLTest"
    FALLBACK = "Fallback"
    LOAD_BALANCE = "LoadBalance"
    RELAY = "Relay"
    DIRECT = "Direct"
    REJECT = "Reject"
    SHADOWSOCKS = "Shadowsocks"
    SHADOWSOCKS_R = "ShadowsocksR"
    SNELL = "Snell"
    SOCKS5 = "Socks5"
    HTTP = "Http"
    VMESS = "Vmess"
    VLESS = "Vless"
    TROJAN = "Trojan"
    HYSTERIA = "Hysteria"
    HYSTERIA2 = "Hysteria2"
    WIREGUARD = "WireGuard"
    TUIC = "Tuic"
    COMPATIBLE = "Compatible"
    PASS = "Pass"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, tag: str) -> "ProxyType":
        """Parse a controller type tag; unrecognized tags map to UNKNOWN."""
        try:
            return cls(tag)
        except ValueError:
            logger.debug("Unknown proxy type tag %r; treating as a leaf proxy.", tag)
            return cls.UNKNOWN

    @property
    def is_group(self) -> bool:
        return self in _GROUP_TYPES

    @property
    def is_normal(self) -> bool:
        """True for leaf connection targets, where latency is meaningful."""
        return self not in _GROUP_TYPES

    def __str__(self) -> str:
        return self.value


_GROUP_TYPES = frozenset(
    (
        ProxyType.SELECTOR,
        ProxyType.URL_TEST,
        ProxyType.FALLBACK,
        ProxyType.LOAD_BALANCE,
        ProxyType.RELAY,
    )
)


@dataclass(frozen=True)
class History:
    """Latest latency sample of a proxy, in milliseconds."""

    delay: int
    time: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class ProxyItem:
    """One member proxy of a group. Never mutated after construction."""

    name: str
    proxy_type: ProxyType
    history: Optional[History] = None
    udp: bool = False

    @classmethod
    def from_record(cls, name: str, record: Mapping[str, Any]) -> "ProxyItem":
        """
        Build an item from a controller proxy record.

        The controller lists history oldest first; only the newest entry is kept.
        """
        if not isinstance(record, Mapping):
            raise SnapshotFormatError(f"Proxy '{name}' is not a record: {record!r}")
        type_tag = record.get("type")
        if not isinstance(type_tag, str):
            raise SnapshotFormatError(f"Proxy '{name}' has no type tag.")
        history = None
        samples = record.get("history") or []
        if not isinstance(samples, list):
            raise SnapshotFormatError(f"Proxy '{name}' has a non-list history field.")
        if samples:
            latest = samples[-1]
            try:
                history = History(delay=max(0, int(latest.get("delay", 0))), time=latest.get("time"))
            except (AttributeError, TypeError, ValueError) as exc:
                raise SnapshotFormatError(f"Proxy '{name}' has a malformed history entry: {latest!r}") from exc
        return cls(
            name=name,
            proxy_type=ProxyType.parse(type_tag),
            history=history,
            udp=bool(record.get("udp", False)),
        )


def _clamp_index(index: int, length: int) -> int:
    """Clamp an index into ``[0, length - 1]``, or 0 for an empty sequence."""
    if length <= 0:
        return 0
    return min(max(index, 0), length - 1)


@dataclass
class ProxyGroup:
    """
    A named collection of member proxies plus its navigation state.

    ``current`` is the controller's active member; ``cursor`` is where the
    operator is pointing. Equality ignores ``cursor`` since it is UI-local.
    """

    name: str
    proxy_type: ProxyType
    members: List[ProxyItem] = field(default_factory=list)
    current: Optional[int] = None
    cursor: int = field(default=0, compare=False)

    def content_key(self) -> Tuple[Any, ...]:
        """Structural key over everything except the cursor."""
        return (self.name, self.proxy_type, tuple(self.members), self.current)

    def content_hash(self) -> int:
        return hash(self.content_key())

    def clamp_cursor(self) -> None:
        self.cursor = _clamp_index(self.cursor, len(self.members))

    def move_cursor(self, delta: int) -> None:
        self.cursor = _clamp_index(self.cursor + delta, len(self.members))


def _groups_key(groups: List[ProxyGroup]) -> Tuple[Tuple[Any, ...], ...]:
    return tuple(group.content_key() for group in groups)


@dataclass
class ProxyTree:
    """
    All proxy groups plus the top-level navigation state.

    In collapsed mode every group renders as a summary; in expanded mode the
    group under ``cursor`` lists its members.
    """

    groups: List[ProxyGroup] = field(default_factory=list)
    cursor: int = 0
    expanded: bool = False

    @classmethod
    def from_snapshot(cls, proxies: Mapping[str, Mapping[str, Any]]) -> "ProxyTree":
        """
        Convert a controller ``name -> record`` mapping into a fresh tree.

        Every record carrying an ``all`` list is a group. Each member name must
        resolve in ``proxies`` and ``now``, when given, must name a member;
        otherwise the whole snapshot is rejected.

        Raises:
            SnapshotFormatError: On a malformed record, or a dangling member or
                active-member reference.
        """
        groups: List[ProxyGroup] = []
        for name, record in proxies.items():
            if not isinstance(record, Mapping):
                raise SnapshotFormatError(f"Proxy '{name}' is not a record: {record!r}")
            if "all" not in record:
                continue
            all_names = record["all"]
            if not isinstance(all_names, list):
                raise SnapshotFormatError(f"Group '{name}' has a non-list member field.")

            members: List[ProxyItem] = []
            for member_name in all_names:
                member_record = proxies.get(member_name) if isinstance(member_name, str) else None
                if member_record is None:
                    raise SnapshotFormatError(f"Group '{name}' references unknown proxy '{member_name}'.")
                members.append(ProxyItem.from_record(member_name, member_record))

            current = None
            now = record.get("now")
            if now:
                positions = [index for index, item in enumerate(members) if item.name == now]
                if not positions:
                    raise SnapshotFormatError(f"Group '{name}' reports active proxy '{now}' which is not a member.")
                current = positions[0]

            type_tag = record.get("type")
            if not isinstance(type_tag, str):
                raise SnapshotFormatError(f"Group '{name}' has no type tag.")
            groups.append(
                ProxyGroup(
                    name=name,
                    proxy_type=ProxyType.parse(type_tag),
                    members=members,
                    current=current,
                    cursor=current if current is not None else 0,
                )
            )

        groups.sort(key=lambda group: group.name)
        return cls(groups=groups)

    @property
    def focused_group(self) -> Optional[ProxyGroup]:
        if not self.groups:
            return None
        return self.groups[_clamp_index(self.cursor, len(self.groups))]

    def toggle(self) -> None:
        self.expanded = not self.expanded

    def move_cursor(self, delta: int) -> None:
        """Move within the expanded group, or between groups when collapsed."""
        if self.expanded:
            group = self.focused_group
            if group is not None:
                group.move_cursor(delta)
            return
        self.cursor = _clamp_index(self.cursor + delta, len(self.groups))

    def merge(self, other: "ProxyTree") -> bool:
        """
        Fold a freshly converted tree into this one in place.

        Unchanged groups are left alone, changed groups take the new content but
        keep their cursor, new groups are appended, and groups missing from
        ``other`` are kept. The group order is never re-sorted, so a merge never
        moves a group out from under the tree cursor.

        Returns:
            True if any group changed or was added.
        """
        if _groups_key(self.groups) == _groups_key(other.groups):
            return False

        incoming: Dict[str, ProxyGroup] = {group.name: group for group in other.groups}
        changed = False
        for index, group in enumerate(self.groups):
            new_group = incoming.pop(group.name, None)
            if new_group is None:
                continue
            if group.content_hash() == new_group.content_hash() and group == new_group:
                continue
            new_group.cursor = group.cursor
            new_group.clamp_cursor()
            self.groups[index] = new_group
            changed = True

        for name, new_group in incoming.items():
            logger.debug("Adding proxy group '%s'.", name)
            self.groups.append(new_group)
            changed = True

        self.cursor = _clamp_index(self.cursor, len(self.groups))
        return changed
