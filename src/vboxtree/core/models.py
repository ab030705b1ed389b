#!/usr/bin/env python3
"""
VBOXTREE CORE MODELS
--------------------
Defines the fundamental data structures used across the VBoxTree engine:
tagged identifiers, the snapshot tree arena and the machine-info records
assembled from VBoxManage's machine-readable output.

Branch paths ("-1-2") never appear here. They only exist as a traversal
cursor inside the structurer; the final tree is an arena of nodes keyed by
UUID with children stored as UUID back-references.

Author: VBoxTree Team
Date: 2026-10-19
"""

import re
from uuid import UUID
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from vboxtree.core.errors import Ambiguous, NotFound

# Canonical 8-4-4-4-12 form only. UUID() alone would also accept braces,
# urn: prefixes and bare hex, which turns far more names into identifiers.
_UUID_PATTERN = re.compile(
    r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$'
)


def parse_uuid(text: str) -> Optional[UUID]:
    """Returns the UUID for canonical textual input, otherwise None."""
    if text is None or not _UUID_PATTERN.match(text):
        return None
    return UUID(text)


class IdKind(Enum):
    NAME = "name"
    UUID = "uuid"


@dataclass(frozen=True)
class _TaggedId:
    """
    A name-or-UUID identifier.

    parse() is a heuristic: text in canonical UUID form is always tagged as a
    UUID, so a snapshot or VM literally named like a UUID cannot be addressed by
    name. This ambiguity is accepted, not solved.
    """
    kind: IdKind
    value: Union[str, UUID]

    @classmethod
    def parse(cls, text: str) -> "_TaggedId":
        parsed = parse_uuid(text)
        if parsed is not None:
            return cls(IdKind.UUID, parsed)
        return cls(IdKind.NAME, text)

    @classmethod
    def from_name(cls, name: str) -> "_TaggedId":
        return cls(IdKind.NAME, name)

    @classmethod
    def from_uuid(cls, value: UUID) -> "_TaggedId":
        return cls(IdKind.UUID, value)

    @property
    def is_uuid(self) -> bool:
        return self.kind is IdKind.UUID

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SnapshotId(_TaggedId):
    """Addresses a snapshot either by human-readable name or by UUID."""


@dataclass(frozen=True)
class VmId(_TaggedId):
    """
    Addresses a virtual machine. UUIDs render in the braced form VBoxManage
    accepts on its command line.
    """

    def __str__(self) -> str:
        if self.is_uuid:
            return "{" + str(self.value) + "}"
        return str(self.value)

    def matches(self, name: str, vm_uuid: UUID) -> bool:
        """True if a `list vms` entry is the machine this id addresses."""
        if self.is_uuid:
            return vm_uuid == self.value
        return name == self.value


@dataclass(eq=False)
class SnapshotNode:
    """
    A single snapshot. Identity is the UUID; names may repeat across nodes.
    """
    name: str
    uuid: UUID
    description: List[str] = field(default_factory=list)  # Multi-line descriptions are not decoded
    children: List[UUID] = field(default_factory=list)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SnapshotNode):
            return NotImplemented
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass
class SnapshotTree:
    """
    The reconstructed snapshot hierarchy of one virtual machine plus the
    read-only query facade over it.

    Built fresh per call by the structurer and never mutated afterwards.
    """
    nodes: Dict[UUID, SnapshotNode]
    root: UUID
    current: UUID

    def __len__(self) -> int:
        return len(self.nodes)

    def get_root(self) -> Optional[SnapshotNode]:
        return self.nodes.get(self.root)

    def get_current(self) -> Optional[SnapshotNode]:
        return self.nodes.get(self.current)

    def get_by_id(self, snapshot_uuid: UUID) -> Optional[SnapshotNode]:
        return self.nodes.get(snapshot_uuid)

    def get_by_name(self, name: str) -> List[SnapshotNode]:
        # Trees hold tens of nodes at most; no name index is kept.
        return [node for node in self.nodes.values() if node.name == name]

    def get_unique_by_name(self, name: str) -> SnapshotNode:
        """
        Resolves a name that must identify exactly one snapshot.

        Raises:
            NotFound: no snapshot carries this name.
            Ambiguous: two or more snapshots carry this name.
        """
        matches = self.get_by_name(name)
        if not matches:
            raise NotFound(f"The VM has no snapshot named '{name}'")
        if len(matches) > 1:
            raise Ambiguous(f"The VM has multiple snapshots named '{name}'")
        return matches[0]

    def get(self, snapshot_id: SnapshotId) -> List[SnapshotNode]:
        """Lookup by either kind of identifier; always returns a list."""
        if not isinstance(snapshot_id, SnapshotId):
            raise TypeError(f"Expected a SnapshotId, got {type(snapshot_id).__name__}")
        if snapshot_id.is_uuid:
            node = self.get_by_id(snapshot_id.value)
            return [node] if node is not None else []
        return self.get_by_name(snapshot_id.value)

    def names(self) -> List[str]:
        return [node.name for node in self.nodes.values()]

    def is_current(self, node: SnapshotNode) -> bool:
        return node.uuid == self.current

    def walk(self) -> Iterator[Tuple[int, SnapshotNode]]:
        """
        Depth-first pre-order traversal from the root, yielding (depth, node).
        Children missing from the arena are skipped rather than raised on.
        """
        root = self.get_root()
        if root is None:
            return

        stack = [(0, root)]
        while stack:
            depth, node = stack.pop()
            yield depth, node

            # Reversed so the first child is popped first
            for child_id in reversed(node.children):
                child = self.nodes.get(child_id)
                if child is not None:
                    stack.append((depth + 1, child))


class VmState(Enum):
    """VirtualBox machine states as reported in the VMState field."""
    UNKNOWN = "unknown"
    POWER_OFF = "poweroff"
    STARTING = "starting"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPING = "stopping"
    SAVED = "saved"
    ABORTED = "aborted"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "VmState":
        for state in cls:
            if state.value == value:
                return state
        return cls.UNKNOWN


class NicType(Enum):
    BRIDGED = "bridged"
    INTNET = "intnet"
    HOSTONLY = "hostonly"
    NAT = "nat"


@dataclass
class NicInfo:
    """
    One configured network adapter.

    attachment holds the bridged host adapter, the internal network name or
    the host-only interface; NAT adapters have no attachment.
    """
    index: int                        # Adapter slot, 1..8
    nic_type: NicType
    mac: str                          # Normalized aa:bb:cc:dd:ee:ff
    attachment: Optional[str] = None


@dataclass
class VmInfo:
    """Structured view over a showvminfo flat map."""
    state: VmState = VmState.UNKNOWN
    shares: List[Tuple[str, Path]] = field(default_factory=list)
    snapshots: Optional[SnapshotTree] = None
    nics: List[NicInfo] = field(default_factory=list)

    @property
    def shares_map(self) -> Dict[str, Path]:
        return dict(self.shares)
