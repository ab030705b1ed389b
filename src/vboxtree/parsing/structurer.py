#!/usr/bin/env python3
"""
VBOXTREE STRUCTURER - Snapshot Tree Reconstruction
--------------------------------------------------
Rebuilds the snapshot hierarchy from the flat map. VBoxManage never emits
parent pointers; the tree is encoded positionally in key suffixes:

    SnapshotName="base"          SnapshotUUID="..."           root, branch ""
    SnapshotName-1="patched"     SnapshotUUID-1="..."         1st child of root
    SnapshotName-1-1="tested"    SnapshotUUID-1-1="..."       1st child of -1
    SnapshotName-2="alt"         SnapshotUUID-2="..."         2nd child of root
    CurrentSnapshotUUID="..."

Children are numbered contiguously from 1. Enumeration stops at the first
gap, so with -1 and -3 present but -2 missing, -3 is never discovered.

The reconstruction is strict: a partially built tree with missing branches
is worse than no tree, so any violated precondition aborts the whole call.

Author: VBoxTree Team
Date: 2026-10-19
"""

import logging
from typing import Dict, List, Mapping, Optional
from uuid import UUID

from vboxtree.core.errors import DuplicateIdentifier, MalformedIdentifier, MissingData
from vboxtree.core.models import SnapshotNode, SnapshotTree, parse_uuid

logger = logging.getLogger("vboxtree.structurer")

NAME_KEY = "SnapshotName"
UUID_KEY = "SnapshotUUID"
CURRENT_KEY = "CurrentSnapshotUUID"


class SnapshotStructurer:
    """
    The Architect: walks branch paths as a work-list and assembles the
    SnapshotTree arena. Branch paths are a transient cursor only.
    """

    def _parse_uuid(self, value: str, key: str) -> UUID:
        parsed = parse_uuid(value)
        if parsed is None:
            raise MalformedIdentifier(f"Unable to parse UUID '{value}' for '{key}'")
        return parsed

    def _require(self, flat_map: Mapping[str, str], key: str) -> str:
        value = flat_map.get(key)
        if value is None:
            raise MissingData(f"Can't find expected field '{key}'")
        return value

    def _probe_children(self, flat_map: Mapping[str, str], branch: str) -> List[str]:
        """Returns child branch paths of `branch` in numeric order, stopping at the first gap."""
        children = []
        index = 1
        while f"{UUID_KEY}{branch}-{index}" in flat_map:
            children.append(f"{branch}-{index}")
            index += 1
        return children

    def reconstruct(self, flat_map: Mapping[str, str]) -> Optional[SnapshotTree]:
        """
        Returns None when the map holds no snapshots at all.

        Raises:
            MalformedIdentifier: a snapshot or current UUID does not parse.
            MissingData: a queued branch lacks its name/UUID, or no
                CurrentSnapshotUUID accompanies existing snapshots.
            DuplicateIdentifier: one UUID appears under two branch paths.
        """
        # --- PHASE 1: ROOT DETECTION ---
        if NAME_KEY not in flat_map or UUID_KEY not in flat_map:
            return None

        root_uuid = self._parse_uuid(flat_map[UUID_KEY], UUID_KEY)

        # --- PHASE 2: WORK-LIST EXPANSION ---
        # Last-in-first-out; sibling order in `children` is fixed by the probe,
        # so traversal order has no effect on the resulting tree.
        nodes: Dict[UUID, SnapshotNode] = {}
        pending = [""]

        while pending:
            branch = pending.pop()

            name = self._require(flat_map, f"{NAME_KEY}{branch}")
            uuid_key = f"{UUID_KEY}{branch}"
            node_uuid = self._parse_uuid(self._require(flat_map, uuid_key), uuid_key)

            if node_uuid in nodes:
                raise DuplicateIdentifier(
                    f"Snapshot UUID '{node_uuid}' appears more than once (again at '{uuid_key}')"
                )

            node = SnapshotNode(name=name, uuid=node_uuid)
            nodes[node_uuid] = node

            for child_branch in self._probe_children(flat_map, branch):
                child_key = f"{UUID_KEY}{child_branch}"
                node.children.append(self._parse_uuid(flat_map[child_key], child_key))
                pending.append(child_branch)

        # --- PHASE 3: CURRENT SNAPSHOT ---
        current_uuid = self._parse_uuid(self._require(flat_map, CURRENT_KEY), CURRENT_KEY)

        # Both identifiers are validated eagerly above; reaching this point
        # without them is a bug, not bad input.
        assert root_uuid in nodes, "root snapshot missing from reconstructed arena"

        if current_uuid not in nodes:
            raise MissingData(
                f"'{CURRENT_KEY}' refers to unknown snapshot '{current_uuid}'"
            )

        logger.debug(f"Reconstructed {len(nodes)} snapshot(s); root={root_uuid} current={current_uuid}")
        return SnapshotTree(nodes=nodes, root=root_uuid, current=current_uuid)


def build_snapshot_tree(flat_map: Mapping[str, str]) -> Optional[SnapshotTree]:
    """Module-level convenience wrapper around SnapshotStructurer.reconstruct()."""
    return SnapshotStructurer().reconstruct(flat_map)
