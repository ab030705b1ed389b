#!/usr/bin/env python3
"""
VBOXTREE EXPORTER - YAML Rendering
----------------------------------
Converts reconstructed structures (snapshot tree, flat map, machine info)
into YAML documents via ruamel.yaml round-trip maps, so the current snapshot
can carry an inline marker comment.

Author: VBoxTree Team
Date: 2026-10-19
"""

import io
from typing import Any, Optional

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq

from vboxtree.core.models import SnapshotNode, SnapshotTree, VmInfo
from vboxtree.parsing.context import FlatMap


class SnapshotExporter:
    """
    The Reconstructor: turns in-memory structures back into text.
    """

    def __init__(self):
        self.yaml = YAML(typ='rt')
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.width = 4096

    def _dump(self, data: Any) -> str:
        stream = io.StringIO()
        self.yaml.dump(data, stream)
        return stream.getvalue()

    def _node_map(self, tree: SnapshotTree, node: SnapshotNode) -> CommentedMap:
        entry = CommentedMap()
        entry["name"] = node.name
        entry["uuid"] = str(node.uuid)
        if tree.is_current(node):
            entry.yaml_add_eol_comment("current", "name")

        children = CommentedSeq()
        for child_id in node.children:
            child = tree.get_by_id(child_id)
            if child is not None:
                children.append(self._node_map(tree, child))
        if children:
            entry["children"] = children
        return entry

    def tree_to_map(self, tree: Optional[SnapshotTree]) -> CommentedMap:
        document = CommentedMap()
        if tree is None or tree.get_root() is None:
            document["snapshots"] = None
            return document

        document["current"] = str(tree.current)
        document["snapshots"] = self._node_map(tree, tree.get_root())
        return document

    def export_tree(self, tree: Optional[SnapshotTree]) -> str:
        return self._dump(self.tree_to_map(tree))

    def export_flat_map(self, flat_map: FlatMap) -> str:
        document = CommentedMap()
        for key in sorted(flat_map):
            document[key] = flat_map[key]
        return self._dump(document)

    def export_vm_info(self, info: VmInfo) -> str:
        document = CommentedMap()
        document["state"] = info.state.value

        shares = CommentedSeq()
        for name, path in info.shares:
            shares.append(CommentedMap([("name", name), ("path", str(path))]))
        document["shares"] = shares

        nics = CommentedSeq()
        for nic in info.nics:
            entry = CommentedMap([("index", nic.index), ("type", nic.nic_type.value), ("mac", nic.mac)])
            if nic.attachment is not None:
                entry["attachment"] = nic.attachment
            nics.append(entry)
        document["nics"] = nics

        tree_map = self.tree_to_map(info.snapshots)
        for key, value in tree_map.items():
            document[key] = value
        return self._dump(document)
