# src/vboxtree/cli/formatter.py
from typing import List, Optional, Tuple
from uuid import UUID

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from vboxtree.core.models import NicInfo, SnapshotNode, SnapshotTree
from vboxtree.parsing.context import FlatMap


class TreeFormatter:
    """
    TreeFormatter: The visual heart of the CLI.
    Responsible for rendering snapshot trees, flat maps and machine tables.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _label(self, tree: SnapshotTree, node: SnapshotNode) -> str:
        label = f"[bold]{escape(node.name)}[/bold] [dim]{{{node.uuid}}}[/dim]"
        if tree.is_current(node):
            label += " [bold green](current)[/bold green]"
        return label

    def build_rich_tree(self, tree: SnapshotTree) -> Tree:
        """
        Converts the arena into a rich Tree using the depth-first walk.
        branches[d] always holds the most recent node seen at depth d.
        """
        root = tree.get_root()
        rendered = Tree(self._label(tree, root))
        branches = [rendered]

        for depth, node in tree.walk():
            if depth == 0:
                continue
            del branches[depth:]
            branches.append(branches[depth - 1].add(self._label(tree, node)))

        return rendered

    def display_tree(self, tree: Optional[SnapshotTree], vm_label: str = ""):
        if tree is None or tree.get_root() is None:
            self.console.print(f"[dim]ℹ No snapshots found for {escape(vm_label) or 'this VM'}.[/dim]")
            return
        self.console.print(self.build_rich_tree(tree))

    def tree_lines(self, tree: SnapshotTree, indent: int = 2) -> List[str]:
        """Plain-text rendering: one line per node, indented by depth."""
        lines = []
        for depth, node in tree.walk():
            marker = " (current)" if tree.is_current(node) else ""
            lines.append(f"{' ' * (indent * depth)}{node.name} {{{node.uuid}}}{marker}")
        return lines

    def display_tree_plain(self, tree: Optional[SnapshotTree], indent: int = 2):
        if tree is None:
            return
        for line in self.tree_lines(tree, indent):
            self.console.print(line, markup=False, highlight=False)

    def display_flat_map(self, flat_map: FlatMap, title: str = "Machine-readable fields"):
        table = Table(title=title, show_header=True, header_style="bold magenta")
        table.add_column("Key", style="cyan", justify="right")
        table.add_column("Value")

        for key in sorted(flat_map):
            table.add_row(escape(key), escape(flat_map[key]))

        self.console.print(table)
        if flat_map.unparsed_count:
            self.console.print(f"[dim]ℹ {flat_map.unparsed_count} line(s) could not be parsed.[/dim]")

    def display_vm_list(self, vms: List[Tuple[str, UUID]]):
        table = Table(title="Registered VMs", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("UUID", style="dim")
        for name, vm_uuid in vms:
            table.add_row(escape(name), str(vm_uuid))
        self.console.print(table)

    def display_nics(self, nics: List[NicInfo]):
        table = Table(title="Network Adapters", show_header=True, header_style="bold magenta")
        table.add_column("Idx", justify="right")
        table.add_column("MAC", style="cyan")
        table.add_column("Type")
        table.add_column("Attachment")
        for nic in nics:
            table.add_row(str(nic.index), nic.mac, nic.nic_type.value, escape(nic.attachment or "-"))
        self.console.print(table)

    def display_shares(self, shares):
        table = Table(title="Shared Folders", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Host Path")
        for name, path in shares:
            table.add_row(escape(name), escape(str(path)))
        self.console.print(table)

    def display_yaml(self, text: str):
        self.console.print(Syntax(text.rstrip(), "yaml", theme="monokai", background_color="default"))
