#!/usr/bin/env python3
"""
VBOXTREE CLI - Snapshot & Machine Inspector
-------------------------------------------
Primary interface. Every command either runs VBoxManage live or, with
--input, parses previously captured --machinereadable output.

Author: VBoxTree Team
Date: 2026-10-19
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from vboxtree.cli.formatter import TreeFormatter
from vboxtree.core.config import VBoxTreeConfig, load_config
from vboxtree.core.engine import VBoxEngine, load_flat_map
from vboxtree.core.errors import VBoxTreeError
from vboxtree.core.models import VmId
from vboxtree.parsing.context import FlatMap
from vboxtree.parsing.exporter import SnapshotExporter

VERSION = "0.1.0"

# Global console for consistent styling across the application
console = Console()


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number of seconds, got {number}")
    return number


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


class VBoxTreeCLI:
    """
    CLI wrapper that translates user commands into Engine actions.
    """

    def __init__(self, console: Console = console):
        """Initializes the CLI and sets up the argument parser."""
        self.console = console
        self.formatter = TreeFormatter(console)
        self.exporter = SnapshotExporter()
        self.parser = argparse.ArgumentParser(
            prog="vboxtree",
            description="VBoxTree - VirtualBox snapshot tree & machine info inspector",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self._setup_args()

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("-v", "--version", action="version", version=f"vboxtree v{VERSION}")
        self.parser.add_argument("--config", type=Path, help="Path to a vboxtree.toml file")
        self.parser.add_argument("--log-level", help="Override the configured log level")
        self.parser.add_argument("--timeout", type=_positive_int, help="Seconds allowed per VBoxManage call")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        list_parser = subparsers.add_parser("listvms", help="List registered virtual machines")
        list_parser.add_argument("--input", type=Path, help="Parse captured `list vms` output")

        have_parser = subparsers.add_parser("havevm", help="Check whether a VM exists")
        have_parser.add_argument("vm", help="VM name or UUID")
        have_parser.add_argument("--input", type=Path, help="Parse captured `list vms` output")

        for name, help_text in [
            ("vminfo", "Show every showvminfo field"),
            ("snapshots", "Show the raw snapshot fields"),
            ("snaptree", "Render the snapshot tree"),
            ("nics", "List configured network adapters"),
            ("shares", "List shared folders"),
        ]:
            sub = subparsers.add_parser(name, help=help_text)
            sub.add_argument("vm", help="VM name or UUID")
            sub.add_argument("--input", type=Path, help="Parse captured --machinereadable output")
            if name in ("vminfo", "snaptree"):
                sub.add_argument("--yaml", action="store_true", help="Emit YAML instead of a table/tree")
            if name == "snaptree":
                sub.add_argument("--plain", action="store_true", help="Plain indented text output")

    def print_header(self, subtitle: str):
        """Renders the splash header."""
        self.console.print(Panel.fit(
            f"[bold cyan]VBoxTree v{VERSION}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _load_config(self, args: argparse.Namespace) -> VBoxTreeConfig:
        config = load_config(args.config)
        if args.log_level:
            config.log_level = args.log_level
        if args.timeout is not None:
            config.timeout = args.timeout
        return config

    def _info_map(self, engine: VBoxEngine, args: argparse.Namespace) -> FlatMap:
        if args.input:
            return load_flat_map(args.input)
        return engine.vm_info_map(VmId.parse(args.vm))

    def _list_vms(self, engine: VBoxEngine, args: argparse.Namespace):
        if args.input:
            return engine.scanner.parse_vm_list(args.input.read_bytes())
        return engine.list_vms()

    def _dispatch(self, args: argparse.Namespace, engine: VBoxEngine, config: VBoxTreeConfig) -> int:
        if args.command == "listvms":
            self.formatter.display_vm_list(self._list_vms(engine, args))
            return 0

        if args.command == "havevm":
            vm = VmId.parse(args.vm)
            if args.input:
                found = any(vm.matches(name, vm_uuid) for name, vm_uuid in self._list_vms(engine, args))
            else:
                found = engine.have_vm(vm)
            verdict = "exists" if found else "does not exist"
            self.console.print(f"The VM '{escape(args.vm)}' {verdict}")
            return 0 if found else 1

        if args.command == "snapshots":
            flat_map = load_flat_map(args.input) if args.input else engine.snapshot_map(VmId.parse(args.vm))
            self.formatter.display_flat_map(flat_map, title=f"Snapshot fields: {args.vm}")
            return 0

        flat_map = self._info_map(engine, args)

        if args.command == "vminfo":
            if args.yaml:
                self.formatter.display_yaml(self.exporter.export_flat_map(flat_map))
            else:
                self.formatter.display_flat_map(flat_map, title=f"VM info: {args.vm}")
            return 0

        if args.command == "snaptree":
            # showvminfo and `snapshot list` both carry the Snapshot* keys
            tree = engine.structurer.reconstruct(flat_map)
            if args.yaml:
                self.formatter.display_yaml(self.exporter.export_tree(tree))
            elif args.plain:
                self.formatter.display_tree_plain(tree, config.indent)
            else:
                self.formatter.display_tree(tree, args.vm)
            return 0

        if args.command == "nics":
            self.formatter.display_nics(engine.scanner.parse_nics(flat_map))
            return 0

        if args.command == "shares":
            self.formatter.display_shares(engine.scanner.parse_shares(flat_map))
            return 0

        self.parser.print_help()
        return 2

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point. Returns the process exit status."""
        args = self.parser.parse_args(argv)
        if not args.command:
            self.print_header("Snapshot & Machine Inspector")
            self.parser.print_help()
            return 0

        try:
            config = self._load_config(args)
            _setup_logging(config.log_level)
            engine = VBoxEngine(config)
            return self._dispatch(args, engine, config)
        except (VBoxTreeError, OSError) as e:
            self.console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            return 1


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(VBoxTreeCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
