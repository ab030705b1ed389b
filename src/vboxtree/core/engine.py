#!/usr/bin/env python3
"""
VBOXTREE ENGINE - VBoxManage Orchestrator
-----------------------------------------
Invokes VBoxManage, captures its machine-readable output and hands the raw
bytes to the parsing core. Every query is read-only and parses a fresh dump;
nothing is cached between calls.

Author: VBoxTree Team
Date: 2026-10-19
"""

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union
from uuid import UUID

from vboxtree.core.config import VBoxTreeConfig
from vboxtree.core.errors import (
    Ambiguous,
    CommandFailed,
    CommandTimeout,
    FailedToExecute,
    NotFound,
)
from vboxtree.core.models import SnapshotTree, VmId, VmInfo, VmState
from vboxtree.parsing.context import FlatMap
from vboxtree.parsing.pipeline import FlatMapBuilder
from vboxtree.parsing.scanner import MachineScanner
from vboxtree.parsing.structurer import SnapshotStructurer

logger = logging.getLogger("vboxtree.engine")


def resolve_vboxmanage(explicit: Optional[str] = None, platform: str = sys.platform,
                       environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Locates the VBoxManage binary.

    An explicit path always wins. On Windows the MSI installer exports
    VBOX_MSI_INSTALL_PATH, which usually is not on PATH.
    """
    if explicit:
        return explicit

    if not platform.startswith("win"):
        return "VBoxManage"

    environ = os.environ if environ is None else environ
    install_dir = environ.get("VBOX_MSI_INSTALL_PATH")
    if install_dir:
        return str(Path(install_dir) / "VBoxManage.exe")
    return "VBoxManage.exe"


class VBoxEngine:
    """
    Principal orchestrator: runs VBoxManage and feeds its stdout through the
    flat map builder, the structurer and the scanner.
    """

    def __init__(self, config: Optional[VBoxTreeConfig] = None):
        self.config = config or VBoxTreeConfig()
        self.binary = resolve_vboxmanage(self.config.vboxmanage)

        self.builder = FlatMapBuilder()
        self.structurer = SnapshotStructurer()
        self.scanner = MachineScanner(self.builder.lexer, self.structurer)

    def run(self, *args: str) -> bytes:
        """
        Runs `VBoxManage <args>` and returns raw stdout.

        Raises:
            FailedToExecute: the binary could not be started.
            CommandTimeout: the call exceeded config.timeout seconds.
            CommandFailed: VBoxManage exited non-zero.
        """
        command = [self.binary, *args]
        logger.debug(f"Executing: {' '.join(command)}")

        try:
            result = subprocess.run(command, capture_output=True, timeout=self.config.timeout)
        except FileNotFoundError as e:
            raise FailedToExecute(f"Unable to execute '{self.binary}': {e}", command) from e
        except PermissionError as e:
            raise FailedToExecute(f"Permission denied executing '{self.binary}': {e}", command) from e
        except subprocess.TimeoutExpired as e:
            raise CommandTimeout(
                f"'{' '.join(command)}' timed out after {self.config.timeout}s", command
            ) from e
        except OSError as e:
            # ENOEXEC, ENOTDIR and friends
            raise FailedToExecute(f"Unable to execute '{self.binary}': {e}", command) from e

        if result.returncode != 0:
            stderr = result.stderr.decode('utf-8', errors='replace') if result.stderr else ""
            logger.error(f"VBoxManage exited with {result.returncode}: {stderr.strip()}")
            raise CommandFailed(command, result.returncode, stderr)

        return result.stdout

    # --- Machines ---------------------------------------------------------

    def list_vms(self) -> List[Tuple[str, UUID]]:
        return self.scanner.parse_vm_list(self.run("list", "vms"))

    def have_vm(self, vm: VmId) -> bool:
        return any(vm.matches(name, vm_uuid) for name, vm_uuid in self.list_vms())

    def vm_info_map(self, vm: VmId) -> FlatMap:
        return self.builder.build(self.run("showvminfo", str(vm), "--machinereadable"))

    def vm_info(self, vm: VmId) -> VmInfo:
        return self.scanner.build_vm_info(self.vm_info_map(vm))

    def is_vm_state(self, vm: VmId, state: VmState) -> bool:
        return self.vm_info(vm).state is state

    # --- Snapshots --------------------------------------------------------

    def snapshot_map(self, vm: VmId) -> FlatMap:
        return self.builder.build(self.run("snapshot", str(vm), "list", "--machinereadable"))

    def snapshots(self, vm: VmId) -> Optional[SnapshotTree]:
        return self.structurer.reconstruct(self.snapshot_map(vm))

    def have_snapshot_name(self, vm: VmId, name: str) -> bool:
        tree = self.snapshots(vm)
        return bool(tree and tree.get_by_name(name))

    def check_unique_snapshot_name(self, vm: VmId, name: str) -> None:
        """
        Raises:
            NotFound: the VM has no snapshot with this name (or no snapshots at all).
            Ambiguous: more than one snapshot carries this name.
        """
        tree = self.snapshots(vm)
        matches = tree.get_by_name(name) if tree else []
        if not matches:
            raise NotFound(f"Virtual machine '{vm}' has no snapshot named '{name}'")
        if len(matches) > 1:
            raise Ambiguous(f"Virtual machine '{vm}' has multiple snapshots named '{name}'")


def load_flat_map(source: Union[bytes, str, Path]) -> FlatMap:
    """Builds a FlatMap from captured output on disk (offline mode)."""
    if isinstance(source, Path):
        source = source.read_bytes()
    return FlatMapBuilder().build(source)
