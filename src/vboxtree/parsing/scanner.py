#!/usr/bin/env python3
"""
VBOXTREE SCANNER - Machine Info Extraction
------------------------------------------
Mines machine identity and configuration out of VBoxManage output:

  * `list vms` lines:            "My VM" {6f1c...}
  * `showvminfo` flat map:       VMState, shared folders, NICs, snapshots

Missing sub-fields are skipped rather than raised on, mirroring how
VBoxManage omits keys for unconfigured slots. Malformed identifiers are not
skipped: a MAC that fails to parse means the dump itself is damaged.

Author: VBoxTree Team
Date: 2026-10-19
"""

import logging
import re
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union
from uuid import UUID

from vboxtree.core.errors import MalformedIdentifier
from vboxtree.core.models import NicInfo, NicType, VmInfo, VmState, parse_uuid
from vboxtree.parsing.lexer import KeyValueLexer
from vboxtree.parsing.structurer import SnapshotStructurer

logger = logging.getLogger("vboxtree.scanner")

MAX_NICS = 8

# Attachment key per NIC type; NAT carries none
_ATTACHMENT_KEYS = {
    NicType.BRIDGED: "bridgeadapter",
    NicType.INTNET: "intnet",
    NicType.HOSTONLY: "hostonlyadapter",
    NicType.NAT: None,
}


class MachineScanner:
    """
    Identifies virtual machines and extracts their configuration from
    already-decoded VBoxManage output.
    """

    # Group 1: Name (may itself contain quotes), Group 2: UUID
    VM_LIST_PATTERN = re.compile(r'^"(?P<name>.*)"\s+\{(?P<uuid>[^{}]+)\}$')

    # VBoxManage prints MACs as 12 bare hex digits; separated forms are accepted too
    MAC_PATTERN = re.compile(r'^[0-9a-fA-F]{2}([:\-]?)(?:[0-9a-fA-F]{2}\1){4}[0-9a-fA-F]{2}$')

    def __init__(self, lexer: KeyValueLexer = None, structurer: SnapshotStructurer = None):
        self.lexer = lexer or KeyValueLexer()
        self.structurer = structurer or SnapshotStructurer()

    def parse_vm_list(self, text: Union[bytes, str]) -> List[Tuple[str, UUID]]:
        """
        Parses `VBoxManage list vms`. Lines not in '"name" {uuid}' form, or
        with an unparsable UUID, are skipped.
        """
        vms = []
        for line in self.lexer.split_lines(text):
            match = self.VM_LIST_PATTERN.match(line)
            if not match:
                logger.debug(f"Ignored vm list line: {line}")
                continue

            vm_uuid = parse_uuid(match.group('uuid'))
            if vm_uuid is None:
                logger.debug(f"Ignored vm list line with bad uuid: {line}")
                continue

            vms.append((match.group('name'), vm_uuid))
        return vms

    def parse_vm_state(self, flat_map: Mapping[str, str]) -> VmState:
        return VmState.from_string(flat_map.get("VMState"))

    def parse_shares(self, flat_map: Mapping[str, str]) -> List[Tuple[str, Path]]:
        """Shared folders in slot order; the first incomplete slot ends the list."""
        shares = []
        index = 1
        while True:
            name = flat_map.get(f"SharedFolderNameMachineMapping{index}")
            path = flat_map.get(f"SharedFolderPathMachineMapping{index}")
            if name is None or path is None:
                break
            shares.append((name, Path(path)))
            index += 1
        return shares

    def normalize_mac(self, raw: str) -> str:
        """
        Returns the MAC as lowercase colon-separated octets.

        Raises:
            MalformedIdentifier: raw is not a 48-bit MAC address.
        """
        if not self.MAC_PATTERN.match(raw):
            raise MalformedIdentifier(f"Unable to parse MAC address '{raw}'")
        digits = re.sub(r'[:\-]', '', raw).lower()
        return ":".join(digits[i:i + 2] for i in range(0, 12, 2))

    def _parse_nic(self, flat_map: Mapping[str, str], index: int) -> Optional[NicInfo]:
        kind = flat_map.get(f"nic{index}")
        if kind is None or kind == "none":
            return None

        try:
            nic_type = NicType(kind)
        except ValueError:
            logger.warning(f"Unrecognized nic type '{kind}' on nic{index}")
            return None

        attachment = None
        attachment_key = _ATTACHMENT_KEYS[nic_type]
        if attachment_key:
            attachment = flat_map.get(f"{attachment_key}{index}")
            if attachment is None:
                # Missing critical information
                logger.debug(f"nic{index} ({kind}) has no '{attachment_key}{index}'")
                return None

        raw_mac = flat_map.get(f"macaddress{index}")
        if raw_mac is None:
            logger.debug(f"nic{index} has no mac address")
            return None

        return NicInfo(index=index, nic_type=nic_type,
                       mac=self.normalize_mac(raw_mac), attachment=attachment)

    def parse_nics(self, flat_map: Mapping[str, str]) -> List[NicInfo]:
        nics = []
        for index in range(1, MAX_NICS + 1):
            nic = self._parse_nic(flat_map, index)
            if nic is not None:
                nics.append(nic)
        return nics

    def build_vm_info(self, flat_map: Mapping[str, str]) -> VmInfo:
        """
        Assembles a VmInfo. Snapshot reconstruction errors propagate.
        """
        return VmInfo(
            state=self.parse_vm_state(flat_map),
            shares=self.parse_shares(flat_map),
            snapshots=self.structurer.reconstruct(flat_map),
            nics=self.parse_nics(flat_map),
        )
