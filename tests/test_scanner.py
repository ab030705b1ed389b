#!/usr/bin/env python3
"""
VBOXTREE SCANNER SUITE
----------------------
Machine identity and configuration mined from VBoxManage output.
"""

import logging
from pathlib import Path
from uuid import UUID

import pytest

from vboxtree.core.errors import MalformedIdentifier, ReconstructionError
from vboxtree.core.models import NicType, VmState
from vboxtree.parsing.pipeline import build_flat_map
from vboxtree.parsing.scanner import MachineScanner

UBUNTU = UUID("4b1c8d6e-2f3a-4c5b-9d7e-8f9a0b1c2d3e")
WINDOWS = UUID("5c2d9e7f-3a4b-4d6c-8e9f-9a0b1c2d3e4f")


@pytest.fixture
def scanner():
    return MachineScanner()


def test_vm_list_skips_noise_and_bad_uuids(scanner, vm_list_text):
    assert scanner.parse_vm_list(vm_list_text) == [
        ("Ubuntu Server", UBUNTU),
        ("Windows 11", WINDOWS),
    ]


def test_vm_list_from_bytes(scanner):
    raw = f'"café" {{{UBUNTU}}}\r\n'.encode('utf-8')
    assert scanner.parse_vm_list(raw) == [("café", UBUNTU)]


def test_vm_list_empty(scanner):
    assert scanner.parse_vm_list(b"") == []


def test_state(scanner, showvminfo_text):
    assert scanner.parse_vm_state(build_flat_map(showvminfo_text)) is VmState.POWER_OFF
    assert scanner.parse_vm_state({}) is VmState.UNKNOWN


def test_shares_in_slot_order(scanner, showvminfo_text):
    shares = scanner.parse_shares(build_flat_map(showvminfo_text))
    assert shares == [("src", Path("/home/dev/src")), ("data", Path("/srv/data"))]


def test_shares_stop_at_first_gap(scanner):
    flat_map = {
        "SharedFolderNameMachineMapping1": "one",
        "SharedFolderPathMachineMapping1": "/one",
        "SharedFolderNameMachineMapping3": "three",
        "SharedFolderPathMachineMapping3": "/three",
    }
    assert [name for name, _ in scanner.parse_shares(flat_map)] == ["one"]


def test_share_without_path_ends_list(scanner):
    assert scanner.parse_shares({"SharedFolderNameMachineMapping1": "orphan"}) == []


@pytest.mark.parametrize("raw", [
    "080027C5A1B2",
    "08:00:27:c5:a1:b2",
    "08-00-27-C5-A1-B2",
])
def test_normalize_mac(scanner, raw):
    assert scanner.normalize_mac(raw) == "08:00:27:c5:a1:b2"


@pytest.mark.parametrize("raw", [
    "080027C5A1",
    "08:00:27-c5:a1:b2",
    "zz0027C5A1B2",
    "",
])
def test_normalize_mac_rejects(scanner, raw):
    with pytest.raises(MalformedIdentifier):
        scanner.normalize_mac(raw)


def test_nics_from_showvminfo(scanner, showvminfo_text):
    nics = scanner.parse_nics(build_flat_map(showvminfo_text))

    assert [nic.index for nic in nics] == [1, 2]
    nat, bridged = nics
    assert nat.nic_type is NicType.NAT and nat.attachment is None
    assert nat.mac == "08:00:27:c5:a1:b2"
    assert bridged.nic_type is NicType.BRIDGED
    assert bridged.attachment == "en0: Wi-Fi"
    assert bridged.mac == "08:00:27:11:22:33"


def test_nic_attachment_kinds(scanner):
    flat_map = {
        "nic1": "intnet", "intnet1": "lab", "macaddress1": "080027000001",
        "nic4": "hostonly", "hostonlyadapter4": "vboxnet0", "macaddress4": "080027000004",
        "nic8": "bridged", "bridgeadapter8": "eth0", "macaddress8": "080027000008",
    }
    nics = scanner.parse_nics(flat_map)
    assert [(n.index, n.nic_type, n.attachment) for n in nics] == [
        (1, NicType.INTNET, "lab"),
        (4, NicType.HOSTONLY, "vboxnet0"),
        (8, NicType.BRIDGED, "eth0"),
    ]


def test_nic_missing_fields_are_skipped(scanner):
    flat_map = {
        "nic1": "bridged", "macaddress1": "080027000001",       # no adapter
        "nic2": "intnet", "intnet2": "lab",                     # no mac
        "nic3": "nat", "macaddress3": "080027000003",
    }
    assert [nic.index for nic in scanner.parse_nics(flat_map)] == [3]


def test_unknown_nic_type_is_logged(scanner, caplog):
    flat_map = {"nic1": "generic", "macaddress1": "080027000001"}
    with caplog.at_level(logging.WARNING, logger="vboxtree.scanner"):
        assert scanner.parse_nics(flat_map) == []
    assert "Unrecognized nic type 'generic'" in caplog.text


def test_bad_mac_is_fatal(scanner):
    with pytest.raises(MalformedIdentifier, match="nothex"):
        scanner.parse_nics({"nic1": "nat", "macaddress1": "nothex"})


def test_build_vm_info(scanner, showvminfo_text):
    info = scanner.build_vm_info(build_flat_map(showvminfo_text))

    assert info.state is VmState.POWER_OFF
    assert info.shares_map == {"src": Path("/home/dev/src"), "data": Path("/srv/data")}
    assert len(info.nics) == 2
    assert info.snapshots.get_root().name == "base"
    assert info.snapshots.get_current().name == "tested"
    assert len(info.snapshots) == 4


def test_build_vm_info_without_snapshots(scanner):
    info = scanner.build_vm_info(build_flat_map('VMState="running"\n'))
    assert info.state is VmState.RUNNING
    assert info.snapshots is None


def test_build_vm_info_propagates_corruption(scanner):
    text = 'SnapshotName="base"\nSnapshotUUID="11111111-1111-1111-1111-111111111111"\n'
    with pytest.raises(ReconstructionError):
        scanner.build_vm_info(build_flat_map(text))
