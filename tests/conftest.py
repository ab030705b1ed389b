import os
import sys

# Ensure the 'src' directory is in the python path so we can import vboxtree
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

import pytest

ROOT_UUID = "11111111-1111-1111-1111-111111111111"
PATCHED_UUID = "22222222-2222-2222-2222-222222222222"
TESTED_UUID = "33333333-3333-3333-3333-333333333333"
EXPERIMENT_UUID = "44444444-4444-4444-4444-444444444444"

UBUNTU_UUID = "4b1c8d6e-2f3a-4c5b-9d7e-8f9a0b1c2d3e"
WINDOWS_UUID = "5c2d9e7f-3a4b-4d6c-8e9f-9a0b1c2d3e4f"

# Trimmed `VBoxManage showvminfo "Ubuntu Server" --machinereadable`
SHOWVMINFO = f'''name="Ubuntu Server"
groups="/"
ostype="Ubuntu (64-bit)"
UUID="{UBUNTU_UUID}"
memory=2048
vram=16
VMState="poweroff"
VMStateChangeTime="2026-10-18T09:12:44.000000000"
"SATA-0-0"="/vms/ubuntu/ubuntu.vdi"
nic1="nat"
macaddress1="080027C5A1B2"
nic2="bridged"
bridgeadapter2="en0: Wi-Fi"
macaddress2="08:00:27:11:22:33"
nic3="none"
SharedFolderNameMachineMapping1="src"
SharedFolderPathMachineMapping1="/home/dev/src"
SharedFolderNameMachineMapping2="data"
SharedFolderPathMachineMapping2="/srv/data"
SnapshotName="base"
SnapshotUUID="{ROOT_UUID}"
SnapshotName-1="patched"
SnapshotUUID-1="{PATCHED_UUID}"
SnapshotName-1-1="tested"
SnapshotUUID-1-1="{TESTED_UUID}"
SnapshotName-2="experiment"
SnapshotUUID-2="{EXPERIMENT_UUID}"
SnapshotDescription-2="first line
second line of a multi-line description"
CurrentSnapshotName="tested"
CurrentSnapshotUUID="{TESTED_UUID}"
CurrentSnapshotNode="SnapshotName-1-1"
'''

# `VBoxManage list vms`
VM_LIST = f'''"Ubuntu Server" {{{UBUNTU_UUID}}}
"Windows 11" {{{WINDOWS_UUID}}}
"<inaccessible>" {{not-a-uuid}}
this line is noise
'''


@pytest.fixture
def showvminfo_text():
    return SHOWVMINFO


@pytest.fixture
def vm_list_text():
    return VM_LIST


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Runs a test with no vboxtree.toml and no VBOXTREE_* variables in scope."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in ["VBOXTREE_VBOXMANAGE", "VBOXTREE_TIMEOUT", "VBOXTREE_LOG_LEVEL", "VBOX_MSI_INSTALL_PATH"]:
        monkeypatch.delenv(key, raising=False)
    return tmp_path
