"""Network interface discovery, renaming and AP capability checks."""
import re
from pathlib import Path
from typing import List, Optional, Set

import sh
from sh import ErrorReturnCode

from swarm_provision.models import (
    SYS_CLASS_NET, InterfaceKind, NetworkInterface, NoInterfacesError, StepResult,
)
from swarm_provision.utils import describe_error, log_action, log_debug, log_info

ETHERNET_NAME = re.compile(r'^e(th|n)')
LOOPBACK = "lo"


def classify_interface(name: str, sys_net: Path = SYS_CLASS_NET) -> InterfaceKind:
    """Tag an interface as wireless, ethernet or other."""
    device_dir = sys_net / name
    if (device_dir / "wireless").exists() or (device_dir / "phy80211").exists():
        return InterfaceKind.WIRELESS
    if ETHERNET_NAME.match(name):
        return InterfaceKind.ETHERNET
    return InterfaceKind.OTHER


def list_interfaces(sys_net: Path = SYS_CLASS_NET) -> List[NetworkInterface]:
    """Enumerate the interfaces currently visible to the kernel."""
    names = sorted(entry.name for entry in sys_net.iterdir()) if sys_net.is_dir() else []
    interfaces = [
        NetworkInterface(name=name, kind=classify_interface(name, sys_net))
        for name in names
        if name != LOOPBACK
    ]
    if not interfaces:
        raise NoInterfacesError("No valid network interfaces detected.")
    return interfaces


def find_interface(interfaces: List[NetworkInterface], name: str) -> Optional[NetworkInterface]:
    for iface in interfaces:
        if iface.name == name:
            return iface
    return None


def rename_interface(interfaces: List[NetworkInterface], iface: NetworkInterface,
                     new_name: str, dry_run: bool = False) -> StepResult:
    """Rename ``iface`` to ``new_name`` and update the snapshot in place.

    The interface is taken down, renamed and brought back up. Any failing
    command aborts the rename; nothing is rolled back. An interface that
    already carries the name is only brought up.
    """
    if iface.name == new_name:
        log_info(f"{iface.name} already has the name {new_name}.")
        return bring_up_link(new_name, dry_run)

    if iface not in interfaces:
        return StepResult.fatal(f"Interface {iface.name} is not present on this host.")

    if find_interface(interfaces, new_name) is not None:
        return StepResult.fatal(
            f"Cannot rename {iface.name} to {new_name}: an interface named {new_name} already exists."
        )

    if dry_run:
        log_action(f"[DRY RUN] Would rename {iface.name} to {new_name}")
    else:
        log_action(f"Renaming {iface.name} to {new_name}...")
        try:
            sh.ip("link", "set", iface.name, "down")
            sh.ip("link", "set", iface.name, "name", new_name)
            sh.ip("link", "set", new_name, "up")
        except ErrorReturnCode as e:
            return StepResult.fatal(f"Failed to rename {iface.name} to {new_name}: {describe_error(e)}")

    interfaces[interfaces.index(iface)] = iface.renamed(new_name)
    return StepResult.success(f"{iface.name} renamed to {new_name}.")


def bring_up_link(name: str, dry_run: bool = False) -> StepResult:
    """Set an interface that keeps its name administratively up."""
    if dry_run:
        log_action(f"[DRY RUN] Would bring {name} up")
        return StepResult.success()
    try:
        sh.ip("link", "set", name, "up")
    except ErrorReturnCode as e:
        return StepResult.fatal(f"Failed to bring {name} up: {describe_error(e)}")
    return StepResult.success()


def bring_up_radio(iface: NetworkInterface) -> None:
    """Unblock Wi-Fi and bring the link up so the driver reports its modes."""
    sh.rfkill("unblock", "wifi")
    sh.ip("link", "set", iface.name, "up")


def parse_supported_modes(phy_info: str) -> Set[str]:
    """Extract the "Supported interface modes" list from ``iw phy info`` output."""
    modes = set()
    in_block = False
    for raw in phy_info.splitlines():
        line = raw.strip()
        if line.startswith("Supported interface modes:"):
            in_block = True
            continue
        if in_block:
            if not line.startswith("*"):
                break
            modes.add(line.lstrip("*").strip())
    return modes


def get_phy_name(iface: NetworkInterface, sys_net: Path = SYS_CLASS_NET) -> Optional[str]:
    """Find the wiphy backing a wireless interface."""
    phy_file = sys_net / iface.name / "phy80211" / "name"
    if phy_file.exists():
        return phy_file.read_text().strip()

    try:
        output = str(sh.iw("dev", iface.name, "info"))
    except ErrorReturnCode:
        return None
    for raw in output.splitlines():
        line = raw.strip()
        if line.startswith("wiphy "):
            index = line.split(" ", 1)[1].strip()
            if index.isdigit():
                return f"phy{index}"
    return None


def supports_ap(iface: NetworkInterface, sys_net: Path = SYS_CLASS_NET) -> bool:
    """Check whether the interface's driver advertises access-point mode."""
    phy = get_phy_name(iface, sys_net)
    if phy is None:
        log_debug(f"{iface.name} has no wireless phy.")
        return False

    try:
        phy_info = str(sh.iw("phy", phy, "info"))
    except ErrorReturnCode as e:
        log_debug(f"Could not query {phy}: {describe_error(e)}")
        return False

    return "AP" in parse_supported_modes(phy_info)
