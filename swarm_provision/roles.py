"""Role selection and the steps each role runs."""
from typing import List

from swarm_provision.models import ProvisioningRole, UnknownRoleError


def resolve_role(token: str) -> ProvisioningRole:
    """Map a menu number, CLI token or display name to a role."""
    key = token.strip().lower()
    for role in ProvisioningRole:
        if key in (str(role.menu_number), role.token, role.value.lower(), role.name.lower()):
            return role
    raise UnknownRoleError(f"Invalid role choice: {token!r}.")


def steps_for_role(role: ProvisioningRole) -> List[str]:
    """Return the ordered step names required for ``role``."""
    plan = ["discover_interfaces", "install_packages", "verify_tools", "configure_ethernet"]
    if role.requires_access_point:
        plan += ["configure_wireless", "create_access_point"]
    plan += ["fetch_repository", "create_virtual_env"]
    if role is not ProvisioningRole.SN_MANAGER:
        plan.append("pull_images")
    return plan


def required_commands(role: ProvisioningRole) -> List[str]:
    """Commands that must be on PATH once packages are installed."""
    commands = ["ip", "git", "python3"]
    if role is not ProvisioningRole.SN_MANAGER:
        commands.append("docker")
    if role.requires_access_point:
        commands += ["nmcli", "iw", "rfkill"]
    return commands
