"""Provisioning workflow steps."""
import platform
from dataclasses import dataclass
from typing import Callable, Dict, List

from sh import CommandNotFound, ErrorReturnCode

from swarm_provision import interfaces, linux
from swarm_provision.access_point import AccessPointProvisioner
from swarm_provision.models import (
    InterfaceKind, ProvisioningContext, ProvisioningError, ProvisioningRole, StepResult,
)
from swarm_provision.roles import required_commands, steps_for_role
from swarm_provision.utils import command_exists, describe_error, log_action, log_error, log_info

ETHERNET_NAME = "eth0"


@dataclass(frozen=True)
class Step:
    name: str
    description: str
    action: Callable[[ProvisioningContext], StepResult]

    def run(self, ctx: ProvisioningContext) -> StepResult:
        """Run the action, turning command failures into a fatal result."""
        try:
            return self.action(ctx)
        except (ErrorReturnCode, CommandNotFound, OSError, ProvisioningError) as e:
            return StepResult.fatal(f"{self.description} failed: {describe_error(e)}")


def discover_interfaces(ctx: ProvisioningContext) -> StepResult:
    """Take the interface snapshot used for the rest of the run."""
    ctx.interfaces = interfaces.list_interfaces(ctx.sys_net)
    listing = ", ".join(f"{i.name} ({i.kind.value})" for i in ctx.interfaces)
    log_info(f"Detected interfaces: {listing}")
    return StepResult.success()


def install_packages(ctx: ProvisioningContext) -> StepResult:
    linux.install_packages(dry_run=ctx.dry_run)
    return StepResult.success()


def verify_tools(ctx: ProvisioningContext) -> StepResult:
    if ctx.dry_run:
        return StepResult.success()
    missing = [cmd for cmd in required_commands(ctx.role) if not command_exists(cmd)]
    if missing:
        return StepResult.fatal(f"Required commands not found after installation: {', '.join(missing)}")
    return StepResult.success()


def configure_ethernet(ctx: ProvisioningContext) -> StepResult:
    """Select the wired interface and give it the canonical name."""
    iface = ctx.choose_interface("Ethernet", list(ctx.interfaces))
    log_info(f"Selected Ethernet interface: {iface.name}")
    result = interfaces.rename_interface(ctx.interfaces, iface, ETHERNET_NAME, dry_run=ctx.dry_run)
    if result.ok:
        ctx.ethernet = interfaces.find_interface(ctx.interfaces, ETHERNET_NAME)
    return result


def configure_wireless(ctx: ProvisioningContext) -> StepResult:
    """Select the hotspot interface, check AP support, and rename it."""
    candidates = [i for i in ctx.interfaces if i != ctx.ethernet]
    if not candidates:
        return StepResult.fatal("No interface left to use for the hotspot.")

    iface = ctx.choose_interface("wireless", candidates)
    log_info(f"Selected wireless interface: {iface.name}")
    if iface.kind is not InterfaceKind.WIRELESS:
        log_info(f"{iface.name} does not look like a wireless interface.")

    if not ctx.dry_run:
        try:
            interfaces.bring_up_radio(iface)
        except ErrorReturnCode as e:
            log_action(f"Could not bring up the radio on {iface.name}: {describe_error(e)}")

    if not interfaces.supports_ap(iface, ctx.sys_net):
        return StepResult.fatal(f"Selected interface {iface.name} cannot act as an access point.")
    log_info(f"{iface.name} supports AP mode.")

    wireless_name = ctx.ap_spec.interface
    result = interfaces.rename_interface(ctx.interfaces, iface, wireless_name, dry_run=ctx.dry_run)
    if result.ok:
        ctx.wireless = interfaces.find_interface(ctx.interfaces, wireless_name)
    return result


def create_access_point(ctx: ProvisioningContext) -> StepResult:
    if ctx.wireless is None:
        return StepResult.fatal(f"Wireless interface {ctx.ap_spec.interface} is not configured.")
    provisioner = AccessPointProvisioner(ctx.ap_spec, ctx.retry_policy, dry_run=ctx.dry_run)
    return provisioner.provision()


def fetch_repository(ctx: ProvisioningContext) -> StepResult:
    linux.clone_repository(ctx.repo_url, ctx.project_dir, dry_run=ctx.dry_run)
    return StepResult.success()


def create_virtual_env(ctx: ProvisioningContext) -> StepResult:
    linux.create_virtual_env(ctx.project_dir, dry_run=ctx.dry_run)
    return StepResult.success()


def pull_images(ctx: ProvisioningContext) -> StepResult:
    linux.pull_bmv2_image(dry_run=ctx.dry_run)
    return StepResult.success()


STEPS: Dict[str, Step] = {
    step.name: step for step in (
        Step("discover_interfaces", "Detecting network interfaces", discover_interfaces),
        Step("install_packages", "Installing required tools", install_packages),
        Step("verify_tools", "Checking required commands", verify_tools),
        Step("configure_ethernet", "Configuring the Ethernet interface", configure_ethernet),
        Step("configure_wireless", "Configuring the wireless interface", configure_wireless),
        Step("create_access_point", "Creating the access point", create_access_point),
        Step("fetch_repository", "Downloading the program from GitHub", fetch_repository),
        Step("create_virtual_env", "Creating the Python virtual environment", create_virtual_env),
        Step("pull_images", "Setting up BMv2", pull_images),
    )
}


def build_plan(role: ProvisioningRole) -> List[Step]:
    return [STEPS[name] for name in steps_for_role(role)]


def provision_system(ctx: ProvisioningContext) -> StepResult:
    """Run every step for the selected role, stopping at the first failure."""
    current_platform = platform.system()
    if current_platform != 'Linux':
        raise NotImplementedError(f"Platform {current_platform} is not supported")

    log_info(f"System architecture {platform.machine()} detected.")

    for step in build_plan(ctx.role):
        log_info(f"{step.description}...")
        result = step.run(ctx)
        if not result.ok:
            if not result.message:
                result = StepResult.fatal(f"{step.description} failed.")
            log_error(result.message)
            return StepResult.fatal(result.message)

    return StepResult.success(f"Setup for {ctx.role.value} completed successfully!")
