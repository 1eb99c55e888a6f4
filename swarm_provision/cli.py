"""CLI interface for the provisioning tool."""
from pathlib import Path
from typing import List, Optional

import typer

from . import roles
from . import steps
from . import utils
from .models import (
    AccessPointSpec, NetworkInterface, ProvisioningContext, ProvisioningError,
    ProvisioningRole, UnknownRoleError, WifiBand,
)

MAX_PROMPT_ATTEMPTS = 5
PROJECT_DIR_NAME = "smartedge"


class PromptExhausted(ProvisioningError):
    pass


def prompt_choice(prompt: str, count: int) -> int:
    """Ask for a number between 1 and ``count``, re-prompting on bad input."""
    for _ in range(MAX_PROMPT_ATTEMPTS):
        answer = typer.prompt(prompt).strip()
        if answer.isdigit() and 1 <= int(answer) <= count:
            return int(answer)
        typer.echo("Invalid choice. Please enter a valid number.")
    raise PromptExhausted(f"No valid choice after {MAX_PROMPT_ATTEMPTS} attempts.")


def prompt_role() -> ProvisioningRole:
    typer.echo("What program do you want to setup on this machine?")
    for role in ProvisioningRole:
        typer.echo(f"{role.menu_number}) {role.value}")
    numbers = "/".join(str(role.menu_number) for role in ProvisioningRole)
    choice = prompt_choice(f"Enter your choice ({numbers})", len(ProvisioningRole))
    return roles.resolve_role(str(choice))


def prompt_interface(purpose: str, candidates: List[NetworkInterface]) -> NetworkInterface:
    typer.echo("Available network interfaces:")
    for index, iface in enumerate(candidates, start=1):
        typer.echo(f"{index}. {iface.name} ({iface.kind.value})")
    choice = prompt_choice(f"Select the {purpose} interface (enter number)", len(candidates))
    return candidates[choice - 1]


def setup(
    role: Optional[str] = typer.Option(
        None, "--role", "-r", envvar="SWARM_ROLE",
        help="Role to provision: coordinator, ap-manager or sn-manager (prompted if omitted)",
    ),
    log_file: Path = typer.Option(
        utils.DEFAULT_LOG_FILE, "--log-file", envvar="SWARM_SETUP_LOG", help="Append-only log file",
    ),
    ssid: str = typer.Option("R1AP", "--ssid", envvar="SWARM_AP_SSID", help="Hotspot SSID"),
    passphrase: str = typer.Option("123456123", "--passphrase", envvar="SWARM_AP_PASSPHRASE",
                                   help="Hotspot WPA-PSK passphrase"),
    band: WifiBand = typer.Option(WifiBand.BG, "--band", help="Hotspot Wi-Fi band"),
    project_dir: Optional[Path] = typer.Option(
        None, "--project-dir", help="Where to clone the swarm program (default: ~/smartedge)",
    ),
    repo_url: str = typer.Option(
        "https://github.com/zoxerus/smartedge.git", "--repo-url", help="Repository to clone",
    ),
    assume_yes: bool = typer.Option(False, "--yes", "-y", help="Do not wait for confirmation"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview changes without applying them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """Provision this host as a swarm Coordinator, AP Manager or SN Manager."""
    ap_spec = AccessPointSpec(ssid=ssid, passphrase=passphrase, band=band)
    try:
        ap_spec.validate()
    except ValueError as e:
        raise typer.BadParameter(str(e))

    if not utils.is_root():
        typer.echo("❗ Network configuration requires root. Run with sudo.")
        raise typer.Exit(1)

    utils.setup_logging(verbose, log_file)
    utils.log_info("Welcome to the Swarm Setup Script")
    typer.echo("=========================================")
    typer.echo("   Welcome to the Swarm Setup Script    ")
    typer.echo("=========================================")
    typer.echo("Please ensure your device is connected to the internet.")
    if not assume_yes:
        typer.prompt("Press Enter to continue", default="", show_default=False)

    try:
        selected = roles.resolve_role(role) if role else prompt_role()
    except (UnknownRoleError, PromptExhausted) as e:
        utils.log_error(f"{e} Exiting.")
        raise typer.Exit(1)
    utils.log_info(f"Selected program: {selected.value}")

    ctx = ProvisioningContext(
        role=selected,
        choose_interface=prompt_interface,
        project_dir=project_dir or Path(utils.get_real_home()) / PROJECT_DIR_NAME,
        repo_url=repo_url,
        ap_spec=ap_spec,
        dry_run=dry_run,
    )

    try:
        result = steps.provision_system(ctx)
    except NotImplementedError as e:
        utils.log_error(str(e))
        raise typer.Exit(1)

    if not result.ok:
        raise typer.Exit(1)

    utils.log_info(result.message)
    typer.echo(f"✅ {result.message}")


app = typer.Typer(
    name="swarm-provision",
    help="Provision a host for the edge swarm: interfaces, hotspot and dependencies.",
    add_completion=False,
    invoke_without_command=True,
    callback=setup,
)


if __name__ == "__main__":
    app()
