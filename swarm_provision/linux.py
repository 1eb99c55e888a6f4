"""Debian/Ubuntu package, repository, Python and container setup."""
import os
from pathlib import Path
from typing import Union

import sh

from swarm_provision.utils import get_real_user, log_action, log_info

TOOL_PACKAGES = [
    "net-tools", "git", "iw", "docker.io", "python3-venv",
    "make", "cmake", "gcc", "libgmp-dev", "libelf-dev", "zlib1g-dev", "libjansson-dev",
    "rfkill",
]

PYTHON_DEPENDENCIES = ["psutil", "aenum", "cassandra-driver"]

BMV2_IMAGE = "p4lang/behavioral-model"
BMV2_TAG = "bmv2se:latest"


def install_packages(dry_run: bool = False) -> None:
    """Install the system tools every role needs."""
    if dry_run:
        log_action(f"[DRY RUN] Would install {', '.join(TOOL_PACKAGES)}")
        return

    log_action("Installing required tools...")
    env = dict(os.environ, DEBIAN_FRONTEND="noninteractive")
    sh.apt_get("update", _env=env)
    sh.apt_get("install", "-y", *TOOL_PACKAGES, _env=env)


def clone_repository(url: str, target: Union[str, Path], dry_run: bool = False) -> None:
    """Clone the swarm repository and hand it to the invoking user."""
    target = Path(target)
    if (target / ".git").exists():
        log_info(f"Repository already present at {target}.")
        return

    if dry_run:
        log_action(f"[DRY RUN] Would clone {url} into {target}")
        return

    log_action(f"Cloning {url} into {target}...")
    sh.git("clone", url, str(target))

    real_user = get_real_user()
    if real_user and real_user != "root":
        sh.chown("-R", f"{real_user}:", str(target))


def create_virtual_env(project_dir: Union[str, Path], dry_run: bool = False) -> None:
    """Create ``.venv`` inside the project and install its dependencies."""
    venv_dir = Path(project_dir) / ".venv"

    if dry_run:
        log_action(f"[DRY RUN] Would install {', '.join(PYTHON_DEPENDENCIES)} into {venv_dir}")
        return

    if venv_dir.exists():
        log_info(f"Virtual environment already exists at {venv_dir}.")
    else:
        log_action("Creating a Python virtual environment...")
        sh.python3("-m", "venv", str(venv_dir))

    log_action("Installing Python dependencies...")
    pip = sh.Command(str(venv_dir / "bin" / "pip"))
    pip("install", *PYTHON_DEPENDENCIES)

    real_user = get_real_user()
    if real_user and real_user != "root":
        sh.chown("-R", f"{real_user}:", str(venv_dir))


def pull_bmv2_image(dry_run: bool = False) -> None:
    """Pull the BMv2 switch image and tag it for local use."""
    if dry_run:
        log_action(f"[DRY RUN] Would pull {BMV2_IMAGE} and tag it {BMV2_TAG}")
        return

    log_action("Setting up BMv2...")
    sh.docker("pull", BMV2_IMAGE)
    sh.docker("tag", BMV2_IMAGE, BMV2_TAG)
