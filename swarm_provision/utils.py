"""Utility functions for the provisioning tool."""
import logging
import os
import shutil
from pathlib import Path
from typing import Union

from sh import CommandNotFound, ErrorReturnCode

DEFAULT_LOG_FILE = Path("/var/log/swarm_setup.log")

logger = logging.getLogger("swarm_provision")
logger.propagate = False

_verbose = False


def command_exists(command: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(command) is not None


def is_root() -> bool:
    """Check if the script is running as root."""
    return os.geteuid() == 0


def get_real_user() -> str:
    """Get the real username (handles sudo)."""
    return os.environ.get('SUDO_USER', os.environ.get('USER', ''))


def get_real_home() -> str:
    """Get the real user's home directory (handles sudo)."""
    sudo_user = os.environ.get('SUDO_USER')
    if sudo_user:
        return os.path.expanduser(f'~{sudo_user}')
    return os.environ.get('HOME', '')


def describe_error(error: Exception) -> str:
    """Summarise a command failure in one line, without a traceback."""
    if isinstance(error, ErrorReturnCode):
        stderr = (error.stderr or b"").decode("utf-8", errors="replace").strip()
        summary = f"'{error.full_cmd}' exited with code {error.exit_code}"
        if stderr:
            summary += f": {stderr.splitlines()[-1]}"
        return summary
    if isinstance(error, CommandNotFound):
        return f"command not found: {error}"
    return str(error)


def log_info(message: str) -> None:
    """Log an informational message."""
    print(f"[INFO] {message}")
    logger.info(message)


def log_action(message: str) -> None:
    """Log an action being performed."""
    print(f"  -> {message}")
    logger.info(message)


def log_error(message: str) -> None:
    """Log a failure that ends the run."""
    print(f"[ERROR] {message}")
    logger.error(message)


def log_debug(message: str) -> None:
    """Log detail that is only shown on the terminal in verbose mode."""
    if _verbose:
        print(f"[DEBUG] {message}")
    logger.debug(message)


def setup_logging(verbose: bool = False, log_file: Union[str, Path, None] = None) -> None:
    """Mirror log messages to an append-only, timestamped log file."""
    global _verbose
    _verbose = verbose

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file is None:
        return

    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
