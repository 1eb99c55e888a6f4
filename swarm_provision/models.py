"""Data types shared by the provisioning steps."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

SYS_CLASS_NET = Path("/sys/class/net")


class ProvisioningError(Exception):
    """Base error for conditions that abort a provisioning run."""


class NoInterfacesError(ProvisioningError):
    """Raised when the host exposes no usable network interfaces."""


class UnknownRoleError(ProvisioningError):
    """Raised for a role token outside the supported roles."""


class InterfaceKind(Enum):
    ETHERNET = "ethernet"
    WIRELESS = "wireless"
    OTHER = "other"


@dataclass(frozen=True)
class NetworkInterface:
    name: str
    kind: InterfaceKind = InterfaceKind.OTHER

    def renamed(self, new_name: str) -> "NetworkInterface":
        return NetworkInterface(name=new_name, kind=self.kind)


class ProvisioningRole(Enum):
    """Roles a host can take in the swarm."""
    COORDINATOR = "Coordinator"
    AP_MANAGER = "AP Manager"
    SN_MANAGER = "SN Manager"

    @property
    def menu_number(self) -> int:
        return list(ProvisioningRole).index(self) + 1

    @property
    def token(self) -> str:
        return self.value.lower().replace(" ", "-")

    @property
    def requires_access_point(self) -> bool:
        return self is ProvisioningRole.AP_MANAGER


class WifiBand(str, Enum):
    BG = "bg"
    A = "a"


@dataclass(frozen=True)
class AccessPointSpec:
    """Hotspot settings handed to NetworkManager."""
    ssid: str = "R1AP"
    passphrase: str = "123456123"
    band: WifiBand = WifiBand.BG
    mode: str = "ap"
    ipv4_method: str = "shared"
    connection_name: str = "Hotspot"
    interface: str = "wlan0"

    def validate(self) -> None:
        """Raise ValueError if NetworkManager would reject these settings."""
        if not self.ssid:
            raise ValueError("SSID must not be empty")
        if len(self.ssid.encode("utf-8")) > 32:
            raise ValueError("SSID must be at most 32 bytes")
        if not 8 <= len(self.passphrase) <= 63:
            raise ValueError("WPA-PSK passphrase must be 8 to 63 characters")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    backoff: float = 5.0


class Outcome(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepResult:
    outcome: Outcome
    message: str = ""

    @classmethod
    def success(cls, message: str = "") -> "StepResult":
        return cls(Outcome.SUCCESS, message)

    @classmethod
    def retryable(cls, message: str) -> "StepResult":
        return cls(Outcome.RETRYABLE, message)

    @classmethod
    def fatal(cls, message: str) -> "StepResult":
        return cls(Outcome.FATAL, message)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


InterfaceChooser = Callable[[str, List[NetworkInterface]], NetworkInterface]


@dataclass
class ProvisioningContext:
    """State of a single provisioning run.

    ``interfaces`` is the authoritative snapshot taken once per run; renames
    replace entries in it so later steps never look up a stale name.
    """
    role: ProvisioningRole
    choose_interface: InterfaceChooser
    project_dir: Path
    repo_url: str = "https://github.com/zoxerus/smartedge.git"
    ap_spec: AccessPointSpec = field(default_factory=AccessPointSpec)
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    dry_run: bool = False
    sys_net: Path = SYS_CLASS_NET
    interfaces: List[NetworkInterface] = field(default_factory=list)
    ethernet: Optional[NetworkInterface] = None
    wireless: Optional[NetworkInterface] = None
