"""Wi-Fi hotspot creation through NetworkManager.

Bringing up an access point right after an interface rename or a radio state
change fails intermittently, so each attempt restarts NetworkManager and waits
for it before activating the connection. Attempts are bounded by a
:class:`~swarm_provision.models.RetryPolicy` with a fixed delay between them.
"""
import time
from enum import Enum

import sh
from sh import ErrorReturnCode, ErrorReturnCode_10

from swarm_provision.models import AccessPointSpec, RetryPolicy, StepResult
from swarm_provision.utils import describe_error, log_action, log_debug, log_info

# Profiles created by this tool or by earlier manual setups.
HOTSPOT_CONNECTIONS = ("Hotspot", "ManualHotspot")

LINK_SETTLE_SECONDS = 1
DAEMON_SETTLE_SECONDS = 2


class APState(Enum):
    PREPARE = "prepare"
    CLEAN = "clean"
    DEFINE = "define"
    ACTIVATE = "activate"
    DONE = "done"
    EXHAUSTED = "exhausted"


TERMINAL_STATES = (APState.DONE, APState.EXHAUSTED)


class AccessPointProvisioner:
    """Bounded retry state machine that brings up the hotspot connection."""

    def __init__(self, spec: AccessPointSpec, policy: RetryPolicy = RetryPolicy(),
                 dry_run: bool = False):
        self.spec = spec
        self.policy = policy
        self.dry_run = dry_run
        self.state = APState.PREPARE
        self.attempt = 0

    def prepare(self) -> None:
        iface = self.spec.interface
        sh.nmcli("device", "set", iface, "managed", "yes")
        sh.rfkill("unblock", "wifi")
        sh.ip("link", "set", iface, "up")
        time.sleep(LINK_SETTLE_SECONDS)

    def clean(self) -> None:
        names = dict.fromkeys((self.spec.connection_name,) + HOTSPOT_CONNECTIONS)
        for name in names:
            try:
                sh.nmcli("connection", "delete", name)
                log_debug(f"Deleted existing connection {name}.")
            except ErrorReturnCode_10:
                # nmcli: connection does not exist
                pass

    def define(self) -> None:
        spec = self.spec
        sh.nmcli(
            "connection", "add",
            "type", "wifi",
            "ifname", spec.interface,
            "con-name", spec.connection_name,
            "autoconnect", "yes",
            "ssid", spec.ssid,
            "802-11-wireless.mode", spec.mode,
            "802-11-wireless.band", spec.band.value,
            "ipv4.method", spec.ipv4_method,
            "wifi-sec.key-mgmt", "wpa-psk",
            "wifi-sec.psk", spec.passphrase,
        )

    def activate(self) -> None:
        sh.systemctl("restart", "NetworkManager")
        time.sleep(DAEMON_SETTLE_SECONDS)
        sh.nmcli("connection", "up", self.spec.connection_name)

    def run_attempt(self) -> StepResult:
        """Run one prepare/clean/define/activate cycle."""
        phases = (
            (APState.PREPARE, self.prepare),
            (APState.CLEAN, self.clean),
            (APState.DEFINE, self.define),
            (APState.ACTIVATE, self.activate),
        )
        for state, handler in phases:
            self.state = state
            try:
                handler()
            except ErrorReturnCode as e:
                return StepResult.retryable(f"{state.value} step failed: {describe_error(e)}")
        return StepResult.success()

    def provision(self) -> StepResult:
        """Create the access point, retrying up to ``policy.max_attempts`` times."""
        spec = self.spec
        if self.dry_run:
            log_action(f"[DRY RUN] Would create access point '{spec.ssid}' on {spec.interface}")
            self.state = APState.DONE
            return StepResult.success()

        log_info("Creating access point...")
        max_attempts = self.policy.max_attempts
        self.attempt = 0
        self.state = APState.PREPARE
        result = StepResult.fatal("Access point creation did not run.")

        while self.state not in TERMINAL_STATES:
            self.attempt += 1
            log_info(f"Access point attempt {self.attempt}/{max_attempts}")
            result = self.run_attempt()

            if result.ok:
                self.state = APState.DONE
                log_info("Hotspot successfully created!")
            elif self.attempt >= max_attempts:
                self.state = APState.EXHAUSTED
                result = StepResult.fatal(
                    f"Failed to create the access point after {max_attempts} attempts: {result.message}"
                )
            else:
                log_action(
                    f"Failed to create the access point ({result.message}). "
                    f"Retrying in {self.policy.backoff:g} seconds..."
                )
                time.sleep(self.policy.backoff)
                self.state = APState.PREPARE

        return result
