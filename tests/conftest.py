"""Shared fixtures: a fake sysfs tree and an nmcli stand-in."""
import pytest
import sh


class FakeNmcli:
    """nmcli stand-in: profiles are missing and activation fails a set number of times."""

    def __init__(self, activation_failures=0):
        self.activation_failures = activation_failures
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)
        if args[:2] == ("connection", "delete"):
            raise sh.ErrorReturnCode_10("nmcli " + " ".join(args), b"",
                                        f"Error: unknown connection '{args[2]}'.".encode())
        if args[:2] == ("connection", "up") and self.activation_failures > 0:
            self.activation_failures -= 1
            raise sh.ErrorReturnCode_4("nmcli connection up Hotspot", b"",
                                       b"Error: Connection activation failed.")
        return ""

    def count(self, *prefix):
        return sum(1 for args in self.calls if args[:len(prefix)] == prefix)


@pytest.fixture
def fake_nmcli():
    return FakeNmcli


@pytest.fixture
def make_sys_net(tmp_path):
    """Build a /sys/class/net lookalike; wireless entries may name their phy."""
    def build(wired=(), wireless=(), other=(), phys=None):
        sys_net = tmp_path / "sys" / "class" / "net"
        sys_net.mkdir(parents=True, exist_ok=True)
        for name in tuple(wired) + tuple(other):
            (sys_net / name).mkdir()
        for name in wireless:
            (sys_net / name / "wireless").mkdir(parents=True)
        for name, phy in (phys or {}).items():
            (sys_net / name / "phy80211").mkdir(parents=True, exist_ok=True)
            (sys_net / name / "phy80211" / "name").write_text(f"{phy}\n")
        return sys_net
    return build
