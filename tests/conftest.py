import os
import tempfile

# Must happen before nvpn.logging_utility is imported
os.environ["NVPN_LOG_DIR"] = tempfile.mkdtemp(prefix="nvpn-test-logs-")

import pytest

from nvpn.vpn.models import CommandResult, Configuration


class FakeRunner:
    """Stands in for run_command and records every nmcli call."""

    def __init__(self, state_output="", up_returncode=0, down_returncode=0, on_up=None):
        self.state_output = state_output
        self.up_returncode = up_returncode
        self.down_returncode = down_returncode
        self.on_up = on_up
        self.calls = []

    def __call__(self, cmd, check=True, stream_stdout=False, stream_stderr=False):
        self.calls.append(list(cmd))
        if "show" in cmd:
            return CommandResult(args=list(cmd), returncode=0, stdout=self.state_output)
        if "up" in cmd:
            if self.on_up is not None:
                self.on_up(cmd)
            return CommandResult(args=list(cmd), returncode=self.up_returncode,
                                 stderr="" if self.up_returncode == 0 else "Error: activation failed")
        if "down" in cmd:
            return CommandResult(args=list(cmd), returncode=self.down_returncode)
        raise AssertionError(f"unexpected command {cmd}")

    def actions(self):
        return [c[2] for c in self.calls if c[1] == "connection" and c[2] in ("up", "down")]


ACTIVE_OUTPUT = "GENERAL.STATE:                          activated\n"
INACTIVE_OUTPUT = ""


@pytest.fixture
def config():
    return Configuration(
        connectionName="work-vpn",
        secretBase32="JBSWY3DPEHPK3PXP",
        passwordStaticPart="hunter",
    )


@pytest.fixture
def secret_dir(tmp_path):
    path = tmp_path / "secrets"
    path.mkdir()
    return path
