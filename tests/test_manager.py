import logging
import os
import re
import stat
from pathlib import Path

import pytest
from pydantic import ValidationError

from conftest import ACTIVE_OUTPUT, INACTIVE_OUTPUT, FakeRunner
from nvpn.vpn.commands import CommandError
from nvpn.vpn.config_store import ConfigStore, LoadMode
from nvpn.vpn.exceptions import ConnectionError, CredentialError
from nvpn.vpn.manager import ConnectionManager, parse_state
from nvpn.vpn.models import CommandResult, Configuration, ConnectionState


@pytest.mark.parametrize("output", [
    "GENERAL.STATE:                          activated\n",
    "GENERAL.STATE: activated",
    "  GENERAL.STATE:\tactivated  \n",
    "some header\nGENERAL.STATE:   activated\n",
])
def test_parse_state_active(output):
    assert parse_state(output) is ConnectionState.ACTIVE


@pytest.mark.parametrize("output", [
    "",
    "GENERAL.STATE:                          activating\n",
    "GENERAL.STATE:                          deactivated\n",
    "GENERAL.STATE:                          deactivating\n",
    "general.state:                          activated\n",
    "GENERAL.STATE:                          Activated\n",
    "GENERAL.STATE:activated\n",
    "GENERAL.STATE:   activated later\n",
    "Error: work-vpn - no such connection profile.\n",
])
def test_parse_state_inactive(output):
    assert parse_state(output) is ConnectionState.INACTIVE


class TestStateProbe:
    def test_queries_general_state_only(self, config):
        runner = FakeRunner(state_output=ACTIVE_OUTPUT)
        manager = ConnectionManager(config, runner=runner)

        assert manager.is_active()
        assert runner.calls == [
            ["nmcli", "--fields", "GENERAL.STATE", "connection", "show", "id", "work-vpn"]
        ]

    def test_missing_profile_is_inactive(self, config):
        def runner(cmd, **kwargs):
            return CommandResult(args=cmd, returncode=10,
                                 stderr="Error: work-vpn - no such connection profile.\n")

        assert ConnectionManager(config, runner=runner).get_state() is ConnectionState.INACTIVE

    def test_nmcli_not_startable_is_inactive(self, config, caplog):
        def runner(cmd, **kwargs):
            raise CommandError("Command could not be started: nmcli")

        with caplog.at_level(logging.WARNING, logger="nvpn"):
            assert not ConnectionManager(config, runner=runner).is_active()
        assert "Could not query state" in caplog.text


class TestEstablish:
    def test_passes_secret_file_and_removes_it(self, config, secret_dir):
        seen = {}

        def on_up(cmd):
            path = cmd[cmd.index("passwd-file") + 1]
            seen["path"] = path
            seen["contents"] = Path(path).read_text(encoding="utf-8")
            seen["mode"] = stat.S_IMODE(os.stat(path).st_mode)

        runner = FakeRunner(on_up=on_up)
        ConnectionManager(config, runner=runner, secret_dir=secret_dir).establish()

        assert re.fullmatch(r"vpn\.secrets\.password:hunter\d{6}\n", seen["contents"])
        assert seen["mode"] == 0o600
        assert runner.calls[0][:5] == ["nmcli", "connection", "up", "id", "work-vpn"]
        assert runner.calls[0][5] == "passwd-file"
        assert list(secret_dir.iterdir()) == []

    def test_secret_not_on_command_line(self, config, secret_dir):
        runner = FakeRunner()
        ConnectionManager(config, runner=runner, secret_dir=secret_dir).establish()

        assert not any("hunter" in arg for arg in runner.calls[0])

    def test_removes_secret_file_on_nonzero_exit(self, config, secret_dir):
        runner = FakeRunner(up_returncode=4)
        manager = ConnectionManager(config, runner=runner, secret_dir=secret_dir)

        with pytest.raises(ConnectionError, match="exit code 4"):
            manager.establish()
        assert list(secret_dir.iterdir()) == []

    def test_removes_secret_file_when_nmcli_cannot_start(self, config, secret_dir):
        def runner(cmd, **kwargs):
            raise CommandError("Command could not be started: nmcli")

        with pytest.raises(ConnectionError):
            ConnectionManager(config, runner=runner, secret_dir=secret_dir).establish()
        assert list(secret_dir.iterdir()) == []

    def test_removes_secret_file_on_unexpected_error(self, config, secret_dir):
        def runner(cmd, **kwargs):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            ConnectionManager(config, runner=runner, secret_dir=secret_dir).establish()
        assert list(secret_dir.iterdir()) == []

    def test_bad_secret_creates_no_file(self, secret_dir):
        config = Configuration(connectionName="work-vpn", secretBase32="not base32 1!",
                               passwordStaticPart="hunter")
        runner = FakeRunner()

        with pytest.raises(CredentialError):
            ConnectionManager(config, runner=runner, secret_dir=secret_dir).establish()
        assert runner.calls == []
        assert list(secret_dir.iterdir()) == []


class TestInterrupt:
    def test_brings_connection_down(self, config):
        runner = FakeRunner()
        ConnectionManager(config, runner=runner).interrupt()

        assert runner.calls == [["nmcli", "connection", "down", "id", "work-vpn"]]

    def test_failure_raises_connection_error(self, config):
        runner = FakeRunner(down_returncode=1)

        with pytest.raises(ConnectionError):
            ConnectionManager(config, runner=runner).interrupt()


class TestToggle:
    def test_inactive_connects(self, config, secret_dir):
        runner = FakeRunner(state_output=INACTIVE_OUTPUT)
        state = ConnectionManager(config, runner=runner, secret_dir=secret_dir).toggle()

        assert state is ConnectionState.ACTIVE
        assert runner.actions() == ["up"]

    def test_active_disconnects(self, config):
        runner = FakeRunner(state_output=ACTIVE_OUTPUT)
        state = ConnectionManager(config, runner=runner).toggle()

        assert state is ConnectionState.INACTIVE
        assert runner.actions() == ["down"]

    def test_reprobes_every_time(self, config, secret_dir):
        runner = FakeRunner(state_output=INACTIVE_OUTPUT)
        manager = ConnectionManager(config, runner=runner, secret_dir=secret_dir)

        manager.toggle()
        runner.state_output = ACTIVE_OUTPUT
        manager.toggle()

        assert runner.actions() == ["up", "down"]
        assert sum(1 for c in runner.calls if "show" in c) == 2


class TestStrictEntryPoints:
    def test_connect_when_active_warns_and_does_nothing(self, config, caplog):
        runner = FakeRunner(state_output=ACTIVE_OUTPUT)

        with caplog.at_level(logging.WARNING, logger="nvpn"):
            changed = ConnectionManager(config, runner=runner).connect()

        assert changed is False
        assert runner.actions() == []
        assert "already connected" in caplog.text

    def test_connect_when_inactive(self, config, secret_dir):
        runner = FakeRunner(state_output=INACTIVE_OUTPUT)

        assert ConnectionManager(config, runner=runner, secret_dir=secret_dir).connect() is True
        assert runner.actions() == ["up"]

    def test_disconnect_when_inactive_warns_and_does_nothing(self, config, caplog):
        runner = FakeRunner(state_output=INACTIVE_OUTPUT)

        with caplog.at_level(logging.WARNING, logger="nvpn"):
            changed = ConnectionManager(config, runner=runner).disconnect()

        assert changed is False
        assert runner.actions() == []
        assert "not connected" in caplog.text

    def test_disconnect_when_active(self, config):
        runner = FakeRunner(state_output=ACTIVE_OUTPUT)

        assert ConnectionManager(config, runner=runner).disconnect() is True
        assert runner.actions() == ["down"]


def test_from_store_loads_strictly(tmp_path):
    store = ConfigStore(tmp_path / ".nvpnrc")
    store.create({"connectionName": "work-vpn", "secretBase32": "JBSWY3DPEHPK3PXP",
                  "passwordStaticPart": "hunter"})

    manager = ConnectionManager.from_store(store, LoadMode.STRICT, runner=FakeRunner())

    assert manager.connection_name == "work-vpn"


def test_configuration_rejects_multiline_password():
    with pytest.raises(ValidationError):
        Configuration(connectionName="work-vpn", secretBase32="JBSWY3DPEHPK3PXP",
                      passwordStaticPart="hunter\nvpn.secrets.username:other")
