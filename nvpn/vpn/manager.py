"""NetworkManager VPN connection management implementation."""

import re
from pathlib import Path
from typing import Callable, Optional

from .command_factory import NMCommandFactory
from .commands import CommandError
from .config_store import ConfigStore, LoadMode
from .credentials import combine_password
from .exceptions import ConnectionError
from .models import CommandResult, Configuration, ConnectionState
from .utils import run_command, secret_file
from ..logging_utility import logger

ACTIVATED_PATTERN = re.compile(r"^\s*GENERAL\.STATE:\s+activated\s*$", re.MULTILINE)

PASSWD_FILE_TEMPLATE = "vpn.secrets.password:{password}\n"

Runner = Callable[..., CommandResult]


def parse_state(output: str) -> ConnectionState:
    """Map `nmcli -f GENERAL.STATE` output to a connection state.

    Only an exact `GENERAL.STATE: activated` line counts as active.
    """
    if output and ACTIVATED_PATTERN.search(output):
        return ConnectionState.ACTIVE
    return ConnectionState.INACTIVE


class ConnectionManager:
    def __init__(self, config: Configuration, runner: Optional[Runner] = None,
                 secret_dir: Optional[Path] = None):
        self.config = config
        self.runner = runner or run_command
        self.secret_dir = secret_dir

    @classmethod
    def from_store(cls, store: ConfigStore, mode: LoadMode = LoadMode.STRICT,
                   **kwargs) -> "ConnectionManager":
        return cls(store.load(mode), **kwargs)

    @property
    def connection_name(self) -> str:
        return self.config.connection_name

    def get_state(self) -> ConnectionState:
        """
        Ask NetworkManager for the current state of the profile.

        Returns:
            ConnectionState.INACTIVE for anything but an activated profile,
            including a missing profile or a failing nmcli.
        """
        cmd = NMCommandFactory.connection_state(self.connection_name)
        try:
            result = self.runner(cmd, check=False)
        except CommandError as e:
            logger.warning(f"Could not query state of {self.connection_name}: {e}")
            return ConnectionState.INACTIVE

        if not result.ok:
            logger.debug(f"State query for {self.connection_name} exited with {result.returncode}: "
                         f"{result.stderr.strip()}")
        state = parse_state(result.stdout)
        logger.debug(f"{self.connection_name} is {state.value}")
        return state

    def is_active(self) -> bool:
        return self.get_state() is ConnectionState.ACTIVE

    def establish(self) -> None:
        """Bring the connection up using the static password plus a fresh TOTP code."""
        password = combine_password(self.config.secret_base32, self.config.password_static_part)
        contents = PASSWD_FILE_TEMPLATE.format(password=password)

        logger.info(f"Connecting {self.connection_name}")
        with secret_file(contents, directory=self.secret_dir) as passwd_file:
            self._invoke(
                NMCommandFactory.connection_up(self.connection_name, passwd_file),
                action="connect",
            )
        logger.info(f"{self.connection_name} connected")

    def interrupt(self) -> None:
        """Bring the connection down."""
        logger.info(f"Disconnecting {self.connection_name}")
        self._invoke(NMCommandFactory.connection_down(self.connection_name), action="disconnect")
        logger.info(f"{self.connection_name} disconnected")

    def toggle(self) -> ConnectionState:
        """Flip the connection state and return the new one."""
        if self.is_active():
            self.interrupt()
            return ConnectionState.INACTIVE
        self.establish()
        return ConnectionState.ACTIVE

    def connect(self) -> bool:
        """Connect unless already active. Returns whether anything was done."""
        if self.is_active():
            logger.warning(f"{self.connection_name} is already connected")
            return False
        self.establish()
        return True

    def disconnect(self) -> bool:
        """Disconnect unless already inactive. Returns whether anything was done."""
        if not self.is_active():
            logger.warning(f"{self.connection_name} is not connected")
            return False
        self.interrupt()
        return True

    def _invoke(self, cmd: list[str], action: str) -> CommandResult:
        try:
            result = self.runner(cmd, check=False, stream_stdout=True, stream_stderr=True)
        except CommandError as e:
            raise ConnectionError(f"Failed to {action} {self.connection_name}: {e}") from e

        if not result.ok:
            detail = result.stderr.strip() or result.stdout.strip()
            raise ConnectionError(
                f"Failed to {action} {self.connection_name} (nmcli exit code {result.returncode})"
                + (f": {detail}" if detail else "")
            )
        return result
