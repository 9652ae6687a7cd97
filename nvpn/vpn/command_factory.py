"""Factory for creating NetworkManager commands."""

from pathlib import Path
from .commands import (
    NMCLI_STATE,
    NMCLI_CONNECTION_UP,
    NMCLI_CONNECTION_DOWN,
)


class NMCommandFactory:
    """Factory for creating nmcli connection commands."""

    @staticmethod
    def connection_state(connection_name: str) -> list[str]:
        """Create command printing only the GENERAL.STATE field of a profile."""
        return (
            NMCLI_STATE
            .with_args("connection", "show", "id", connection_name)
            .build()
        )

    @staticmethod
    def connection_up(connection_name: str, passwd_file: Path) -> list[str]:
        """Create command activating a profile with secrets read from a file."""
        return (
            NMCLI_CONNECTION_UP
            .with_args("id", connection_name, "passwd-file", str(passwd_file))
            .build()
        )

    @staticmethod
    def connection_down(connection_name: str) -> list[str]:
        """Create command deactivating a profile."""
        return NMCLI_CONNECTION_DOWN.with_args("id", connection_name).build()
