"""Command templates and builders for NetworkManager calls."""

from typing import List, Optional, Dict
from dataclasses import dataclass

from .exceptions import VPNError


class CommandError(VPNError):
    """Base exception for command-related errors."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class ValidationError(CommandError):
    """Raised when command validation fails."""
    pass


@dataclass
class Command:
    """Command builder with validation."""
    base_cmd: List[str]
    _valid_options: Optional[Dict[str, type]] = None

    def _validate_option(self, opt: str, value: Optional[str]) -> None:
        """Validate option and its value if validation rules exist."""
        if self._valid_options is not None:
            opt_name = opt.lstrip('-').replace('-', '_')

            if opt_name not in self._valid_options:
                valid_opts = ", ".join(f"--{opt.replace('_', '-')}"
                                       for opt in self._valid_options.keys())
                raise ValidationError(
                    f"Invalid option '{opt}' for command {self.base_cmd[0]}. "
                    f"Valid options are: {valid_opts}"
                )

            if value is not None:
                expected_type = self._valid_options[opt_name]
                try:
                    expected_type(value)
                except ValueError:
                    raise ValidationError(
                        f"Invalid value '{value}' for option '{opt}'. Expected {expected_type.__name__}"
                    )

    def _validate_executable(self) -> None:
        """Validate that base command exists."""
        if not self.base_cmd:
            raise ValidationError("Command cannot be empty")

    @classmethod
    def from_str(cls, cmd: str, valid_options: Optional[Dict[str, type]] = None) -> 'Command':
        """Create command from string with optional validation rules."""
        command = cls(cmd.split(), valid_options)
        command._validate_executable()
        return command

    def with_arg(self, arg: str) -> 'Command':
        """Add single argument."""
        return Command(self.base_cmd + [arg], self._valid_options)

    def with_args(self, *args: str) -> 'Command':
        """Add multiple arguments."""
        for arg in args:
            if not arg:
                raise ValidationError(f"Empty argument for command {self.base_cmd[0]}")
        return Command(self.base_cmd + list(args), self._valid_options)

    def with_option(self, opt: str, value: Optional[str] = None) -> 'Command':
        """Add option with validation."""
        opt_clean = opt.lstrip('-')
        self._validate_option(opt_clean, value)
        cmd = self.base_cmd.copy()
        cmd.append(f"--{opt_clean}")
        if value is not None:
            cmd.append(str(value))
        return Command(cmd, self._valid_options)

    def build(self) -> List[str]:
        """Get final command list."""
        self._validate_executable()
        return list(self.base_cmd)


NMCLI_OPTIONS = {
    'fields': str,
}


NMCLI = Command.from_str("nmcli", valid_options=NMCLI_OPTIONS)

# Global options must precede the object name, so the state query is built
# from NMCLI rather than from NMCLI_CONNECTION.
NMCLI_STATE = NMCLI.with_option("fields", "GENERAL.STATE")

NMCLI_CONNECTION = NMCLI.with_arg("connection")
NMCLI_CONNECTION_UP = NMCLI_CONNECTION.with_arg("up")
NMCLI_CONNECTION_DOWN = NMCLI_CONNECTION.with_arg("down")
