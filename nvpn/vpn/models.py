"""Data models for VPN management."""

from dataclasses import dataclass
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConnectionState(Enum):
    """VPN connection state as reported by NetworkManager"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Configuration(BaseModel):
    """Persisted nvpn settings.

    Attributes use snake_case; the JSON file keeps the camelCase keys.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    connection_name: str = Field(alias="connectionName", min_length=1)
    secret_base32: str = Field(alias="secretBase32", min_length=1, repr=False)
    password_static_part: str = Field(alias="passwordStaticPart", min_length=1, repr=False)

    @field_validator("connection_name", "secret_base32", "password_static_part")
    @classmethod
    def no_control_characters(cls, value: str) -> str:
        # Each value ends up on a single line of the nmcli passwd-file
        if any(ord(ch) < 32 or ord(ch) == 127 for ch in value):
            raise ValueError("must not contain control characters such as newlines")
        return value


@dataclass
class CommandResult:
    """Outcome of an external command"""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0
