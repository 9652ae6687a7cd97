"""Persistence of the nvpn configuration file."""

from enum import Enum
import json
import os
from pathlib import Path
import tempfile
from typing import Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from .exceptions import ConfigInvalid, ConfigMissing, ConfigurationError
from .models import Configuration
from ..logging_utility import logger

CONFIG_FILE_NAME = ".nvpnrc"

Prompter = Callable[[], Dict[str, str]]


def default_config_path() -> Path:
    env_path = os.environ.get("NVPN_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / CONFIG_FILE_NAME


class LoadMode(Enum):
    """How to react when the configuration file is missing"""
    STRICT = "strict"
    LENIENT = "lenient"


class ConfigStore:
    """Reads and writes the per-user JSON configuration file.

    In lenient mode a missing file is created from the answers of
    `prompter`; without a prompter lenient mode behaves like strict mode.
    """

    def __init__(self, path: Union[str, Path], prompter: Optional[Prompter] = None):
        self.path = Path(path)
        self.prompter = prompter

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self, mode: LoadMode = LoadMode.STRICT) -> Configuration:
        if not self.exists():
            if mode is LoadMode.LENIENT and self.prompter is not None:
                logger.info(f"No configuration found at {self.path}, creating one")
                return self.create(self.prompter())
            raise ConfigMissing(f"Configuration file not found: {self.path}")

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigInvalid(f"Cannot read configuration {self.path}: {e}") from e

        return self._validate(data)

    def create(self, values: Union[Configuration, Dict[str, Any]]) -> Configuration:
        config = values if isinstance(values, Configuration) else self._validate(values)
        payload = json.dumps(config.model_dump(by_alias=True), indent=2)

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # mkstemp creates the file with mode 0600
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ConfigurationError(f"Cannot write configuration {self.path}: {e}") from e

        logger.info(f"Configuration written to {self.path}")
        return config

    def _validate(self, data: Any) -> Configuration:
        if not isinstance(data, dict):
            raise ConfigInvalid(f"Configuration {self.path} must be a JSON object")
        try:
            return Configuration.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigInvalid(f"Invalid configuration {self.path}: {problems}") from e
