"""Launch options and supervisor settings."""

import os
import signal
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from envshell.constants import (
    DEFAULT_ENV_FILE,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_STOP_SIGNAL,
    DEFAULT_STOP_TIMEOUT_SECONDS,
)
from envshell.errors import ArgumentError, FileError

# Ordered (key, value) pairs parsed from an env file.
EnvironmentSet = tuple[tuple[str, str], ...]


def _default_command() -> list[str]:
    return [os.environ.get("SHELL", "")]


class SupervisorSettings(BaseModel):
    """Tunables for polling and child replacement."""

    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    stop_signal: str = DEFAULT_STOP_SIGNAL
    stop_timeout: float = Field(default=DEFAULT_STOP_TIMEOUT_SECONDS, ge=0)

    @field_validator("stop_signal")
    @classmethod
    def normalise_signal_name(cls, value: str) -> str:
        name = value.strip().upper()
        if not name.startswith("SIG"):
            name = f"SIG{name}"
        if name not in signal.Signals.__members__:
            raise ValueError(f"unknown signal: {value}")
        return name

    @property
    def signal_number(self) -> signal.Signals:
        return signal.Signals[self.stop_signal]


class Options(BaseModel):
    """Resolved launch configuration."""

    env_file: Path = Path(DEFAULT_ENV_FILE)
    command: list[str] = Field(default_factory=_default_command)
    watch: bool = False
    help: bool = False
    debug: bool = False
    settings: SupervisorSettings = Field(default_factory=SupervisorSettings)

    @property
    def program(self) -> str:
        return self.command[0]

    @property
    def args(self) -> list[str]:
        return self.command[1:]

    def check(self) -> None:
        """Raise when the options cannot be executed."""
        try:
            os.stat(self.env_file)
        except OSError as e:
            raise FileError(f"cannot stat env file {self.env_file}: {e.strerror or e}") from e
        if not self.command or not self.command[0]:
            raise ArgumentError(
                "invalid command: no program given (pass one after -- or set $SHELL)"
            )
