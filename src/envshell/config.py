"""Runtime settings for envshell."""

import os

from pydantic import ValidationError

from envshell.errors import ConfigError
from envshell.models import SupervisorSettings

ENV_POLL_INTERVAL = "ENVSHELL_POLL_INTERVAL"
ENV_STOP_SIGNAL = "ENVSHELL_STOP_SIGNAL"
ENV_STOP_TIMEOUT = "ENVSHELL_STOP_TIMEOUT"

_FIELDS = {
    ENV_POLL_INTERVAL: "poll_interval",
    ENV_STOP_SIGNAL: "stop_signal",
    ENV_STOP_TIMEOUT: "stop_timeout",
}


def load_settings(environ: dict[str, str] | None = None) -> SupervisorSettings:
    """Return supervisor settings from ENVSHELL_* variables or defaults."""
    source = os.environ if environ is None else environ
    values = {
        field: source[name].strip()
        for name, field in _FIELDS.items()
        if source.get(name, "").strip()
    }
    try:
        return SupervisorSettings(**values)
    except ValidationError as e:
        env_names = {field: name for name, field in _FIELDS.items()}
        problems = "; ".join(
            f"{env_names.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"invalid settings: {problems}") from e
