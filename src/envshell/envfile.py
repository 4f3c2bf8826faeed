"""Parse KEY=VALUE env files."""

import logging
import os

from envshell.errors import FileError
from envshell.models import EnvironmentSet

log = logging.getLogger(__name__)


def parse_line(line: str) -> tuple[str, str] | None:
    """Return the (key, value) pair for a line, or None when it is malformed.

    A line must contain exactly one "=". Lines with none or several are
    rejected; blank lines and comments get no special treatment.
    """
    parts = line.split("=")
    if len(parts) != 2:
        return None
    key, value = parts
    return key.strip(), value.strip()


def read_env_file(path: str | os.PathLike[str]) -> EnvironmentSet:
    """Read an env file into an ordered tuple of (key, value) pairs."""
    pairs: list[tuple[str, str]] = []
    try:
        # Lines end only at "\n"; a lone "\r" stays inside the line.
        with open(path, encoding="utf-8", errors="surrogateescape", newline="\n") as f:
            for lineno, raw in enumerate(f, start=1):
                line = raw.removesuffix("\n").removesuffix("\r")
                pair = parse_line(line)
                if pair is None:
                    log.warning("Invalid line format in %s:%d: %r", path, lineno, line)
                    continue
                pairs.append(pair)
    except OSError as e:
        raise FileError(f"open file {path}: {e.strerror or e}") from e
    log.debug("loaded %d variables from %s", len(pairs), path)
    return tuple(pairs)
