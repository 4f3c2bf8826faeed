"""Shared helpers for envshell tests."""

import os
import sys
import time
from collections.abc import Callable
from pathlib import Path


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def bump_mtime(path: Path, seconds: int = 1) -> None:
    """Move path's mtime forward so the change is visible at any fs resolution."""
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + seconds * 1_000_000_000))


# Child that records the named variables into a file, then optionally sleeps.
RECORD_ENV_SCRIPT = """
import os, sys, time
out, sleep, names = sys.argv[1], float(sys.argv[2]), sys.argv[3:]
tmp = out + ".tmp"
with open(tmp, "w") as f:
    for name in names:
        f.write(name + "=" + os.environ.get(name, "<unset>") + "\\n")
os.replace(tmp, out)
time.sleep(sleep)
"""

SLEEP_SCRIPT = "import time; time.sleep(60)"


def record_env_command(out: Path, *names: str, sleep: float = 0) -> list[str]:
    return [sys.executable, "-c", RECORD_ENV_SCRIPT, str(out), str(sleep), *names]


def read_recorded(out: Path) -> dict[str, str]:
    if not out.exists():
        return {}
    pairs = (line.split("=", 1) for line in out.read_text().splitlines())
    return {key: value for key, value in pairs}


# Child that starts a sleeping subprocess of its own and records its pid.
SPAWN_GRANDCHILD_SCRIPT = """
import os, subprocess, sys, time
grandchild = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
tmp = sys.argv[1] + ".tmp"
with open(tmp, "w") as f:
    f.write(str(grandchild.pid))
os.replace(tmp, sys.argv[1])
time.sleep(60)
"""


def process_gone(pid: int) -> bool:
    """Return True when pid no longer runs (reaped, or left as a zombie)."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return True
    try:
        with open(f"/proc/{pid}/stat") as f:
            stat = f.read()
    except OSError:
        return True
    return stat.rpartition(")")[2].split()[0] == "Z"
