"""Start child processes with an env overlay and stop their process groups."""

import logging
import os
import shlex
import signal
import subprocess
from collections.abc import Mapping

from envshell.constants import BASH_PROMPT, DEFAULT_STOP_TIMEOUT_SECONDS
from envshell.errors import SignalError, SpawnError, WaitError
from envshell.models import ChildHandle, EnvironmentSet
from envshell.terminal import give_terminal_to

log = logging.getLogger(__name__)


def with_shell_prompt(program: str, environment: EnvironmentSet) -> EnvironmentSet:
    """Append the envshell PS1 when the program is a bash."""
    if os.path.basename(program).endswith("bash"):
        return (*environment, ("PS1", BASH_PROMPT))
    return environment


def build_environment(
    environment: EnvironmentSet, base: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Overlay the pairs onto a copy of base (os.environ by default)."""
    env = dict(os.environ if base is None else base)
    for key, value in environment:
        env[key] = value
    return env


def launch(
    program: str,
    args: list[str],
    environment: EnvironmentSet,
    *,
    foreground_fd: int | None = None,
) -> ChildHandle:
    """Start program in its own process group with the overlaid environment.

    The child shares our stdin, stdout and stderr. When foreground_fd is given
    the child's group becomes the terminal's foreground group.
    """
    argv = [program, *args]
    env = build_environment(with_shell_prompt(program, environment))
    try:
        process = subprocess.Popen(argv, env=env, process_group=0)
    except (OSError, ValueError) as e:
        raise SpawnError(f"running {shlex.join(argv)}: {e}") from e

    handle = ChildHandle(pid=process.pid, pgid=process.pid, argv=argv, process=process)
    if foreground_fd is not None:
        give_terminal_to(foreground_fd, handle.pgid)
    log.debug("started %s in process group %d", handle.describe(), handle.pgid)
    return handle


def signal_group(handle: ChildHandle, sig: signal.Signals) -> bool:
    """Send sig to the handle's process group.

    Return False when the group no longer exists. Raise SignalError on any
    other failure.
    """
    try:
        os.killpg(handle.pgid, sig)
    except ProcessLookupError:
        log.debug("process group %d of %s already gone", handle.pgid, handle.describe())
        return False
    except OSError as e:
        raise SignalError(
            f"sending {sig.name} to process group {handle.pgid} of {handle.describe()}: {e}"
        ) from e
    log.debug("sent %s to process group %d", sig.name, handle.pgid)
    return True


def wait_for_exit(handle: ChildHandle, timeout: float | None = None) -> int:
    """Wait for the child to exit and return its status."""
    try:
        return handle.wait(timeout=timeout)
    except OSError as e:
        raise WaitError(f"waiting for {handle.describe()}: {e}") from e


def terminate(
    handle: ChildHandle,
    stop_signal: signal.Signals = signal.SIGTERM,
    timeout: float = DEFAULT_STOP_TIMEOUT_SECONDS,
) -> int | None:
    """Stop the handle's whole process group and reap the child.

    Sends stop_signal, waits up to timeout, then escalates to SIGKILL. A child
    that already exited is only reaped. Signal and wait failures are logged;
    when the group cannot be signalled the child is left alone and None is
    returned.
    """
    if handle.poll() is not None:
        return handle.returncode

    try:
        signal_group(handle, stop_signal)
    except SignalError as e:
        log.error("Error killing process %d: %s", handle.pid, e)
        return None
    log.info("Killed process: %d", handle.pid)

    try:
        return wait_for_exit(handle, timeout=timeout)
    except subprocess.TimeoutExpired:
        log.warning(
            "%s still running %.1fs after %s, sending SIGKILL",
            handle.describe(),
            timeout,
            stop_signal.name,
        )
    except WaitError as e:
        log.error("%s", e)
        return None

    try:
        signal_group(handle, signal.SIGKILL)
    except SignalError as e:
        log.error("Error killing process %d: %s", handle.pid, e)
        return None
    try:
        return wait_for_exit(handle)
    except WaitError as e:
        log.error("%s", e)
        return None
