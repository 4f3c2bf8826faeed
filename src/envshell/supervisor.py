"""Run a command with the env file applied, restarting it when the file changes."""

import enum
import logging
import os
import shlex
import subprocess
import threading
from collections.abc import Callable

from envshell import launcher
from envshell.envfile import read_env_file
from envshell.errors import EnvShellError, WaitError
from envshell.mailbox import HandleMailbox
from envshell.models import ChildHandle, EnvironmentSet, Options
from envshell.terminal import job_control
from envshell.watcher import FileChangeWatcher

log = logging.getLogger(__name__)


class State(enum.Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    RUNNING = "running"
    RESTARTING = "restarting"
    WAITING = "waiting"
    TERMINATING = "terminating"
    STOPPED = "stopped"


class Supervisor:
    """Launch the configured command and keep exactly one instance of it alive.

    The calling thread waits on whichever child is current. In watch mode a
    second thread consumes file-change notifications and replaces the child:
    the old process group is stopped and reaped before the new child starts,
    so two children never share the terminal. New handles reach the waiter
    through a single-slot mailbox.

    Supervision ends when the most recent child exits on its own, or when
    cancel() is called (the current child is then stopped). Failing to reload
    the env file or to relaunch after a change is fatal and re-raised from
    run().
    """

    def __init__(
        self,
        options: Options,
        *,
        reader: Callable[[str | os.PathLike[str]], EnvironmentSet] = read_env_file,
        spawn: Callable[..., ChildHandle] = launcher.launch,
        watcher_factory: Callable[..., FileChangeWatcher] = FileChangeWatcher,
    ) -> None:
        self._options = options
        self._settings = options.settings
        self._reader = reader
        self._spawn = spawn
        self._watcher_factory = watcher_factory
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._mailbox = HandleMailbox()
        self._current: ChildHandle | None = None
        self._error: EnvShellError | None = None
        self._foreground_fd: int | None = None
        self._watcher: FileChangeWatcher | None = None
        self._restart_thread: threading.Thread | None = None
        self.state = State.IDLE
        self.returncode: int | None = None
        self.launch_count = 0

    @property
    def current(self) -> ChildHandle | None:
        """The most recently launched child, or None mid-restart."""
        with self._lock:
            return self._current

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Request shutdown. Safe to call from a signal handler."""
        self._cancel.set()

    def run(self) -> int | None:
        """Supervise until done and return the last child's exit status."""
        with job_control() as fd:
            self._foreground_fd = fd
            try:
                self._start()
                self._wait_loop()
            finally:
                self._shutdown()
        if self._error is not None:
            raise self._error
        return self.returncode

    def _transition(self, state: State) -> None:
        log.debug("supervisor %s -> %s", self.state.value, state.value)
        self.state = state

    def _is_current(self, handle: ChildHandle) -> bool:
        with self._lock:
            return handle is self._current

    def _load(self) -> EnvironmentSet:
        return self._reader(self._options.env_file)

    def _launch(self, environment: EnvironmentSet) -> ChildHandle:
        self._transition(State.LAUNCHING)
        handle = self._spawn(
            self._options.program,
            self._options.args,
            environment,
            foreground_fd=self._foreground_fd,
        )
        with self._lock:
            self._current = handle
        self.launch_count += 1
        self._transition(State.RUNNING)
        return handle

    def _stop(self, handle: ChildHandle) -> int | None:
        return launcher.terminate(
            handle, self._settings.signal_number, self._settings.stop_timeout
        )

    def _start(self) -> None:
        environment = self._load()
        if self._options.watch:
            # Baseline mtime is taken before the first launch.
            self._watcher = self._watcher_factory(
                self._options.env_file, self._cancel, self._settings.poll_interval
            ).start()

        handle = self._launch(environment)
        self._mailbox.put(handle)

        if self._watcher is None:
            self._mailbox.close()
            self._transition(State.WAITING)
            return
        self._restart_thread = threading.Thread(
            target=self._restart_loop,
            args=(self._watcher,),
            daemon=True,
            name="envshell-restart",
        )
        self._restart_thread.start()

    def _restart_loop(self, watcher: FileChangeWatcher) -> None:
        try:
            for _ in watcher:
                with self._lock:
                    if self._cancel.is_set():
                        break
                    previous, self._current = self._current, None
                self._transition(State.RESTARTING)
                if previous is not None:
                    self._stop(previous)
                if self._cancel.is_set():
                    break

                handle = self._launch(self._load())
                log.info("Restarted command: %s", shlex.join(self._options.command))
                if not self._mailbox.put(handle):
                    self._stop(handle)
                    break
        except EnvShellError as e:
            self._error = e
            self._cancel.set()
        except Exception as e:
            log.exception("Unexpected error while watching %s", self._options.env_file)
            error = EnvShellError(f"restart failed for {self._options.env_file}: {e}")
            error.__cause__ = e
            self._error = error
            self._cancel.set()
        finally:
            self._mailbox.close()

    def _wait_loop(self) -> None:
        for handle in self._mailbox:
            status = self._wait(handle)
            with self._lock:
                exited_on_its_own = handle is self._current
            if status is not None:
                self.returncode = status
            if not exited_on_its_own:
                log.debug("%s replaced, exit status %s", handle.describe(), status)
                continue
            if status and not self._cancel.is_set():
                log.error(
                    "Error waiting for command: %s exited with status %d",
                    handle.describe(),
                    status,
                )
            # The current child exiting ends supervision, watching or not.
            self._cancel.set()

    def _wait(self, handle: ChildHandle) -> int | None:
        while True:
            try:
                return launcher.wait_for_exit(handle, timeout=self._settings.poll_interval)
            except subprocess.TimeoutExpired:
                if self._cancel.is_set() and self._is_current(handle):
                    self._transition(State.TERMINATING)
                    return self._stop(handle)
            except WaitError as e:
                log.error("%s", e)
                return None

    def _shutdown(self) -> None:
        self._cancel.set()
        self._mailbox.close()
        if self._restart_thread is not None:
            self._restart_thread.join()
        if self._watcher is not None:
            self._watcher.join(timeout=self._settings.poll_interval * 2)
        with self._lock:
            current = self._current
        if current is not None and current.poll() is None:
            self._transition(State.TERMINATING)
            self._stop(current)
        self._transition(State.STOPPED)
