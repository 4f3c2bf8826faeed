"""Poll a file's modification time and report each change."""

import logging
import os
import queue
import threading
from collections.abc import Iterator

from envshell.constants import DEFAULT_POLL_INTERVAL_SECONDS
from envshell.errors import FileError
from envshell.models import ChangeNotification

log = logging.getLogger(__name__)


class FileChangeWatcher:
    """Emit a ChangeNotification each time a file's mtime strictly advances.

    Polling runs on a daemon thread started by start(). Iterate the watcher to
    receive notifications; iteration ends once cancel is set. The watcher can
    be iterated once.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        cancel: threading.Event,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self._path = path
        self._cancel = cancel
        self._interval = interval
        self._queue: queue.Queue[ChangeNotification] = queue.Queue(maxsize=1)
        self._closed = threading.Event()
        self._thread: threading.Thread | None = None
        self._former_mtime_ns: int | None = None
        self._consumed = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> "FileChangeWatcher":
        try:
            self._former_mtime_ns = os.stat(self._path).st_mtime_ns
        except OSError as e:
            raise FileError(f"stat file {self._path}: {e.strerror or e}") from e
        self._thread = threading.Thread(
            target=self._run, daemon=True, name="envshell-watcher"
        )
        self._thread.start()
        return self

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def __iter__(self) -> Iterator[ChangeNotification]:
        if self._consumed:
            raise RuntimeError("FileChangeWatcher can only be iterated once")
        self._consumed = True
        while True:
            try:
                notification = self._queue.get(timeout=self._interval)
            except queue.Empty:
                if self._closed.is_set() or self._cancel.is_set():
                    return
                continue
            if self._cancel.is_set():
                return
            yield notification

    def _run(self) -> None:
        try:
            while not self._cancel.wait(self._interval):
                if self._poll():
                    log.info("File %s changed", self._path)
                    self._deliver(ChangeNotification())
        finally:
            self._closed.set()
            log.debug("stopped watching %s", self._path)

    def _poll(self) -> bool:
        try:
            latter = os.stat(self._path).st_mtime_ns
        except OSError as e:
            log.error("Error getting file info for %s: %s", self._path, e)
            return False
        if self._former_mtime_ns is not None and latter <= self._former_mtime_ns:
            return False
        self._former_mtime_ns = latter
        return True

    def _deliver(self, notification: ChangeNotification) -> None:
        # Block like an unbuffered channel, but give up once cancelled.
        while not self._cancel.is_set():
            try:
                self._queue.put(notification, timeout=self._interval)
                return
            except queue.Full:
                continue
