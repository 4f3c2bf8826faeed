"""Single-slot handoff of child handles between threads."""

import threading
from collections.abc import Iterator

from envshell.models import ChildHandle


class HandleMailbox:
    """Pass ChildHandles from the restart loop to the exit waiter.

    Holds at most one handle. put() blocks while the slot is full; get()
    blocks while it is empty. After close(), a handle already in the slot is
    still handed out, then get() returns None and put() refuses new handles.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._slot: ChildHandle | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def put(self, handle: ChildHandle) -> bool:
        """Store handle for the waiter; return False if the mailbox is closed."""
        with self._cond:
            while self._slot is not None and not self._closed:
                self._cond.wait()
            if self._closed:
                return False
            self._slot = handle
            self._cond.notify_all()
            return True

    def get(self) -> ChildHandle | None:
        with self._cond:
            while self._slot is None and not self._closed:
                self._cond.wait()
            handle, self._slot = self._slot, None
            self._cond.notify_all()
            return handle

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[ChildHandle]:
        while (handle := self.get()) is not None:
            yield handle
