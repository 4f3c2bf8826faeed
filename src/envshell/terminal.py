"""Foreground process-group handling for the controlling terminal."""

import contextlib
import logging
import os
import signal
import sys
import termios
from collections.abc import Iterator
from typing import TextIO

log = logging.getLogger(__name__)


def controlling_fd(stream: TextIO | None = None) -> int | None:
    """Return the fd of stream when it is a terminal we own the foreground of."""
    stream = stream if stream is not None else sys.stdin
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    if not os.isatty(fd):
        return None
    try:
        if os.tcgetpgrp(fd) != os.getpgrp():
            # Started in the background: leave the terminal alone.
            return None
    except OSError:
        return None
    return fd


def give_terminal_to(fd: int, pgid: int) -> None:
    """Make pgid the foreground process group of the terminal on fd."""
    try:
        os.tcsetpgrp(fd, pgid)
    except OSError as e:
        log.warning("Could not move process group %d to the foreground: %s", pgid, e)


@contextlib.contextmanager
def job_control(stream: TextIO | None = None) -> Iterator[int | None]:
    """Yield the terminal fd children may be put in the foreground of.

    Yields None when there is no terminal to manage. On exit the terminal is
    handed back to our own process group with the settings it had on entry.
    Must be entered from the main thread.
    """
    fd = controlling_fd(stream)
    if fd is None:
        yield None
        return

    # tcsetpgrp from a background group raises SIGTTOU, and so do our own log
    # writes while a child owns the terminal.
    previous = signal.signal(signal.SIGTTOU, signal.SIG_IGN)
    try:
        old_attrs = termios.tcgetattr(fd)
    except termios.error as e:
        log.debug("could not read terminal settings: %s", e)
        old_attrs = None
    try:
        yield fd
    finally:
        give_terminal_to(fd, os.getpgrp())
        if old_attrs is not None:
            try:
                termios.tcsetattr(fd, termios.TCSAFLUSH, old_attrs)
            except termios.error as e:
                log.warning("Could not restore terminal settings: %s", e)
        signal.signal(signal.SIGTTOU, previous)
