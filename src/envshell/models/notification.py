"""Change notification emitted by the file watcher."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChangeNotification:
    """The watched file's modification time advanced since the last notification."""
