"""Model package for envshell."""

from envshell.models.child_handle import ChildHandle
from envshell.models.notification import ChangeNotification
from envshell.models.options import EnvironmentSet, Options, SupervisorSettings

__all__ = [
    "ChangeNotification",
    "ChildHandle",
    "EnvironmentSet",
    "Options",
    "SupervisorSettings",
]
