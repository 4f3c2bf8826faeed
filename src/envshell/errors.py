"""Error types raised by envshell."""


class EnvShellError(Exception):
    """Base class for all envshell errors."""


class ArgumentError(EnvShellError):
    """Invalid command-line arguments or options."""


class ConfigError(EnvShellError):
    """Invalid ENVSHELL_* settings."""


class FileError(EnvShellError):
    """The env file is missing, unreadable, or cannot be stat'ed."""


class SpawnError(EnvShellError):
    """The target command could not be started."""


class SignalError(EnvShellError):
    """A stale child process group could not be signalled."""


class WaitError(EnvShellError):
    """The exit status of a child could not be observed."""
