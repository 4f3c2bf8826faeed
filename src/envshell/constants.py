"""Shared constants for envshell."""

DEFAULT_ENV_FILE = ".env"

# How often the env file is re-stat'ed in watch mode.
DEFAULT_POLL_INTERVAL_SECONDS = 0.1

# Grace period between the stop signal and SIGKILL when replacing a child.
DEFAULT_STOP_TIMEOUT_SECONDS = 3.0
DEFAULT_STOP_SIGNAL = "SIGTERM"

BASH_PROMPT = "(.env) # "

USAGE = "Usage: envshell [-f <file>] [-w] [-d] [-- <command> [args...]]"
