"""Run a command with variables loaded from a .env file."""

__version__ = "0.1.0"
