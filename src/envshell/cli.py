"""Command-line interface for envshell."""

import argparse
import logging
import signal
import sys

from envshell import __version__
from envshell.config import load_settings
from envshell.constants import DEFAULT_ENV_FILE, USAGE
from envshell.errors import ArgumentError, ConfigError, EnvShellError, FileError
from envshell.models import Options
from envshell.supervisor import Supervisor

log = logging.getLogger("envshell")

CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


def build_parser() -> argparse.ArgumentParser:
    """Build the parser for everything before "--"."""
    parser = argparse.ArgumentParser(
        prog="envshell",
        usage=USAGE.removeprefix("Usage: "),
        description=(
            "Run a shell or command with the variables from a .env file, "
            "optionally restarting it when the file changes."
        ),
        epilog="Without -- the command defaults to $SHELL.",
        add_help=False,
    )
    parser.add_argument(
        "-f",
        "--file",
        dest="env_file",
        metavar="file",
        default=DEFAULT_ENV_FILE,
        help=f"Env file to load (default: {DEFAULT_ENV_FILE})",
    )
    parser.add_argument(
        "-w",
        dest="watch",
        action="store_true",
        help="Restart the command whenever the env file changes",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this help and exit")
    return parser


def split_command(argv: list[str]) -> tuple[list[str], list[str] | None]:
    """Split argv at the first "--" into flags and the verbatim command.

    The token after -f is always its value, even when it is "--".
    """
    index = 0
    while index < len(argv):
        if argv[index] == "--":
            return argv[:index], argv[index + 1 :]
        index += 2 if argv[index] == "-f" else 1
    return argv, None


def _normalise_flags(flags: list[str]) -> tuple[list[str], bool]:
    """Attach -f values and cut the flags at the first -h.

    Flags after -h are never parsed, so help wins over later mistakes.
    """
    normalised = []
    tokens = iter(flags)
    for token in tokens:
        if token in ("-h", "--help"):
            return normalised, True
        if token == "-f":
            value = next(tokens, None)
            # Missing values are left for argparse to report.
            normalised.append(token if value is None else f"--file={value}")
        else:
            normalised.append(token)
    return normalised, False


def parse_options(parser: argparse.ArgumentParser, argv: list[str]) -> Options:
    """Parse argv into Options. Exits with status 2 on unknown flags."""
    flags, command = split_command(argv)
    flags, wants_help = _normalise_flags(flags)
    args = parser.parse_args(flags)
    values = {
        "env_file": args.env_file,
        "watch": args.watch,
        "help": args.help or wants_help,
        "debug": args.debug,
    }
    if command is not None:
        values["command"] = command
    return Options(**values)


def _exit_code(status: int | None) -> int:
    if status is None:
        return 1
    if status < 0:
        return 128 - status
    return status


def _install_signal_handlers(supervisor: Supervisor) -> dict[int, object]:
    previous = {}
    for signum in CANCEL_SIGNALS:
        previous[signum] = signal.signal(signum, lambda _signum, _frame: supervisor.cancel())
    return previous


def _restore_signal_handlers(previous: dict[int, object]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    options = parse_options(parser, list(sys.argv[1:] if argv is None else argv))
    if options.help:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if options.debug else logging.INFO,
        format="%(name)s %(levelname)s: %(message)s",
    )

    try:
        options.check()
    except (ArgumentError, FileError) as e:
        log.error("Error validating option: %s", e)
        parser.print_usage(sys.stderr)
        return 2

    try:
        options.settings = load_settings()
    except ConfigError as e:
        log.error("%s", e)
        return 1

    log.info("Using env file: %s", options.env_file)
    supervisor = Supervisor(options)
    previous = _install_signal_handlers(supervisor)
    try:
        status = supervisor.run()
    except EnvShellError as e:
        log.error("%s", e)
        return 1
    finally:
        _restore_signal_handlers(previous)
    return _exit_code(status)


def entrypoint() -> None:
    """Console script entrypoint."""
    raise SystemExit(main())
