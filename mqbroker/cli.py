"""Command-line entry point: stop, reload and help for the broker."""

from __future__ import annotations

import os
import signal
import sys
from typing import Sequence

from .cmd_proc import DEFAULT_IPC_PATH, encode_client_cmd, send_command
from .options import OptionError, file_path_parse, usage
from .pidfile import status_check

DEFAULT_PID_PATH = "/tmp/mqbroker.pid"


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def broker_dflt(argv: Sequence[str] | None = None) -> int:
    """Print the usage text."""
    print(usage())
    return 0


def broker_stop(
    argv: Sequence[str] | None = None, pid_path: str | os.PathLike = DEFAULT_PID_PATH
) -> int:
    """Send SIGTERM to the running instance recorded in ``pid_path``."""
    if argv:
        print(usage())
        return 1
    pid = status_check(pid_path)
    if pid is None:
        _err("There is no running broker instance.")
        return 1
    os.kill(pid, signal.SIGTERM)
    _err("Broker stopped.")
    return 0


def broker_reload(
    argv: Sequence[str] | None = None,
    pid_path: str | os.PathLike = DEFAULT_PID_PATH,
    ipc_path: str | os.PathLike = DEFAULT_IPC_PATH,
) -> int:
    """Ask the running broker to reload its configuration and print the reply."""
    if status_check(pid_path) is None:
        _err(
            "The broker is not running, use command "
            "'mqbroker start [--conf <path>]' to start a new instance."
        )
        return 1
    try:
        _, file_path = file_path_parse(argv or [])
    except OptionError as exc:
        _err(str(exc))
        _err("Cannot parse command line arguments, quit")
        return 1

    try:
        reply = send_command(encode_client_cmd(file_path), ipc_path)
    except OSError as exc:
        _err(f"cannot reach the broker: {exc}")
        return 1
    print(reply if reply else "no response from broker")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Dispatch a broker sub-command; unknown commands print the usage."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        return broker_dflt(args)
    command, rest = args[0], args[1:]
    if command == "stop":
        return broker_stop(rest)
    if command == "reload":
        return broker_reload(rest)
    return broker_dflt(rest)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())