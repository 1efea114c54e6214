"""PID file handling used to detect a running broker instance."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

log = logging.getLogger(__name__)

_PID_RE = re.compile(r"\s*(\d+)")


def process_alive(pid: int) -> bool:
    """Return True if a signal may be delivered to ``pid``."""
    try:
        os.kill(pid, 0)
    except (OSError, OverflowError):
        return False
    return True


def status_check(path: str | os.PathLike) -> int | None:
    """Return the PID of a running instance recorded in ``path``, or None.

    A PID file naming a process that no longer runs is removed. OSError is
    raised if such a stale file cannot be removed.
    """
    pid_path = Path(path)
    try:
        data = pid_path.read_bytes()
    except OSError:
        log.warning(".pid file not found or unreadable")
        return None

    match = _PID_RE.match(data.decode("ascii", errors="replace"))
    if match is None:
        log.error("read pid from file error!")
        return None
    pid = int(match.group(1))
    log.info("pid read, [%d]", pid)

    if process_alive(pid):
        log.info("there is a running instance : pid [%d]", pid)
        return pid

    pid_path.unlink()
    log.info(".pid file is removed")
    return None


def store_pid(path: str | os.PathLike) -> int:
    """Write the current process ID to ``path`` and return it."""
    pid = os.getpid()
    log.info("%d", pid)
    Path(path).write_text(str(pid), encoding="ascii")
    return pid