"""Command-line options of the broker commands."""

from __future__ import annotations

import enum
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from .config import BrokerConfig
from .urls import predicate_url

PROGRAM = "mqbroker"


class OptionError(Exception):
    """A command-line option could not be parsed.

    ``reason`` is one of ``"invalid"``, ``"ambiguous"`` or ``"noarg"``;
    ``option`` is the offending argument.
    """

    _TEMPLATES = {
        "invalid": "Option {opt} is invalid.\nTry '{prog} --help' for more information.",
        "ambiguous": (
            "Option {opt} is ambiguous (specify in full).\n"
            "Try '{prog} --help' for more information."
        ),
        "noarg": "Option {opt} requires argument.\nTry '{prog} --help' for more information.",
    }

    def __init__(self, reason: str, option: str) -> None:
        self.reason = reason
        self.option = option
        super().__init__(self._TEMPLATES[reason].format(opt=option, prog=PROGRAM))


class ConfKind(enum.Enum):
    """Format of the configuration file named on the command line."""

    HOCON = "hocon"
    OLD = "old"


@dataclass(frozen=True)
class OptSpec:
    """One option: its long name, optional one-letter name, and whether it takes a value."""

    name: str
    short: str | None = None
    has_arg: bool = False


BROKER_OPTS: tuple[OptSpec, ...] = (
    OptSpec("help", "h"),
    OptSpec("conf", has_arg=True),
    OptSpec("old_conf", has_arg=True),
    OptSpec("daemon", "d"),
    OptSpec("tq_thread", "t", True),
    OptSpec("max_tq_thread", "T", True),
    OptSpec("parallel", "n", True),
    OptSpec("property_size", "s", True),
    OptSpec("msq_len", "S", True),
    OptSpec("qos_duration", "D", True),
    OptSpec("url", has_arg=True),
    OptSpec("http"),
    OptSpec("port", "p", True),
    OptSpec("cacert", has_arg=True),
    OptSpec("cert", "E", True),
    OptSpec("key", has_arg=True),
    OptSpec("keypass", has_arg=True),
    OptSpec("verify"),
    OptSpec("fail"),
    OptSpec("log_level", has_arg=True),
    OptSpec("log_stdout", has_arg=True),
    OptSpec("log_syslog", has_arg=True),
    OptSpec("log_file", has_arg=True),
)


def _find_long(name: str, arg: str, specs: Sequence[OptSpec]) -> OptSpec:
    candidates = [spec for spec in specs if spec.name.startswith(name)]
    for spec in candidates:
        if spec.name == name:
            return spec
    if not candidates:
        raise OptionError("invalid", arg)
    if len(candidates) > 1:
        raise OptionError("ambiguous", arg)
    return candidates[0]


def _find_short(letter: str, arg: str, specs: Sequence[OptSpec]) -> OptSpec:
    for spec in specs:
        if spec.short == letter:
            return spec
    raise OptionError("invalid", arg)


def parse_opts(argv: Sequence[str], specs: Sequence[OptSpec]) -> Iterator[tuple[str, str | None]]:
    """Yield ``(name, value)`` for each option in ``argv``.

    Long names may be abbreviated to any unique prefix and take their value
    after ``=``, ``:`` or as the next argument; short options take it attached
    or as the next argument. Parsing stops at the first non-option argument
    or at ``--``. Raises OptionError on a bad option.
    """
    index = 0
    while index < len(argv):
        arg = argv[index]
        if not arg.startswith("-") or arg in ("-", "--"):
            return
        if arg.startswith("--"):
            body = arg[2:]
            cut = next((pos for pos, ch in enumerate(body) if ch in "=:"), len(body))
            spec = _find_long(body[:cut], arg, specs)
            rest = body[cut:]
            attached = rest[1:] if rest else None
        else:
            spec = _find_short(arg[1], arg, specs)
            rest = arg[2:]
            attached = rest or None

        if not spec.has_arg:
            if rest:
                raise OptionError("invalid", arg)
            yield spec.name, None
            index += 1
            continue

        if attached is None and not rest:
            index += 1
            if index >= len(argv):
                raise OptionError("noarg", arg)
            value = argv[index]
        else:
            value = attached if attached is not None else ""
        yield spec.name, value
        index += 1


def usage() -> str:
    """The help text of the broker commands."""
    pad = " " * 29
    lines = [
        f"Usage: {PROGRAM} {{ {{ start | restart [--url <url>] [--conf <path>] [-t, --tq_thread <num>]",
        "                     [-T, -max_tq_thread <num>] [-n, --parallel <num>]",
        "                     [--old_conf <path>] [-D, --qos_duration <num>] [--http] "
        "[-p, --port] [-d, --daemon]",
        "                     [--cacert <path>] [-E, --cert <path>] [--key <path>]",
        "                     [--keypass <password>] [--verify] [--fail] }",
        "                     | reload [--conf <path>]",
        "                     | stop }",
        "",
        "Options: ",
        "  --url <url>                Specify listener's url: 'nmq-tcp://host:port',",
        f"{pad}'tls+nmq-tcp://host:port',",
        f"{pad}'nmq-ws://host:port/path',",
        f"{pad}'nmq-wss://host:port/path'",
        "  --conf <path>              The path of a specified HOCON style configuration file",
        "  --old_conf <path>          The path of a specified deprecated version configuration file",
        "  --http                     Enable http server (default: false)",
        "  -p, --port <num>           The port of http server (default: 8081)",
        "  -t, --tq_thread <num>      The number of taskq threads used,",
        f"{pad}`num` greater than 0 and less than 256",
        "  -T, --max_tq_thread <num>  The maximum number of taskq threads used,",
        f"{pad}`num` greater than 0 and less than 256",
        "  -n, --parallel <num>       The maximum number of outstanding requests we can handle",
        "  -s, --property_size <num>  The max size for a MQTT user property",
        "  -S, --msq_len <num>        The queue length for resending messages",
        "  -D, --qos_duration <num>   The interval of the qos timer",
        "  -d, --daemon               Run as daemon (default: false)",
        "  --cacert                   Path to the file containing PEM-encoded CA certificates",
        "  -E, --cert                 Path to a file containing the user certificate",
        "  --key                      Path to the file containing the user's private PEM-encoded key",
        "  --keypass                  String containing the user's password.",
        f"{pad}Only used if the private keyfile is password-protected",
        "  --verify                   Set verify peer certificate (default: false)",
        "  --fail                     Server will fail if the client does not have a",
        f"{pad}certificate to send (default: false)",
        "  --log_level   <level>      The level of log output",
        f"{pad}(level: trace, debug, info, warn, error, fatal)",
        f"{pad}(default: warn)",
        "  --log_file    <file_path>  The path of the log file",
        "  --log_stdout  <true|false> Enable/Disable console log output (default: true)",
        "  --log_syslog  <true|false> Enable/Disable syslog output (default: false)",
    ]
    return "\n".join(lines)


def file_path_parse(argv: Sequence[str]) -> tuple[ConfKind, str | None]:
    """Return the configuration file kind and path named in ``argv``.

    The first ``--conf`` or ``--old_conf`` option decides; without one the
    result is ``(ConfKind.HOCON, None)``. ``--help`` prints the usage and
    exits. Raises OptionError on a bad option.
    """
    for name, value in parse_opts(argv, BROKER_OPTS):
        if name == "help":
            print(usage())
            raise SystemExit(0)
        if name == "conf":
            return ConfKind.HOCON, value
        if name == "old_conf":
            return ConfKind.OLD, value
    return ConfKind.HOCON, None


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _load_file(path: str) -> str | None:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError:
        return None


def _switch(value: str) -> bool | None:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def broker_parse_opts(argv: Sequence[str], config: BrokerConfig) -> None:
    """Apply command-line options to ``config``.

    Numbers are read like C ``atoi``; certificate options name files whose
    contents are loaded. Raises OptionError on a bad option.
    """
    numeric = {
        "parallel": "parallel",
        "tq_thread": "num_taskq_thread",
        "max_tq_thread": "max_taskq_thread",
        "property_size": "property_size",
        "msq_len": "msq_len",
        "qos_duration": "qos_duration",
    }
    tls_files = {"cacert": "ca", "cert": "cert", "key": "key"}
    for name, value in parse_opts(argv, BROKER_OPTS):
        if name in numeric:
            setattr(config, numeric[name], _atoi(value or ""))
        elif name == "daemon":
            config.daemon = True
        elif name == "url":
            predicate_url(config, value or "")
        elif name in tls_files:
            setattr(config.tls, tls_files[name], _load_file(value or ""))
        elif name == "keypass":
            config.tls.key_password = value
        elif name == "verify":
            config.tls.verify_peer = True
        elif name == "fail":
            config.tls.set_fail = True
        elif name == "http":
            config.http_server.enable = True
        elif name == "port":
            config.http_server.port = _atoi(value or "")
        elif name == "log_level":
            config.log.level = (value or "").lower()
        elif name == "log_file":
            text = value or ""
            config.log.to_file = True
            slash = text.rfind("/")
            if slash >= 0:
                config.log.file = text[slash:]
                config.log.dir = text[:slash]
            else:
                config.log.file = text
                config.log.dir = None
        elif name == "log_syslog":
            flag = _switch(value or "")
            if flag is not None:
                config.log.to_syslog = flag
        elif name == "log_stdout":
            flag = _switch(value or "")
            if flag is not None:
                config.log.to_console = flag


if __name__ == "__main__":  # pragma: no cover
    print(usage(), file=sys.stdout)