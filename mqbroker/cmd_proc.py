"""Control channel: the reload command, its handler, server and client.

Messages travel over a Unix socket using the scalability-protocol framing
of a request/reply pair: an 8-byte handshake, then frames of one type byte,
a 64-bit big-endian length and the payload.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import secrets
import socket
import struct
import threading
from typing import Callable

from .conf_update import reload_auth_config, reload_basic_config, reload_sqlite_config
from .config import BrokerConfig

log = logging.getLogger(__name__)

DEFAULT_IPC_PATH = "/tmp/mqbroker_cmd.ipc"
RELOAD_SUCCEED = "reload succeed"

_PROTO_REQ = 48
_PROTO_REP = 49
_MAX_FRAME = 1024 * 1024
_POLL_INTERVAL = 0.1

Loader = Callable[[str], BrokerConfig]


class CommandError(Exception):
    """A control command was rejected; the message is sent back to the client."""


def encode_client_cmd(conf_file: str | None) -> str:
    """Build the JSON reload command; ``conf_file`` is omitted when None."""
    obj: dict[str, str] = {"cmd": "reload"}
    if conf_file is not None:
        obj["conf_file"] = conf_file
    return json.dumps(obj, separators=(",", ":"))


def _decode(raw: bytes | str) -> object:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        return json.loads(text.rstrip("\x00"))
    except ValueError:
        return None


def handle_command(raw: bytes | str, config: BrokerConfig, loader: Loader) -> None:
    """Execute a reload command against ``config``.

    ``loader`` reads a configuration file and returns its BrokerConfig.
    Raises CommandError describing why the command was rejected.
    """
    obj = _decode(raw)
    cmd = obj.get("cmd") if isinstance(obj, dict) else None
    if not isinstance(cmd, str) or cmd.lower() != "reload":
        raise CommandError("Invalid command")

    conf_file = obj.get("conf_file")
    if not isinstance(conf_file, str):
        conf_file = None
        if config.conf_file is None:
            raise CommandError("conf_file is not specified")
    elif not os.path.exists(conf_file):
        raise CommandError("conf_file does not exist")

    new_conf = loader(conf_file if conf_file is not None else config.conf_file)
    reload_basic_config(config, new_conf)
    reload_sqlite_config(config.sqlite, new_conf.sqlite)
    reload_auth_config(config.auths, new_conf.auths)


def respond(raw: bytes | str, config: BrokerConfig, loader: Loader) -> str:
    """Run a command and return the text to send back to the client."""
    try:
        handle_command(raw, config, loader)
    except CommandError as exc:
        return str(exc)
    return RELOAD_SUCCEED


def _handshake(proto: int) -> bytes:
    return b"\x00SP\x00" + struct.pack(">H", proto) + b"\x00\x00"


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    chunks = bytearray()
    while len(chunks) < size:
        chunk = sock.recv(size - len(chunks))
        if not chunk:
            raise ConnectionError("connection closed by peer")
        chunks += chunk
    return bytes(chunks)


def _exchange_handshake(sock: socket.socket, own: int, expected_peer: int) -> None:
    sock.sendall(_handshake(own))
    peer = _recv_exact(sock, 8)
    if peer != _handshake(expected_peer):
        raise ConnectionError("unexpected protocol handshake from peer")


def _send_frame(sock: socket.socket, payload: bytes) -> None:
    sock.sendall(b"\x01" + struct.pack(">Q", len(payload)) + payload)


def _read_frame(sock: socket.socket) -> bytes:
    head = _recv_exact(sock, 9)
    if head[0] != 1:
        raise ConnectionError("unknown frame type")
    (size,) = struct.unpack(">Q", head[1:])
    if size > _MAX_FRAME:
        raise ConnectionError("frame too large")
    return _recv_exact(sock, size)


def _split_backtrace(payload: bytes) -> tuple[bytes, bytes]:
    """Split a request into its routing header and body."""
    for offset in range(0, len(payload) - 3, 4):
        if payload[offset] & 0x80:
            return payload[: offset + 4], payload[offset + 4:]
    raise ValueError("request without a request id")


def send_command(
    cmd: str, path: str | os.PathLike = DEFAULT_IPC_PATH, timeout: float = 10.0
) -> str:
    """Send ``cmd`` to a running broker and return its reply text.

    An empty string means the broker answered with no text. OSError is
    raised if the broker cannot be reached or does not answer in time.
    """
    request_id = secrets.randbits(31) | 0x80000000
    header = struct.pack(">I", request_id)
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        sock.connect(os.fspath(path))
        _exchange_handshake(sock, _PROTO_REQ, _PROTO_REP)
        _send_frame(sock, header + cmd.encode("utf-8") + b"\x00")
        while True:
            reply = _read_frame(sock)
            if reply[:4] == header:
                break
    body = reply[4:]
    return body.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


class CommandServer:
    """Serve control commands on a Unix socket in background threads."""

    def __init__(
        self,
        config: BrokerConfig,
        loader: Loader,
        path: str | os.PathLike = DEFAULT_IPC_PATH,
    ) -> None:
        self.config = config
        self.loader = loader
        self.path = os.fspath(path)
        self._listener: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()
        self._lock = threading.Lock()
        self._connections: set[socket.socket] = set()

    def start(self) -> None:
        """Bind the socket, replacing a stale one, and start serving."""
        if self._listener is not None:
            raise RuntimeError("command server already started")
        with contextlib.suppress(FileNotFoundError):
            os.unlink(self.path)
        listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            listener.bind(self.path)
            listener.listen()
            listener.settimeout(_POLL_INTERVAL)
        except OSError:
            listener.close()
            raise
        self._listener = listener
        self._stopping.clear()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop serving, close open connections and remove the socket file."""
        if self._listener is None:
            return
        self._stopping.set()
        if self._thread is not None:
            self._thread.join()
        self._listener.close()
        self._listener = None
        self._thread = None
        with self._lock:
            connections = list(self._connections)
        for conn in connections:
            with contextlib.suppress(OSError):
                conn.shutdown(socket.SHUT_RDWR)
        with contextlib.suppress(FileNotFoundError):
            os.unlink(self.path)

    def __enter__(self) -> "CommandServer":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()

    def _serve(self) -> None:
        assert self._listener is not None
        while not self._stopping.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            conn.settimeout(None)
            with self._lock:
                self._connections.add(conn)
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: socket.socket) -> None:
        try:
            _exchange_handshake(conn, _PROTO_REP, _PROTO_REQ)
            while True:
                header, body = _split_backtrace(_read_frame(conn))
                log.debug("recv cmd : %s", body.decode("utf-8", errors="replace"))
                with self._lock:
                    reply = respond(body, self.config, self.loader)
                log.debug("send resp : %s", reply)
                _send_frame(conn, header + reply.encode("utf-8") + b"\x00")
        except (OSError, ValueError):
            pass
        finally:
            with self._lock:
                self._connections.discard(conn)
            conn.close()