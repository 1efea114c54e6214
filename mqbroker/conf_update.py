"""Apply JSON-shaped updates and reloaded files to a live configuration."""

from __future__ import annotations

from typing import Any, Callable

from .config import (
    AuthConfig,
    AuthHttpConfig,
    AuthType,
    BrokerConfig,
    HttpParam,
    HttpRequestConfig,
    HttpServerConfig,
    ParamType,
    SqliteConfig,
    TlsConfig,
    WebsocketConfig,
)

_KIB = 1024


def _number(data: Any, key: str) -> int | float | None:
    value = data.get(key) if isinstance(data, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _boolean(data: Any, key: str) -> bool | None:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, bool) else None


def _string(data: Any, key: str) -> str | None:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, str) else None


def _as_int(value: int | float) -> int:
    return int(value)


def _kib(value: int | float) -> int:
    return int(value) * _KIB


# (json key, attribute, reader, converter)
_Spec = tuple[str, str, Callable[[Any, str], Any], Callable[[Any], Any]]


def _apply(data: Any, target: Any, specs: list[_Spec]) -> None:
    for key, attr, reader, convert in specs:
        value = reader(data, key)
        if value is not None:
            setattr(target, attr, convert(value))


def _same(value: Any) -> Any:
    return value


_RELOAD_SPECS: list[_Spec] = [
    ("property_size", "property_size", _number, _as_int),
    ("msq_len", "msq_len", _number, _as_int),
    ("qos_duration", "qos_duration", _number, _as_int),
    ("allow_anonymous", "allow_anonymous", _boolean, _same),
    ("max_packet_size", "max_packet_size", _number, _kib),
    ("client_max_packet_size", "client_max_packet_size", _number, _kib),
    ("keepalive_backoff", "backoff", _number, float),
]

_BASIC_SPECS: list[_Spec] = [
    ("url", "url", _string, _same),
    ("enable", "enable", _boolean, _same),
    ("daemon", "daemon", _boolean, _same),
    ("num_taskq_thread", "num_taskq_thread", _number, _as_int),
    ("max_taskq_thread", "max_taskq_thread", _number, _as_int),
    ("parallel", "parallel", _number, _as_int),
    ("property_size", "property_size", _number, _as_int),
    ("msq_len", "msq_len", _number, _as_int),
    ("qos_duration", "qos_duration", _number, _as_int),
    ("allow_anonymous", "allow_anonymous", _boolean, _same),
    ("ipc_internal", "ipc_internal", _boolean, _same),
    ("max_packet_size", "max_packet_size", _number, _kib),
    ("client_max_packet_size", "client_max_packet_size", _number, _kib),
    ("keepalive_backoff", "backoff", _number, float),
]

_TLS_SPECS: list[_Spec] = [
    ("enable", "enable", _boolean, _same),
    ("url", "url", _string, _same),
    ("keypass", "key_password", _string, _same),
    ("key", "key", _string, _same),
    ("cert", "cert", _string, _same),
    ("cacert", "ca", _string, _same),
    ("verify_peer", "verify_peer", _boolean, _same),
    ("fail_if_no_peer_cert", "set_fail", _boolean, _same),
]

_HTTP_SPECS: list[_Spec] = [
    ("enable", "enable", _boolean, _same),
    ("port", "port", _number, _as_int),
    ("username", "username", _string, _same),
    ("password", "password", _string, _same),
]

_WEBSOCKET_SPECS: list[_Spec] = [
    ("enable", "enable", _boolean, _same),
    ("url", "url", _string, _same),
    ("tls_url", "tls_url", _string, _same),
]

_SQLITE_SPECS: list[_Spec] = [
    ("enable", "enable", _boolean, _same),
    ("mounted_file_path", "mounted_file_path", _string, _same),
    ("disk_cache_size", "disk_cache_size", _number, _as_int),
    ("flush_mem_threshold", "flush_mem_threshold", _number, _as_int),
    ("resend_interval", "resend_interval", _number, _as_int),
]

_AUTH_HTTP_SPECS: list[_Spec] = [
    ("enable", "enable", _boolean, _same),
    ("timeout", "timeout", _number, _as_int),
    ("connect_timeout", "connect_timeout", _number, _as_int),
    ("pool_size", "pool_size", _number, _as_int),
]


def set_reload_config(data: dict, config: BrokerConfig) -> None:
    """Apply the hot-reloadable subset of settings. Sizes are given in KiB."""
    _apply(data, config, _RELOAD_SPECS)


def set_basic_config(data: dict, config: BrokerConfig) -> None:
    """Apply basic broker settings. Sizes are given in KiB."""
    _apply(data, config, _BASIC_SPECS)


def set_tls_config(data: dict, tls: TlsConfig) -> None:
    _apply(data, tls, _TLS_SPECS)


def set_http_config(data: dict, http: HttpServerConfig) -> None:
    """Apply HTTP server settings; unknown auth types are ignored."""
    _apply(data, http, _HTTP_SPECS)
    auth_type = _string(data, "auth_type")
    if auth_type == "basic":
        http.auth_type = AuthType.BASIC
    elif auth_type == "jwt":
        http.auth_type = AuthType.JWT


def set_websocket_config(data: dict, ws: WebsocketConfig) -> None:
    _apply(data, ws, _WEBSOCKET_SPECS)


def set_sqlite_config(data: dict, sqlite: SqliteConfig) -> None:
    _apply(data, sqlite, _SQLITE_SPECS)


def set_auth_config(data: list, auth: AuthConfig) -> None:
    """Replace credentials position by position, appending past the end.

    Entries lacking a string login or password are skipped.
    """
    for position, entry in enumerate(data):
        username = _string(entry, "login")
        password = _string(entry, "password")
        if username is None or password is None:
            continue
        if position < auth.count:
            auth.credentials[position] = (username, password)
        else:
            auth.add(username, password)


def _set_auth_http_req(data: dict, req: HttpRequestConfig) -> None:
    _apply(data, req, [
        ("url", "url", _string, _same),
        ("method", "method", _string, _same),
    ])

    headers = data.get("headers")
    if isinstance(headers, dict):
        items = list(req.headers.items())
        new_items = [(k, v) for k, v in headers.items() if isinstance(v, str)]
        for position, pair in enumerate(new_items):
            if position < len(items):
                items[position] = pair
            else:
                items.append(pair)
        req.headers = dict(items)

    if "params" in data:
        params = data["params"] if isinstance(data["params"], list) else []
        new_params = []
        for name in params:
            if not isinstance(name, str):
                continue
            try:
                kind = ParamType.from_name(name)
            except ValueError:
                continue
            new_params.append(HttpParam(kind.value, kind))
        req.params = new_params


def set_auth_http_config(data: dict, auth_http: AuthHttpConfig) -> None:
    """Apply HTTP authentication settings and its three request blocks."""
    _apply(data, auth_http, _AUTH_HTTP_SPECS)
    for key in ("auth_req", "acl_req", "super_req"):
        block = data.get(key)
        if isinstance(block, dict):
            _set_auth_http_req(block, getattr(auth_http, key))


def reload_basic_config(current: BrokerConfig, new: BrokerConfig) -> None:
    """Copy the settings that may change while the broker runs."""
    current.property_size = new.property_size
    current.max_packet_size = new.max_packet_size
    current.client_max_packet_size = new.client_max_packet_size
    current.msq_len = new.msq_len
    current.qos_duration = new.qos_duration
    current.backoff = new.backoff
    current.allow_anonymous = new.allow_anonymous


def reload_sqlite_config(current: SqliteConfig, new: SqliteConfig) -> None:
    current.flush_mem_threshold = new.flush_mem_threshold


def reload_auth_config(current: AuthConfig, new: AuthConfig) -> None:
    """Replace all credentials with those of ``new``."""
    current.credentials = list(new.credentials)