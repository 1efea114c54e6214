"""Configuration model for the broker, its listeners, auth and bridges."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

MQTT_PROTOCOL_VERSION_V311 = 4
MQTT_PROTOCOL_VERSION_V5 = 5


class AuthType(enum.Enum):
    """Authentication scheme of the HTTP management server."""

    BASIC = "basic"
    JWT = "jwt"


class ParamType(enum.Enum):
    """Kind of a parameter sent with an HTTP auth request."""

    USERNAME = "username"
    PASSWORD = "password"
    CLIENTID = "clientid"
    ACCESS = "access"
    TOPIC = "topic"
    IPADDRESS = "ipaddress"
    SOCKPORT = "sockport"
    COMMON_NAME = "common"
    PROTOCOL = "protocol"
    MOUNTPOINT = "mountpoint"

    @classmethod
    def from_name(cls, name: str) -> "ParamType":
        """Look a parameter up by name, ignoring case.

        ``subject`` is accepted as an alias of ``protocol``.
        Raises ValueError for an unknown name.
        """
        key = name.lower()
        if key == "subject":
            return cls.PROTOCOL
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown auth parameter: {name!r}") from None


@dataclass
class TlsConfig:
    enable: bool = False
    url: str | None = None
    key_password: str | None = None
    key: str | None = None
    cert: str | None = None
    ca: str | None = None
    verify_peer: bool = False
    set_fail: bool = False


@dataclass
class HttpServerConfig:
    enable: bool = False
    port: int = 8081
    username: str | None = None
    password: str | None = None
    auth_type: AuthType = AuthType.BASIC


@dataclass
class WebsocketConfig:
    enable: bool = False
    url: str | None = None
    tls_url: str | None = None


@dataclass
class SqliteConfig:
    enable: bool = False
    disk_cache_size: int = 0
    flush_mem_threshold: int = 0
    resend_interval: int = 0
    mounted_file_path: str | None = None


@dataclass
class AuthConfig:
    """Username/password pairs accepted by the broker, in order."""

    credentials: list[tuple[str, str]] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.credentials)

    def add(self, username: str, password: str) -> None:
        """Append a username/password pair."""
        self.credentials.append((username, password))


@dataclass
class HttpParam:
    name: str
    type: ParamType


@dataclass
class HttpRequestConfig:
    url: str | None = None
    method: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    params: list[HttpParam] = field(default_factory=list)
    tls: TlsConfig = field(default_factory=TlsConfig)


@dataclass
class AuthHttpConfig:
    enable: bool = False
    timeout: int = 0
    connect_timeout: int = 0
    pool_size: int = 0
    auth_req: HttpRequestConfig = field(default_factory=HttpRequestConfig)
    acl_req: HttpRequestConfig = field(default_factory=HttpRequestConfig)
    super_req: HttpRequestConfig = field(default_factory=HttpRequestConfig)


@dataclass
class UserProperty:
    key: str
    value: str


@dataclass
class BridgeConnProperties:
    """MQTT v5 CONNECT properties; defaults are the protocol defaults."""

    session_expiry_interval: int = 0
    receive_maximum: int = 65535
    maximum_packet_size: int = 0
    topic_alias_maximum: int = 0
    request_response_info: int = 0
    request_problem_info: int = 1
    user_property: list[UserProperty] = field(default_factory=list)


@dataclass
class BridgeWillProperties:
    payload_format_indicator: int = 0
    message_expiry_interval: int = 0
    content_type: str | None = None
    response_topic: str | None = None
    correlation_data: str | None = None
    will_delay_interval: int = 0
    user_property: list[UserProperty] = field(default_factory=list)


@dataclass
class BridgeSubProperties:
    """MQTT v5 SUBSCRIBE properties; 0xffffffff means no identifier."""

    identifier: int = 0xFFFFFFFF
    user_property: list[UserProperty] = field(default_factory=list)


@dataclass
class Subscription:
    topic: str
    qos: int = 0


@dataclass
class BridgeNode:
    name: str | None = None
    enable: bool = False
    parallel: int = 1
    address: str | None = None
    proto_ver: int = MQTT_PROTOCOL_VERSION_V311
    clientid: str | None = None
    clean_start: bool = True
    username: str | None = None
    password: str | None = None
    keepalive: int = 60
    will_flag: bool = False
    will_topic: str | None = None
    will_payload: str | None = None
    will_qos: int = 0
    will_retain: bool = False
    conn_properties: BridgeConnProperties | None = None
    will_properties: BridgeWillProperties | None = None
    sub_properties: BridgeSubProperties | None = None
    forwards: list[str] = field(default_factory=list)
    sub_list: list[Subscription] = field(default_factory=list)
    tls: TlsConfig = field(default_factory=TlsConfig)
    hybrid: bool = False
    multi_stream: bool = False
    qos_first: bool = False
    quic_0rtt: bool = False
    qkeepalive: int = 0
    qidle_timeout: int = 0
    qdiscon_timeout: int = 0
    qsend_idle_timeout: int = 0
    qinitial_rtt_ms: int = 0
    qmax_ack_delay_ms: int = 0

    @property
    def sub_count(self) -> int:
        return len(self.sub_list)


@dataclass
class BridgeConfig:
    nodes: list[BridgeNode] = field(default_factory=list)
    sqlite: SqliteConfig = field(default_factory=SqliteConfig)

    @property
    def count(self) -> int:
        return len(self.nodes)


@dataclass
class LogConfig:
    level: str = "warn"
    file: str | None = None
    dir: str | None = None
    to_console: bool = True
    to_file: bool = False
    to_syslog: bool = False


@dataclass
class BrokerConfig:
    """Complete broker configuration. Packet sizes are in bytes."""

    conf_file: str | None = None
    url: str | None = None
    enable: bool = True
    daemon: bool = False
    num_taskq_thread: int = 0
    max_taskq_thread: int = 0
    parallel: int = 0
    property_size: int = 0
    max_packet_size: int = 0
    client_max_packet_size: int = 0
    msq_len: int = 0
    qos_duration: int = 0
    backoff: float = 0.0
    allow_anonymous: bool = True
    ipc_internal: bool = False
    bridge_mode: bool = False
    web_hook_enable: bool = False
    tls: TlsConfig = field(default_factory=TlsConfig)
    http_server: HttpServerConfig = field(default_factory=HttpServerConfig)
    websocket: WebsocketConfig = field(default_factory=WebsocketConfig)
    sqlite: SqliteConfig = field(default_factory=SqliteConfig)
    auths: AuthConfig = field(default_factory=AuthConfig)
    auth_http: AuthHttpConfig = field(default_factory=AuthHttpConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    log: LogConfig = field(default_factory=LogConfig)