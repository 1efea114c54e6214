import json

from mqbroker.conf_export import (
    get_auth_config,
    get_auth_http_config,
    get_basic_config,
    get_bridge_config,
    get_bridge_connector,
    get_bridge_sub_properties,
    get_http_config,
    get_reload_config,
    get_sqlite_config,
    get_tls_config,
    get_user_properties,
    get_websocket_config,
)
from mqbroker.conf_update import (
    set_auth_config,
    set_basic_config,
    set_reload_config,
    set_sqlite_config,
    set_websocket_config,
)
from mqbroker.config import (
    MQTT_PROTOCOL_VERSION_V5,
    AuthConfig,
    AuthHttpConfig,
    AuthType,
    BridgeConfig,
    BridgeConnProperties,
    BridgeNode,
    BridgeSubProperties,
    BridgeWillProperties,
    BrokerConfig,
    HttpParam,
    HttpServerConfig,
    ParamType,
    SqliteConfig,
    Subscription,
    TlsConfig,
    UserProperty,
    WebsocketConfig,
)


def _config():
    return BrokerConfig(
        url="nmq-tcp://0.0.0.0:1883",
        num_taskq_thread=4,
        max_taskq_thread=8,
        parallel=32,
        property_size=64,
        max_packet_size=10 * 1024,
        client_max_packet_size=20 * 1024,
        msq_len=2048,
        qos_duration=10,
        backoff=1.5,
        allow_anonymous=False,
        ipc_internal=True,
        daemon=True,
    )


def test_basic_config_sizes_in_kib():
    data = get_basic_config(_config())
    assert data["max_packet_size"] == 10
    assert data["client_max_packet_size"] == 20
    assert data["keepalive_backoff"] == 1.5
    assert data["url"] == "nmq-tcp://0.0.0.0:1883"


def test_basic_config_round_trip():
    source = _config()
    target = BrokerConfig()
    set_basic_config(get_basic_config(source), target)
    for attr in (
        "url", "num_taskq_thread", "max_taskq_thread", "parallel",
        "property_size", "max_packet_size", "client_max_packet_size",
        "msq_len", "qos_duration", "backoff", "allow_anonymous",
        "ipc_internal", "daemon",
    ):
        assert getattr(target, attr) == getattr(source, attr)


def test_reload_config_round_trip_and_keys():
    source = _config()
    data = get_reload_config(source)
    assert set(data) == {
        "property_size", "max_packet_size", "client_max_packet_size",
        "msq_len", "qos_duration", "keepalive_backoff", "allow_anonymous",
    }
    target = BrokerConfig()
    set_reload_config(data, target)
    assert target.max_packet_size == source.max_packet_size
    assert target.allow_anonymous is False


def test_tls_config_keys():
    tls = TlsConfig(enable=True, ca="ca-data", set_fail=True, key_password="password")
    data = get_tls_config(tls)
    assert data["cacert"] == "ca-data"
    assert data["fail_if_no_peer_cert"] is True
    assert data["key_password"] == "password"
    assert data["url"] is None


def test_auth_config_round_trip():
    auth = AuthConfig()
    auth.add("alice", "password")
    auth.add("bob", "secret")
    data = get_auth_config(auth)
    assert data[0] == {"login": "alice", "password": "password"}
    restored = AuthConfig()
    set_auth_config(data, restored)
    assert restored.credentials == auth.credentials


def test_auth_http_config():
    auth_http = AuthHttpConfig(enable=True, timeout=5, pool_size=32)
    auth_http.auth_req.url = "http://localhost/auth"
    auth_http.auth_req.headers = {"content-type": "application/json"}
    auth_http.auth_req.params = [HttpParam("clientid", ParamType.CLIENTID)]
    data = get_auth_http_config(auth_http)
    assert data["auth_req"]["params"] == ["clientid"]
    assert data["auth_req"]["headers"] == {"content-type": "application/json"}
    assert data["acl_req"]["url"] is None
    assert data["super_req"]["tls"]["enable"] is False
    json.dumps(data)  # serialisable
    assert data["pool_size"] == 32


def test_http_config_auth_type():
    assert get_http_config(HttpServerConfig(auth_type=AuthType.JWT))["auth_type"] == "jwt"
    assert get_http_config(HttpServerConfig())["auth_type"] == "basic"


def test_websocket_and_sqlite_round_trip():
    ws = WebsocketConfig(enable=True, url="nmq-ws://0.0.0.0:8083/mqtt")
    restored_ws = WebsocketConfig()
    set_websocket_config(get_websocket_config(ws), restored_ws)
    assert restored_ws == ws

    sqlite = SqliteConfig(enable=True, disk_cache_size=100, mounted_file_path="/tmp/")
    restored = SqliteConfig()
    set_sqlite_config(get_sqlite_config(sqlite), restored)
    assert restored == sqlite


def test_user_properties_empty_is_none():
    assert get_user_properties([]) is None
    assert get_user_properties([UserProperty("a", "b")]) == [{"key": "a", "value": "b"}]


def _v5_node():
    return BridgeNode(
        name="emqx",
        enable=True,
        address="mqtt-tcp://localhost:1883",
        proto_ver=MQTT_PROTOCOL_VERSION_V5,
        clientid="bridge_client",
        conn_properties=BridgeConnProperties(
            user_property=[UserProperty("k", "v")]
        ),
        will_properties=BridgeWillProperties(content_type="text/plain"),
        sub_properties=BridgeSubProperties(identifier=3),
        forwards=["a/#"],
        sub_list=[Subscription("b/+", 1)],
    )


def test_connector_v5_properties():
    data = get_bridge_connector(_v5_node())
    conn = data["conn_properties"]
    assert conn["receive_maximum"] == 65535
    assert conn["request_problem_information"] is True
    assert conn["request_response_information"] is False
    assert conn["user_properties"] == [{"key": "k", "value": "v"}]
    will = data["will_properties"]
    assert will["content_type"] == "text/plain"
    assert "response_topic" not in will
    assert data["server"] == "mqtt-tcp://localhost:1883"


def test_connector_v311_has_no_properties():
    node = _v5_node()
    node.proto_ver = 4
    data = get_bridge_connector(node)
    assert "conn_properties" not in data
    assert "will_properties" not in data
    assert get_bridge_sub_properties(node) is None


def test_sub_properties():
    assert get_bridge_sub_properties(_v5_node()) == {"identifier": 3}


def test_bridge_config_filters_by_name():
    other = BridgeNode(name="other", address="mqtt-tcp://localhost:1884")
    bridge = BridgeConfig(nodes=[_v5_node(), other])
    everything = get_bridge_config(bridge, None)
    assert [n["name"] for n in everything["nodes"]] == ["emqx", "other"]
    only = get_bridge_config(bridge, "other")
    assert [n["name"] for n in only["nodes"]] == ["other"]
    assert get_bridge_config(bridge, "missing")["nodes"] == []


def test_bridge_config_node_contents():
    node_obj = get_bridge_config(BridgeConfig(nodes=[_v5_node()]), None)["nodes"][0]
    assert node_obj["forwards"] == ["a/#"]
    assert node_obj["subscription"] == [{"topic": "b/+", "qos": 1}]
    assert node_obj["sub_properties"] == {"identifier": 3}
    assert node_obj["quic_keepalive"].endswith("s")
    assert "sqlite" in get_bridge_config(BridgeConfig(), None)