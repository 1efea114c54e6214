"""Render the live configuration as JSON-ready dictionaries."""

from __future__ import annotations

from typing import Any

from .config import (
    MQTT_PROTOCOL_VERSION_V5,
    AuthConfig,
    AuthHttpConfig,
    AuthType,
    BridgeConfig,
    BridgeNode,
    BrokerConfig,
    HttpRequestConfig,
    HttpServerConfig,
    SqliteConfig,
    TlsConfig,
    UserProperty,
    WebsocketConfig,
)

_KIB = 1024


def _put_if_set(obj: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        obj[key] = value


def get_reload_config(config: BrokerConfig) -> dict[str, Any]:
    """Settings that may be changed while the broker runs; sizes in KiB."""
    return {
        "property_size": config.property_size,
        "max_packet_size": config.max_packet_size // _KIB,
        "client_max_packet_size": config.client_max_packet_size // _KIB,
        "msq_len": config.msq_len,
        "qos_duration": config.qos_duration,
        "keepalive_backoff": float(config.backoff),
        "allow_anonymous": config.allow_anonymous,
    }


def get_basic_config(config: BrokerConfig) -> dict[str, Any]:
    """Basic broker settings; sizes in KiB."""
    return {
        "url": config.url,
        "num_taskq_thread": config.num_taskq_thread,
        "max_taskq_thread": config.max_taskq_thread,
        "parallel": config.parallel,
        "property_size": config.property_size,
        "daemon": config.daemon,
        "max_packet_size": config.max_packet_size // _KIB,
        "client_max_packet_size": config.client_max_packet_size // _KIB,
        "msq_len": config.msq_len,
        "qos_duration": config.qos_duration,
        "keepalive_backoff": float(config.backoff),
        "allow_anonymous": config.allow_anonymous,
        "ipc_internal": config.ipc_internal,
    }


def get_tls_config(tls: TlsConfig) -> dict[str, Any]:
    return {
        "enable": tls.enable,
        "url": tls.url,
        "key_password": tls.key_password,
        "key": tls.key,
        "cert": tls.cert,
        "cacert": tls.ca,
        "verify_peer": tls.verify_peer,
        "fail_if_no_peer_cert": tls.set_fail,
    }


def get_auth_config(auth: AuthConfig) -> list[dict[str, Any]]:
    return [
        {"login": username, "password": secret}
        for username, secret in auth.credentials
    ]


def _get_auth_http_req_config(req: HttpRequestConfig) -> dict[str, Any]:
    return {
        "url": req.url,
        "method": req.method,
        "headers": dict(req.headers),
        "params": [param.name for param in req.params],
        "tls": get_tls_config(req.tls),
    }


def get_auth_http_config(auth_http: AuthHttpConfig) -> dict[str, Any]:
    return {
        "enable": auth_http.enable,
        "timeout": auth_http.timeout,
        "connect_timeout": auth_http.connect_timeout,
        "pool_size": auth_http.pool_size,
        "auth_req": _get_auth_http_req_config(auth_http.auth_req),
        "acl_req": _get_auth_http_req_config(auth_http.acl_req),
        "super_req": _get_auth_http_req_config(auth_http.super_req),
    }


def get_websocket_config(ws: WebsocketConfig) -> dict[str, Any]:
    return {"enable": ws.enable, "url": ws.url, "tls_url": ws.tls_url}


def get_http_config(http: HttpServerConfig) -> dict[str, Any]:
    return {
        "enable": http.enable,
        "port": http.port,
        "username": http.username,
        "password": http.password,
        "auth_type": "jwt" if http.auth_type is AuthType.JWT else "basic",
    }


def get_sqlite_config(sqlite: SqliteConfig) -> dict[str, Any]:
    return {
        "enable": sqlite.enable,
        "disk_cache_size": sqlite.disk_cache_size,
        "flush_mem_threshold": sqlite.flush_mem_threshold,
        "resend_interval": sqlite.resend_interval,
        "mounted_file_path": sqlite.mounted_file_path,
    }


def get_user_properties(
    properties: list[UserProperty],
) -> list[dict[str, str]] | None:
    """Key/value list of user properties, or None when there are none."""
    if not properties:
        return None
    return [{"key": prop.key, "value": prop.value} for prop in properties]


def get_bridge_connector(node: BridgeNode) -> dict[str, Any]:
    """Connection settings of a bridge node, with v5 properties if any."""
    connector: dict[str, Any] = {
        "server": node.address,
        "proto_ver": node.proto_ver,
        "clientid": node.clientid,
        "clean_start": node.clean_start,
        "username": node.username,
        "password": node.password,
        "keepalive": node.keepalive,
    }
    if node.proto_ver != MQTT_PROTOCOL_VERSION_V5:
        return connector

    conn_prop = node.conn_properties
    if conn_prop is not None:
        conn_obj: dict[str, Any] = {
            "session_expiry_interval": conn_prop.session_expiry_interval,
            "receive_maximum": conn_prop.receive_maximum,
            "maximum_packet_size": conn_prop.maximum_packet_size,
            "topic_alias_maximum": conn_prop.topic_alias_maximum,
            "request_response_information": bool(conn_prop.request_response_info),
            "request_problem_information": bool(conn_prop.request_problem_info),
        }
        _put_if_set(
            conn_obj, "user_properties", get_user_properties(conn_prop.user_property)
        )
        connector["conn_properties"] = conn_obj

    will_prop = node.will_properties
    if will_prop is not None:
        will_obj: dict[str, Any] = {
            "payload_format_indicator": will_prop.payload_format_indicator,
            "message_expiry_interval": will_prop.message_expiry_interval,
        }
        _put_if_set(will_obj, "content_type", will_prop.content_type)
        will_obj["will_delay_interval"] = will_prop.will_delay_interval
        _put_if_set(will_obj, "response_topic", will_prop.response_topic)
        _put_if_set(will_obj, "correlation_data", will_prop.correlation_data)
        _put_if_set(
            will_obj, "user_properties", get_user_properties(will_prop.user_property)
        )
        connector["will_properties"] = will_obj

    return connector


def get_bridge_sub_properties(node: BridgeNode) -> dict[str, Any] | None:
    """v5 subscription properties of a node, or None."""
    if node.proto_ver != MQTT_PROTOCOL_VERSION_V5 or node.sub_properties is None:
        return None
    sub_prop = node.sub_properties
    obj: dict[str, Any] = {"identifier": sub_prop.identifier}
    _put_if_set(obj, "user_properties", get_user_properties(sub_prop.user_property))
    return obj


def _add_quic_fields(obj: dict[str, Any], node: BridgeNode) -> None:
    obj["quic_keepalive"] = f"{node.qkeepalive}s"
    obj["quic_idle_timeout"] = f"{node.qidle_timeout}s"
    obj["quic_discon_timeout"] = f"{node.qdiscon_timeout}s"
    obj["quic_send_idle_timeout"] = f"{node.qsend_idle_timeout}s"
    obj["quic_initial_rtt_ms"] = f"{node.qinitial_rtt_ms}s"
    obj["quic_max_ack_delay_ms"] = f"{node.qmax_ack_delay_ms}s"
    obj["quic_multi_stream"] = node.multi_stream
    obj["hybrid_bridging"] = node.hybrid
    obj["quic_qos_priority"] = node.qos_first
    obj["quic_0rtt"] = node.quic_0rtt


def get_bridge_config(
    bridge: BridgeConfig, node_name: str | None = None
) -> dict[str, Any]:
    """All bridge nodes, or only those named ``node_name``, plus the cache."""
    nodes = []
    for node in bridge.nodes:
        if node_name is not None and node.name != node_name:
            continue
        node_obj: dict[str, Any] = {
            "name": node.name,
            "enable": node.enable,
            "parallel": node.parallel,
            "connector": get_bridge_connector(node),
            "forwards": list(node.forwards),
            "subscription": [
                {"topic": sub.topic, "qos": sub.qos} for sub in node.sub_list
            ],
        }
        if node.proto_ver == MQTT_PROTOCOL_VERSION_V5:
            _put_if_set(node_obj, "sub_properties", get_bridge_sub_properties(node))
        node_obj["tls"] = get_tls_config(node.tls)
        _add_quic_fields(node_obj, node)
        nodes.append(node_obj)
    return {"nodes": nodes, "sqlite": get_sqlite_config(bridge.sqlite)}