"""Listener URL handling for command-line overrides and defaults."""

from __future__ import annotations

from .config import BrokerConfig

NMQ_TCP_PREFIX = "nmq-tcp"
TCP_PREFIX = "broker+tcp"
NMQ_TLS_PREFIX = "tls+nmq-tcp"
NMQ_WS_PREFIX = "nmq-ws"
WS_PREFIX = "ws"
NMQ_WSS_PREFIX = "nmq-wss"
WSS_PREFIX = "wss"

DEFAULT_TCP_URL = "nmq-tcp://0.0.0.0:1883"
DEFAULT_TLS_URL = "tls+nmq-tcp://0.0.0.0:8883"
DEFAULT_WS_URL = "nmq-ws://0.0.0.0:8083/mqtt"
DEFAULT_WSS_URL = "nmq-wss://0.0.0.0:8086/mqtt"


def predicate_url(config: BrokerConfig, url: str) -> None:
    """Route ``url`` to the TCP, TLS or websocket listener by its scheme.

    URLs of no known scheme leave the configuration unchanged.
    """
    if url.startswith((NMQ_TCP_PREFIX, TCP_PREFIX)):
        config.url = url
        config.enable = True
    if url.startswith(NMQ_TLS_PREFIX):
        config.tls.enable = True
        config.tls.url = url
    elif url.startswith((NMQ_WS_PREFIX, WS_PREFIX)):
        if url.startswith((NMQ_WSS_PREFIX, WSS_PREFIX)):
            config.tls.enable = True
            config.websocket.tls_url = url
        else:
            config.websocket.url = url
        config.websocket.enable = True


def apply_url_defaults(config: BrokerConfig) -> None:
    """Fill in default URLs for enabled listeners that have none."""
    if config.enable and config.url is None:
        config.url = DEFAULT_TCP_URL
    if config.tls.enable and config.tls.url is None:
        config.tls.url = DEFAULT_TLS_URL
    if config.websocket.enable:
        if config.websocket.url is None:
            config.websocket.url = DEFAULT_WS_URL
        if config.tls.enable and config.websocket.tls_url is None:
            config.websocket.tls_url = DEFAULT_WSS_URL