"""Which bridges a published message goes to, and how many workers run."""

from __future__ import annotations

from .acl import topic_filter
from .config import BridgeConfig, BridgeNode, BrokerConfig

DEFAULT_HTTP_CTX = 4


def forward_targets(bridge: BridgeConfig, topic: str) -> list[tuple[BridgeNode, str]]:
    """Enabled nodes with a forward filter matching ``topic``.

    One entry is returned per matching filter, paired with that filter, in
    node order then filter order.
    """
    return [
        (node, pattern)
        for node in bridge.nodes
        if node.enable
        for pattern in node.forwards
        if topic_filter(pattern, topic)
    ]


def context_count(config: BrokerConfig, http_ctx: int = DEFAULT_HTTP_CTX) -> int:
    """Total number of worker contexts the broker starts."""
    total = config.parallel
    if config.http_server.enable:
        total += http_ctx
    if config.bridge_mode:
        total += sum(node.parallel for node in config.bridge.nodes if node.enable)
    return total