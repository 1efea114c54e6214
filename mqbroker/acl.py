"""Access control: decide whether a client may publish or subscribe to a topic."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .config import MQTT_PROTOCOL_VERSION_V311  # noqa: F401  (shared config module)


class AclAction(enum.Enum):
    """The operation a rule applies to."""

    PUB = "publish"
    SUB = "subscribe"
    ALL = "pubsub"


class AclPermit(enum.Enum):
    """Whether a matching rule grants or refuses access."""

    ALLOW = "allow"
    DENY = "deny"


class AclRuleType(enum.Enum):
    """What part of the connection a rule looks at."""

    NONE = "none"
    USERNAME = "username"
    CLIENTID = "clientid"
    IPADDR = "ipaddr"
    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class AclContent:
    """The value a rule compares against; ``match_all`` matches anything."""

    value: str | None = None
    match_all: bool = False

    def matches(self, value: str | None) -> bool:
        """Return True if ``value`` satisfies this content."""
        if self.match_all:
            return True
        return value is not None and self.value is not None and self.value == value


@dataclass
class AclSubRule:
    rule_type: AclRuleType
    content: AclContent = field(default_factory=AclContent)


@dataclass
class AclRule:
    permit: AclPermit
    action: AclAction = AclAction.ALL
    rule_type: AclRuleType = AclRuleType.NONE
    content: AclContent = field(default_factory=AclContent)
    sub_rules: list[AclSubRule] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)


@dataclass
class AclConfig:
    """Ordered rules plus the verdict used when no rule matches."""

    rules: list[AclRule] = field(default_factory=list)
    no_match: AclPermit = AclPermit.ALLOW


@dataclass(frozen=True)
class ConnectionInfo:
    username: str | None = None
    clientid: str | None = None


_IDENTITY_TYPES = (AclRuleType.USERNAME, AclRuleType.CLIENTID)


def topic_filter(pattern: str, topic: str | None) -> bool:
    """Return True if ``topic`` matches the MQTT filter ``pattern``."""
    if topic is None:
        return False
    filter_levels = pattern.split("/")
    topic_levels = topic.split("/")
    for position, level in enumerate(filter_levels):
        if level == "#":
            return True
        if position >= len(topic_levels):
            return False
        if level != "+" and level != topic_levels[position]:
            return False
    return len(filter_levels) == len(topic_levels)


def _identity(conn: ConnectionInfo, rule_type: AclRuleType) -> str | None:
    if rule_type is AclRuleType.USERNAME:
        return conn.username
    return conn.clientid


def _sub_rule_matches(sub: AclSubRule, conn: ConnectionInfo) -> bool:
    return sub.content.matches(_identity(conn, sub.rule_type))


def _rule_matches(rule: AclRule, conn: ConnectionInfo) -> bool:
    kind = rule.rule_type
    if kind is AclRuleType.NONE:
        return True
    if kind in _IDENTITY_TYPES:
        return rule.content.matches(_identity(conn, kind))
    if kind is AclRuleType.AND:
        # Sub-rules of unsupported kinds do not constrain the match.
        return all(
            _sub_rule_matches(sub, conn)
            for sub in rule.sub_rules
            if sub.rule_type in _IDENTITY_TYPES
        )
    if kind is AclRuleType.OR:
        return any(
            _sub_rule_matches(sub, conn)
            for sub in rule.sub_rules
            if sub.rule_type in _IDENTITY_TYPES
        )
    return False


def check_acl(
    acl: AclConfig, action: AclAction, conn: ConnectionInfo, topic: str
) -> bool:
    """Return True if ``conn`` may perform ``action`` on ``topic``.

    The first rule that applies to the action, matches the connection and
    covers the topic decides; otherwise ``acl.no_match`` does.
    """
    for rule in acl.rules:
        if rule.action is not AclAction.ALL and rule.action is not action:
            continue
        if not _rule_matches(rule, conn):
            continue
        if rule.topics and not any(topic_filter(t, topic) for t in rule.topics):
            continue
        return rule.permit is AclPermit.ALLOW
    return acl.no_match is AclPermit.ALLOW