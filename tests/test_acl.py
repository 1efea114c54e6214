import pytest

from mqbroker.acl import (
    AclAction,
    AclConfig,
    AclContent,
    AclPermit,
    AclRule,
    AclRuleType,
    AclSubRule,
    ConnectionInfo,
    check_acl,
    topic_filter,
)


@pytest.mark.parametrize(
    "pattern,topic,expected",
    [
        ("a/b/c", "a/b/c", True),
        ("a/+/c", "a/b/c", True),
        ("a/+/c", "a/b/d", False),
        ("a/#", "a", True),
        ("a/#", "a/b/c", True),
        ("#", "x/y", True),
        ("a/b", "a/b/c", False),
        ("a/b/c", "a/b", False),
        ("a/b", None, False),
    ],
)
def test_topic_filter(pattern, topic, expected):
    assert topic_filter(pattern, topic) is expected


def test_content_matches():
    assert AclContent(match_all=True).matches(None) is True
    assert AclContent(value="bob").matches("bob") is True
    assert AclContent(value="bob").matches("alice") is False
    assert AclContent(value="bob").matches(None) is False


def test_no_rules_uses_no_match():
    conn = ConnectionInfo(username="bob")
    assert check_acl(AclConfig(), AclAction.PUB, conn, "t") is True
    deny = AclConfig(no_match=AclPermit.DENY)
    assert check_acl(deny, AclAction.PUB, conn, "t") is False


def test_username_allow_and_deny():
    allow = AclRule(AclPermit.ALLOW, rule_type=AclRuleType.USERNAME,
                    content=AclContent("bob"))
    deny = AclRule(AclPermit.DENY, rule_type=AclRuleType.USERNAME,
                   content=AclContent("bob"))
    conn = ConnectionInfo(username="bob")
    acl = AclConfig([allow], no_match=AclPermit.DENY)
    assert check_acl(acl, AclAction.SUB, conn, "t") is True
    assert check_acl(AclConfig([deny]), AclAction.SUB, conn, "t") is False


def test_first_matching_rule_wins():
    rules = [
        AclRule(AclPermit.DENY, rule_type=AclRuleType.CLIENTID,
                content=AclContent("c1")),
        AclRule(AclPermit.ALLOW, rule_type=AclRuleType.NONE),
    ]
    acl = AclConfig(rules, no_match=AclPermit.DENY)
    assert check_acl(acl, AclAction.PUB, ConnectionInfo(clientid="c1"), "t") is False
    assert check_acl(acl, AclAction.PUB, ConnectionInfo(clientid="c2"), "t") is True


def test_action_mismatch_skips_rule():
    rule = AclRule(AclPermit.DENY, action=AclAction.SUB)
    acl = AclConfig([rule])
    assert check_acl(acl, AclAction.PUB, ConnectionInfo(), "t") is True
    assert check_acl(acl, AclAction.SUB, ConnectionInfo(), "t") is False


def test_topic_restriction():
    rule = AclRule(AclPermit.DENY, topics=["secret/#"])
    acl = AclConfig([rule])
    assert check_acl(acl, AclAction.PUB, ConnectionInfo(), "secret/x") is False
    assert check_acl(acl, AclAction.PUB, ConnectionInfo(), "public/x") is True


def test_and_rule_needs_all():
    rule = AclRule(
        AclPermit.ALLOW,
        rule_type=AclRuleType.AND,
        sub_rules=[
            AclSubRule(AclRuleType.USERNAME, AclContent("bob")),
            AclSubRule(AclRuleType.CLIENTID, AclContent("c1")),
        ],
    )
    acl = AclConfig([rule], no_match=AclPermit.DENY)
    ok = ConnectionInfo(username="bob", clientid="c1")
    bad = ConnectionInfo(username="bob", clientid="c2")
    assert check_acl(acl, AclAction.PUB, ok, "t") is True
    assert check_acl(acl, AclAction.PUB, bad, "t") is False


def test_or_rule_needs_any():
    rule = AclRule(
        AclPermit.ALLOW,
        rule_type=AclRuleType.OR,
        sub_rules=[
            AclSubRule(AclRuleType.USERNAME, AclContent("bob")),
            AclSubRule(AclRuleType.CLIENTID, AclContent("c1")),
        ],
    )
    acl = AclConfig([rule], no_match=AclPermit.DENY)
    assert check_acl(acl, AclAction.PUB, ConnectionInfo(clientid="c1"), "t") is True
    assert check_acl(acl, AclAction.PUB, ConnectionInfo(username="x"), "t") is False


def test_ipaddr_rule_never_matches():
    rule = AclRule(AclPermit.DENY, rule_type=AclRuleType.IPADDR,
                   content=AclContent(match_all=True))
    assert check_acl(AclConfig([rule]), AclAction.PUB, ConnectionInfo(), "t") is True