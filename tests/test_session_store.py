"""Tests for the flow session store"""

from oidc_strategy.stores.session_store import FlowSession


def test_take_once():
    """Test that a value can be read back exactly once."""
    session = FlowSession()
    session.put("oidc.state", "abc")

    assert session.peek("oidc.state") == "abc"
    assert session.take_once("oidc.state") == "abc"
    assert session.take_once("oidc.state") is None
    assert session.peek("oidc.state") is None


def test_missing_value():
    """Test that a missing value reads as None instead of failing."""
    session = FlowSession()
    assert session.take_once("oidc.nonce") is None


def test_wraps_caller_session():
    """Test that values are written into the caller's own mapping."""
    backing = {"unrelated": "value"}
    session = FlowSession(backing)

    session.put("oidc.nonce", "n-1")
    assert backing == {"unrelated": "value", "oidc.nonce": "n-1"}

    session.take_once("oidc.nonce")
    assert backing == {"unrelated": "value"}
