"""Tests for state, nonce and PKCE generation and consumption"""

import re

from oidc_strategy.config.const import (
    SESSION_NONCE,
    SESSION_PKCE_VERIFIER,
    SESSION_STATE,
)
from oidc_strategy.pkce import PKCEManager, PKCEOptions, s256_code_challenge
from oidc_strategy.state import StateNonceManager
from oidc_strategy.stores.session_store import FlowSession

HEX_32 = re.compile(r"^[0-9a-f]{32}$")


def test_state_round_trip():
    """Test that a generated state is stored and consumed once."""
    session = FlowSession()
    manager = StateNonceManager(session)

    state = manager.new_state()
    assert HEX_32.match(state)
    assert session.peek(SESSION_STATE) == state

    assert manager.stored_state() == state
    assert manager.stored_state() is None


def test_state_values_differ():
    """Test that every flow gets a fresh state."""
    manager = StateNonceManager(FlowSession())
    assert len({manager.new_state() for _ in range(20)}) == 20


def test_state_generator():
    """Test that a custom generator is used, with a random fallback for empty values."""
    session = FlowSession()
    manager = StateNonceManager(session, state_generator=lambda env: env["csrf"])
    assert manager.new_state({"csrf": "from-env"}) == "from-env"

    manager = StateNonceManager(session, state_generator=lambda env: "")
    assert HEX_32.match(manager.new_state())


def test_nonce_round_trip():
    """Test that the nonce is stored and consumed once."""
    session = FlowSession()
    manager = StateNonceManager(session)

    nonce = manager.new_nonce()
    assert HEX_32.match(nonce)
    assert session.peek(SESSION_NONCE) == nonce
    assert manager.stored_nonce() == nonce
    assert manager.stored_nonce() is None


def test_check_state():
    """Test state validation against the stored state."""
    manager = StateNonceManager(FlowSession())

    state = manager.new_state()
    assert manager.check_state(state)

    # Consumed by the first check, so a replay fails
    assert not manager.check_state(state)

    manager.new_state()
    assert not manager.check_state("something-else")

    manager.new_state()
    assert not manager.check_state(None)


def test_check_state_not_required():
    """Test that an absent state passes only when not required and nothing is stored."""
    manager = StateNonceManager(FlowSession(), require_state=False)
    assert manager.check_state(None)

    manager.new_state()
    assert not manager.check_state(None)


def test_s256_code_challenge():
    """Test the S256 transform against RFC 7636 Appendix B."""
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
    assert s256_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_pkce_start():
    """Test that only the challenge leaves the manager, the verifier stays in the session."""
    session = FlowSession()
    manager = PKCEManager(session)

    params = manager.start()
    verifier = session.peek(SESSION_PKCE_VERIFIER)

    assert len(verifier) == 128
    assert params == {
        "code_challenge": s256_code_challenge(verifier),
        "code_challenge_method": "S256",
    }
    assert verifier not in params.values()


def test_pkce_custom_functions():
    """Test injected verifier generator and challenge transform."""
    session = FlowSession()
    manager = PKCEManager(
        session,
        verifier_generator=lambda: "custom-verifier",
        options=PKCEOptions(code_challenge=str.upper, code_challenge_method="plain"),
    )

    assert manager.start() == {
        "code_challenge": "CUSTOM-VERIFIER",
        "code_challenge_method": "plain",
    }
    assert manager.take_verifier() == "custom-verifier"


def test_pkce_take_verifier():
    """Test that the stored verifier is consumed, even when another one is supplied."""
    session = FlowSession()
    manager = PKCEManager(session)

    verifier = manager.new_verifier()
    assert manager.take_verifier() == verifier
    assert manager.take_verifier() is None

    manager.new_verifier()
    assert manager.take_verifier("explicit") == "explicit"
    assert session.peek(SESSION_PKCE_VERIFIER) is None
