"""Tests for the authorization request builder"""

from urllib.parse import parse_qs, urlparse

import pytest

from oidc_strategy.config.const import (
    SESSION_NONCE,
    SESSION_PKCE_VERIFIER,
    SESSION_STATE,
)
from oidc_strategy.config.options import build_options
from oidc_strategy.pkce import PKCEManager, s256_code_challenge
from oidc_strategy.request import AuthorizationRequestBuilder
from oidc_strategy.state import StateNonceManager
from oidc_strategy.stores.session_store import FlowSession

AUTHORIZE_URL = "https://oidc.example.com/authorize"
REDIRECT_URI = "https://app.example.com/callback"


def make_builder(**config):
    """Returns a builder and its session for the given options."""
    options = build_options({"client_options": {"identifier": "dummyclient"}, **config})
    session = FlowSession()
    state_manager = StateNonceManager(
        session, options.state_generator, options.require_state
    )
    pkce_manager = PKCEManager(session, options.pkce_verifier, options.pkce_options)
    return AuthorizationRequestBuilder(options, state_manager, pkce_manager), session


def test_default_request():
    """Test the parameters of a default authorization request."""
    builder, session = make_builder()
    request = builder.build(AUTHORIZE_URL, REDIRECT_URI, ("openid",))

    assert request.endpoint == AUTHORIZE_URL
    assert request.params["client_id"] == "dummyclient"
    assert request.params["redirect_uri"] == REDIRECT_URI
    assert request.response_type == "code"
    assert request.scope == ("openid",)
    assert request.state == session.peek(SESSION_STATE)
    assert request.nonce == session.peek(SESSION_NONCE)
    assert request.code_challenge is None
    assert "code_challenge_method" not in request.params

    # Unset options are left out entirely
    for absent in ("prompt", "display", "login_hint", "max_age", "response_mode"):
        assert absent not in request.params


def test_url():
    """Test the redirect URL assembly."""
    builder, _ = make_builder()
    request = builder.build(AUTHORIZE_URL, REDIRECT_URI, ("openid", "profile"))

    parsed = urlparse(request.url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == AUTHORIZE_URL

    query = parse_qs(parsed.query)
    assert query["scope"] == ["openid profile"]
    assert query["state"] == [request.state]
    assert query["redirect_uri"] == [REDIRECT_URI]

    request = builder.build(AUTHORIZE_URL + "?tenant=1", REDIRECT_URI, ("openid",))
    assert request.url.startswith(AUTHORIZE_URL + "?tenant=1&")


def test_no_nonce():
    """Test that no nonce is generated when disabled."""
    builder, session = make_builder(send_nonce=False)
    request = builder.build(AUTHORIZE_URL, REDIRECT_URI, ("openid",))

    assert request.nonce is None
    assert session.peek(SESSION_NONCE) is None


def test_pkce():
    """Test that PKCE adds the challenge and keeps the verifier out of the URL."""
    builder, session = make_builder(pkce=True)
    request = builder.build(AUTHORIZE_URL, REDIRECT_URI, ("openid",))

    verifier = session.peek(SESSION_PKCE_VERIFIER)
    assert request.code_challenge == s256_code_challenge(verifier)
    assert request.params["code_challenge_method"] == "S256"
    assert verifier not in request.url


def test_configured_options():
    """Test that configured request options are passed on."""
    builder, _ = make_builder(
        prompt="login",
        display="popup",
        max_age=300,
        hd="example.com",
        acr_values="urn:mace:incommon:iap:silver",
        response_mode="form_post",
        ui_locales="nl",
    )
    request = builder.build(AUTHORIZE_URL, REDIRECT_URI, ("openid",))

    assert request.params["prompt"] == "login"
    assert request.params["display"] == "popup"
    assert request.params["max_age"] == "300"
    assert request.params["hd"] == "example.com"
    assert request.params["acr_values"] == "urn:mace:incommon:iap:silver"
    assert request.params["response_mode"] == "form_post"
    assert request.params["ui_locales"] == "nl"


def test_extra_params_override():
    """Test that static extra parameters override computed ones."""
    builder, _ = make_builder(
        extra_authorize_params={"prompt": "consent", "audience": "api"},
        prompt="login",
    )
    request = builder.build(AUTHORIZE_URL, REDIRECT_URI, ("openid",))

    assert request.params["prompt"] == "consent"
    assert request.params["audience"] == "api"


def test_request_params():
    """Test passthrough of request parameters."""
    builder, _ = make_builder(allow_authorize_params=["domain_hint", "prompt"])
    request = builder.build(
        AUTHORIZE_URL,
        REDIRECT_URI,
        ("openid",),
        request_params={
            "login_hint": "jane@example.com",
            "claims_locales": "en",
            "domain_hint": "example.com",
            "prompt": "none",
            "not_allowed": "x",
        },
    )

    assert request.params["login_hint"] == "jane@example.com"
    assert request.params["claims_locales"] == "en"
    assert request.params["domain_hint"] == "example.com"
    assert request.params["prompt"] == "none"
    assert "not_allowed" not in request.params


def test_allowed_params_do_not_override():
    """Test that allow-listed parameters never replace values already set."""
    builder, _ = make_builder(allow_authorize_params=["prompt"], prompt="login")
    request = builder.build(
        AUTHORIZE_URL, REDIRECT_URI, ("openid",), request_params={"prompt": "none"}
    )
    assert request.params["prompt"] == "login"


def test_request_is_immutable():
    """Test that the request parameters cannot be changed."""
    builder, _ = make_builder()
    request = builder.build(AUTHORIZE_URL, REDIRECT_URI, ("openid",))

    with pytest.raises(TypeError):
        request.params["state"] = "forged"  # type: ignore[index]
