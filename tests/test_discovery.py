"""Tests for the discovery client"""

import pytest

from oidc_strategy.errors import DiscoveryInvalid
from oidc_strategy.tools.discovery import OIDCDiscoveryClient
from oidc_strategy.tools.http_client import OIDCHttpClient

from tests.mocks.oidc_server import BASE_URL, MockOIDCServer, mock_oidc_responses

VALID_DOCUMENT = {
    "issuer": BASE_URL,
    "authorization_endpoint": f"{BASE_URL}/authorize",
    "token_endpoint": f"{BASE_URL}/token",
    "jwks_uri": "/jwks",
    "scopes_supported": ["openid", "email"],
    "id_token_signing_alg_values_supported": ["RS256"],
}


async def direct_discovery_test(
    discovery: dict | list,
    match_type: str,
    match_detail: str | None = None,
):
    """Test that discovery document retrieval fails with nice error directly."""
    with mock_oidc_responses(MockOIDCServer(scenario={"discovery": discovery})):
        http_client = OIDCHttpClient()
        client = OIDCDiscoveryClient(MockOIDCServer.get_discovery_url(), http_client)

        with pytest.raises(DiscoveryInvalid) as exc_info:
            await client.async_fetch_provider_configuration()
        await http_client.async_close()

    assert exc_info.value.type == match_type
    assert exc_info.value.get_detail_string().startswith("type: " + match_type)

    if match_detail:
        assert match_detail in exc_info.value.get_detail_string()


@pytest.mark.asyncio
async def test_discovery():
    """Test that a valid document becomes the provider configuration."""
    with mock_oidc_responses(MockOIDCServer(scenario={"discovery": VALID_DOCUMENT})):
        http_client = OIDCHttpClient()
        client = OIDCDiscoveryClient(MockOIDCServer.get_discovery_url(), http_client)
        configuration = await client.async_fetch_provider_configuration()
        await http_client.async_close()

    assert configuration.issuer == BASE_URL
    assert configuration.token_endpoint == f"{BASE_URL}/token"
    assert configuration.userinfo_endpoint is None
    assert configuration.jwks_uri == "/jwks"
    assert configuration.scopes_supported == ("openid", "email")
    assert configuration.id_token_signing_alg_values_supported == ("RS256",)


@pytest.mark.asyncio
async def test_discovery_failures():
    """Test that discovery document retrieval fails gracefully."""

    # Empty document
    await direct_discovery_test({}, "missing_endpoint", "endpoint: issuer")

    # Not a valid issuer
    await direct_discovery_test(
        {**VALID_DOCUMENT, "issuer": "oidc.example.com"},
        "missing_endpoint",
        "endpoint: issuer",
    )

    # Missing authorization_endpoint
    await direct_discovery_test(
        {"issuer": BASE_URL}, "missing_endpoint", "endpoint: authorization_endpoint"
    )

    # Missing token_endpoint
    document = dict(VALID_DOCUMENT)
    del document["token_endpoint"]
    await direct_discovery_test(document, "missing_endpoint", "endpoint: token_endpoint")

    # Invalid URL
    await direct_discovery_test(
        {**VALID_DOCUMENT, "jwks_uri": "ftp://oidc.example.com/jwks"},
        "invalid_endpoint",
        "endpoint: jwks_uri, url: ftp://oidc.example.com/jwks",
    )

    # Not an object
    await direct_discovery_test(["issuer"], "not_an_object")


@pytest.mark.asyncio
async def test_discovery_not_found():
    """Test that a missing discovery document is reported."""
    with mock_oidc_responses():
        http_client = OIDCHttpClient()
        client = OIDCDiscoveryClient(f"{BASE_URL}/missing", http_client)

        with pytest.raises(DiscoveryInvalid) as exc_info:
            await client.async_fetch_provider_configuration()
        await http_client.async_close()

    assert exc_info.value.type == "fetch_error"
    assert exc_info.value.error == "discovery_invalid"
