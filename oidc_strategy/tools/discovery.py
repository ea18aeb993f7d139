"""OIDC discovery collaborator: supplies issuer, endpoints, JWKS URI and supported scopes."""

import logging
from typing import Protocol

from ..errors import DiscoveryInvalid
from ..types import ProviderConfiguration
from .http_client import HTTPClientError, OIDCHttpClient
from .validation import validate_endpoint, validate_url

_LOGGER = logging.getLogger(__name__)


class ProviderConfigurationSource(Protocol):
    """Anything that can supply the provider configuration for a flow."""

    async def async_fetch_provider_configuration(self) -> ProviderConfiguration:
        """Returns the provider configuration."""


class StaticProviderConfiguration:
    """Provider configuration known up front, no discovery call needed."""

    def __init__(self, configuration: ProviderConfiguration):
        self.configuration = configuration

    async def async_fetch_provider_configuration(self) -> ProviderConfiguration:
        return self.configuration


class OIDCDiscoveryClient:
    """OIDC Discovery Client implementation for Python"""

    def __init__(self, discovery_url: str, http_client: OIDCHttpClient):
        self.discovery_url = discovery_url
        self.http_client = http_client

    async def _fetch_discovery_document(self) -> dict:
        """Fetches discovery document from the given URL."""
        _LOGGER.debug("Fetching discovery document from: %s", self.discovery_url)
        try:
            document = await self.http_client.async_get_json(self.discovery_url)
        except HTTPClientError as e:
            if e.status == 404:
                _LOGGER.warning(
                    "Error: Discovery document not found at %s", self.discovery_url
                )
            else:
                _LOGGER.warning("Error fetching discovery: %s", e)
            raise DiscoveryInvalid(type="fetch_error") from e
        except ValueError as e:
            _LOGGER.warning("Error: Discovery document is not JSON: %s", e)
            raise DiscoveryInvalid(type="not_json") from e

        if not isinstance(document, dict):
            raise DiscoveryInvalid(type="not_an_object")
        return document

    def _validate_discovery_document(self, document: dict) -> None:
        """Validates the parts of the discovery document the flow depends on."""
        if not validate_url(document.get("issuer") or ""):
            _LOGGER.warning(
                "Error: Discovery document %s has a missing or invalid issuer",
                self.discovery_url,
            )
            raise DiscoveryInvalid(
                type="missing_endpoint", details={"endpoint": "issuer"}
            )

        for endpoint in ("authorization_endpoint", "token_endpoint"):
            if endpoint not in document:
                _LOGGER.warning(
                    "Error: Discovery document %s is missing required endpoint: %s",
                    self.discovery_url,
                    endpoint,
                )
                raise DiscoveryInvalid(
                    type="missing_endpoint", details={"endpoint": endpoint}
                )

        for endpoint in (
            "authorization_endpoint",
            "token_endpoint",
            "userinfo_endpoint",
            "jwks_uri",
        ):
            if document.get(endpoint) is not None and not validate_endpoint(
                document[endpoint]
            ):
                _LOGGER.warning(
                    "Error: Discovery document %s has invalid URL in endpoint: %s (%s)",
                    self.discovery_url,
                    endpoint,
                    document[endpoint],
                )
                raise DiscoveryInvalid(
                    type="invalid_endpoint",
                    details={"endpoint": endpoint, "url": document[endpoint]},
                )

    async def async_fetch_provider_configuration(self) -> ProviderConfiguration:
        """Fetches and validates the discovery document."""
        document = await self._fetch_discovery_document()
        self._validate_discovery_document(document)
        return ProviderConfiguration.from_document(document)
