"""OIDC strategy: sequences the request and callback phases of one login flow."""

import asyncio
import logging
from collections.abc import MutableMapping
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

import aiohttp

from .callback import CallbackValidator
from .config.const import DEFAULT_SCOPE, RESPONSE_TYPE_ID_TOKEN
from .config.options import OIDCOptions
from .errors import (
    ConfigurationError,
    OIDCError,
    TransportConnectionError,
    TransportTimeoutError,
    UserInfoError,
)
from .exchange import TokenExchanger
from .keys import KeyResolver
from .pkce import PKCEManager
from .request import AuthorizationRequestBuilder
from .state import StateNonceManager
from .stores.session_store import FlowSession
from .tools.discovery import OIDCDiscoveryClient, ProviderConfigurationSource
from .tools.http_client import OIDCHttpClient
from .types import (
    AuthorizationRequest,
    AuthResult,
    CallbackParams,
    ProviderConfiguration,
    ProviderEndpoints,
    TokenSet,
    UserInfo,
)
from .verify import IdTokenVerifier

_LOGGER = logging.getLogger(__name__)

IMPLICIT_TOKEN_FIELDS = ("access_token", "id_token", "expires_in", "scope", "token_type")


class OIDCStrategy:
    """One OIDC login flow: builds the authorization request, then handles its callback.

    Every collaborator is owned by this instance, so the resolved provider
    configuration and signing keys are never shared between flows.
    """

    def __init__(
        self,
        options: OIDCOptions,
        session: Optional[MutableMapping] = None,
        *,
        http_client: Optional[OIDCHttpClient] = None,
        discovery: Optional[ProviderConfigurationSource] = None,
    ):
        self.options = options
        self.session = FlowSession(session)
        self.http_client = http_client or OIDCHttpClient(options.network)
        self.discovery = discovery

        self.state_manager = StateNonceManager(
            self.session, options.state_generator, options.require_state
        )
        self.pkce_manager = PKCEManager(
            self.session, options.pkce_verifier, options.pkce_options
        )
        self.key_resolver = KeyResolver(options, self.http_client)
        self.verifier = IdTokenVerifier(options, self.key_resolver)
        self.request_builder = AuthorizationRequestBuilder(
            options, self.state_manager, self.pkce_manager
        )
        self.callback_validator = CallbackValidator(options, self.state_manager)
        self.exchanger = TokenExchanger(options, self.http_client, self.verifier)

        self._provider: Optional[ProviderConfiguration] = None

    async def __aenter__(self) -> "OIDCStrategy":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.async_close()

    def _discovery_source(self) -> ProviderConfigurationSource:
        if self.discovery is not None:
            return self.discovery

        config_endpoint = self.options.client_options.config_endpoint
        if not config_endpoint:
            _LOGGER.error("No discovery source and no config_endpoint configured")
            raise ConfigurationError("Configuration endpoint is missing from options")

        self.discovery = OIDCDiscoveryClient(config_endpoint, self.http_client)
        return self.discovery

    async def async_provider_configuration(self) -> ProviderConfiguration:
        """Returns the provider configuration, fetching it on first use."""
        if self._provider is None:
            source = self._discovery_source()
            provider = await source.async_fetch_provider_configuration()
            self._warn_unsupported_signing_alg(provider)
            self._provider = provider
        return self._provider

    def _warn_unsupported_signing_alg(self, provider: ProviderConfiguration) -> None:
        requested_alg = self.options.client_signing_alg
        supported = provider.id_token_signing_alg_values_supported
        # Warn only, the ID token header is still checked against the configured alg
        if requested_alg and supported and requested_alg not in supported:
            _LOGGER.warning(
                "Provider %s does not list client_signing_alg '%s', only supports: %s. "
                "Proceeding anyway.",
                provider.issuer,
                requested_alg,
                ", ".join(supported),
            )

    def issuer(self, provider: ProviderConfiguration) -> str:
        return self.options.issuer or provider.issuer

    def scope(self, provider: ProviderConfiguration) -> tuple[str, ...]:
        """Configured scope, else the scopes the provider supports, else openid."""
        if self.options.scope:
            return self.options.scope
        if provider.scopes_supported:
            _LOGGER.info(
                "No scope configured, requesting the provider's supported scopes: %s",
                " ".join(provider.scopes_supported),
            )
            return tuple(dict.fromkeys(provider.scopes_supported))
        return DEFAULT_SCOPE

    def _redirect_uri(self, redirect_uri: Optional[str]) -> str:
        redirect_uri = redirect_uri or self.options.redirect_uri
        if not redirect_uri:
            raise ConfigurationError("redirect_uri is missing from options")
        return redirect_uri

    @contextmanager
    def _flow_errors(self, phase: str) -> Iterator[None]:
        """Logs the terminal failure of a phase and maps transport failures."""
        try:
            yield
        except OIDCError as e:
            _LOGGER.warning(
                "OIDC %s phase failed for provider '%s' (%s)",
                phase,
                self.options.name,
                e.get_detail_string(),
            )
            raise
        except (asyncio.TimeoutError, aiohttp.ServerTimeoutError) as e:
            _LOGGER.warning(
                "OIDC %s phase timed out for provider '%s'", phase, self.options.name
            )
            raise TransportTimeoutError(
                f"Timed out contacting the provider during the {phase} phase"
            ) from e
        except aiohttp.ClientConnectionError as e:
            _LOGGER.warning(
                "OIDC %s phase could not reach provider '%s': %s",
                phase,
                self.options.name,
                e,
            )
            raise TransportConnectionError(
                f"Could not connect to the provider during the {phase} phase"
            ) from e

    async def async_request_phase(
        self,
        redirect_uri: Optional[str] = None,
        request_params: Optional[Mapping[str, Any]] = None,
        env: Optional[Mapping[str, Any]] = None,
    ) -> AuthorizationRequest:
        """Starts a login: returns the authorization request to redirect the user to."""
        with self._flow_errors("request"):
            redirect_uri = self._redirect_uri(redirect_uri)
            provider = await self.async_provider_configuration()
            endpoints = self.exchanger.resolve_endpoints(provider)

            request = self.request_builder.build(
                endpoints.authorization_endpoint,
                redirect_uri,
                self.scope(provider),
                request_params=request_params,
                env=env,
            )

        _LOGGER.debug("Redirecting to authorization endpoint: %s", request.endpoint)
        return request

    async def _async_implicit(
        self,
        callback: CallbackParams,
        endpoints: ProviderEndpoints,
        issuer: str,
        nonce: Optional[str],
    ) -> tuple[TokenSet, UserInfo]:
        """id_token response type: the callback itself carries the ID token."""
        access_token = callback.get("access_token")
        claims = await self.verifier.async_verify(
            callback.id_token,
            issuer=issuer,
            audience=self.options.client_id,
            nonce=nonce,
            jwks_uri=endpoints.jwks_uri,
            access_token=access_token,
        )
        token_set = TokenSet.from_response(
            {
                field: callback.get(field)
                for field in IMPLICIT_TOKEN_FIELDS
                if callback.get(field) is not None
            }
        )
        return token_set, UserInfo.merged(claims.raw_attributes)

    async def async_callback_phase(
        self,
        params: CallbackParams | Mapping[str, Any],
        redirect_uri: Optional[str] = None,
    ) -> AuthResult:
        """Handles the provider's callback and returns the authenticated identity."""
        callback = (
            params
            if isinstance(params, CallbackParams)
            else CallbackParams.from_mapping(params)
        )

        with self._flow_errors("callback"):
            # No network or crypto work before the callback is validated
            self.callback_validator.validate(callback)

            provider = await self.async_provider_configuration()
            endpoints = self.exchanger.resolve_endpoints(provider)
            issuer = self.issuer(provider)

            stored_nonce = self.state_manager.stored_nonce()
            nonce = callback.nonce or stored_nonce

            if self.options.response_type == RESPONSE_TYPE_ID_TOKEN:
                token_set, user_info = await self._async_implicit(
                    callback, endpoints, issuer, nonce
                )
            else:
                code_verifier = None
                if self.options.pkce:
                    code_verifier = self.pkce_manager.take_verifier(
                        callback.code_verifier
                    )
                token_set, user_info = await self.exchanger.async_redeem(
                    code=callback.code,
                    redirect_uri=self._redirect_uri(redirect_uri),
                    endpoints=endpoints,
                    issuer=issuer,
                    nonce=nonce,
                    code_verifier=code_verifier,
                    scope=self.scope(provider),
                )

            result = AuthResult.build(
                self.options.name, self.options.uid_field, user_info, token_set
            )
            if result.uid is None:
                raise UserInfoError(
                    f"Neither '{self.options.uid_field}' nor 'sub' is present in the user info"
                )

        _LOGGER.info(
            "OIDC login succeeded for provider '%s' (uid field: %s)",
            self.options.name,
            self.options.uid_field,
        )
        return result

    async def async_close(self) -> None:
        """Releases the HTTP session."""
        await self.http_client.async_close()
