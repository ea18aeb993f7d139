"""Authorization code exchange, ID token verification of the result and user info resolution."""

import logging
import urllib.parse
from typing import Any, Optional

from .config.const import CLIENT_AUTH_BASIC, CLIENT_AUTH_POST
from .config.options import OIDCOptions
from .errors import (
    ConfigurationError,
    MissingIdTokenError,
    OAuthExchangeError,
    UserInfoError,
)
from .tools.helpers import (
    basic_authorization,
    build_base_url,
    resolve_endpoint_path,
)
from .tools.http_client import HTTPClientError, OIDCHttpClient
from .tools.validation import host_from_url
from .types import (
    IdTokenClaims,
    ProviderConfiguration,
    ProviderEndpoints,
    TokenSet,
    UserInfo,
)
from .verify import IdTokenVerifier

_LOGGER = logging.getLogger(__name__)


class TokenExchanger:
    """Redeems an authorization code at the token endpoint (code flow only)."""

    def __init__(
        self,
        options: OIDCOptions,
        http_client: OIDCHttpClient,
        verifier: IdTokenVerifier,
    ):
        self.options = options
        self.http_client = http_client
        self.verifier = verifier

    def resolve_endpoints(self, provider: ProviderConfiguration) -> ProviderEndpoints:
        """Puts the provider's endpoint paths on the configured (or issuer) host.

        Whatever scheme and host the provider embedded in an endpoint is
        dropped, so relative and absolute endpoints resolve the same way.
        """
        client_options = self.options.client_options
        if client_options.host:
            base_url = build_base_url(
                client_options.scheme, client_options.host, client_options.port
            )
        else:
            host = host_from_url(provider.issuer)
            if not host:
                raise ConfigurationError(
                    f"Cannot determine the provider host from issuer {provider.issuer}"
                )
            issuer_port = urllib.parse.urlparse(provider.issuer).port
            base_url = build_base_url(
                client_options.scheme, host, issuer_port or client_options.port
            )

        def resolve(endpoint: Optional[str]) -> Optional[str]:
            path = resolve_endpoint_path(endpoint)
            return f"{base_url}{path}" if path else None

        return ProviderEndpoints(
            authorization_endpoint=resolve(provider.authorization_endpoint),
            token_endpoint=resolve(provider.token_endpoint),
            userinfo_endpoint=resolve(provider.userinfo_endpoint),
            jwks_uri=resolve(provider.jwks_uri),
        )

    def _client_authentication(self, data: dict[str, str]) -> dict[str, str]:
        """Adds client credentials to the form, or returns an HTTP Basic header."""
        client_id = self.options.client_id
        secret = self.options.client_options.secret
        method = self.options.client_auth_method

        if method == CLIENT_AUTH_BASIC and secret:
            return {"Authorization": basic_authorization(client_id, secret)}

        data["client_id"] = client_id
        if method == CLIENT_AUTH_POST and secret:
            data["client_secret"] = secret
        return {}

    async def async_exchange_code(
        self,
        token_endpoint: str,
        code: str,
        redirect_uri: str,
        code_verifier: Optional[str] = None,
        scope: Optional[tuple[str, ...]] = None,
    ) -> TokenSet:
        """Performs the token POST call"""
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        }
        if scope and self.options.send_scope_to_token_endpoint:
            data["scope"] = " ".join(scope)
        if code_verifier:
            data["code_verifier"] = code_verifier

        headers = self._client_authentication(data)

        try:
            response = await self.http_client.async_post_form(
                token_endpoint, data, headers=headers
            )
        except HTTPClientError as e:
            body = e.json_body() or {}
            if e.status == 400:
                _LOGGER.warning(
                    "Error: Token could not be obtained (%s, %s), "
                    + "did you forget the client secret? Server returned: %s",
                    e.status,
                    e.message,
                    body.get("error"),
                )
            else:
                _LOGGER.warning("Unexpected error exchanging token: %s", e.status)
            raise OAuthExchangeError(
                body.get("error_description") or e.message,
                error=body.get("error"),
                uri=body.get("error_uri"),
                status=e.status,
            ) from e
        except ValueError as e:
            _LOGGER.error("Token response is not JSON!")
            raise OAuthExchangeError("Token response not JSON") from e

        if not isinstance(response, dict):
            raise OAuthExchangeError("Token response is not a JSON object")
        if response.get("error"):
            raise OAuthExchangeError(
                response.get("error_description"),
                error=response["error"],
                uri=response.get("error_uri"),
            )

        token_set = TokenSet.from_response(response)
        if not token_set.access_token:
            _LOGGER.warning("Token response does not contain an access_token")
            raise OAuthExchangeError("Token response has no access_token")

        if self.options.verbose_debug_mode:
            _LOGGER.debug("Token received from endpoint: %s", token_endpoint)
        return token_set

    async def async_fetch_user_info(
        self, userinfo_endpoint: str, access_token: str
    ) -> dict[str, Any]:
        """Fetches userinfo from the given URL."""
        headers = {"Authorization": "Bearer " + access_token, "Accept": "application/json"}
        try:
            userinfo = await self.http_client.async_get_json(
                userinfo_endpoint, headers=headers
            )
        except HTTPClientError as e:
            _LOGGER.warning("Error fetching userinfo: %s", e.status)
            raise UserInfoError(f"User info request failed with status {e.status}") from e
        except ValueError as e:
            _LOGGER.warning("Userinfo response is not JSON")
            raise UserInfoError("User info response is not JSON") from e

        if not isinstance(userinfo, dict):
            raise UserInfoError("User info response is not a JSON object")
        return userinfo

    async def async_resolve_user_info(
        self,
        token_set: TokenSet,
        claims: Optional[IdTokenClaims],
        userinfo_endpoint: Optional[str],
    ) -> UserInfo:
        """Builds user info from the ID token, filling gaps from the user info endpoint."""
        userinfo = None
        if self.options.fetch_user_info and userinfo_endpoint:
            userinfo = await self.async_fetch_user_info(
                userinfo_endpoint, token_set.access_token
            )

            # OpenID Connect Core 1.0 Section 5.3.4
            if (
                claims is not None
                and userinfo.get("sub") is not None
                and userinfo["sub"] != claims.sub
            ):
                _LOGGER.warning("Userinfo subject does not match the ID token subject")
                raise UserInfoError("User info 'sub' does not match the ID token")

        if claims is None and userinfo is None:
            raise MissingIdTokenError("No id_token received and no user info available")

        return UserInfo.merged(
            claims.raw_attributes if claims is not None else None, userinfo
        )

    async def async_redeem(
        self,
        *,
        code: str,
        redirect_uri: str,
        endpoints: ProviderEndpoints,
        issuer: str,
        nonce: Optional[str],
        code_verifier: Optional[str] = None,
        scope: Optional[tuple[str, ...]] = None,
    ) -> tuple[TokenSet, UserInfo]:
        """Exchanges the code, verifies the returned ID token and resolves the user info."""
        token_set = await self.async_exchange_code(
            endpoints.token_endpoint,
            code,
            redirect_uri,
            code_verifier=code_verifier,
            scope=scope,
        )

        claims = None
        if token_set.id_token:
            claims = await self.verifier.async_verify(
                token_set.id_token,
                issuer=issuer,
                audience=self.options.client_id,
                nonce=nonce,
                jwks_uri=endpoints.jwks_uri,
                access_token=token_set.access_token,
            )
        elif self.options.require_id_token:
            _LOGGER.warning("Token response does not contain an id_token")
            raise MissingIdTokenError("Token response has no id_token")

        user_info = await self.async_resolve_user_info(
            token_set, claims, endpoints.userinfo_endpoint
        )
        return token_set, user_info
