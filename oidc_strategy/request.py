"""Authorization request construction for the request phase."""

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .config.options import OIDCOptions
from .pkce import PKCEManager
from .state import StateNonceManager
from .types import AuthorizationRequest

_LOGGER = logging.getLogger(__name__)


class AuthorizationRequestBuilder:
    """Assembles the redirect to the provider's authorization endpoint.

    Generates and stores state, nonce and the PKCE verifier as configured.
    No network call is made here.
    """

    def __init__(
        self,
        options: OIDCOptions,
        state_manager: StateNonceManager,
        pkce_manager: PKCEManager,
    ):
        self.options = options
        self.state_manager = state_manager
        self.pkce_manager = pkce_manager

    def _request_options(
        self,
        scope: tuple[str, ...],
        request_params: Mapping[str, Any],
        env: Optional[Mapping[str, Any]],
    ) -> dict[str, Any]:
        options = self.options
        return {
            "response_type": options.response_type,
            "response_mode": options.response_mode,
            "scope": " ".join(scope),
            "state": self.state_manager.new_state(env),
            "login_hint": request_params.get("login_hint"),
            "ui_locales": request_params.get("ui_locales") or options.ui_locales,
            "claims_locales": request_params.get("claims_locales"),
            "prompt": options.prompt,
            "display": options.display,
            "nonce": self.state_manager.new_nonce() if options.send_nonce else None,
            "hd": options.hd,
            "max_age": options.max_age,
            "id_token_hint": options.id_token_hint,
            "acr_values": options.acr_values,
        }

    def build(
        self,
        authorization_endpoint: str,
        redirect_uri: str,
        scope: tuple[str, ...],
        request_params: Optional[Mapping[str, Any]] = None,
        env: Optional[Mapping[str, Any]] = None,
    ) -> AuthorizationRequest:
        """Builds the authorization request for a new login attempt."""
        request_params = request_params or {}

        opts = {
            "client_id": self.options.client_id,
            "redirect_uri": redirect_uri,
        }
        opts.update(self._request_options(scope, request_params, env))

        # Static parameters win over computed ones
        opts.update(self.options.extra_authorize_params)

        for key in self.options.allow_authorize_params:
            if opts.get(key) is None and request_params.get(key) is not None:
                opts[key] = request_params[key]

        if self.options.pkce:
            opts.update(self.pkce_manager.start())
        else:
            _LOGGER.debug("PKCE (RFC 7636) disabled, no code_challenge sent")

        params = {key: str(value) for key, value in opts.items() if value is not None}

        if self.options.verbose_debug_mode:
            _LOGGER.debug(
                "Authorization request parameters: %s",
                sorted(params),
            )

        return AuthorizationRequest(
            endpoint=authorization_endpoint, params=MappingProxyType(params)
        )
