"""Conversion of a validated configuration into the immutable options of a flow."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

import voluptuous as vol

from ..errors import ConfigurationError
from ..pkce import PKCEOptions, s256_code_challenge
from .const import (
    NAME,
    CLIENT_OPTIONS,
    CLIENT_ID,
    CLIENT_SECRET,
    HOST,
    SCHEME,
    PORT,
    CONFIG_ENDPOINT,
    REDIRECT_URI,
    ISSUER,
    CLIENT_SIGNING_ALG,
    JWT_SECRET_BASE64,
    CLIENT_JWK_SIGNING_KEY,
    CLIENT_X509_SIGNING_KEY,
    SCOPE,
    RESPONSE_TYPE,
    RESPONSE_MODE,
    REQUIRE_STATE,
    STATE,
    DISPLAY,
    PROMPT,
    HD,
    MAX_AGE,
    UI_LOCALES,
    ID_TOKEN_HINT,
    ACR_VALUES,
    SEND_NONCE,
    FETCH_USER_INFO,
    SEND_SCOPE_TO_TOKEN_ENDPOINT,
    REQUIRE_ID_TOKEN,
    CLIENT_AUTH_METHOD,
    EXTRA_AUTHORIZE_PARAMS,
    ALLOW_AUTHORIZE_PARAMS,
    UID_FIELD,
    PKCE,
    PKCE_VERIFIER,
    PKCE_OPTIONS,
    PKCE_CODE_CHALLENGE,
    PKCE_CODE_CHALLENGE_METHOD,
    NETWORK,
    NETWORK_TLS_VERIFY,
    NETWORK_TLS_CA_PATH,
    NETWORK_TIMEOUT,
    CLOCK_LEEWAY,
    VERBOSE_DEBUG_MODE,
    DEFAULT_SCHEME,
    DEFAULT_PORT,
    DEFAULT_NETWORK_TIMEOUT,
    DEFAULT_CLOCK_LEEWAY,
    DEFAULT_NAME,
    DEFAULT_UID_FIELD,
    RESPONSE_TYPE_CODE,
    CLIENT_AUTH_BASIC,
)
from .schema import CONFIG_SCHEMA

_LOGGER = logging.getLogger(__name__)

StateGenerator = Callable[[Optional[Mapping[str, Any]]], Optional[str]]


@dataclass(frozen=True)
class ClientOptions:
    """Client credentials and the provider endpoint base."""

    identifier: str
    secret: Optional[str] = None
    host: Optional[str] = None
    scheme: str = DEFAULT_SCHEME
    port: int = DEFAULT_PORT
    config_endpoint: Optional[str] = None


@dataclass(frozen=True)
class NetworkOptions:
    """Options handed to the HTTP collaborator."""

    tls_verify: bool = True
    tls_ca_path: Optional[str] = None
    timeout: float = DEFAULT_NETWORK_TIMEOUT


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True)
class OIDCOptions:
    """Immutable options of one OIDC strategy, built once by `build_options`."""

    client_options: ClientOptions
    name: str = DEFAULT_NAME
    redirect_uri: Optional[str] = None
    issuer: Optional[str] = None
    client_signing_alg: Optional[str] = None
    jwt_secret_base64: Optional[str] = None
    client_jwk_signing_key: Optional[str | Mapping[str, Any]] = None
    client_x509_signing_key: Optional[str] = None
    scope: Optional[tuple[str, ...]] = None
    response_type: str = RESPONSE_TYPE_CODE
    response_mode: Optional[str] = None
    require_state: bool = True
    state_generator: Optional[StateGenerator] = None
    display: Optional[str] = None
    prompt: Optional[str] = None
    hd: Optional[str] = None
    max_age: Optional[int] = None
    ui_locales: Optional[str] = None
    id_token_hint: Optional[str] = None
    acr_values: Optional[str] = None
    send_nonce: bool = True
    fetch_user_info: bool = True
    send_scope_to_token_endpoint: bool = True
    require_id_token: bool = False
    client_auth_method: str = CLIENT_AUTH_BASIC
    extra_authorize_params: Mapping[str, Optional[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    allow_authorize_params: tuple[str, ...] = ()
    uid_field: str = DEFAULT_UID_FIELD
    pkce: bool = False
    pkce_verifier: Optional[Callable[[], str]] = None
    pkce_options: PKCEOptions = PKCEOptions()
    network: NetworkOptions = NetworkOptions()
    clock_leeway: int = DEFAULT_CLOCK_LEEWAY
    verbose_debug_mode: bool = False

    @property
    def client_id(self) -> str:
        """The client identifier registered with the provider."""
        return self.client_options.identifier


def adapt_state_generator(generator: Optional[Callable]) -> Optional[StateGenerator]:
    """Wraps a state generator of arity 0 or 1 into one that always takes the environment."""
    if generator is None:
        return None

    try:
        parameters = [
            parameter
            for parameter in inspect.signature(generator).parameters.values()
            if parameter.kind
            in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD)
        ]
    except (TypeError, ValueError):
        parameters = []

    if len(parameters) == 1:
        return generator
    return lambda _env: generator()


def build_options(config: Mapping[str, Any]) -> OIDCOptions:
    """Validate a raw configuration and convert it to `OIDCOptions`."""
    try:
        my_config = CONFIG_SCHEMA(dict(config))
    except vol.Invalid as err:
        _LOGGER.warning("Invalid OIDC configuration: %s", err)
        raise ConfigurationError(str(err)) from err

    client_config = my_config[CLIENT_OPTIONS]
    pkce_config = my_config[PKCE_OPTIONS]
    network_config = my_config[NETWORK]
    scope = my_config.get(SCOPE)

    options = OIDCOptions(
        name=my_config[NAME],
        client_options=ClientOptions(
            identifier=client_config[CLIENT_ID],
            secret=client_config.get(CLIENT_SECRET),
            host=client_config.get(HOST),
            scheme=client_config[SCHEME],
            port=client_config[PORT],
            config_endpoint=client_config.get(CONFIG_ENDPOINT),
        ),
        redirect_uri=my_config.get(REDIRECT_URI),
        issuer=my_config.get(ISSUER),
        client_signing_alg=my_config.get(CLIENT_SIGNING_ALG),
        jwt_secret_base64=my_config.get(JWT_SECRET_BASE64),
        client_jwk_signing_key=my_config.get(CLIENT_JWK_SIGNING_KEY),
        client_x509_signing_key=my_config.get(CLIENT_X509_SIGNING_KEY),
        scope=tuple(scope) if scope else None,
        response_type=my_config[RESPONSE_TYPE],
        response_mode=my_config.get(RESPONSE_MODE),
        require_state=my_config[REQUIRE_STATE],
        state_generator=adapt_state_generator(my_config.get(STATE)),
        display=my_config.get(DISPLAY),
        prompt=my_config.get(PROMPT),
        hd=my_config.get(HD),
        max_age=my_config.get(MAX_AGE),
        ui_locales=my_config.get(UI_LOCALES),
        id_token_hint=my_config.get(ID_TOKEN_HINT),
        acr_values=my_config.get(ACR_VALUES),
        send_nonce=my_config[SEND_NONCE],
        fetch_user_info=my_config[FETCH_USER_INFO],
        send_scope_to_token_endpoint=my_config[SEND_SCOPE_TO_TOKEN_ENDPOINT],
        require_id_token=my_config[REQUIRE_ID_TOKEN],
        client_auth_method=my_config[CLIENT_AUTH_METHOD],
        extra_authorize_params=MappingProxyType(dict(my_config[EXTRA_AUTHORIZE_PARAMS])),
        allow_authorize_params=tuple(my_config[ALLOW_AUTHORIZE_PARAMS]),
        uid_field=my_config[UID_FIELD],
        pkce=my_config[PKCE],
        pkce_verifier=my_config.get(PKCE_VERIFIER),
        pkce_options=PKCEOptions(
            code_challenge=pkce_config.get(PKCE_CODE_CHALLENGE) or s256_code_challenge,
            code_challenge_method=pkce_config[PKCE_CODE_CHALLENGE_METHOD],
        ),
        network=NetworkOptions(
            tls_verify=network_config[NETWORK_TLS_VERIFY],
            tls_ca_path=network_config.get(NETWORK_TLS_CA_PATH),
            timeout=network_config[NETWORK_TIMEOUT],
        ),
        clock_leeway=my_config[CLOCK_LEEWAY],
        verbose_debug_mode=my_config[VERBOSE_DEBUG_MODE],
    )

    if options.verbose_debug_mode:
        _LOGGER.warning(
            "VERBOSE_DEBUG_MODE is enabled so detailed flow logging is active. "
            + "Do NOT leave this enabled in production!"
        )
    if not options.pkce:
        _LOGGER.debug("PKCE (RFC 7636) is not enabled for provider '%s'", options.name)

    return options
