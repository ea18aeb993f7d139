"""Config schema"""

import voluptuous as vol
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
    DEFAULT_NAME,
    DEFAULT_SCHEME,
    DEFAULT_PORT,
    DEFAULT_UID_FIELD,
    DEFAULT_CODE_CHALLENGE_METHOD,
    DEFAULT_NETWORK_TIMEOUT,
    DEFAULT_CLOCK_LEEWAY,
    RESPONSE_TYPES,
    RESPONSE_TYPE_CODE,
    CLIENT_AUTH_METHODS,
    CLIENT_AUTH_BASIC,
)


def strategy_function(value):
    """Accept a callable (or None) without calling it."""
    if value is None or callable(value):
        return value
    raise vol.Invalid("expected a callable")


def scope_list(value) -> list[str]:
    """Coerce a space separated string or a list into an ordered, de-duplicated list."""
    if isinstance(value, str):
        value = value.split()
    if not isinstance(value, (list, tuple)):
        raise vol.Invalid("expected a string or a list of scopes")

    scopes = []
    for scope in value:
        scope = str(scope).strip()
        if scope and scope not in scopes:
            scopes.append(scope)

    if not scopes:
        raise vol.Invalid("at least one scope is required")
    return scopes


def non_empty_string(value) -> str:
    """Coerce to a stripped, non-empty string."""
    value = str(value).strip()
    if not value:
        raise vol.Invalid("must not be empty")
    return value


CLIENT_OPTIONS_SCHEMA = vol.Schema(
    {
        # Client ID as registered with the OIDC provider
        vol.Required(CLIENT_ID): non_empty_string,
        # Optional client secret, also used as the HMAC key for HS* signed id_tokens
        vol.Optional(CLIENT_SECRET): vol.Any(None, vol.Coerce(str)),
        # Provider host, defaults to the host of the discovered issuer
        vol.Optional(HOST): vol.Any(None, vol.Coerce(str)),
        vol.Optional(SCHEME, default=DEFAULT_SCHEME): vol.In(["http", "https"]),
        vol.Optional(PORT, default=DEFAULT_PORT): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=65535)
        ),
        # Which OIDC well-known URL should we use?
        vol.Optional(CONFIG_ENDPOINT): vol.Any(None, vol.Coerce(str)),
    },
    extra=vol.REMOVE_EXTRA,
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(NAME, default=DEFAULT_NAME): non_empty_string,
        vol.Required(CLIENT_OPTIONS): CLIENT_OPTIONS_SCHEMA,
        vol.Optional(REDIRECT_URI): vol.Any(None, vol.Coerce(str)),
        # Overrides the issuer from the discovery document
        vol.Optional(ISSUER): vol.Any(None, vol.Coerce(str)),
        # Pins the algorithm the id_token must be signed with
        vol.Optional(CLIENT_SIGNING_ALG): vol.Any(None, vol.Coerce(str)),
        # Static key material, used instead of the provider JWKS
        vol.Optional(JWT_SECRET_BASE64): vol.Any(None, vol.Coerce(str)),
        vol.Optional(CLIENT_JWK_SIGNING_KEY): vol.Any(None, str, dict),
        vol.Optional(CLIENT_X509_SIGNING_KEY): vol.Any(None, vol.Coerce(str)),
        # Left unset, the provider's scopes_supported are requested
        vol.Optional(SCOPE): vol.Any(None, scope_list),
        vol.Optional(RESPONSE_TYPE, default=RESPONSE_TYPE_CODE): vol.In(
            RESPONSE_TYPES
        ),
        vol.Optional(RESPONSE_MODE): vol.Any(
            None, vol.In(["query", "fragment", "form_post", "web_message"])
        ),
        vol.Optional(REQUIRE_STATE, default=True): vol.Coerce(bool),
        vol.Optional(STATE): strategy_function,
        vol.Optional(DISPLAY): vol.Any(
            None, vol.In(["page", "popup", "touch", "wap"])
        ),
        vol.Optional(PROMPT): vol.Any(None, vol.Coerce(str)),
        vol.Optional(HD): vol.Any(None, vol.Coerce(str)),
        vol.Optional(MAX_AGE): vol.Any(None, vol.Coerce(int)),
        vol.Optional(UI_LOCALES): vol.Any(None, vol.Coerce(str)),
        vol.Optional(ID_TOKEN_HINT): vol.Any(None, vol.Coerce(str)),
        vol.Optional(ACR_VALUES): vol.Any(None, vol.Coerce(str)),
        vol.Optional(SEND_NONCE, default=True): vol.Coerce(bool),
        vol.Optional(FETCH_USER_INFO, default=True): vol.Coerce(bool),
        vol.Optional(SEND_SCOPE_TO_TOKEN_ENDPOINT, default=True): vol.Coerce(bool),
        # Fail the code flow when the token response carries no id_token
        vol.Optional(REQUIRE_ID_TOKEN, default=False): vol.Coerce(bool),
        vol.Optional(CLIENT_AUTH_METHOD, default=CLIENT_AUTH_BASIC): vol.In(
            CLIENT_AUTH_METHODS
        ),
        # Static parameters added to (and overriding) the authorization request
        vol.Optional(EXTRA_AUTHORIZE_PARAMS, default={}): vol.Schema(
            {vol.Coerce(str): vol.Any(None, vol.Coerce(str))}
        ),
        # Request parameters that may be copied through to the authorization request
        vol.Optional(ALLOW_AUTHORIZE_PARAMS, default=[]): [vol.Coerce(str)],
        vol.Optional(UID_FIELD, default=DEFAULT_UID_FIELD): non_empty_string,
        # RFC 7636
        vol.Optional(PKCE, default=False): vol.Coerce(bool),
        vol.Optional(PKCE_VERIFIER): strategy_function,
        vol.Optional(PKCE_OPTIONS, default={}): vol.Schema(
            {
                vol.Optional(PKCE_CODE_CHALLENGE): strategy_function,
                vol.Optional(
                    PKCE_CODE_CHALLENGE_METHOD, default=DEFAULT_CODE_CHALLENGE_METHOD
                ): non_empty_string,
            }
        ),
        # Network options
        vol.Optional(NETWORK, default={}): vol.Schema(
            {
                # Verify x509 certificates provided when starting TLS connections
                vol.Optional(NETWORK_TLS_VERIFY, default=True): vol.Coerce(bool),
                # Load custom certificate chain for private CAs
                vol.Optional(NETWORK_TLS_CA_PATH): vol.Any(None, vol.Coerce(str)),
                vol.Optional(NETWORK_TIMEOUT, default=DEFAULT_NETWORK_TIMEOUT): vol.All(
                    vol.Coerce(float), vol.Range(min=0, min_included=False)
                ),
            }
        ),
        vol.Optional(CLOCK_LEEWAY, default=DEFAULT_CLOCK_LEEWAY): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        # If enabled, logging will include more detailed information about the flow
        vol.Optional(VERBOSE_DEBUG_MODE, default=False): vol.Coerce(bool),
    },
    # Any extra fields should not go into our config right now
    extra=vol.REMOVE_EXTRA,
)
