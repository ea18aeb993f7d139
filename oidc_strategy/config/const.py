"""Config constants."""

## ===
## General constants
## ===

DEFAULT_NAME = "oidc"

## ===
## Config keys
## ===

NAME = "name"
CLIENT_OPTIONS = "client_options"
CLIENT_ID = "identifier"
CLIENT_SECRET = "secret"
HOST = "host"
SCHEME = "scheme"
PORT = "port"
CONFIG_ENDPOINT = "config_endpoint"
REDIRECT_URI = "redirect_uri"
ISSUER = "issuer"
CLIENT_SIGNING_ALG = "client_signing_alg"
JWT_SECRET_BASE64 = "jwt_secret_base64"
CLIENT_JWK_SIGNING_KEY = "client_jwk_signing_key"
CLIENT_X509_SIGNING_KEY = "client_x509_signing_key"
SCOPE = "scope"
RESPONSE_TYPE = "response_type"
RESPONSE_MODE = "response_mode"
REQUIRE_STATE = "require_state"
STATE = "state"
DISPLAY = "display"
PROMPT = "prompt"
HD = "hd"
MAX_AGE = "max_age"
UI_LOCALES = "ui_locales"
ID_TOKEN_HINT = "id_token_hint"
ACR_VALUES = "acr_values"
SEND_NONCE = "send_nonce"
FETCH_USER_INFO = "fetch_user_info"
SEND_SCOPE_TO_TOKEN_ENDPOINT = "send_scope_to_token_endpoint"
REQUIRE_ID_TOKEN = "require_id_token"
CLIENT_AUTH_METHOD = "client_auth_method"
EXTRA_AUTHORIZE_PARAMS = "extra_authorize_params"
ALLOW_AUTHORIZE_PARAMS = "allow_authorize_params"
UID_FIELD = "uid_field"
PKCE = "pkce"
PKCE_VERIFIER = "pkce_verifier"
PKCE_OPTIONS = "pkce_options"
PKCE_CODE_CHALLENGE = "code_challenge"
PKCE_CODE_CHALLENGE_METHOD = "code_challenge_method"
NETWORK = "network"
NETWORK_TLS_VERIFY = "tls_verify"
NETWORK_TLS_CA_PATH = "tls_ca_path"
NETWORK_TIMEOUT = "timeout"
CLOCK_LEEWAY = "clock_leeway"
VERBOSE_DEBUG_MODE = "verbose_debug_mode"

## ===
## Defaults
## ===

DEFAULT_SCOPE = ("openid",)
DEFAULT_SCHEME = "https"
DEFAULT_PORT = 443
DEFAULT_UID_FIELD = "sub"
DEFAULT_CODE_CHALLENGE_METHOD = "S256"
DEFAULT_NETWORK_TIMEOUT = 30
DEFAULT_CLOCK_LEEWAY = 5

RESPONSE_TYPE_CODE = "code"
RESPONSE_TYPE_ID_TOKEN = "id_token"
RESPONSE_TYPES = (RESPONSE_TYPE_CODE, RESPONSE_TYPE_ID_TOKEN)

CLIENT_AUTH_BASIC = "client_secret_basic"
CLIENT_AUTH_POST = "client_secret_post"
CLIENT_AUTH_NONE = "none"
CLIENT_AUTH_METHODS = (CLIENT_AUTH_BASIC, CLIENT_AUTH_POST, CLIENT_AUTH_NONE)

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

## ===
## Session keys, each consumed exactly once
## ===

SESSION_STATE = "oidc.state"
SESSION_NONCE = "oidc.nonce"
SESSION_PKCE_VERIFIER = "oidc.pkce.verifier"
