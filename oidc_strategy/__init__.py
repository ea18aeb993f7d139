"""OpenID Connect relying party strategy: authorization request, callback and ID token verification."""

# Import and re-export the public API explicitly
# pylint: disable=useless-import-alias
from .config import CONFIG_SCHEMA as CONFIG_SCHEMA
from .config.options import OIDCOptions as OIDCOptions, build_options as build_options
from .errors import (
    OIDCError as OIDCError,
    ConfigurationError as ConfigurationError,
    DiscoveryInvalid as DiscoveryInvalid,
    CallbackError as CallbackError,
    CsrfError as CsrfError,
    MissingCodeError as MissingCodeError,
    MissingIdTokenError as MissingIdTokenError,
    ProviderCallbackError as ProviderCallbackError,
    VerificationError as VerificationError,
    AlgorithmMismatchError as AlgorithmMismatchError,
    SignatureVerificationError as SignatureVerificationError,
    ClaimVerificationError as ClaimVerificationError,
    KeyResolutionError as KeyResolutionError,
    TransportError as TransportError,
    TransportTimeoutError as TransportTimeoutError,
    TransportConnectionError as TransportConnectionError,
    OAuthExchangeError as OAuthExchangeError,
    UserInfoError as UserInfoError,
)
from .strategy import OIDCStrategy as OIDCStrategy
from .tools.discovery import (
    OIDCDiscoveryClient as OIDCDiscoveryClient,
    ProviderConfigurationSource as ProviderConfigurationSource,
    StaticProviderConfiguration as StaticProviderConfiguration,
)
from .types import (
    AuthorizationRequest as AuthorizationRequest,
    AuthResult as AuthResult,
    CallbackParams as CallbackParams,
    IdTokenClaims as IdTokenClaims,
    ProviderConfiguration as ProviderConfiguration,
    TokenSet as TokenSet,
    UserInfo as UserInfo,
)
