"""Errors raised by the OIDC strategy."""

from typing import Optional


class OIDCError(Exception):
    "Raised when the OIDC flow encounters an error"

    error: str = "oidc_error"

    def __init__(
        self,
        reason: Optional[str] = None,
        *,
        error: Optional[str] = None,
        uri: Optional[str] = None,
    ):
        if error is not None:
            self.error = error
        self.reason = reason
        self.uri = uri
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """Error code, reason and uri joined for display."""
        return " | ".join(
            str(part) for part in (self.error, self.reason, self.uri) if part
        )

    def get_detail_string(self) -> str:
        """Returns a detailed string for logging purposes."""
        string = [f"error: {self.error}"]

        if self.reason:
            string.append(f"reason: {self.reason}")
        if self.uri:
            string.append(f"uri: {self.uri}")

        return ", ".join(string)


class ConfigurationError(OIDCError):
    "Raised when a required option or endpoint is missing or invalid."

    error = "configuration_error"


class DiscoveryInvalid(ConfigurationError):
    "Raised when the discovery document is not found, invalid or otherwise malformed."

    error = "discovery_invalid"

    type: Optional[str]
    details: Optional[dict]

    def __init__(self, **kwargs):
        self.type = kwargs.pop("type", None)
        self.details = kwargs.pop("details", None)
        super().__init__("OIDC Discovery document is invalid", **kwargs)

    def get_detail_string(self) -> str:
        string = []

        if self.type:
            string.append(f"type: {self.type}")

        if self.details:
            for key, value in self.details.items():
                string.append(f"{key}: {value}")

        return ", ".join(string)


class CallbackError(OIDCError):
    "Raised when an inbound callback is rejected before any network call."

    error = "invalid_callback"


class CsrfError(CallbackError):
    "Raised when the state for your request cannot be matched against a stored state."

    error = "csrf_detected"


class MissingCodeError(CallbackError):
    "Raised when the code flow callback carries no 'code' parameter."

    error = "missing_code"


class MissingIdTokenError(CallbackError):
    "Raised when an id_token is required but was not received."

    error = "missing_id_token"


class ProviderCallbackError(CallbackError):
    "Raised when the provider returned an error on the callback."

    error = "provider_error"


class VerificationError(OIDCError):
    "Raised when the ID token is invalid, unverifiable, or claims validation fails."

    error = "invalid_id_token"


class AlgorithmMismatchError(VerificationError):
    "Raised when the id_token is signed with another algorithm than the configured one."

    error = "invalid_jwt_algorithm"


class SignatureVerificationError(VerificationError):
    "Raised when no key verifies the id_token signature."

    error = "invalid_signature"


class ClaimVerificationError(VerificationError):
    "Raised when issuer, audience, nonce or expiry claims do not validate."

    error = "invalid_claims"


class KeyResolutionError(VerificationError):
    "Raised when the JWKS is invalid or cannot be obtained."

    error = "key_resolution_failed"


class TransportError(OIDCError):
    "Raised when a call to the provider fails below the HTTP layer."

    error = "transport_error"


class TransportTimeoutError(TransportError):
    "Raised when a call to the provider timed out."

    error = "timeout"


class TransportConnectionError(TransportError):
    "Raised when the provider could not be reached."

    error = "failed_to_connect"


class OAuthExchangeError(OIDCError):
    "Raised when the token request returns invalid."

    error = "invalid_token_response"

    def __init__(self, reason: Optional[str] = None, *, status: Optional[int] = None, **kwargs):
        self.status = status
        super().__init__(reason, **kwargs)


class UserInfoError(OIDCError):
    "Raised when the user info is invalid or cannot be obtained."

    error = "invalid_user_info"
