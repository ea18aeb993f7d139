"""Generic data types"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional


def _freeze(data: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class ProviderConfiguration:
    """The parts of the provider's discovery document the flow relies on."""

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: Optional[str] = None
    jwks_uri: Optional[str] = None
    scopes_supported: tuple[str, ...] = ()
    id_token_signing_alg_values_supported: tuple[str, ...] = ()

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ProviderConfiguration":
        """Builds the configuration from a parsed discovery document."""
        return cls(
            issuer=document["issuer"],
            authorization_endpoint=document["authorization_endpoint"],
            token_endpoint=document["token_endpoint"],
            userinfo_endpoint=document.get("userinfo_endpoint"),
            jwks_uri=document.get("jwks_uri"),
            scopes_supported=tuple(document.get("scopes_supported") or ()),
            id_token_signing_alg_values_supported=tuple(
                document.get("id_token_signing_alg_values_supported") or ()
            ),
        )


@dataclass(frozen=True)
class ProviderEndpoints:
    """Provider endpoints normalized onto the configured host."""

    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: Optional[str] = None
    jwks_uri: Optional[str] = None


@dataclass(frozen=True)
class AuthorizationRequest:
    """One login attempt's redirect to the provider's authorization endpoint."""

    endpoint: str
    params: Mapping[str, str]

    @property
    def state(self) -> Optional[str]:
        return self.params.get("state")

    @property
    def nonce(self) -> Optional[str]:
        return self.params.get("nonce")

    @property
    def scope(self) -> tuple[str, ...]:
        return tuple(self.params.get("scope", "").split())

    @property
    def response_type(self) -> Optional[str]:
        return self.params.get("response_type")

    @property
    def code_challenge(self) -> Optional[str]:
        return self.params.get("code_challenge")

    @property
    def url(self) -> str:
        """The URL to redirect the user agent to."""
        separator = "&" if "?" in self.endpoint else "?"
        return f"{self.endpoint}{separator}{urllib.parse.urlencode(dict(self.params))}"


@dataclass(frozen=True)
class CallbackParams:
    """Raw parameters the provider sent to the callback."""

    raw: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_mapping(cls, params: Optional[Mapping[str, Any]]) -> "CallbackParams":
        return cls(raw=_freeze(params))

    def get(self, key: str) -> Optional[str]:
        """Returns a parameter, with empty values read as None."""
        value = self.raw.get(key)
        if value is None or value == "":
            return None
        return str(value)

    @property
    def code(self) -> Optional[str]:
        return self.get("code")

    @property
    def id_token(self) -> Optional[str]:
        return self.get("id_token")

    @property
    def state(self) -> Optional[str]:
        return self.get("state")

    @property
    def nonce(self) -> Optional[str]:
        return self.get("nonce")

    @property
    def code_verifier(self) -> Optional[str]:
        return self.get("code_verifier")

    @property
    def error(self) -> Optional[str]:
        return self.get("error")

    @property
    def error_reason(self) -> Optional[str]:
        return self.get("error_reason")

    @property
    def error_description(self) -> Optional[str]:
        return self.get("error_description")

    @property
    def error_uri(self) -> Optional[str]:
        return self.get("error_uri")


@dataclass(frozen=True)
class TokenSet:
    """Tokens obtained from the token endpoint (or the implicit callback)."""

    access_token: Optional[str]
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_response(cls, response: Mapping[str, Any]) -> "TokenSet":
        """Builds a token set from a token endpoint JSON response."""
        expires_in = response.get("expires_in")
        try:
            expires_in = int(expires_in) if expires_in is not None else None
        except (TypeError, ValueError):
            expires_in = None

        return cls(
            access_token=response.get("access_token"),
            id_token=response.get("id_token"),
            refresh_token=response.get("refresh_token"),
            expires_in=expires_in,
            scope=response.get("scope"),
            token_type=response.get("token_type"),
            raw=_freeze(response),
        )


@dataclass(frozen=True)
class IdTokenClaims:
    """Header and claims of an ID token whose signature and claims were verified."""

    header: Mapping[str, Any]
    claims: Mapping[str, Any]

    @property
    def alg(self) -> Optional[str]:
        return self.header.get("alg")

    @property
    def kid(self) -> Optional[str]:
        return self.header.get("kid")

    @property
    def iss(self) -> Optional[str]:
        return self.claims.get("iss")

    @property
    def sub(self) -> Optional[str]:
        return self.claims.get("sub")

    @property
    def aud(self) -> Any:
        return self.claims.get("aud")

    @property
    def nonce(self) -> Optional[str]:
        return self.claims.get("nonce")

    @property
    def exp(self) -> Optional[int]:
        return self.claims.get("exp")

    @property
    def raw_attributes(self) -> dict[str, Any]:
        """A mutable copy of the claims."""
        return dict(self.claims)


@dataclass(frozen=True)
class UserInfo:
    """Normalized user claims, from the ID token and/or the user info endpoint."""

    raw_attributes: Mapping[str, Any]

    @classmethod
    def merged(
        cls,
        id_token_claims: Optional[Mapping[str, Any]],
        userinfo: Optional[Mapping[str, Any]] = None,
    ) -> "UserInfo":
        """Userinfo claims fill in what the ID token lacks, never override it."""
        data = dict(userinfo or {})
        data.update(id_token_claims or {})
        return cls(raw_attributes=_freeze(data))

    def get(self, claim: str) -> Any:
        return self.raw_attributes.get(claim)

    @property
    def sub(self) -> Optional[str]:
        return self.raw_attributes.get("sub")

    @property
    def info(self) -> dict[str, Any]:
        """Profile information in a provider independent shape."""
        claims = self.raw_attributes
        return {
            "name": claims.get("name"),
            "email": claims.get("email"),
            "email_verified": claims.get("email_verified"),
            "nickname": claims.get("preferred_username"),
            "first_name": claims.get("given_name"),
            "last_name": claims.get("family_name"),
            "gender": claims.get("gender"),
            "image": claims.get("picture"),
            "phone": claims.get("phone_number"),
            "urls": {"website": claims.get("website")},
        }


@dataclass(frozen=True)
class AuthResult:
    """The identity produced by a successful callback."""

    provider: str
    uid: str
    info: Mapping[str, Any]
    credentials: Mapping[str, Any]
    extra: Mapping[str, Any]

    @classmethod
    def build(
        cls, provider: str, uid_field: str, user_info: UserInfo, token_set: TokenSet
    ) -> "AuthResult":
        uid = user_info.get(uid_field) or user_info.sub
        return cls(
            provider=provider,
            uid=str(uid) if uid is not None else None,
            info=_freeze(user_info.info),
            credentials=_freeze(
                {
                    "id_token": token_set.id_token,
                    "token": token_set.access_token,
                    "refresh_token": token_set.refresh_token,
                    "expires_in": token_set.expires_in,
                    "scope": token_set.scope,
                }
            ),
            extra=_freeze({"raw_info": dict(user_info.raw_attributes)}),
        )
