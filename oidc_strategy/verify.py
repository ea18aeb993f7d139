"""ID token verification: algorithm pinning, key selection, signature and claim checks."""

import base64
import binascii
import hmac
import logging
from types import MappingProxyType
from typing import Any, Optional

from joserfc import jwk, jws, jwt, errors as joserfc_errors
from joserfc.jwk import KeySet

from .config.const import HMAC_ALGORITHMS
from .config.options import OIDCOptions
from .errors import (
    AlgorithmMismatchError,
    ClaimVerificationError,
    KeyResolutionError,
    SignatureVerificationError,
)
from .keys import KeyResolver
from .tools.helpers import base64url_encode, left_half_hash
from .types import IdTokenClaims

_LOGGER = logging.getLogger(__name__)

_DECODE_ERRORS = (joserfc_errors.JoseError, ValueError)


class IdTokenVerifier:
    """Verifies signed ID tokens for one flow."""

    def __init__(self, options: OIDCOptions, key_resolver: KeyResolver):
        self.options = options
        self.key_resolver = key_resolver

    def _read_header(self, id_token: str) -> dict:
        """Obtain the (unverified) id_token header."""
        try:
            token_obj = jws.extract_compact(id_token.encode("utf-8"))
        except _DECODE_ERRORS as e:
            _LOGGER.warning("Received id_token is not a compact JWS: %s", e)
            raise SignatureVerificationError("Malformed id_token") from e

        header = dict(token_obj.protected or {})
        if not header.get("alg"):
            _LOGGER.warning("JWT does not have alg")
            raise SignatureVerificationError("id_token header has no 'alg'")
        return header

    def validate_client_algorithm(self, alg: str) -> None:
        """Check for the JWT to match the configured client_signing_alg."""
        client_signing_alg = self.options.client_signing_alg
        if not client_signing_alg or alg == client_signing_alg:
            return

        _LOGGER.warning(
            "ID Token received signed with %s, but client_signing_alg is configured for %s",
            alg,
            client_signing_alg,
        )
        raise AlgorithmMismatchError(
            f"Received JWT is signed with {alg}, "
            f"but client_signing_alg is configured for {client_signing_alg}"
        )

    def hmac_key(self, alg: str) -> Any:
        """Returns the shared secret as an oct JWK."""
        # OpenID Connect Core 1.0 Section 3.1.3.7.8
        # For MAC based algorithms the octets of the client_secret are the key.
        if self.options.jwt_secret_base64:
            try:
                secret = base64.b64decode(self.options.jwt_secret_base64)
            except (binascii.Error, ValueError) as e:
                raise KeyResolutionError("jwt_secret_base64 is not valid base64") from e
        elif self.options.client_options.secret:
            secret = self.options.client_options.secret.encode("utf-8")
        else:
            _LOGGER.warning(
                "ID Token signed with HMAC algorithm, but no client secret provided."
            )
            raise KeyResolutionError("No shared secret available for " + alg)

        return jwk.import_key(
            {
                "kty": "oct",
                # RFC 7517 §4.2: base64url without padding
                "k": base64url_encode(secret),
                "alg": alg,
            }
        )

    def _decode(self, id_token: str, key: Any, alg: str) -> jwt.Token:
        """Verify the signature against one key, raising on failure."""
        try:
            # OpenID Connect Core 1.0 Section 3.1.3.7.6
            # Validate the signature using the algorithm in the JWT alg Header.
            return jwt.decode(id_token, key, algorithms=[alg])
        except _DECODE_ERRORS as e:
            _LOGGER.warning("JWT signature verification failed: %s", e)
            raise SignatureVerificationError(f"Signature verification failed: {e}") from e

    def _try_decode(self, id_token: str, key: Any, alg: str) -> Optional[jwt.Token]:
        """Verify the signature against one candidate key, None when it does not match."""
        try:
            return jwt.decode(id_token, key, algorithms=[alg])
        except _DECODE_ERRORS as e:
            if self.options.verbose_debug_mode:
                _LOGGER.debug(
                    "Key candidate failed verification (kid=%s): %s",
                    key.kid or "none",
                    e,
                )
            return None

    def _decode_with_each_key(
        self, id_token: str, key_set: KeySet, alg: str
    ) -> Optional[jwt.Token]:
        """Tries every signing key of the set in order, returning the first match."""
        candidates = [
            key
            for key in key_set.keys
            if key.as_dict(private=False).get("use") != "enc"
        ]
        for candidate in candidates:
            decoded = self._try_decode(id_token, candidate, alg)
            if decoded is not None:
                if self.options.verbose_debug_mode:
                    _LOGGER.debug(
                        "Signature verified with JWKS key (kid=%s)",
                        candidate.kid or "none",
                    )
                return decoded

        _LOGGER.warning(
            "No JWKS key verified the ID token signature (alg='%s', tried %d candidates)",
            alg,
            len(candidates),
        )
        return None

    def _verify_signature(self, id_token: str, key: Any, header: dict) -> jwt.Token:
        alg = header["alg"]
        if not isinstance(key, KeySet):
            return self._decode(id_token, key, alg)

        kid = header.get("kid")
        if kid:
            # A named key is verified against that key only, never retried with others
            key_by_kid = next(
                (candidate for candidate in key.keys if candidate.kid == kid), None
            )
            if key_by_kid is None:
                _LOGGER.warning("No key with kid '%s' found in JWKS", kid)
                raise SignatureVerificationError(f"No key found for kid '{kid}'")
            return self._decode(id_token, key_by_kid, alg)

        # RFC 7515 §4.1.4: "kid" is optional; without it, scan the set
        _LOGGER.info("JWT does not have 'kid' (Key ID); trying all JWKS keys")
        decoded = self._decode_with_each_key(id_token, key, alg)
        if decoded is None:
            raise SignatureVerificationError("No key in the key set verified the id_token")
        return decoded

    def _verify_claims(
        self, claims: dict, issuer: str, audience: str, nonce: Optional[str]
    ) -> None:
        id_token_validator = jwt.JWTClaimsRegistry(
            leeway=self.options.clock_leeway,
            # OpenID Connect Core 1.0 Section 3.1.3.7.2
            # The Issuer Identifier MUST exactly match the iss Claim.
            iss={"essential": True, "value": issuer},
            # OpenID Connect Core 1.0 Section 3.1.3.7.3
            # The aud Claim MUST contain the client_id.
            aud={"essential": True, "value": audience},
            sub={"essential": True},
            # OpenID Connect Core 1.0 Section 3.1.3.7.9
            exp={"essential": True},
        )
        try:
            id_token_validator.validate(claims)
        except _DECODE_ERRORS as e:
            _LOGGER.warning("ID token claims validation failed: %s", e)
            raise ClaimVerificationError(str(e)) from e

        # OpenID Connect Core 1.0 Section 3.1.3.7.11
        received_nonce = claims.get("nonce")
        if nonce is None and received_nonce is None and not self.options.send_nonce:
            return
        if (
            nonce is None
            or not isinstance(received_nonce, str)
            or not hmac.compare_digest(received_nonce.encode(), nonce.encode())
        ):
            _LOGGER.warning("Nonce mismatch!")
            raise ClaimVerificationError("Invalid 'nonce' claim", error="invalid_nonce")

    def _verify_at_hash(self, claims: dict, access_token: Optional[str], alg: str) -> None:
        # OpenID Connect Core 1.0 §3.1.3.6 / §3.2.2.9: at_hash binds the access token
        actual_at_hash = claims.get("at_hash")
        if not access_token or actual_at_hash is None:
            return

        expected_at_hash = left_half_hash(access_token, alg)
        if actual_at_hash != expected_at_hash:
            _LOGGER.warning("ID token at_hash mismatch (access_token tampering?)")
            raise ClaimVerificationError("Invalid 'at_hash' claim", error="invalid_at_hash")

    async def async_verify(
        self,
        id_token: str,
        *,
        issuer: str,
        audience: str,
        nonce: Optional[str],
        jwks_uri: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> IdTokenClaims:
        """Verifies an ID token, returning its claims only when every check passed."""
        header = self._read_header(id_token)
        alg = header["alg"]

        self.validate_client_algorithm(alg)
        if alg == "none":
            _LOGGER.warning("Unsigned id_token rejected")
            raise SignatureVerificationError("Unsigned id_token")

        if alg in HMAC_ALGORITHMS:
            key = self.hmac_key(alg)
        else:
            key = await self.key_resolver.async_resolve(jwks_uri)

        token = self._verify_signature(id_token, key, header)
        claims = dict(token.claims)

        self._verify_claims(claims, issuer, audience, nonce)
        self._verify_at_hash(claims, access_token, alg)

        if self.options.verbose_debug_mode:
            _LOGGER.debug("ID token verified (alg=%s, kid=%s)", alg, header.get("kid"))

        return IdTokenClaims(
            header=MappingProxyType(dict(token.header)),
            claims=MappingProxyType(claims),
        )
