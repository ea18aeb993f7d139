"""Key resolution for ID token verification: static JWK or X.509 key, else the provider JWKS."""

import base64
import json
import logging
from typing import Any, Mapping, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa
from joserfc import jwk, errors as joserfc_errors
from joserfc.jwk import KeySet

from .config.options import OIDCOptions
from .errors import KeyResolutionError
from .tools.http_client import HTTPClientError, OIDCHttpClient

_LOGGER = logging.getLogger(__name__)

_KEY_IMPORT_ERRORS = (joserfc_errors.JoseError, ValueError, KeyError, TypeError)


def parse_jwk_key(key: str | bytes | Mapping[str, Any]) -> Any:
    """Imports a single JWK, or a JWK Set when the document has a 'keys' member."""
    try:
        data = json.loads(key) if isinstance(key, (str, bytes)) else dict(key)
        if not isinstance(data, dict):
            raise ValueError("JWK must be a JSON object")
        if "keys" in data:
            return KeySet.import_key_set(data)
        return jwk.import_key(data)
    except _KEY_IMPORT_ERRORS as e:
        _LOGGER.warning("Could not import JWK: %s", e)
        raise KeyResolutionError(f"Invalid JWK: {e}") from e


def parse_x509_key(certificate: str) -> Any:
    """Extracts the public key of a PEM (or base64 DER) X.509 certificate as a JWK."""
    try:
        try:
            cert = x509.load_pem_x509_certificate(certificate.encode("utf-8"))
        except ValueError:
            cert = x509.load_der_x509_certificate(
                base64.b64decode(certificate, validate=True)
            )
        public_key = cert.public_key()

        if isinstance(public_key, rsa.RSAPublicKey):
            key_type = "RSA"
        elif isinstance(public_key, ec.EllipticCurvePublicKey):
            key_type = "EC"
        elif isinstance(public_key, (ed25519.Ed25519PublicKey, ed448.Ed448PublicKey)):
            key_type = "OKP"
        else:
            raise ValueError(f"Unsupported certificate key type: {type(public_key)}")

        pem = public_key.public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return jwk.import_key(pem, key_type)
    except _KEY_IMPORT_ERRORS as e:
        _LOGGER.warning("Could not read X.509 signing certificate: %s", e)
        raise KeyResolutionError(f"Invalid X.509 certificate: {e}") from e


class KeyResolver:
    """Resolves the verification key (or key set) once per flow instance.

    Resolution order: configured JWK, configured X.509 certificate,
    then the JWKS document at the provider's jwks_uri.
    """

    def __init__(self, options: OIDCOptions, http_client: OIDCHttpClient):
        self.options = options
        self.http_client = http_client
        self._resolved: Optional[Any] = None

    def configured_key(self) -> Optional[Any]:
        """Returns the statically configured public key, if any."""
        if self.options.client_jwk_signing_key:
            return parse_jwk_key(self.options.client_jwk_signing_key)
        if self.options.client_x509_signing_key:
            return parse_x509_key(self.options.client_x509_signing_key)
        return None

    async def _fetch_key(self, jwks_uri: str) -> Any:
        """Fetches and imports the JWKS document."""
        _LOGGER.debug("Retrieving JWKS keys from endpoint: %s", jwks_uri)
        try:
            document = await self.http_client.async_get_json(jwks_uri)
        except HTTPClientError as e:
            _LOGGER.warning("Error fetching JWKS: %s", e)
            raise KeyResolutionError(f"Could not fetch JWKS: {e.status}") from e
        except ValueError as e:
            _LOGGER.warning("Error fetching JWKS, response is not JSON: %s", e)
            raise KeyResolutionError("JWKS response is not JSON") from e

        return parse_jwk_key(document)

    async def async_resolve(self, jwks_uri: Optional[str] = None) -> Any:
        """Returns a single key or a `KeySet`, resolving it on first use."""
        if self._resolved is not None:
            return self._resolved

        resolved = self.configured_key()
        if resolved is None:
            if not jwks_uri:
                _LOGGER.warning(
                    "No signing key configured and the provider advertises no jwks_uri"
                )
                raise KeyResolutionError("No key material available")
            resolved = await self._fetch_key(jwks_uri)

        self._resolved = resolved
        return resolved
