"""Helper functions for the strategy."""

import base64
import hashlib
import os
import urllib.parse
from typing import Optional


def base64url_encode(value: bytes) -> str:
    """Uses base64url encoding on a given byte string, without padding"""
    return base64.urlsafe_b64encode(value).rstrip(b"=").decode("utf-8")


def basic_authorization(username: str, password: str) -> str:
    """Returns the value of an HTTP Basic Authorization header"""
    # RFC 6749 Section 2.3.1: form-urlencode both parts before Basic encoding
    credentials = (
        urllib.parse.quote(username, safe="")
        + ":"
        + urllib.parse.quote(password, safe="")
    )
    return "Basic " + base64.b64encode(credentials.encode("utf-8")).decode("ascii")


def generate_random_hex(length: int = 16) -> str:
    """Generates a random hex string from `length` random bytes."""
    return os.urandom(length).hex()


def left_half_hash(value: str, alg: str) -> str:
    """Computes the OIDC at_hash/c_hash value of a token for the given JWS algorithm."""
    # OpenID Connect Core 1.0 Section 3.1.3.6
    # Hash with the SHA-2 size of the alg, keep the left-most half, base64url encode.
    size = alg[-3:]
    if alg == "EdDSA":
        size = "512"
    hash_function = {
        "256": hashlib.sha256,
        "384": hashlib.sha384,
        "512": hashlib.sha512,
    }.get(size, hashlib.sha256)

    digest = hash_function(value.encode("ascii")).digest()
    return base64url_encode(digest[: len(digest) // 2])


def resolve_endpoint_path(endpoint: Optional[str]) -> Optional[str]:
    """Strips scheme, host and port from an endpoint, leaving an absolute path (and query)."""
    if not endpoint:
        return None

    parsed = urllib.parse.urlparse(endpoint.strip())
    path = parsed.path or "/"
    if not path.startswith("/"):
        path = f"/{path}"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return path


def build_base_url(scheme: str, host: str, port: Optional[int]) -> str:
    """Returns scheme://host[:port], leaving out the default port of the scheme."""
    default_port = 443 if scheme == "https" else 80
    if port is None or port == default_port:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"
