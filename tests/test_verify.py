"""Tests for ID token verification"""

import base64
import hashlib
import json
import time

import pytest
from joserfc import jwt
from joserfc.jwk import OctKey, RSAKey

from oidc_strategy.config.options import build_options
from oidc_strategy.errors import (
    AlgorithmMismatchError,
    ClaimVerificationError,
    KeyResolutionError,
    SignatureVerificationError,
)
from oidc_strategy.keys import KeyResolver
from oidc_strategy.tools.http_client import OIDCHttpClient
from oidc_strategy.verify import IdTokenVerifier

ISSUER = "https://oidc.example.com"
CLIENT_ID = "dummyclient"
SECRET = "a-sufficiently-long-client-secret-for-hs256-signing"
NONCE = "4f1c3b2a9e8d7c6b5a4f3e2d1c0b9a8f"


def make_verifier(**config) -> IdTokenVerifier:
    """Returns a verifier with static key material (no network needed)."""
    client_options = {"identifier": CLIENT_ID, "secret": SECRET}
    client_options.update(config.pop("client_options", {}))
    options = build_options({"client_options": client_options, **config})
    return IdTokenVerifier(options, KeyResolver(options, OIDCHttpClient(options.network)))


def make_claims(**overrides) -> dict:
    now = int(time.time())
    claims = {
        "iss": ISSUER,
        "sub": "1234567890",
        "aud": CLIENT_ID,
        "iat": now,
        "exp": now + 3600,
        "nonce": NONCE,
    }
    claims.update(overrides)
    return {key: value for key, value in claims.items() if value is not None}


def rsa_key(kid: str | None = None) -> RSAKey:
    parameters = {"kid": kid} if kid else None
    return RSAKey.generate_key(2048, parameters, private=True)


def public_jwks(*keys: RSAKey) -> dict:
    return {"keys": [key.as_dict(private=False) for key in keys]}


def hs256_token(**claims) -> str:
    return jwt.encode({"alg": "HS256"}, make_claims(**claims), OctKey.import_key(SECRET))


async def verify(verifier: IdTokenVerifier, token: str, **kwargs):
    kwargs.setdefault("issuer", ISSUER)
    kwargs.setdefault("audience", CLIENT_ID)
    kwargs.setdefault("nonce", NONCE)
    return await verifier.async_verify(token, **kwargs)


@pytest.mark.asyncio
async def test_hs256_with_client_secret():
    """Test that HMAC tokens verify with the client secret."""
    claims = await verify(make_verifier(), hs256_token())

    assert claims.alg == "HS256"
    assert claims.sub == "1234567890"
    assert claims.iss == ISSUER
    assert claims.nonce == NONCE
    assert claims.raw_attributes["aud"] == CLIENT_ID


@pytest.mark.asyncio
async def test_hs256_with_base64_secret():
    """Test that jwt_secret_base64 takes precedence over the client secret."""
    other_secret = b"another-secret-of-at-least-thirty-two-bytes!"
    token = jwt.encode(
        {"alg": "HS256"}, make_claims(), OctKey.import_key(other_secret)
    )
    verifier = make_verifier(
        jwt_secret_base64=base64.b64encode(other_secret).decode("ascii")
    )

    claims = await verify(verifier, token)
    assert claims.sub == "1234567890"

    with pytest.raises(SignatureVerificationError):
        await verify(make_verifier(), token)


@pytest.mark.asyncio
async def test_hs256_without_secret():
    """Test that an HMAC token cannot be verified without a shared secret."""
    verifier = make_verifier(client_options={"secret": None})
    with pytest.raises(KeyResolutionError):
        await verify(verifier, hs256_token())


@pytest.mark.asyncio
async def test_single_key():
    """Test verification against one configured key."""
    key = rsa_key()
    token = jwt.encode({"alg": "RS256"}, make_claims(), key)
    verifier = make_verifier(client_jwk_signing_key=key.as_dict(private=False))

    claims = await verify(verifier, token)
    assert claims.alg == "RS256"


@pytest.mark.asyncio
async def test_key_set_scan_without_kid():
    """Test that a token without kid verifies against the matching key of a set."""
    signing_key, other_key = rsa_key(), rsa_key()
    token = jwt.encode({"alg": "RS256"}, make_claims(), signing_key)

    verifier = make_verifier(
        client_jwk_signing_key=json.dumps(public_jwks(other_key, signing_key))
    )
    claims = await verify(verifier, token)
    assert claims.sub == "1234567890"
    assert claims.kid is None


@pytest.mark.asyncio
async def test_key_set_without_matching_key():
    """Test that a scan over keys that did not sign the token fails."""
    signing_key, other_key = rsa_key(), rsa_key()
    token = jwt.encode({"alg": "RS256"}, make_claims(), signing_key)

    verifier = make_verifier(client_jwk_signing_key=public_jwks(other_key))
    with pytest.raises(SignatureVerificationError):
        await verify(verifier, token)


@pytest.mark.asyncio
async def test_key_set_with_kid():
    """Test that the key named by kid is used."""
    first, second = rsa_key("key-1"), rsa_key("key-2")
    token = jwt.encode({"alg": "RS256", "kid": "key-2"}, make_claims(), second)

    verifier = make_verifier(client_jwk_signing_key=public_jwks(first, second))
    claims = await verify(verifier, token)
    assert claims.kid == "key-2"


@pytest.mark.asyncio
async def test_named_kid_not_retried():
    """Test that a failure against the named key is not retried with other keys."""
    first, second = rsa_key("key-1"), rsa_key("key-2")
    # Signed by key-2, but claims to be key-1
    token = jwt.encode({"alg": "RS256", "kid": "key-1"}, make_claims(), second)

    verifier = make_verifier(client_jwk_signing_key=public_jwks(first, second))
    with pytest.raises(SignatureVerificationError):
        await verify(verifier, token)


@pytest.mark.asyncio
async def test_unknown_kid():
    """Test that an unknown kid fails."""
    first = rsa_key("key-1")
    token = jwt.encode({"alg": "RS256", "kid": "rotated"}, make_claims(), first)

    verifier = make_verifier(client_jwk_signing_key=public_jwks(first))
    with pytest.raises(SignatureVerificationError):
        await verify(verifier, token)


@pytest.mark.asyncio
async def test_algorithm_mismatch():
    """Test that a validly signed token with another algorithm than pinned fails."""
    verifier = make_verifier(client_signing_alg="RS256")
    with pytest.raises(AlgorithmMismatchError) as excinfo:
        await verify(verifier, hs256_token())
    assert excinfo.value.error == "invalid_jwt_algorithm"

    # The same token passes when the pinned algorithm matches
    claims = await verify(make_verifier(client_signing_alg="HS256"), hs256_token())
    assert claims.alg == "HS256"


@pytest.mark.asyncio
async def test_unsigned_token():
    """Test that alg=none tokens are rejected."""

    def encode(data: dict) -> str:
        raw = json.dumps(data).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    token = f"{encode({'alg': 'none'})}.{encode(make_claims())}."
    with pytest.raises(SignatureVerificationError):
        await verify(make_verifier(), token)


@pytest.mark.asyncio
async def test_malformed_token():
    """Test that a token that is not a compact JWS fails."""
    with pytest.raises(SignatureVerificationError):
        await verify(make_verifier(), "not-a-jwt")


@pytest.mark.asyncio
async def test_nonce_mismatch():
    """Test that a nonce differing from the expected nonce fails."""
    with pytest.raises(ClaimVerificationError) as excinfo:
        await verify(make_verifier(), hs256_token(nonce="other-nonce"))
    assert excinfo.value.error == "invalid_nonce"

    with pytest.raises(ClaimVerificationError):
        await verify(make_verifier(), hs256_token(nonce=None))

    with pytest.raises(ClaimVerificationError):
        await verify(make_verifier(), hs256_token(), nonce=None)


@pytest.mark.asyncio
async def test_nonce_absent_when_disabled():
    """Test that no nonce on either side passes when nonces are disabled."""
    claims = await verify(
        make_verifier(send_nonce=False), hs256_token(nonce=None), nonce=None
    )
    assert claims.nonce is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"iss": "https://evil.example.com"},
        {"aud": "another-client"},
        {"exp": int(time.time()) - 3600},
        {"sub": None},
    ],
)
async def test_invalid_claims(overrides):
    """Test that issuer, audience, expiry and subject are checked."""
    with pytest.raises(ClaimVerificationError):
        await verify(make_verifier(), hs256_token(**overrides))


@pytest.mark.asyncio
async def test_audience_list():
    """Test that an audience list containing the client passes."""
    claims = await verify(
        make_verifier(), hs256_token(aud=[CLIENT_ID, "https://api.example.com"])
    )
    assert CLIENT_ID in claims.aud


@pytest.mark.asyncio
async def test_clock_leeway():
    """Test that an expiry just in the past is accepted within the leeway."""
    token = hs256_token(exp=int(time.time()) - 2)
    claims = await verify(make_verifier(clock_leeway=30), token)
    assert claims.sub == "1234567890"


@pytest.mark.asyncio
async def test_at_hash():
    """Test the at_hash binding between ID token and access token."""
    digest = hashlib.sha256(b"exampleAccessToken").digest()
    at_hash = base64.urlsafe_b64encode(digest[:16]).rstrip(b"=").decode("ascii")

    claims = await verify(
        make_verifier(),
        hs256_token(at_hash=at_hash),
        access_token="exampleAccessToken",
    )
    assert claims.claims["at_hash"] == at_hash

    with pytest.raises(ClaimVerificationError) as excinfo:
        await verify(
            make_verifier(),
            hs256_token(at_hash=at_hash),
            access_token="tamperedAccessToken",
        )
    assert excinfo.value.error == "invalid_at_hash"


@pytest.mark.asyncio
async def test_claims_are_immutable():
    """Test that the verified claims cannot be modified."""
    claims = await verify(make_verifier(), hs256_token())
    with pytest.raises(TypeError):
        claims.claims["sub"] = "someone-else"  # type: ignore[index]
