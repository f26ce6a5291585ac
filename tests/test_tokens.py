from __future__ import annotations

from jose import jwt

from storefront.core.config import settings
from storefront.core.security_password import hash_password, verify_password
from storefront.core.tokens import (
    create_access_token,
    decode_access,
    generate_refresh_token,
    hash_refresh_token,
)


def test_access_token_carries_admin_claims() -> None:
    tok = create_access_token(sub="a-1", username="admin")
    claims = decode_access(tok)
    assert claims is not None
    assert claims["sub"] == "a-1"
    assert claims["username"] == "admin"
    assert claims["role"] == "admin"
    assert claims["exp"] - claims["iat"] == settings.ACCESS_TOKEN_TTL_SECONDS


def test_access_token_rejects_tampering_and_expiry() -> None:
    claims = decode_access(create_access_token(sub="a-1", username="admin"))
    assert decode_access(jwt.encode(claims, "someone-elses-key", algorithm=settings.JWT_ALGORITHM)) is None
    assert decode_access(create_access_token(sub="a-1", username="admin", ttl_seconds=-10)) is None
    assert decode_access("not-a-jwt") is None


def test_access_token_requires_access_type() -> None:
    forged = jwt.encode(
        {"type": "refresh", "sub": "a-1", "username": "admin", "role": "admin"},
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    assert decode_access(forged) is None


def test_refresh_token_values_are_random_and_only_hash_is_derived() -> None:
    values = {generate_refresh_token() for _ in range(50)}
    assert len(values) == 50
    tok = values.pop()
    digest = hash_refresh_token(tok)
    assert len(digest) == 64 and tok not in digest
    assert hash_refresh_token(tok) == digest


def test_password_hash_roundtrip_and_garbage_hash() -> None:
    h = hash_password("s3cret")
    assert verify_password("s3cret", h)
    assert not verify_password("wrong", h)
    assert not verify_password("s3cret", "not-a-hash")
