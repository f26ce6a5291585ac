# storefront/core/tokens.py
"""Short-lived access credentials (signed JWT) and opaque refresh token values."""
from __future__ import annotations

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError
from storefront.core.config import settings

ADMIN_ROLE = "admin"

def _now() -> datetime:
    return datetime.now(timezone.utc)

def create_access_token(*, sub: str, username: str, role: str = ADMIN_ROLE, ttl_seconds: Optional[int] = None) -> str:
    """Short-lived access token (seconds to minutes), signed with SECRET_KEY."""
    ttl = int(ttl_seconds if ttl_seconds is not None else settings.ACCESS_TOKEN_TTL_SECONDS)
    now = _now()
    payload: Dict[str, Any] = {
        "type": "access",
        "sub": sub,
        "username": username,
        "role": role,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl)).timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if not isinstance(payload, dict):
        return None
    if payload.get("type") != "access":
        return None
    if not payload.get("sub") or not payload.get("username") or not payload.get("role"):
        return None
    return payload

def generate_refresh_token() -> str:
    return secrets.token_urlsafe(48)

def hash_refresh_token(token: str) -> str:
    # only this digest is persisted
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
