# storefront/services/sessions.py
"""Admin session façade: ``login`` and ``refresh`` over the rotation engine."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.errors import (
    IdentityMissing,
    InvalidCredentials,
    TokenExpired,
    TokenNotRecognized,
    TokenReuseDetected,
    Unauthorized,
)
from storefront.core.security_password import hash_password
from storefront.core.tokens import ADMIN_ROLE, create_access_token
from storefront.crud.admin_user import admin_crud
from storefront.services import rotation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    access_token_ttl_seconds: int
    refresh_token: str
    refresh_token_expires_at: datetime


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("storefront-timing-equalizer")


def _tokens_for(admin_id: str, username: str, issued: rotation.IssuedToken) -> SessionTokens:
    ttl = int(settings.ACCESS_TOKEN_TTL_SECONDS)
    return SessionTokens(
        access_token=create_access_token(sub=admin_id, username=username, role=ADMIN_ROLE, ttl_seconds=ttl),
        access_token_ttl_seconds=ttl,
        refresh_token=issued.token,
        refresh_token_expires_at=issued.expires_at,
    )


def login(db: Session, username: str, password: str) -> SessionTokens:
    admin = admin_crud.get_by_username(db, username)
    # end the read transaction before the slow hash; attributes stay loaded
    db.commit()
    if admin is None:
        # same cost as a real comparison so timing does not reveal unknown usernames
        admin_crud.verify_password_hash(_dummy_hash(), password)
        logger.info("login rejected: unknown username")
        raise InvalidCredentials()
    if not admin_crud.verify_password(admin, password):
        logger.info("login rejected: bad password for admin %s", admin.id)
        raise InvalidCredentials()

    issued = rotation.start_family(db, admin.id)
    logger.info("admin %s logged in; refresh family %s started", admin.id, issued.record_id)
    return _tokens_for(admin.id, admin.username, issued)


def refresh(db: Session, presented_token: str) -> SessionTokens:
    try:
        issued = rotation.rotate(db, presented_token)
        admin = admin_crud.get(db, issued.user_id)
        if admin is None:
            raise IdentityMissing(issued.user_id)
    except TokenReuseDetected as exc:
        logger.critical(
            "SECURITY: refresh token reuse detected (record=%s admin=%s); %d record(s) in family revoked",
            exc.record_id, exc.user_id, exc.revoked,
        )
        raise Unauthorized(exc) from exc
    except TokenExpired as exc:
        logger.warning("refresh rejected: %s", exc)
        raise Unauthorized(exc) from exc
    except TokenNotRecognized as exc:
        logger.warning("refresh rejected: %s", exc)
        raise Unauthorized(exc) from exc
    except IdentityMissing as exc:
        logger.error("refresh rejected: %s", exc)
        raise Unauthorized(exc) from exc

    logger.debug("admin %s rotated refresh token to %s", admin.id, issued.record_id)
    return _tokens_for(admin.id, admin.username, issued)


def logout(db: Session, presented_token: str) -> None:
    revoked = rotation.revoke_family_of(db, presented_token)
    logger.info("logout revoked %d refresh token record(s)", revoked)
