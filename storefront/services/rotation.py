# storefront/services/rotation.py
"""
Refresh-token rotation with reuse detection.

A login starts a *family*: one root record. Each successful rotation appends
a record and retires its predecessor in the same transaction, so a family has
at most one usable record (its tail). Presenting any retired member of a
family means the token was copied, so the whole family is revoked. Two
concurrent redemptions of the same token are serialized by the row lock; the
one that loses the race finds the record already replaced and is handled
exactly like a replay.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.errors import TokenExpired, TokenNotRecognized, TokenReuseDetected
from storefront.core.tokens import generate_refresh_token, hash_refresh_token
from storefront.crud.refresh_token import refresh_ledger
from storefront.db.session import ledger_transaction
from storefront.models.refresh_token import as_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IssuedToken:
    token: str
    record_id: str
    user_id: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _expiry(now: datetime) -> datetime:
    return now + timedelta(hours=int(settings.REFRESH_TOKEN_TTL_HOURS))


def start_family(db: Session, user_id: str, *, now: datetime | None = None) -> IssuedToken:
    """Mint the root record of a new family."""
    now = now or _utcnow()
    token = generate_refresh_token()
    expires_at = _expiry(now)
    with ledger_transaction(db):
        row = refresh_ledger.insert(db, user_id=user_id, token_hash=hash_refresh_token(token), expires_at=expires_at)
        record_id = row.id
    return IssuedToken(token=token, record_id=record_id, user_id=user_id, expires_at=expires_at)


def rotate(db: Session, presented_token: str, *, now: datetime | None = None) -> IssuedToken:
    """
    Redeem ``presented_token`` for its successor.

    Raises ``TokenNotRecognized``, ``TokenReuseDetected`` (after revoking the
    family, committed) or ``TokenExpired``. Nothing else leaves the
    transaction, and no network I/O happens while the lock is held.
    """
    now = now or _utcnow()
    token_hash = hash_refresh_token(presented_token)
    new_token = generate_refresh_token()
    expires_at = _expiry(now)
    reused: TokenReuseDetected | None = None

    with ledger_transaction(db):
        record = refresh_ledger.lock_for_update(db, token_hash)
        if record is None:
            raise TokenNotRecognized("refresh token not recognized")

        if record.revoked_at is not None or record.replaced_by is not None:
            revoked = refresh_ledger.revoke_family(db, record.id, now)
            reused = TokenReuseDetected(record.id, record.user_id, revoked)
        elif as_utc(record.expires_at) <= now:
            raise TokenExpired(record.id)
        else:
            user_id = record.user_id
            new_row = refresh_ledger.insert(
                db, user_id=user_id, token_hash=hash_refresh_token(new_token), expires_at=expires_at
            )
            new_id = new_row.id
            if not refresh_ledger.mark_replaced(db, record.id, new_id, now):
                # lock not honoured by the backend and someone else won; drop our row
                db.delete(new_row)
                db.flush()
                revoked = refresh_ledger.revoke_family(db, record.id, now)
                reused = TokenReuseDetected(record.id, record.user_id, revoked)

    if reused is not None:
        raise reused
    return IssuedToken(token=new_token, record_id=new_id, user_id=user_id, expires_at=expires_at)


def revoke_family_of(db: Session, presented_token: str, *, now: datetime | None = None) -> int:
    """Kill the family the token belongs to, whatever its state. Unknown tokens are a no-op."""
    now = now or _utcnow()
    with ledger_transaction(db):
        record = refresh_ledger.lock_for_update(db, hash_refresh_token(presented_token))
        if record is None:
            return 0
        return refresh_ledger.revoke_family(db, record.id, now)


def purge_expired(db: Session, *, now: datetime | None = None) -> int:
    now = now or _utcnow()
    cutoff = now - timedelta(days=int(settings.REFRESH_TOKEN_PURGE_AFTER_DAYS))
    with ledger_transaction(db):
        purged = refresh_ledger.purge_expired(db, cutoff)
    if purged:
        logger.info("purged %d refresh token record(s) expired before %s", purged, cutoff.isoformat())
    return purged
