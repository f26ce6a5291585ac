# storefront/crud/refresh_token.py
"""
Token ledger.

Every method runs inside the caller's transaction (see
``storefront.db.session.ledger_transaction``); none of them commit.
"""
from __future__ import annotations

from datetime import datetime
from typing import Set

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session, aliased

from storefront.models.refresh_token import RefreshToken

class RefreshTokenLedger:
    def insert(self, db: Session, *, user_id: str, token_hash: str, expires_at: datetime) -> RefreshToken:
        row = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        db.add(row)
        # the row must exist before anything can point replaced_by at it
        db.flush()
        return row

    def lock_for_update(self, db: Session, token_hash: str) -> RefreshToken | None:
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return db.execute(stmt).scalar_one_or_none()

    def mark_replaced(self, db: Session, record_id: str, new_id: str, now: datetime) -> bool:
        """Supersede a usable record. False when the record was no longer usable."""
        result = db.execute(
            update(RefreshToken)
            .where(
                RefreshToken.id == record_id,
                RefreshToken.replaced_by.is_(None),
                RefreshToken.revoked_at.is_(None),
            )
            .values(replaced_by=new_id, revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def family_ids(self, db: Session, member_id: str) -> Set[str]:
        """Every record reachable through replaced_by, forwards and backwards, in one query."""
        family = (
            select(RefreshToken.id, RefreshToken.replaced_by)
            .where(RefreshToken.id == member_id)
            .cte("token_family", recursive=True)
        )
        rt = aliased(RefreshToken, name="rt")
        # UNION (not UNION ALL) drops rows already seen, so walking back and forth terminates
        family = family.union(
            select(rt.id, rt.replaced_by).join(
                family, or_(rt.id == family.c.replaced_by, rt.replaced_by == family.c.id)
            )
        )
        return set(db.execute(select(family.c.id)).scalars()) | {member_id}

    def revoke_family(self, db: Session, member_id: str, now: datetime) -> int:
        """Revoke every not-yet-revoked record of the family; returns how many changed."""
        ids = self.family_ids(db, member_id)
        result = db.execute(
            update(RefreshToken)
            .where(RefreshToken.id.in_(list(ids)), RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_by_hash(self, db: Session, token_hash: str) -> RefreshToken | None:
        """Inspection helper (no lock); rotation goes through ``lock_for_update``."""
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash).execution_options(populate_existing=True)
        return db.execute(stmt).scalar_one_or_none()

    def usable_for_family(self, db: Session, member_id: str, now: datetime) -> list[RefreshToken]:
        """Inspection helper: the usable members of a family, at most one when healthy."""
        ids = self.family_ids(db, member_id)
        stmt = select(RefreshToken).where(RefreshToken.id.in_(list(ids))).execution_options(populate_existing=True)
        rows = db.execute(stmt).scalars().all()
        return [r for r in rows if r.is_usable(now)]

    def purge_expired(self, db: Session, before: datetime) -> int:
        """Storage hygiene only: drop records that expired before ``before``."""
        # clear dangling links first so the self-referencing FK holds
        dead = select(RefreshToken.id).where(RefreshToken.expires_at < before)
        db.execute(
            update(RefreshToken)
            .where(RefreshToken.replaced_by.in_(dead))
            .values(replaced_by=None)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(
            delete(RefreshToken).where(RefreshToken.expires_at < before).execution_options(synchronize_session=False)
        )
        return result.rowcount

refresh_ledger = RefreshTokenLedger()
