# storefront/db/init_db.py
from __future__ import annotations

import json
import logging
from typing import Any, List

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.security_password import hash_password, verify_password
from storefront.crud.admin_user import admin_crud
from storefront.models.admin_user import AdminUser
from storefront.schemas.admin_user import AdminCreate, AdminUpdate, BootstrapAdmin, BootstrapAdmins

logger = logging.getLogger(__name__)

class BootstrapConfigError(RuntimeError):
    pass

def load_admin_secret() -> str:
    if settings.ADMIN_USERS_FILE:
        with open(settings.ADMIN_USERS_FILE, encoding="utf-8") as fh:
            return fh.read()
    return settings.ADMIN_USERS

def parse_admin_secret(raw: str) -> List[BootstrapAdmin]:
    """Accepts either a bare list of users or ``{"users": [...]}``."""
    if not raw or not raw.strip():
        return []
    try:
        data: Any = json.loads(raw)
        if isinstance(data, list):
            data = {"users": data}
        return BootstrapAdmins.model_validate(data).users
    except (json.JSONDecodeError, ValidationError) as exc:
        raise BootstrapConfigError(f"invalid admin users secret: {exc}") from exc

def _desired_hash(entry: BootstrapAdmin, existing: AdminUser | None) -> str | None:
    if entry.password_hash:
        return entry.password_hash
    if existing is not None and verify_password(entry.password or "", existing.password_hash):
        return None  # unchanged; keep the stored salt
    return hash_password(entry.password or "")

def sync_bootstrap_admins(db: Session, users: List[BootstrapAdmin]) -> int:
    """Create or update admins from the secret. Returns how many rows changed."""
    changed = 0
    for entry in users:
        existing = admin_crud.get_by_username(db, entry.username)
        new_hash = _desired_hash(entry, existing)
        if existing is None:
            admin_crud.create(db, AdminCreate(username=entry.username, password_hash=new_hash), commit=False)
            logger.info("bootstrap: created admin %s", entry.username)
            changed += 1
        elif new_hash and new_hash != existing.password_hash:
            admin_crud.update(db, existing, AdminUpdate(password_hash=new_hash), commit=False)
            logger.info("bootstrap: updated password for admin %s", entry.username)
            changed += 1
    db.commit()
    return changed

def init_db(db: Session) -> None:
    users = parse_admin_secret(load_admin_secret())
    if not users:
        if not db.scalar(select(func.count()).select_from(AdminUser)):
            raise BootstrapConfigError("no admin users configured (set ADMIN_USERS or ADMIN_USERS_FILE)")
        logger.warning("bootstrap: admin users secret is empty; keeping existing admins")
        return
    sync_bootstrap_admins(db, users)
