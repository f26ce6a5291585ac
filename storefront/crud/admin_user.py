# storefront/crud/admin_user.py
from sqlalchemy import select
from sqlalchemy.orm import Session
from storefront.crud.base import CRUDBase
from storefront.models.admin_user import AdminUser
from storefront.schemas.admin_user import AdminCreate, AdminUpdate
from storefront.core.security_password import verify_password

class CRUDAdminUser(CRUDBase[AdminUser, AdminCreate, AdminUpdate]):
    """Credential store: read-only on the login path."""

    def get_by_username(self, db: Session, username: str) -> AdminUser | None:
        return db.execute(select(AdminUser).where(AdminUser.username == username)).scalar_one_or_none()

    def verify_password(self, admin: AdminUser, plain: str) -> bool:
        return verify_password(plain, admin.password_hash)

    def verify_password_hash(self, stored_hash: str, plain: str) -> bool:
        return verify_password(plain, stored_hash)

admin_crud = CRUDAdminUser(AdminUser)
