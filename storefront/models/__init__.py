# storefront/models/__init__.py
# Loads modules so their tables register on Base.metadata
from storefront.models.admin_user import AdminUser          # noqa: F401
from storefront.models.refresh_token import RefreshToken    # noqa: F401

__all__ = ["AdminUser", "RefreshToken"]
