from typing import Any, Dict

from fastapi import Depends, Header, HTTPException

from storefront.db.session import get_db
from storefront.core.tokens import decode_access
from storefront.schemas.token import TokenPayload

__all__ = ["get_db", "get_bearer_token", "get_current_admin"]

_BEARER = {"WWW-Authenticate": "Bearer"}

# ----------------------------------------------------------------------
# Reads the Bearer credential from the Authorization header
# ----------------------------------------------------------------------
def get_bearer_token(authorization: str = Header(None, alias="Authorization")) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header", headers=_BEARER)
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization header", headers=_BEARER)
    return parts[1]

# ----------------------------------------------------------------------
# Verified access-token claims; the database is not consulted
# ----------------------------------------------------------------------
def get_current_admin(token: str = Depends(get_bearer_token)) -> TokenPayload:
    payload: Dict[str, Any] | None = decode_access(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid token", headers=_BEARER)
    return TokenPayload.model_validate(payload)
