# storefront/api/v1/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, get_current_admin
from storefront.schemas.token import LoginIn, LogoutOut, RefreshIn, TokenPair, TokenPayload
from storefront.services import sessions

router = APIRouter()

def _to_out(tokens: sessions.SessionTokens) -> TokenPair:
    return TokenPair(
        access_token=tokens.access_token,
        access_token_ttl_seconds=tokens.access_token_ttl_seconds,
        refresh_token=tokens.refresh_token,
        refresh_token_expires_at=tokens.refresh_token_expires_at,
    )

# Plain `def` handlers run in the threadpool, keeping the password hash off the event loop.

@router.post("/login", response_model=TokenPair)
def login(body: LoginIn, db: Session = Depends(get_db)):
    return _to_out(sessions.login(db, body.username.strip(), body.password))

@router.post("/refresh", response_model=TokenPair)
def refresh(body: RefreshIn, db: Session = Depends(get_db)):
    return _to_out(sessions.refresh(db, body.refresh_token))

@router.post("/logout", response_model=LogoutOut)
def logout(body: RefreshIn, db: Session = Depends(get_db)):
    sessions.logout(db, body.refresh_token)
    return LogoutOut()

@router.get("/me", response_model=TokenPayload)
def me(admin: TokenPayload = Depends(get_current_admin)):
    return admin
