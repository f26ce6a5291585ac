# storefront/core/errors.py
"""
Auth error taxonomy.

Only ``InvalidCredentials``, ``Unauthorized`` and ``LedgerBusy`` ever reach a
client. The ``RefreshTokenError`` family records *why* a refresh failed so it
can be logged and alerted on, and is collapsed into ``Unauthorized`` by the
session façade.
"""
from __future__ import annotations


class AuthError(Exception):
    code = "AUTH_ERROR"
    message = "Authentication failed."


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials."


class Unauthorized(AuthError):
    code = "UNAUTHORIZED"
    message = "Invalid refresh token."

    def __init__(self, cause: Exception | None = None):
        super().__init__(self.message)
        self.cause = cause


class LedgerBusy(AuthError):
    """Lock on the token ledger could not be acquired in time; safe to retry."""

    code = "LEDGER_BUSY"
    message = "Service temporarily unavailable, try again."


class RefreshTokenError(Exception):
    pass


class TokenNotRecognized(RefreshTokenError):
    pass


class TokenExpired(RefreshTokenError):
    def __init__(self, record_id: str):
        super().__init__(f"refresh token {record_id} expired")
        self.record_id = record_id


class TokenReuseDetected(RefreshTokenError):
    def __init__(self, record_id: str, user_id: str, revoked: int):
        super().__init__(f"refresh token {record_id} reused; {revoked} record(s) revoked")
        self.record_id = record_id
        self.user_id = user_id
        self.revoked = revoked


class IdentityMissing(RefreshTokenError):
    def __init__(self, user_id: str):
        super().__init__(f"admin {user_id} no longer exists")
        self.user_id = user_id
