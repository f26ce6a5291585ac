# storefront/core/security_password.py
from __future__ import annotations
from passlib.context import CryptContext

# argon2 for new hashes; bcrypt hashes supplied through the bootstrap secret still verify
pwd_context = CryptContext(
    schemes=["argon2", "bcrypt"],
    deprecated="auto",
    argon2__time_cost=2,
    argon2__memory_cost=19456,
    argon2__parallelism=1,
    bcrypt__rounds=12,
)

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)

def verify_password(plain: str, stored_hash: str) -> bool:
    try:
        return pwd_context.verify(plain, stored_hash)
    except ValueError:
        # unknown or malformed hash format
        return False
