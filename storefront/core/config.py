# storefront/core/config.py
import os
from pydantic import BaseModel, Field

def _default_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url and url.strip():
        return url
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    os.makedirs(data_dir, exist_ok=True)
    return f"sqlite:///{os.path.join(data_dir, 'storefront.db')}"

def _bool_env(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}

class Settings(BaseModel):
    DATABASE_URL: str = Field(default_factory=_default_database_url)
    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET"))
    JWT_ALGORITHM: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))
    ACCESS_TOKEN_TTL_SECONDS: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_TTL_SECONDS", "900")))
    REFRESH_TOKEN_TTL_HOURS: int = Field(default_factory=lambda: int(os.getenv("REFRESH_TOKEN_TTL_HOURS", str(24 * 30))))
    REFRESH_TOKEN_PURGE_AFTER_DAYS: int = Field(default_factory=lambda: int(os.getenv("REFRESH_TOKEN_PURGE_AFTER_DAYS", "30")))
    LEDGER_LOCK_TIMEOUT_MS: int = Field(default_factory=lambda: int(os.getenv("LEDGER_LOCK_TIMEOUT_MS", "5000")))

    # bootstrap secret: JSON list of {username, password | passwordHash} or {"users": [...]}
    ADMIN_USERS: str = Field(default_factory=lambda: os.getenv("ADMIN_USERS", ""))
    ADMIN_USERS_FILE: str = Field(default_factory=lambda: os.getenv("ADMIN_USERS_FILE", ""))

    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _bool_env("RUN_MIGRATIONS_ON_STARTUP", "1"))
    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    CORS_ORIGINS: str = Field(default_factory=lambda: os.getenv("CORS_ORIGINS", "*"))

settings = Settings()
