from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "0")

from typing import Iterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

import storefront.models  # noqa: E402,F401
from storefront.core.security_password import hash_password  # noqa: E402
from storefront.db.base import Base  # noqa: E402
from storefront.db.session import get_db, make_engine  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.models.admin_user import AdminUser  # noqa: E402

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct-pw"


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'ledger.db'}", lock_timeout_ms=5000)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture(scope="session")
def admin_password_hash() -> str:
    return hash_password(ADMIN_PASSWORD)


@pytest.fixture
def admin(session_factory, admin_password_hash) -> AdminUser:
    with session_factory() as s:
        row = AdminUser(username=ADMIN_USERNAME, password_hash=admin_password_hash)
        s.add(row)
        s.commit()
        return row


@pytest.fixture
def client(session_factory, admin) -> Iterator[TestClient]:
    def _get_db() -> Iterator[Session]:
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
