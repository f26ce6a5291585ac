from __future__ import annotations

from typing import Iterator

import pytest

from storefront.core.errors import LedgerBusy
from storefront.db.base import Base
from storefront.db.session import make_engine
from storefront.services import rotation
from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME


@pytest.fixture
def engine(tmp_path):
    # short wait so a held write lock turns into LedgerBusy quickly
    eng = make_engine(f"sqlite:///{tmp_path / 'busy.db'}", lock_timeout_ms=200)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def write_lock(engine) -> Iterator:
    raw = engine.raw_connection()
    cur = raw.cursor()
    held = {"on": False}

    def take() -> None:
        cur.execute("BEGIN IMMEDIATE")
        held["on"] = True

    def release() -> None:
        if held["on"]:
            cur.execute("ROLLBACK")
            held["on"] = False

    try:
        yield take, release
    finally:
        release()
        cur.close()
        raw.close()


def test_rotate_times_out_then_succeeds_once_lock_is_released(db, admin, session_factory, write_lock) -> None:
    take, release = write_lock
    issued = rotation.start_family(db, admin.id)

    take()
    with pytest.raises(LedgerBusy):
        rotation.rotate(db, issued.token)
    release()

    # nothing was consumed by the failed attempt
    with session_factory() as s:
        nxt = rotation.rotate(s, issued.token)
    assert nxt.user_id == admin.id
    assert nxt.record_id != issued.record_id


def test_refresh_endpoint_reports_busy_ledger(client, write_lock) -> None:
    take, release = write_lock
    login = client.post("/api/v1/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    token = login.json()["refreshToken"]

    take()
    r = client.post("/api/v1/auth/refresh", json={"refreshToken": token})
    release()

    assert r.status_code == 503
    assert r.json() == {"code": "LEDGER_BUSY", "message": "Service temporarily unavailable, try again."}
    assert r.headers["retry-after"] == "1"
    assert client.post("/api/v1/auth/refresh", json={"refreshToken": token}).status_code == 200
