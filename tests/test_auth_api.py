from __future__ import annotations

from datetime import datetime, timezone

from storefront.core.tokens import decode_access, hash_refresh_token
from storefront.crud.refresh_token import refresh_ledger
from storefront.services import rotation

from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME


def _login(client) -> dict:
    r = client.post("/api/v1/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return r.json()


def _refresh(client, token: str):
    return client.post("/api/v1/auth/refresh", json={"refreshToken": token})


def test_login_response_shape(client, admin) -> None:
    data = _login(client)
    assert set(data) >= {"accessToken", "accessTokenTtlSeconds", "refreshToken", "refreshTokenExpiresAt"}
    assert decode_access(data["accessToken"])["sub"] == admin.id
    assert datetime.fromisoformat(data["refreshTokenExpiresAt"].replace("Z", "+00:00")) > datetime.now(timezone.utc)


def test_login_rejects_generically(client) -> None:
    bad_pw = client.post("/api/v1/auth/login", json={"username": ADMIN_USERNAME, "password": "nope"})
    no_user = client.post("/api/v1/auth/login", json={"username": "ghost", "password": "nope"})
    assert bad_pw.status_code == no_user.status_code == 401
    assert bad_pw.json() == no_user.json() == {"code": "INVALID_CREDENTIALS", "message": "Invalid credentials."}


def test_login_requires_fields(client) -> None:
    assert client.post("/api/v1/auth/login", json={"username": ADMIN_USERNAME}).status_code == 422


def test_replay_after_successor_kills_every_descendant(client) -> None:
    r1 = _login(client)["refreshToken"]
    r2 = _refresh(client, r1).json()["refreshToken"]
    assert _refresh(client, r1).status_code == 401

    # R1's replay already happened after R2 existed, so R2 is dead as well
    assert _refresh(client, r2).status_code == 401


def test_transitive_family_kill(client) -> None:
    r1 = _login(client)["refreshToken"]
    r2 = _refresh(client, r1).json()["refreshToken"]
    r3 = _refresh(client, r2).json()["refreshToken"]

    assert _refresh(client, r1).status_code == 401
    assert _refresh(client, r3).status_code == 401


def test_refresh_round_trip_keeps_subject(client, admin) -> None:
    data = _login(client)
    for _ in range(4):
        r = _refresh(client, data["refreshToken"])
        assert r.status_code == 200
        data = r.json()
        assert decode_access(data["accessToken"])["sub"] == admin.id


def test_unauthorized_body_is_uniform(client, session_factory, admin) -> None:
    live = _login(client)["refreshToken"]
    rotated = _refresh(client, live).json()["refreshToken"]
    with session_factory() as s:
        expired = rotation.start_family(s, admin.id, now=datetime(2000, 1, 1, tzinfo=timezone.utc)).token

    bodies = []
    for token in ("never-issued", live, expired):
        r = _refresh(client, token)
        assert r.status_code == 401
        assert r.headers["www-authenticate"] == "Bearer"
        bodies.append(r.json())
    assert bodies[0] == bodies[1] == bodies[2] == {"code": "UNAUTHORIZED", "message": "Invalid refresh token."}
    assert _refresh(client, rotated).status_code == 401


def test_expired_refresh_leaves_record_unrevoked(client, session_factory, admin) -> None:
    with session_factory() as s:
        expired = rotation.start_family(s, admin.id, now=datetime(2000, 1, 1, tzinfo=timezone.utc)).token
    assert _refresh(client, expired).status_code == 401
    with session_factory() as s:
        assert refresh_ledger.get_by_hash(s, hash_refresh_token(expired)).revoked_at is None


def test_logout_then_refresh_fails(client) -> None:
    r1 = _login(client)["refreshToken"]
    r = client.post("/api/v1/auth/logout", json={"refreshToken": r1})
    assert r.status_code == 200 and r.json() == {"ok": True}
    assert _refresh(client, r1).status_code == 401
    assert client.post("/api/v1/auth/logout", json={"refreshToken": "unknown"}).json() == {"ok": True}


def test_me_requires_valid_access_token(client, admin) -> None:
    access = _login(client)["accessToken"]
    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert r.status_code == 200
    assert r.json()["sub"] == admin.id and r.json()["role"] == "admin"
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_health_endpoints(client) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/api/v1/health").json() == {"status": "ok"}
