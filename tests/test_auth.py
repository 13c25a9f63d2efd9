from __future__ import annotations

from bookcopy.core.security import hash_password, hash_token, verify_password


def test_hash_and_verify_password() -> None:
    hashed = hash_password("mysecretpassword")
    assert hashed != "mysecretpassword"
    assert verify_password("mysecretpassword", hashed)
    assert not verify_password("wrongpassword", hashed)


def test_verify_against_garbage_hash_is_false() -> None:
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_token_hash_is_stable() -> None:
    assert hash_token("abc") == hash_token("abc")
    assert hash_token("abc") != hash_token("abd")


def test_register_then_login(api) -> None:
    body = {"username": "writer", "email": "writer@example.com", "password": "pw"}
    r = api.post("/auth/register", json=body)
    assert r.status_code == 201
    assert r.json()["user"]["email"] == "writer@example.com"
    assert "hashed_password" not in r.json()["user"]

    r = api.post("/auth/login", json={"email": "writer@example.com", "password": "pw"})
    assert r.status_code == 200
    token = r.json()["token"]
    r = api.get("/files", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json() == []


def test_duplicate_email_and_username_conflict(api) -> None:
    api.post("/auth/register", json={"username": "a", "email": "a@example.com", "password": "pw"})
    r = api.post("/auth/register", json={"username": "b", "email": "a@example.com", "password": "pw"})
    assert r.status_code == 409
    r = api.post("/auth/register", json={"username": "a", "email": "b@example.com", "password": "pw"})
    assert r.status_code == 409


def test_login_with_wrong_password(api) -> None:
    api.post("/auth/register", json={"username": "a", "email": "a@example.com", "password": "pw"})
    r = api.post("/auth/login", json={"email": "a@example.com", "password": "nope"})
    assert r.status_code == 401
    r = api.post("/auth/login", json={"email": "ghost@example.com", "password": "pw"})
    assert r.status_code == 401


def test_protected_routes_require_bearer_token(api) -> None:
    assert api.get("/logs").status_code == 401
    assert api.get("/logs", headers={"Authorization": "Bearer forged"}).status_code == 401
    assert api.get("/session", headers={"Authorization": "Basic dXNlcjpwdw=="}).status_code == 401


def test_expired_token_is_rejected(api, monkeypatch) -> None:
    from bookcopy.core.config import get_settings

    monkeypatch.setenv("TOKEN_TTL_MINUTES", "0")
    get_settings.cache_clear()
    r = api.post("/auth/register", json={"username": "a", "email": "a@example.com", "password": "pw"})
    token = r.json()["token"]
    assert api.get("/files", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_register_rejects_password_longer_than_bcrypt_accepts(api) -> None:
    r = api.post(
        "/auth/register",
        json={"username": "long", "email": "long@example.com", "password": "x" * 100},
    )
    assert r.status_code == 422
    # multi-byte characters count by their UTF-8 length
    r = api.post(
        "/auth/register",
        json={"username": "long", "email": "long@example.com", "password": "è" * 37},
    )
    assert r.status_code == 422
    r = api.post(
        "/auth/register",
        json={"username": "long", "email": "long@example.com", "password": "x" * 72},
    )
    assert r.status_code == 201
