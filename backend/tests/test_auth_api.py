from conftest import auth_headers, db_call, register
from homeland.db import crud_users
from homeland.services.notifications import notification_service


def login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_register_returns_tokens_and_user(client):
    data = register(client, "Jane@Example.com", first_name="Jane", last_name="Doe", phone="0700000001")
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "jane@example.com"
    assert data["user"]["role"] == "user"
    assert data["refresh_token"]


def test_register_duplicate_email(client):
    register(client, "jane@example.com")
    resp = client.post(
        "/api/auth/register",
        json={"first_name": "J", "last_name": "D", "email": "JANE@example.com", "password": "secret123"},
    )
    assert resp.status_code == 400


def test_register_short_password(client):
    resp = client.post(
        "/api/auth/register",
        json={"first_name": "J", "last_name": "D", "email": "j@example.com", "password": "123"},
    )
    assert resp.status_code == 400


def test_register_invalid_email_is_validation_error(client):
    resp = client.post(
        "/api/auth/register",
        json={"first_name": "J", "last_name": "D", "email": "nope", "password": "secret123"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Validation failed"


def test_login(client):
    register(client, "jane@example.com")
    assert login(client, "jane@example.com", "secret123").status_code == 200
    assert login(client, "jane@example.com", "wrong-pass").status_code == 401
    assert login(client, "ghost@example.com", "secret123").status_code == 401
    assert client.post("/api/auth/login", json={"email": "jane@example.com"}).status_code == 400


def test_me(client):
    data = register(client, "jane@example.com", first_name="Jane")
    resp = client.get("/api/users/me", headers=auth_headers(data["access_token"]))
    assert resp.status_code == 200
    assert resp.json()["first_name"] == "Jane"
    assert client.get("/api/users/me").status_code == 401
    assert client.get("/api/users/me", headers=auth_headers("garbage")).status_code == 401


def test_refresh_token_cannot_be_used_as_access_token(client):
    data = register(client, "jane@example.com")
    assert client.get("/api/users/me", headers=auth_headers(data["refresh_token"])).status_code == 401


def test_refresh_rotates_and_logout_revokes(client):
    data = register(client, "jane@example.com")
    resp = client.post("/api/auth/refresh", json={"refresh_token": data["refresh_token"]})
    assert resp.status_code == 200
    new_refresh = resp.json()["refresh_token"]
    assert new_refresh != data["refresh_token"]

    # the old token was rotated out
    assert client.post("/api/auth/refresh", json={"refresh_token": data["refresh_token"]}).status_code == 401

    assert client.post("/api/auth/logout", json={"refresh_token": new_refresh}).status_code == 200
    assert client.post("/api/auth/refresh", json={"refresh_token": new_refresh}).status_code == 401


def test_refresh_with_garbage_token(client):
    assert client.post("/api/auth/refresh", json={"refresh": "not-a-jwt"}).status_code == 401
    assert client.post("/api/auth/refresh", json={}).status_code == 400


class TestPasswordReset:
    def test_forgot_password_is_generic(self, client, monkeypatch):
        sent = []

        async def fake_reset(user, token):
            sent.append((user.email, token))

        monkeypatch.setattr(notification_service, "send_password_reset", fake_reset)
        register(client, "jane@example.com")

        known = client.post("/api/auth/forgot-password", json={"email": "jane@example.com"})
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert len(sent) == 1
        assert sent[0][0] == "jane@example.com"

    def test_full_reset_flow(self, client, monkeypatch):
        tokens = []

        async def fake_reset(user, token):
            tokens.append(token)

        async def fake_confirmation(user):
            return {"email": True, "sms": False}

        monkeypatch.setattr(notification_service, "send_password_reset", fake_reset)
        monkeypatch.setattr(notification_service, "send_password_reset_confirmation", fake_confirmation)
        register(client, "jane@example.com", first_name="Jane")
        client.post("/api/auth/forgot-password", json={"email": "jane@example.com"})
        token = tokens[0]

        resp = client.post("/api/auth/verify-reset-token", json={"token": token})
        assert resp.json() == {"valid": True, "email": "jane@example.com", "first_name": "Jane"}

        mismatch = {"token": token, "new_password": "newsecret", "confirm_password": "other"}
        assert client.post("/api/auth/reset-password", json=mismatch).status_code == 400

        body = {"token": token, "new_password": "newsecret", "confirm_password": "newsecret"}
        assert client.post("/api/auth/reset-password", json=body).status_code == 200
        assert login(client, "jane@example.com", "newsecret").status_code == 200

        # single use
        assert client.post("/api/auth/verify-reset-token", json={"token": token}).status_code == 400

    def test_expired_token_is_rejected(self, client):
        data = register(client, "jane@example.com")
        user = db_call(crud_users.get_user, data["user"]["id"])
        token = db_call(crud_users.issue_reset_token, user, -1)
        assert token
        resp = client.post("/api/auth/verify-reset-token", json={"token": token})
        assert resp.status_code == 400

    def test_change_password(self, client, monkeypatch):
        async def fake_confirmation(user):
            return {"email": True, "sms": False}

        monkeypatch.setattr(notification_service, "send_password_change_confirmation", fake_confirmation)
        data = register(client, "jane@example.com")
        headers = auth_headers(data["access_token"])

        wrong = {"current_password": "nope", "new_password": "newsecret", "confirm_password": "newsecret"}
        assert client.post("/api/auth/change-password", json=wrong, headers=headers).status_code == 400

        short = {"current_password": "secret123", "new_password": "abc", "confirm_password": "abc"}
        assert client.post("/api/auth/change-password", json=short, headers=headers).status_code == 400

        ok = {"current_password": "secret123", "new_password": "newsecret", "confirm_password": "newsecret"}
        assert client.post("/api/auth/change-password", json=ok, headers=headers).status_code == 200
        assert login(client, "jane@example.com", "newsecret").status_code == 200
