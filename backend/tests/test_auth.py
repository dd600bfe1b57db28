import uuid

from quizdeck.core.config import settings


def _register(client, name, password="testpass123"):
    return client.post(
        "/auth/register",
        json={"username": name, "email": f"{name}@example.com", "password": password},
    )


def test_register_disabled_by_default(client, monkeypatch):
    monkeypatch.setattr(settings, "allow_public_register", False)
    r = _register(client, f"u_{uuid.uuid4().hex[:8]}")
    assert r.status_code == 403
    assert r.json()["errorCode"] == "forbidden"


def test_register_login_and_me(client, monkeypatch):
    monkeypatch.setattr(settings, "allow_public_register", True)
    name = f"u_{uuid.uuid4().hex[:8]}"

    r = _register(client, name)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["username"] == name

    r = client.post(
        "/auth/token",
        data={"username": f"{name}@example.com", "password": "testpass123"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert r.status_code == 200
    token = r.json()["data"]["accessToken"]

    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["data"]["username"] == name

    r = _register(client, name)
    assert r.status_code == 409
    assert r.json()["errorCode"] == "conflict"


def test_register_rejects_short_password(client, monkeypatch):
    monkeypatch.setattr(settings, "allow_public_register", True)
    r = _register(client, f"u_{uuid.uuid4().hex[:8]}", password="x")
    assert r.status_code == 400


def test_login_with_wrong_password(client, user):
    r = client.post(
        "/auth/token",
        data={"username": user.username, "password": "not-the-password"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_token_endpoint_is_rate_limited(client, user):
    form = {"username": user.username, "password": "not-the-password"}
    statuses = [client.post("/auth/token", data=form).status_code for _ in range(21)]
    assert statuses[:20] == [401] * 20
    assert statuses[20] == 429
