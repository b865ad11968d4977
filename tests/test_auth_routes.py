"""Web account routes: register, login, me, plus health."""
API = "/api/v1"


def _register(client, email="linus@example.com", password="hunter2-hunter2"):
    return client.post(f"{API}/auth/register", json={"email": email, "password": password, "name": "Linus"})


class TestRegister:

    def test_created(self, client):
        res = _register(client)

        assert res.status_code == 201
        data = res.get_json()["data"]
        assert data["email"] == "linus@example.com"
        assert "password" not in data
        assert "password_hash" not in data

    def test_email_is_normalized(self, client):
        res = _register(client, email="  Linus@Example.COM ")

        assert res.get_json()["data"]["email"] == "linus@example.com"

    def test_duplicate_email(self, client):
        _register(client)

        res = _register(client)
        assert res.status_code == 409
        assert res.get_json()["error"] == "CONFLICT"

    def test_short_password(self, client):
        res = _register(client, password="short")

        assert res.status_code == 400
        assert "password" in res.get_json()["details"]


class TestLogin:

    def test_session_token(self, client):
        _register(client)

        res = client.post(f"{API}/auth/login", json={"email": "linus@example.com", "password": "hunter2-hunter2"})
        assert res.status_code == 200
        body = res.get_json()
        assert body["token_type"] == "bearer"

        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {body['session_token']}"})
        assert me.status_code == 200
        assert me.get_json()["data"]["email"] == "linus@example.com"

    def test_wrong_password(self, client):
        _register(client)

        res = client.post(f"{API}/auth/login", json={"email": "linus@example.com", "password": "nope-nope-nope"})
        assert res.status_code == 401

    def test_unknown_email(self, client):
        res = client.post(f"{API}/auth/login", json={"email": "nobody@example.com", "password": "whatever-123"})

        assert res.status_code == 401

    def test_missing_fields(self, client):
        assert client.post(f"{API}/auth/login", json={}).status_code == 400


class TestMe:

    def test_requires_session(self, client):
        assert client.get(f"{API}/auth/me").status_code == 401
        assert client.get(f"{API}/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401

    def test_session_expires(self, client, session_headers, clock, app):
        clock.advance(seconds=int(app.config["SESSION_TOKEN_EXPIRES"].total_seconds()))

        assert client.get(f"{API}/auth/me", headers=session_headers).status_code == 401


def test_health(client):
    res = client.get(f"{API}/health")

    assert res.status_code == 200
    assert res.get_json() == {"status": "ok", "database": "ok"}


def test_unknown_route(client):
    res = client.get(f"{API}/nope")

    assert res.status_code == 404
    assert res.get_json()["error"] == "NOT_FOUND"
