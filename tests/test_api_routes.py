"""Integration tests for the /rpc procedures through the full FastAPI stack.

Covers:
- auth.register sets an httpOnly session cookie; auth.me returns the public user
- procedures requiring auth return 401 without a cookie
- wrong password returns 401 with the uniform error envelope
- the task lifecycle: create, list, update, delete, repeat delete -> 404
- a second client cannot see or touch the first client's tasks
- logout and session expiry both end authentication
- request validation failures return 422 with per-field messages
- task payloads use camelCase keys
"""

from fastapi.testclient import TestClient

from api.main import app


def _register(client, email="a@x.com", password="secret1", name="A"):
    return client.post("/rpc/auth.register", json={"email": email, "password": password, "name": name})


class TestAuthRoutes:
    def test_register_sets_cookie_and_me_returns_user(self, api_client):
        client, _ = api_client
        resp = _register(client)
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert set(body["user"]) == {"id", "email", "name"}

        cookie = resp.headers["set-cookie"].lower()
        assert cookie.startswith("taskify-session-id=")
        assert "httponly" in cookie
        assert "samesite=strict" in cookie
        assert resp.headers["cache-control"] == "no-store"

        me = client.get("/rpc/auth.me")
        assert me.status_code == 200
        assert me.json()["user"] == {"id": body["user"]["id"], "email": "a@x.com", "name": "A"}

    def test_me_without_cookie_is_unauthorized(self, api_client):
        client, _ = api_client
        resp = client.get("/rpc/auth.me")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_duplicate_register_is_conflict(self, api_client):
        client, _ = api_client
        _register(client)
        resp = _register(TestClient(app), name="Other")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "conflict"

    def test_wrong_password_is_unauthorized(self, api_client):
        client, _ = api_client
        _register(client)
        other = TestClient(app)
        resp = other.post("/rpc/auth.login", json={"email": "a@x.com", "password": "wrong-one"})
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid credentials"
        assert "set-cookie" not in resp.headers

    def test_login_from_fresh_client(self, api_client):
        client, _ = api_client
        _register(client)
        other = TestClient(app)
        resp = other.post("/rpc/auth.login", json={"email": "a@x.com", "password": "secret1"})
        assert resp.status_code == 200
        assert other.get("/rpc/auth.me").json()["user"]["email"] == "a@x.com"

    def test_logout_ends_session(self, api_client):
        client, _ = api_client
        _register(client)
        resp = client.post("/rpc/auth.logout")
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert client.get("/rpc/auth.me").status_code == 401

    def test_session_expires_after_seven_days(self, api_client):
        client, clock = api_client
        _register(client)
        clock.advance(days=6, hours=23)
        assert client.get("/rpc/auth.me").status_code == 200
        clock.advance(hours=1)
        assert client.get("/rpc/auth.me").status_code == 401

    def test_register_validation_envelope(self, api_client):
        client, _ = api_client
        resp = _register(client, email="not-an-email", password="short")
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "validation_error"
        assert {"email", "password"} <= set(error["fields"])

    def test_multibyte_password_over_72_bytes_is_validation_error(self, api_client):
        client, _ = api_client
        resp = _register(client, password="ż" * 40)
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "validation_error"
        assert "password" in error["fields"]
        assert "set-cookie" not in resp.headers

    def test_email_with_trailing_newline_is_validation_error(self, api_client):
        client, _ = api_client
        _register(client)
        resp = _register(TestClient(app), email="a@x.com\n", name="A2")
        assert resp.status_code == 422
        assert "email" in resp.json()["error"]["fields"]

    def test_malformed_body_is_validation_error(self, api_client):
        client, _ = api_client
        resp = client.post("/rpc/auth.register", json={"email": "a@x.com"})
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "validation_error"
        assert "password" in error["fields"]
        assert "name" in error["fields"]


class TestTaskRoutes:
    def test_task_lifecycle(self, api_client):
        client, clock = api_client
        _register(client)

        created = client.post("/rpc/tasks.create", json={"title": "buy milk"})
        assert created.status_code == 200
        task = created.json()
        assert set(task) == {"id", "title", "description", "completed", "userId", "createdAt", "updatedAt"}
        assert task["completed"] is False
        assert task["description"] is None

        listed = client.get("/rpc/tasks.list").json()
        assert [t["id"] for t in listed] == [task["id"]]

        clock.advance(seconds=1)
        updated = client.post("/rpc/tasks.update", json={"id": task["id"], "completed": True})
        assert updated.status_code == 200
        assert updated.json()["completed"] is True
        assert updated.json()["updatedAt"] > task["updatedAt"]

        assert client.post("/rpc/tasks.delete", json={"id": task["id"]}).json() == {"success": True}
        assert client.get("/rpc/tasks.list").json() == []

        again = client.post("/rpc/tasks.delete", json={"id": task["id"]})
        assert again.status_code == 404
        assert again.json()["error"]["code"] == "not_found"

    def test_tasks_require_auth(self, api_client):
        client, _ = api_client
        assert client.get("/rpc/tasks.list").status_code == 401
        assert client.post("/rpc/tasks.create", json={"title": "x"}).status_code == 401

    def test_other_user_cannot_touch_tasks(self, api_client):
        client, _ = api_client
        _register(client)
        task = client.post("/rpc/tasks.create", json={"title": "private"}).json()

        other = TestClient(app)
        _register(other, email="b@x.com", name="B")
        assert other.get("/rpc/tasks.list").json() == []
        assert other.post("/rpc/tasks.update", json={"id": task["id"], "title": "mine"}).status_code == 404
        assert other.post("/rpc/tasks.delete", json={"id": task["id"]}).status_code == 404

        mine = client.get("/rpc/tasks.list").json()
        assert len(mine) == 1
        assert mine[0]["title"] == "private"

    def test_blank_title_is_validation_error(self, api_client):
        client, _ = api_client
        _register(client)
        resp = client.post("/rpc/tasks.create", json={"title": "  "})
        assert resp.status_code == 422
        assert resp.json()["error"]["fields"] == {"title": "Title is required."}

    def test_update_missing_id_is_validation_error(self, api_client):
        client, _ = api_client
        _register(client)
        resp = client.post("/rpc/tasks.update", json={"completed": True})
        assert resp.status_code == 422
        assert "id" in resp.json()["error"]["fields"]
