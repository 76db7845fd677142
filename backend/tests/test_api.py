"""
Book Hub Backend - HTTP API Tests
===================================

What:  End-to-end request/response checks through the full middleware chain.
How:   HTTPX AsyncClient over ASGITransport; a fresh SQLite schema per test.

What we test:
    ✅ Every /api response uses the {success, message, data} envelope
    ✅ Signup / login, including indistinguishable login failures
    ✅ Token enforcement on listing writes
    ✅ Owner-only delete over HTTP
    ✅ Message append returns only the new message
    ✅ Unknown /api paths → 404 envelope, other paths → SPA entry document
    ✅ Oversize bodies → 413, malformed bodies → 400
    ✅ Startup aborts without DATABASE_URL or JWT_SECRET
"""

import uuid

import pytest

from bookhub.config import settings

LISTING = {
    "title": "The Hobbit",
    "author": "J.R.R. Tolkien",
    "description": "Hardcover",
    "listingType": "Sell",
    "price": 12,
    "condition": "Like New",
}


async def _signup(client, email="alice@example.com", name="Alice", password="s3cret-pass"):
    response = await client.post(
        "/api/auth/signup",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _auth(user):
    return {"Authorization": f"Bearer {user['token']}"}


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_signup_returns_envelope(self, test_client):
        response = await test_client.post(
            "/api/auth/signup",
            json={"email": "alice@example.com", "password": "s3cret-pass", "name": "Alice"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Account created."
        assert body["data"]["email"] == "alice@example.com"
        assert body["data"]["name"] == "Alice"
        assert body["data"]["userId"]
        assert body["data"]["token"]
        assert "password" not in body["data"]
        assert "passwordHash" not in body["data"]

    @pytest.mark.asyncio
    async def test_signup_duplicate_conflicts(self, test_client):
        await _signup(test_client)

        response = await test_client.post(
            "/api/auth/signup",
            json={"email": "alice@example.com", "password": "other", "name": "Alice 2"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["data"]["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_signup_missing_field(self, test_client):
        response = await test_client.post(
            "/api/auth/signup", json={"email": "alice@example.com", "password": "pw"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_signup_invalid_email(self, test_client):
        response = await test_client.post(
            "/api/auth/signup", json={"email": "not-an-email", "password": "pw", "name": "X"}
        )

        assert response.status_code == 400
        assert response.json()["data"]["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_login_success(self, test_client):
        user = await _signup(test_client)

        response = await test_client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "s3cret-pass"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["userId"] == user["userId"]

    @pytest.mark.asyncio
    async def test_login_failures_are_indistinguishable(self, test_client):
        await _signup(test_client)

        wrong_password = await test_client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "nope"}
        )
        unknown_email = await test_client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "nope"}
        )

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json()["message"] == unknown_email.json()["message"]
        assert wrong_password.json()["data"]["error"] == unknown_email.json()["data"]["error"]


class TestBookEndpoints:

    @pytest.mark.asyncio
    async def test_create_requires_token(self, test_client):
        response = await test_client.post("/api/books", json=LISTING)

        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_create_rejects_bad_token(self, test_client):
        response = await test_client.post(
            "/api/books", json=LISTING, headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_rejects_non_bearer_scheme(self, test_client):
        response = await test_client.post(
            "/api/books", json=LISTING, headers={"Authorization": "Basic YWxpY2U6cHc="}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_and_list(self, test_client):
        user = await _signup(test_client)

        created = await test_client.post(
            "/api/books",
            json={**LISTING, "owner": {"email": "mallory@evil.test"}, "contact": "mallory@evil.test"},
            headers=_auth(user),
        )
        assert created.status_code == 201
        listing = created.json()["data"]
        assert listing["owner"]["userId"] == user["userId"]
        assert listing["contact"] == "alice@example.com"
        assert listing["listingType"] == "Sell"
        assert listing["exchange"] is False

        response = await test_client.get("/api/books")
        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        assert response.headers["x-total-count"] == "1"
        body = response.json()
        assert body["success"] is True
        assert [item["id"] for item in body["data"]] == [listing["id"]]
        assert "messages" not in body["data"][0]

    @pytest.mark.asyncio
    async def test_list_empty(self, test_client):
        response = await test_client.get("/api/books")

        assert response.status_code == 200
        assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_create_validation_error_names_field(self, test_client):
        user = await _signup(test_client)

        response = await test_client.post(
            "/api/books", json={**LISTING, "listingType": "Lend"}, headers=_auth(user)
        )

        assert response.status_code == 400
        assert response.json()["data"]["details"]["field"] == "listingType"

    @pytest.mark.asyncio
    async def test_delete_by_owner(self, test_client):
        user = await _signup(test_client)
        created = (await test_client.post("/api/books", json=LISTING, headers=_auth(user))).json()

        response = await test_client.delete(f"/api/books/{created['data']['id']}", headers=_auth(user))

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Deleted.", "data": None}
        assert (await test_client.get("/api/books")).json()["data"] == []

    @pytest.mark.asyncio
    async def test_delete_by_other_user_forbidden(self, test_client):
        alice = await _signup(test_client)
        bob = await _signup(test_client, email="bob@example.com", name="Bob")
        created = (await test_client.post("/api/books", json=LISTING, headers=_auth(alice))).json()

        response = await test_client.delete(f"/api/books/{created['data']['id']}", headers=_auth(bob))

        assert response.status_code == 403
        assert response.json()["data"]["error"] == "forbidden"
        assert len((await test_client.get("/api/books")).json()["data"]) == 1

    @pytest.mark.asyncio
    async def test_delete_unknown_listing(self, test_client):
        user = await _signup(test_client)

        response = await test_client.delete(f"/api/books/{uuid.uuid4()}", headers=_auth(user))

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_message_returns_only_new_message(self, test_client):
        alice = await _signup(test_client)
        bob = await _signup(test_client, email="bob@example.com", name="Bob")
        created = (await test_client.post("/api/books", json=LISTING, headers=_auth(alice))).json()
        listing_id = created["data"]["id"]

        response = await test_client.post(
            f"/api/books/{listing_id}/message",
            json={"text": "Would you take 10?"},
            headers=_auth(bob),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert set(data) == {"senderName", "text", "timestamp"}
        assert data["senderName"] == "Bob"
        assert data["text"] == "Would you take 10?"

        detail = (await test_client.get(f"/api/books/{listing_id}")).json()["data"]
        assert [m["text"] for m in detail["messages"]] == ["Would you take 10?"]

    @pytest.mark.asyncio
    async def test_message_unknown_listing(self, test_client):
        user = await _signup(test_client)

        response = await test_client.post(
            "/api/books/not-a-uuid/message", json={"text": "hello"}, headers=_auth(user)
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_demo_mode_allows_anonymous_writes(self, test_client, demo_mode):
        created = await test_client.post(
            "/api/books", json={**LISTING, "contact": "guest@example.com", "ownerName": "Guest"}
        )
        assert created.status_code == 201
        listing_id = created.json()["data"]["id"]
        assert created.json()["data"]["owner"]["userId"] is None

        response = await test_client.delete(f"/api/books/{listing_id}")
        assert response.status_code == 200


class TestRequestHandling:

    @pytest.mark.asyncio
    async def test_unknown_api_path_returns_404_envelope(self, test_client):
        for method in ("GET", "POST", "DELETE"):
            response = await test_client.request(method, "/api/nope")
            assert response.status_code == 404
            body = response.json()
            assert body["success"] is False
            assert body["data"]["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_spa_fallback_serves_entry_document(self, test_client, static_root):
        response = await test_client.get("/listings/some/client/route")

        assert response.status_code == 200
        assert "<title>Book Hub</title>" in response.text

    @pytest.mark.asyncio
    async def test_static_asset_served(self, test_client, static_root):
        response = await test_client.get("/app.css")

        assert response.status_code == 200
        assert "margin: 0" in response.text

    @pytest.mark.asyncio
    async def test_path_traversal_falls_back_to_entry_document(self, test_client, static_root):
        secret = static_root.parent / "secret.txt"
        secret.write_text("do not serve")

        response = await test_client.get("/..%2Fsecret.txt")

        assert "do not serve" not in response.text

    @pytest.mark.asyncio
    async def test_null_byte_path_falls_back_to_entry_document(self, test_client, static_root):
        response = await test_client.get("/%00")

        assert response.status_code == 200
        assert "<title>Book Hub</title>" in response.text

    @pytest.mark.asyncio
    async def test_oversize_body_rejected(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "max_body_size", 100)

        response = await test_client.post("/api/books", json={**LISTING, "image": "x" * 500})

        assert response.status_code == 413
        body = response.json()
        assert body["success"] is False
        assert body["data"]["error"] == "payload_too_large"
        assert body["data"]["details"]["maxSize"] == 100

    @pytest.mark.asyncio
    async def test_malformed_json_rejected(self, test_client):
        user = await _signup(test_client)

        response = await test_client.post(
            "/api/books",
            content=b"{not json",
            headers={**_auth(user), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/api/books", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"


class TestStartup:
    """The lifespan refuses to start without its required settings."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("setting", ["database_url", "jwt_secret"])
    async def test_missing_required_setting_aborts_startup(self, monkeypatch, setting):
        from bookhub.main import app, lifespan

        monkeypatch.setattr(settings, setting, "")

        with pytest.raises(ValueError, match=setting.upper()):
            async with lifespan(app):
                pass
