"""Tests for /api/v1/api-tokens and bearer authentication."""

from datetime import UTC, datetime, timedelta

from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from tests.conftest import ADMIN_A_ID, STAFF_A_ID, create_test_jwt

_BASE = "/api/v1/api-tokens"


async def _create_token(ac: AsyncClient, name: str = "CI deploy") -> dict:
    response = await ac.post(_BASE, json={"name": name})
    assert response.status_code == 201
    return response.json()["data"]


def _bearer_client(app, token: str) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {token}"},
    )


class TestCreateApiToken:
    async def test_plain_token_returned_once(self, staff_a_client):
        created = await _create_token(staff_a_client)
        assert created["token"].startswith(settings.api_token_prefix)
        assert created["token"].startswith(created["token_prefix"] + "_")

        listed = (await staff_a_client.get(_BASE)).json()["data"]
        assert [t["id"] for t in listed] == [created["id"]]
        assert "token" not in listed[0]
        assert "token_hash" not in listed[0]

    async def test_past_expiry_rejected(self, staff_a_client):
        past = (datetime.now(UTC) - timedelta(days=1)).isoformat()
        response = await staff_a_client.post(
            _BASE, json={"name": "stale", "expires_at": past}
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_blank_name_rejected(self, staff_a_client):
        response = await staff_a_client.post(_BASE, json={"name": "   "})
        assert response.status_code == 400

    async def test_requires_staff_session(self, unauthenticated_client):
        response = await unauthenticated_client.post(_BASE, json={"name": "x"})
        assert response.status_code == 401


class TestBearerAuthentication:
    async def test_token_authenticates_staff_routes(self, api_app, staff_a_client):
        created = await _create_token(staff_a_client)

        async with _bearer_client(api_app, created["token"]) as ac:
            response = await ac.get("/api/v1/auth/me")

        assert response.status_code == 200
        assert response.json()["data"]["id"] == STAFF_A_ID

    async def test_last_used_recorded(self, api_app, staff_a_client):
        created = await _create_token(staff_a_client)
        async with _bearer_client(api_app, created["token"]) as ac:
            await ac.get("/api/v1/auth/me")

        listed = (await staff_a_client.get(_BASE)).json()["data"]
        assert listed[0]["last_used_at"] is not None

    async def test_tampered_secret_rejected(self, api_app, staff_a_client):
        created = await _create_token(staff_a_client)
        tampered = created["token_prefix"] + "_" + "x" * 43

        async with _bearer_client(api_app, tampered) as ac:
            response = await ac.get("/api/v1/auth/me")
        assert response.status_code == 401

    async def test_bearer_token_is_not_a_portal_credential(
        self, api_app, staff_a_client
    ):
        created = await _create_token(staff_a_client)
        async with _bearer_client(api_app, created["token"]) as ac:
            response = await ac.get("/api/v1/portal/projects")
        assert response.status_code == 401


class TestRevokeApiToken:
    async def test_revoked_token_stops_working(self, api_app, staff_a_client):
        created = await _create_token(staff_a_client)

        response = await staff_a_client.delete(f"{_BASE}/{created['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["revoked_at"] is not None

        async with _bearer_client(api_app, created["token"]) as ac:
            response = await ac.get("/api/v1/auth/me")
        assert response.status_code == 401

    async def test_second_revoke_is_a_no_op(self, staff_a_client):
        created = await _create_token(staff_a_client)

        first = await staff_a_client.delete(f"{_BASE}/{created['id']}")
        second = await staff_a_client.delete(f"{_BASE}/{created['id']}")

        assert second.status_code == 200
        assert (
            second.json()["data"]["revoked_at"] == first.json()["data"]["revoked_at"]
        )

    async def test_other_users_token_is_not_found(self, api_app, staff_a_client):
        created = await _create_token(staff_a_client)

        cookies = {settings.auth_cookie_name: create_test_jwt(ADMIN_A_ID)}
        async with AsyncClient(
            transport=ASGITransport(app=api_app),
            base_url="http://test",
            cookies=cookies,
        ) as admin:
            response = await admin.delete(f"{_BASE}/{created['id']}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_malformed_id_rejected(self, staff_a_client):
        response = await staff_a_client.delete(f"{_BASE}/abc")
        assert response.status_code == 400
