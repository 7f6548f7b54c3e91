"""Tests for /api/v1/users: company staff listing, profile edits and removal.

Covers who may edit whom (self or company admin), admin-only role changes,
the last-admin guard and soft deletion revoking sign-in.
"""

import pytest

from tests.conftest import (
    ADMIN_A_ID,
    OUTSIDER_A_ID,
    STAFF_A_ID,
    STAFF_B_ID,
    VIEWER_A_ID,
)

_USERS = "/api/v1/users"


class TestListAndGet:
    async def test_lists_own_company_only(self, staff_a_client):
        response = await staff_a_client.get(_USERS)

        assert response.status_code == 200
        ids = [u["id"] for u in response.json()["data"]]
        assert {ADMIN_A_ID, STAFF_A_ID, VIEWER_A_ID, OUTSIDER_A_ID} == set(ids)
        assert STAFF_B_ID not in ids

    async def test_never_exposes_password_hash(self, staff_a_client):
        response = await staff_a_client.get(f"{_USERS}/{ADMIN_A_ID}")

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "admin@acme.test"
        assert "password_hash" not in response.json()["data"]

    async def test_missing_user_is_not_found(self, staff_a_client):
        response = await staff_a_client.get(f"{_USERS}/999999")
        assert response.status_code == 404

    async def test_portal_client_cannot_list_staff(self, portal_a_client):
        response = await portal_a_client.get(_USERS)
        assert response.status_code == 401


class TestUpdate:
    async def test_user_renames_self(self, staff_a_client):
        response = await staff_a_client.patch(
            f"{_USERS}/{STAFF_A_ID}", json={"name": "Samantha"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Samantha"

    async def test_null_name_clears_it(self, staff_a_client):
        response = await staff_a_client.patch(
            f"{_USERS}/{STAFF_A_ID}", json={"name": None}
        )
        assert response.status_code == 200
        assert response.json()["data"]["name"] is None

    async def test_null_role_is_rejected(self, admin_a_client):
        response = await admin_a_client.patch(
            f"{_USERS}/{STAFF_A_ID}", json={"role": None}
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_staff_cannot_edit_someone_else(self, staff_a_client):
        response = await staff_a_client.patch(
            f"{_USERS}/{OUTSIDER_A_ID}", json={"name": "Renamed"}
        )
        assert response.status_code == 403

    async def test_staff_cannot_promote_self(self, staff_a_client):
        response = await staff_a_client.patch(
            f"{_USERS}/{STAFF_A_ID}", json={"role": "admin"}
        )
        assert response.status_code == 403

        me = await staff_a_client.get("/api/v1/auth/me")
        assert me.json()["data"]["role"] == "staff"

    async def test_resubmitting_current_role_is_not_a_change(self, staff_a_client):
        response = await staff_a_client.patch(
            f"{_USERS}/{STAFF_A_ID}", json={"name": "Sam", "role": "staff"}
        )
        assert response.status_code == 200

    async def test_admin_changes_role(self, admin_a_client):
        response = await admin_a_client.patch(
            f"{_USERS}/{STAFF_A_ID}", json={"role": "accountant"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["role"] == "accountant"

    async def test_last_company_admin_cannot_step_down(self, admin_a_client):
        response = await admin_a_client.patch(
            f"{_USERS}/{ADMIN_A_ID}", json={"role": "staff"}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "LAST_COMPANY_ADMIN"

    async def test_admin_steps_down_after_promoting_another(self, admin_a_client):
        await admin_a_client.patch(f"{_USERS}/{STAFF_A_ID}", json={"role": "admin"})

        response = await admin_a_client.patch(
            f"{_USERS}/{ADMIN_A_ID}", json={"role": "staff"}
        )
        assert response.status_code == 200

    @pytest.mark.parametrize("body", [{"email": "x@acme.test"}, {"company_id": 102}])
    async def test_identity_fields_are_not_editable(self, admin_a_client, body):
        response = await admin_a_client.patch(f"{_USERS}/{STAFF_A_ID}", json=body)
        assert response.status_code == 400


class TestDelete:
    async def test_cannot_delete_self(self, admin_a_client):
        response = await admin_a_client.delete(f"{_USERS}/{ADMIN_A_ID}")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_staff_cannot_delete(self, staff_a_client):
        response = await staff_a_client.delete(f"{_USERS}/{OUTSIDER_A_ID}")
        assert response.status_code == 403

    async def test_missing_user_is_not_found(self, admin_a_client):
        response = await admin_a_client.delete(f"{_USERS}/999999")
        assert response.status_code == 404

    async def test_deleted_user_is_signed_out_and_hidden(
        self, admin_a_client, staff_a_client
    ):
        response = await admin_a_client.delete(f"{_USERS}/{STAFF_A_ID}")
        assert response.status_code == 200
        assert response.json()["data"] == {"id": STAFF_A_ID, "deleted": True}

        assert (await staff_a_client.get("/api/v1/auth/me")).status_code == 401
        assert (await admin_a_client.get(f"{_USERS}/{STAFF_A_ID}")).status_code == 404
        listed = (await admin_a_client.get(_USERS)).json()["data"]
        assert STAFF_A_ID not in {u["id"] for u in listed}
