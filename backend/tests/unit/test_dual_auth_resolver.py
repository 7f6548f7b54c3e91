"""Tests for dual-auth resolution and the auth dependencies.

Staff precedence: when both sessions are present the caller is staff and
the portal cookie is never consulted.
"""

from unittest.mock import AsyncMock, patch

import pytest

from app.api.deps import get_current_client, get_current_identity, get_current_user
from app.core.auth_resolvers import resolve_identity
from app.core.config import settings
from app.core.errors import UnauthorizedError
from app.core.identity import ClientIdentity, UserIdentity
from app.models.client import Client
from app.models.user import User
from app.repositories.client_repository import ClientRepository
from app.repositories.user_repository import UserRepository
from tests.conftest import create_portal_jwt, create_test_jwt
from tests.unit.conftest import make_request

_USER = User(id=7, email="staff@acme.test", role="staff", company_id=3)
_CLIENT = Client(id=12, company_id=3, name="Alpha Corp", email="alpha@client.test")


def _cookies(*, staff: str | None = None, portal: str | None = None) -> dict:
    cookies = {}
    if staff is not None:
        cookies[settings.auth_cookie_name] = staff
    if portal is not None:
        cookies[settings.portal_cookie_name] = portal
    return cookies


class TestResolveIdentity:
    async def test_both_sessions_resolve_to_staff(self, mock_db):
        request = make_request(
            cookies=_cookies(staff=create_test_jwt(7), portal=create_portal_jwt(12))
        )
        with (
            patch.object(UserRepository, "get_active", AsyncMock(return_value=_USER)),
            patch.object(
                ClientRepository, "get_active", AsyncMock(return_value=_CLIENT)
            ) as client_lookup,
        ):
            identity = await resolve_identity(request, mock_db)

        assert identity == UserIdentity(user_id=7, company_id=3, role="staff")
        assert identity.kind == "user"
        client_lookup.assert_not_awaited()

    async def test_portal_only_resolves_to_client(self, mock_db):
        request = make_request(cookies=_cookies(portal=create_portal_jwt(12)))
        with patch.object(
            ClientRepository, "get_active", AsyncMock(return_value=_CLIENT)
        ):
            identity = await resolve_identity(request, mock_db)

        assert identity == ClientIdentity(client_id=12)
        assert identity.kind == "client"

    async def test_invalid_staff_session_falls_back_to_client(self, mock_db):
        request = make_request(
            cookies=_cookies(staff="garbage", portal=create_portal_jwt(12))
        )
        with patch.object(
            ClientRepository, "get_active", AsyncMock(return_value=_CLIENT)
        ):
            identity = await resolve_identity(request, mock_db)
        assert identity == ClientIdentity(client_id=12)

    async def test_inactive_staff_user_falls_back_to_client(self, mock_db):
        request = make_request(
            cookies=_cookies(staff=create_test_jwt(7), portal=create_portal_jwt(12))
        )
        with (
            patch.object(UserRepository, "get_active", AsyncMock(return_value=None)),
            patch.object(
                ClientRepository, "get_active", AsyncMock(return_value=_CLIENT)
            ),
        ):
            identity = await resolve_identity(request, mock_db)
        assert identity == ClientIdentity(client_id=12)

    async def test_no_credentials_returns_none(self, mock_db):
        assert await resolve_identity(make_request(), mock_db) is None


class TestAuthDependencies:
    async def test_get_current_user_raises_401(self, mock_db):
        with pytest.raises(UnauthorizedError):
            await get_current_user(make_request(), mock_db)

    async def test_get_current_client_raises_401_for_staff_session(self, mock_db):
        request = make_request(cookies=_cookies(staff=create_test_jwt(7)))
        with pytest.raises(UnauthorizedError):
            await get_current_client(request, mock_db)

    async def test_get_current_identity_raises_401(self, mock_db):
        with pytest.raises(UnauthorizedError) as exc_info:
            await get_current_identity(make_request(), mock_db)
        assert exc_info.value.status_code == 401
        assert exc_info.value.code == "UNAUTHORIZED"
