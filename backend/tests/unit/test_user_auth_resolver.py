"""Tests for staff identity resolution (session cookie and bearer API token).

Repositories are patched; no database is needed.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from app.core.auth import generate_api_token, hash_secret
from app.core.auth_resolvers import (
    resolve_api_token_user,
    resolve_session_user,
    resolve_user,
)
from app.core.config import settings
from app.core.identity import UserIdentity
from app.models.api_token import ApiToken
from app.models.user import User
from app.repositories.api_token_repository import ApiTokenRepository
from app.repositories.user_repository import UserRepository
from tests.conftest import create_portal_jwt, create_test_jwt
from tests.unit.conftest import make_request

_USER_ID = 7
_COMPANY_ID = 3


def _user(**overrides) -> User:
    fields = {
        "id": _USER_ID,
        "email": "staff@acme.test",
        "role": "staff",
        "company_id": _COMPANY_ID,
        "token_invalidated_before": None,
    }
    fields.update(overrides)
    return User(**fields)


def _session_request(token: str):
    return make_request(cookies={settings.auth_cookie_name: token})


def _bearer_request(token: str, scheme: str = "Bearer"):
    return make_request(headers={"Authorization": f"{scheme} {token}"})


# =============================================================================
# Session cookie
# =============================================================================


class TestResolveSessionUser:
    async def test_no_cookie_returns_none(self, mock_db):
        assert await resolve_session_user(make_request(), mock_db) is None

    async def test_valid_cookie_returns_identity(self, mock_db):
        with patch.object(
            UserRepository, "get_active", AsyncMock(return_value=_user(role="admin"))
        ) as get_active:
            identity = await resolve_session_user(
                _session_request(create_test_jwt(_USER_ID)), mock_db
            )

        assert identity == UserIdentity(
            user_id=_USER_ID, company_id=_COMPANY_ID, role="admin"
        )
        get_active.assert_awaited_once_with(mock_db, _USER_ID)

    async def test_portal_jwt_in_staff_cookie_rejected(self, mock_db):
        """A portal session can never be replayed as a staff session."""
        with patch.object(UserRepository, "get_active", AsyncMock()) as get_active:
            identity = await resolve_session_user(
                _session_request(create_portal_jwt(_USER_ID)), mock_db
            )

        assert identity is None
        get_active.assert_not_awaited()

    async def test_wrong_signature_rejected(self, mock_db):
        token = create_test_jwt(
            _USER_ID, secret="forged-secret-that-is-also-32-characters-long"  # nosec B106
        )
        with patch.object(UserRepository, "get_active", AsyncMock()) as get_active:
            assert await resolve_session_user(_session_request(token), mock_db) is None
        get_active.assert_not_awaited()

    async def test_expired_jwt_rejected(self, mock_db):
        token = create_test_jwt(_USER_ID, expires_delta=timedelta(seconds=-5))
        with patch.object(UserRepository, "get_active", AsyncMock(return_value=_user())):
            assert await resolve_session_user(_session_request(token), mock_db) is None

    async def test_garbage_cookie_rejected(self, mock_db):
        with patch.object(UserRepository, "get_active", AsyncMock()) as get_active:
            assert (
                await resolve_session_user(_session_request("not-a-jwt"), mock_db)
                is None
            )
        get_active.assert_not_awaited()

    async def test_inactive_user_rejected(self, mock_db):
        """get_active() returns None for deleted users or deleted companies."""
        with patch.object(UserRepository, "get_active", AsyncMock(return_value=None)):
            identity = await resolve_session_user(
                _session_request(create_test_jwt(_USER_ID)), mock_db
            )
        assert identity is None

    async def test_jwt_issued_before_invalidation_rejected(self, mock_db):
        now = datetime.now(UTC).replace(microsecond=0)
        token = create_test_jwt(_USER_ID, iat=now - timedelta(minutes=5))
        user = _user(token_invalidated_before=now)
        with patch.object(UserRepository, "get_active", AsyncMock(return_value=user)):
            assert await resolve_session_user(_session_request(token), mock_db) is None

    async def test_jwt_issued_in_invalidation_second_accepted(self, mock_db):
        """The cookie re-issued by invalidate-sessions must keep working."""
        now = datetime.now(UTC).replace(microsecond=0)
        token = create_test_jwt(_USER_ID, iat=now)
        user = _user(token_invalidated_before=now)
        with patch.object(UserRepository, "get_active", AsyncMock(return_value=user)):
            identity = await resolve_session_user(_session_request(token), mock_db)
        assert identity is not None


# =============================================================================
# Bearer API token
# =============================================================================


@pytest.fixture(scope="module")
def issued_token() -> tuple[str, str, str]:
    """(plain token, prefix, bcrypt hash of the secret), hashed once per module."""
    plain, parts = generate_api_token()
    return plain, parts.prefix, hash_secret(parts.secret)


def _api_token(prefix: str, token_hash: str, **overrides) -> ApiToken:
    fields = {
        "id": 55,
        "user_id": _USER_ID,
        "company_id": _COMPANY_ID,
        "name": "CI",
        "token_prefix": prefix,
        "token_hash": token_hash,
        "expires_at": None,
        "revoked_at": None,
    }
    fields.update(overrides)
    return ApiToken(**fields)


class TestResolveApiTokenUser:
    async def test_no_header_returns_none(self, mock_db):
        assert await resolve_api_token_user(make_request(), mock_db) is None

    async def test_valid_token_returns_identity_and_touches(
        self, mock_db, issued_token
    ):
        plain, prefix, token_hash = issued_token
        with (
            patch.object(
                ApiTokenRepository,
                "get_by_prefix",
                AsyncMock(return_value=_api_token(prefix, token_hash)),
            ) as get_by_prefix,
            patch.object(ApiTokenRepository, "touch_last_used", AsyncMock()) as touch,
            patch.object(UserRepository, "get_active", AsyncMock(return_value=_user())),
        ):
            identity = await resolve_api_token_user(_bearer_request(plain), mock_db)

        assert identity == UserIdentity(
            user_id=_USER_ID, company_id=_COMPANY_ID, role="staff"
        )
        get_by_prefix.assert_awaited_once_with(mock_db, prefix)
        touch.assert_awaited_once()
        assert touch.await_args.args[1] == 55

    async def test_scheme_is_case_insensitive(self, mock_db, issued_token):
        plain, prefix, token_hash = issued_token
        with (
            patch.object(
                ApiTokenRepository,
                "get_by_prefix",
                AsyncMock(return_value=_api_token(prefix, token_hash)),
            ),
            patch.object(ApiTokenRepository, "touch_last_used", AsyncMock()),
            patch.object(UserRepository, "get_active", AsyncMock(return_value=_user())),
        ):
            identity = await resolve_api_token_user(
                _bearer_request(plain, scheme="bearer"), mock_db
            )
        assert identity is not None

    async def test_other_scheme_ignored(self, mock_db, issued_token):
        plain, _, _ = issued_token
        with patch.object(ApiTokenRepository, "get_by_prefix", AsyncMock()) as lookup:
            identity = await resolve_api_token_user(
                _bearer_request(plain, scheme="Basic"), mock_db
            )
        assert identity is None
        lookup.assert_not_awaited()

    async def test_malformed_token_never_hits_database(self, mock_db):
        with patch.object(ApiTokenRepository, "get_by_prefix", AsyncMock()) as lookup:
            identity = await resolve_api_token_user(
                _bearer_request("definitely-not-ours"), mock_db
            )
        assert identity is None
        lookup.assert_not_awaited()

    async def test_overlong_secret_is_an_outcome_not_an_error(self, mock_db):
        token = f"{settings.api_token_prefix}deadbeef_" + "s" * 100
        with patch.object(ApiTokenRepository, "get_by_prefix", AsyncMock()) as lookup:
            identity = await resolve_api_token_user(_bearer_request(token), mock_db)
        assert identity is None
        lookup.assert_not_awaited()

    async def test_unknown_prefix_rejected(self, mock_db, issued_token):
        plain, _, _ = issued_token
        with patch.object(
            ApiTokenRepository, "get_by_prefix", AsyncMock(return_value=None)
        ):
            assert await resolve_api_token_user(_bearer_request(plain), mock_db) is None

    async def test_wrong_secret_rejected(self, mock_db, issued_token):
        _, prefix, token_hash = issued_token
        with (
            patch.object(
                ApiTokenRepository,
                "get_by_prefix",
                AsyncMock(return_value=_api_token(prefix, token_hash)),
            ),
            patch.object(ApiTokenRepository, "touch_last_used", AsyncMock()) as touch,
        ):
            identity = await resolve_api_token_user(
                _bearer_request(f"{prefix}_wrong-secret"), mock_db
            )
        assert identity is None
        touch.assert_not_awaited()

    async def test_revoked_token_rejected(self, mock_db, issued_token):
        plain, prefix, token_hash = issued_token
        token = _api_token(prefix, token_hash, revoked_at=datetime.now(UTC))
        with (
            patch.object(
                ApiTokenRepository, "get_by_prefix", AsyncMock(return_value=token)
            ),
            patch.object(UserRepository, "get_active", AsyncMock(return_value=_user())),
        ):
            assert await resolve_api_token_user(_bearer_request(plain), mock_db) is None

    async def test_expired_token_rejected(self, mock_db, issued_token):
        plain, prefix, token_hash = issued_token
        token = _api_token(
            prefix, token_hash, expires_at=datetime.now(UTC) - timedelta(minutes=1)
        )
        with (
            patch.object(
                ApiTokenRepository, "get_by_prefix", AsyncMock(return_value=token)
            ),
            patch.object(UserRepository, "get_active", AsyncMock(return_value=_user())),
        ):
            assert await resolve_api_token_user(_bearer_request(plain), mock_db) is None

    async def test_owner_moved_company_rejected(self, mock_db, issued_token):
        """A token minted in one company never authenticates into another."""
        plain, prefix, token_hash = issued_token
        with (
            patch.object(
                ApiTokenRepository,
                "get_by_prefix",
                AsyncMock(return_value=_api_token(prefix, token_hash)),
            ),
            patch.object(
                UserRepository,
                "get_active",
                AsyncMock(return_value=_user(company_id=_COMPANY_ID + 1)),
            ),
        ):
            assert await resolve_api_token_user(_bearer_request(plain), mock_db) is None


# =============================================================================
# Session first, then bearer
# =============================================================================


class TestResolveUser:
    async def test_session_wins_over_bearer(self, mock_db, issued_token):
        plain, _, _ = issued_token
        request = make_request(
            cookies={settings.auth_cookie_name: create_test_jwt(_USER_ID)},
            headers={"Authorization": f"Bearer {plain}"},
        )
        with (
            patch.object(UserRepository, "get_active", AsyncMock(return_value=_user())),
            patch.object(ApiTokenRepository, "get_by_prefix", AsyncMock()) as lookup,
        ):
            identity = await resolve_user(request, mock_db)

        assert identity is not None
        lookup.assert_not_awaited()

    async def test_falls_back_to_bearer(self, mock_db, issued_token):
        plain, prefix, token_hash = issued_token
        with (
            patch.object(
                ApiTokenRepository,
                "get_by_prefix",
                AsyncMock(return_value=_api_token(prefix, token_hash)),
            ),
            patch.object(ApiTokenRepository, "touch_last_used", AsyncMock()),
            patch.object(UserRepository, "get_active", AsyncMock(return_value=_user())),
        ):
            identity = await resolve_user(_bearer_request(plain), mock_db)
        assert identity is not None
        assert identity.user_id == _USER_ID
