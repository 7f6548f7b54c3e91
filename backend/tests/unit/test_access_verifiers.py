"""Tests for access verifiers and check_project_access().

Runs against PostgreSQL with the two-tenant seed from tests/conftest.py.
"""

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import (
    check_project_access,
    require_project_access,
    verify_board_in_project,
    verify_client_invoice_access,
    verify_client_project_access,
    verify_client_quote_access,
    verify_user_invoice_access,
    verify_user_project_access,
    verify_user_quote_access,
)
from app.core.errors import ForbiddenError, NotFoundError
from app.core.identity import ClientIdentity, UserIdentity
from app.models.project import Project
from tests.conftest import (
    ADMIN_A_ID,
    BOARD_A_ID,
    BOARD_B_ID,
    CLIENT_A_ID,
    CLIENT_B_ID,
    COMPANY_A_ID,
    COMPANY_B_ID,
    INVOICE_A_ID,
    INVOICE_B_ID,
    OUTSIDER_A_ID,
    PROJECT_A_ID,
    PROJECT_B_ID,
    QUOTE_B_ID,
    STAFF_A_ID,
    STAFF_B_ID,
    VIEWER_A_ID,
)

pytestmark = pytest.mark.usefixtures("seed_tenants")

_ADMIN_A = UserIdentity(user_id=ADMIN_A_ID, company_id=COMPANY_A_ID, role="admin")
_STAFF_A = UserIdentity(user_id=STAFF_A_ID, company_id=COMPANY_A_ID, role="staff")
_VIEWER_A = UserIdentity(user_id=VIEWER_A_ID, company_id=COMPANY_A_ID, role="staff")
_OUTSIDER_A = UserIdentity(user_id=OUTSIDER_A_ID, company_id=COMPANY_A_ID, role="staff")
_STAFF_B = UserIdentity(user_id=STAFF_B_ID, company_id=COMPANY_B_ID, role="admin")
_CLIENT_A = ClientIdentity(client_id=CLIENT_A_ID)


# =============================================================================
# Boolean verifiers
# =============================================================================


class TestProjectVerifiers:
    async def test_user_verifier_is_company_scoped(self, db_session: AsyncSession):
        assert await verify_user_project_access(db_session, PROJECT_A_ID, COMPANY_A_ID)
        assert not await verify_user_project_access(
            db_session, PROJECT_B_ID, COMPANY_A_ID
        )

    async def test_client_verifier_requires_link(self, db_session: AsyncSession):
        assert await verify_client_project_access(db_session, PROJECT_A_ID, CLIENT_A_ID)
        assert not await verify_client_project_access(
            db_session, PROJECT_B_ID, CLIENT_A_ID
        )

    async def test_missing_project_is_false(self, db_session: AsyncSession):
        assert not await verify_user_project_access(db_session, 999_999, COMPANY_A_ID)
        assert not await verify_client_project_access(db_session, 999_999, CLIENT_A_ID)

    async def test_soft_deleted_project_is_false_for_everyone(
        self, db_session: AsyncSession
    ):
        await db_session.execute(
            update(Project).where(Project.id == PROJECT_A_ID).values(soft_delete=True)
        )
        assert not await verify_user_project_access(
            db_session, PROJECT_A_ID, COMPANY_A_ID
        )
        assert not await verify_client_project_access(
            db_session, PROJECT_A_ID, CLIENT_A_ID
        )

    async def test_verifiers_are_repeatable(self, db_session: AsyncSession):
        results = [
            await verify_user_project_access(db_session, PROJECT_A_ID, COMPANY_A_ID)
            for _ in range(3)
        ]
        assert results == [True, True, True]


class TestBillingVerifiers:
    async def test_invoice_scoping(self, db_session: AsyncSession):
        assert await verify_user_invoice_access(db_session, INVOICE_A_ID, COMPANY_A_ID)
        assert not await verify_user_invoice_access(
            db_session, INVOICE_B_ID, COMPANY_A_ID
        )
        assert await verify_client_invoice_access(db_session, INVOICE_B_ID, CLIENT_B_ID)
        assert not await verify_client_invoice_access(
            db_session, INVOICE_B_ID, CLIENT_A_ID
        )

    async def test_quote_scoping(self, db_session: AsyncSession):
        assert await verify_user_quote_access(db_session, QUOTE_B_ID, COMPANY_B_ID)
        assert not await verify_user_quote_access(db_session, QUOTE_B_ID, COMPANY_A_ID)
        assert await verify_client_quote_access(db_session, QUOTE_B_ID, CLIENT_B_ID)
        assert not await verify_client_quote_access(db_session, QUOTE_B_ID, CLIENT_A_ID)


class TestChildVerifiers:
    async def test_board_must_belong_to_project(self, db_session: AsyncSession):
        assert await verify_board_in_project(db_session, BOARD_A_ID, PROJECT_A_ID)
        assert not await verify_board_in_project(db_session, BOARD_B_ID, PROJECT_A_ID)


# =============================================================================
# check_project_access()
# =============================================================================


class TestCheckProjectAccess:
    @pytest.mark.parametrize(
        ("identity", "write", "manage", "outcome"),
        [
            (_ADMIN_A, False, False, "granted"),
            (_ADMIN_A, True, True, "granted"),
            (_STAFF_A, False, False, "granted"),
            (_STAFF_A, True, False, "granted"),
            (_STAFF_A, False, True, "forbidden"),
            (_VIEWER_A, False, False, "granted"),
            (_VIEWER_A, True, False, "forbidden"),
            (_OUTSIDER_A, False, False, "forbidden"),
            (_STAFF_B, False, False, "not_found"),
            (_CLIENT_A, False, False, "granted"),
            (_CLIENT_A, True, False, "granted"),
            (_CLIENT_A, False, True, "forbidden"),
        ],
    )
    async def test_outcomes_on_project_a(
        self, db_session: AsyncSession, identity, write, manage, outcome
    ):
        result = await check_project_access(
            db_session, identity, PROJECT_A_ID, write=write, manage=manage
        )
        assert result.outcome == outcome
        assert result.project_id == PROJECT_A_ID

    async def test_member_role_reported(self, db_session: AsyncSession):
        result = await check_project_access(db_session, _VIEWER_A, PROJECT_A_ID)
        assert result.member_role == "viewer"

    async def test_other_tenant_project_is_not_found(self, db_session: AsyncSession):
        """Client A cannot learn that project 42 exists."""
        result = await check_project_access(db_session, _CLIENT_A, PROJECT_B_ID)
        assert result.outcome == "not_found"
        assert not result.granted

    async def test_deleted_project_is_not_found_even_for_admin(
        self, db_session: AsyncSession
    ):
        await db_session.execute(
            update(Project).where(Project.id == PROJECT_A_ID).values(soft_delete=True)
        )
        result = await check_project_access(db_session, _ADMIN_A, PROJECT_A_ID)
        assert result.outcome == "not_found"


class TestRequireProjectAccess:
    async def test_not_found_raises_404(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError) as exc_info:
            await require_project_access(db_session, _STAFF_A, PROJECT_B_ID)
        assert exc_info.value.status_code == 404

    async def test_forbidden_raises_403(self, db_session: AsyncSession):
        with pytest.raises(ForbiddenError):
            await require_project_access(
                db_session, _VIEWER_A, PROJECT_A_ID, write=True
            )

    async def test_granted_returns_result(self, db_session: AsyncSession):
        result = await require_project_access(db_session, _STAFF_A, PROJECT_A_ID)
        assert result.granted
        assert result.member_role == "member"
