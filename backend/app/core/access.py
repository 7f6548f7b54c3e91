"""Access verifiers for company- and client-scoped resources.

Every verifier checks existence AND scope AND not-deleted in a single
query and returns a bool. Verifiers are read-only and side-effect free,
so they are safe to call any number of times per request.

check_project_access() composes them into a tagged AccessResult that all
project-scoped handlers consume uniformly:

    Client  -> ClientProject membership on a live project, else not_found
    Staff   -> project in caller's company, else not_found
               company admin               -> granted
               no ProjectMember row        -> forbidden
               viewer + write              -> forbidden
               manage and not project admin -> forbidden

Scope-hiding: a project in another tenant is always not_found, never
forbidden, so existence never leaks across tenants.

Usage:
    access = await check_project_access(db, identity, project_id, write=True)
    access.raise_for_outcome()
"""

from dataclasses import dataclass
from typing import Literal

from sqlalchemy import and_, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ForbiddenError, NotFoundError
from app.core.identity import ClientIdentity, Identity
from app.models.billing import Invoice, Quote
from app.models.project import (
    Board,
    Card,
    ClientProject,
    Project,
    ProjectFile,
    ProjectMember,
    ProjectMessage,
)

AccessOutcome = Literal["granted", "not_found", "forbidden"]


async def _exists(db: AsyncSession, *criteria) -> bool:
    result = await db.execute(select(exists().where(*criteria)))
    return bool(result.scalar())


# ===================================================================
# Project scope
# ===================================================================


async def verify_user_project_access(
    db: AsyncSession, project_id: int, company_id: int
) -> bool:
    """True iff the project exists, belongs to the company, and is not deleted."""
    return await _exists(
        db,
        Project.id == project_id,
        Project.company_id == company_id,
        Project.soft_delete.is_(False),
    )


async def verify_client_project_access(
    db: AsyncSession, project_id: int, client_id: int
) -> bool:
    """True iff a membership row links the client to a live project."""
    return await _exists(
        db,
        ClientProject.project_id == project_id,
        ClientProject.client_id == client_id,
        Project.id == ClientProject.project_id,
        Project.soft_delete.is_(False),
    )


# ===================================================================
# Billing documents
# ===================================================================


async def verify_user_invoice_access(
    db: AsyncSession, invoice_id: int, company_id: int
) -> bool:
    return await _exists(
        db,
        Invoice.id == invoice_id,
        Invoice.company_id == company_id,
        Invoice.soft_delete.is_(False),
    )


async def verify_client_invoice_access(
    db: AsyncSession, invoice_id: int, client_id: int
) -> bool:
    return await _exists(
        db,
        Invoice.id == invoice_id,
        Invoice.client_id == client_id,
        Invoice.soft_delete.is_(False),
    )


async def verify_user_quote_access(
    db: AsyncSession, quote_id: int, company_id: int
) -> bool:
    return await _exists(
        db,
        Quote.id == quote_id,
        Quote.company_id == company_id,
        Quote.soft_delete.is_(False),
    )


async def verify_client_quote_access(
    db: AsyncSession, quote_id: int, client_id: int
) -> bool:
    return await _exists(
        db,
        Quote.id == quote_id,
        Quote.client_id == client_id,
        Quote.soft_delete.is_(False),
    )


# ===================================================================
# Project children
# ===================================================================
# These only confirm the child belongs to the project. The project itself
# must already have passed check_project_access().


async def verify_board_in_project(
    db: AsyncSession, board_id: int, project_id: int
) -> bool:
    return await _exists(
        db,
        Board.id == board_id,
        Board.project_id == project_id,
        Board.soft_delete.is_(False),
    )


async def verify_card_in_project(
    db: AsyncSession, card_id: int, project_id: int
) -> bool:
    """True iff the card is live and sits on a live board of the project."""
    return await _exists(
        db,
        Card.id == card_id,
        Card.soft_delete.is_(False),
        Board.id == Card.board_id,
        Board.project_id == project_id,
        Board.soft_delete.is_(False),
    )


async def verify_file_in_project(
    db: AsyncSession, file_id: int, project_id: int
) -> bool:
    return await _exists(
        db,
        ProjectFile.id == file_id,
        ProjectFile.project_id == project_id,
        ProjectFile.soft_delete.is_(False),
    )


async def verify_message_in_project(
    db: AsyncSession, message_id: int, project_id: int
) -> bool:
    return await _exists(
        db,
        ProjectMessage.id == message_id,
        ProjectMessage.project_id == project_id,
        ProjectMessage.soft_delete.is_(False),
    )


# ===================================================================
# Tagged project access
# ===================================================================


@dataclass(frozen=True, slots=True)
class AccessResult:
    """Outcome of a project access check.

    Attributes:
        outcome: granted, not_found or forbidden.
        project_id: The project that was checked.
        member_role: Caller's ProjectMember role, when one exists.
    """

    outcome: AccessOutcome
    project_id: int
    member_role: str | None = None

    @property
    def granted(self) -> bool:
        return self.outcome == "granted"

    def raise_for_outcome(self) -> None:
        """Raise NotFoundError or ForbiddenError unless access was granted."""
        if self.outcome == "not_found":
            raise NotFoundError("Project", self.project_id)
        if self.outcome == "forbidden":
            raise ForbiddenError()


async def check_project_access(
    db: AsyncSession,
    identity: Identity,
    project_id: int,
    *,
    write: bool = False,
    manage: bool = False,
) -> AccessResult:
    """Authorize an identity against a project.

    Args:
        db: Async database session.
        identity: Resolved caller.
        project_id: Project to check.
        write: The operation mutates project content.
        manage: The operation changes project membership or settings
            (implies write). Clients can never manage.

    Returns:
        AccessResult with the outcome. Never raises for denials.
    """
    if isinstance(identity, ClientIdentity):
        if not await verify_client_project_access(db, project_id, identity.client_id):
            return AccessResult("not_found", project_id)
        if manage:
            return AccessResult("forbidden", project_id)
        return AccessResult("granted", project_id)

    # Staff: company scope and membership role in one round-trip
    stmt = (
        select(Project.id, ProjectMember.role)
        .outerjoin(
            ProjectMember,
            and_(
                ProjectMember.project_id == Project.id,
                ProjectMember.user_id == identity.user_id,
            ),
        )
        .where(
            Project.id == project_id,
            Project.company_id == identity.company_id,
            Project.soft_delete.is_(False),
        )
    )
    row = (await db.execute(stmt)).first()
    if row is None:
        return AccessResult("not_found", project_id)

    member_role: str | None = row[1]
    if identity.is_admin:
        return AccessResult("granted", project_id, member_role)
    if member_role is None:
        return AccessResult("forbidden", project_id)
    if manage and member_role != "admin":
        return AccessResult("forbidden", project_id, member_role)
    if (write or manage) and member_role == "viewer":
        return AccessResult("forbidden", project_id, member_role)
    return AccessResult("granted", project_id, member_role)


async def require_project_access(
    db: AsyncSession,
    identity: Identity,
    project_id: int,
    *,
    write: bool = False,
    manage: bool = False,
) -> AccessResult:
    """check_project_access() that raises on denial.

    Raises:
        NotFoundError: Project outside the caller's scope.
        ForbiddenError: In scope but lacking the required project role.
    """
    access = await check_project_access(
        db, identity, project_id, write=write, manage=manage
    )
    access.raise_for_outcome()
    return access
