"""Project endpoints.

Staff only:
- GET /projects - company projects (optional ?status=)
- POST /projects - create; the creator becomes a project admin
- GET /projects/{project_id} - detail with members and linked clients
- PATCH /projects/{project_id} - update fields (write access)
- DELETE /projects/{project_id} - soft delete (manage access)
- GET /projects/{project_id}/clients - linked clients
- POST /projects/{project_id}/clients - link a client of the same company
- DELETE /projects/{project_id}/clients/{client_id} - unlink a client
- POST /projects/{project_id}/members - add a staff member (409 if present)
- PATCH /projects/{project_id}/members/{user_id} - change a member role
- DELETE /projects/{project_id}/members/{user_id} - remove a member

Staff or portal client:
- GET /projects/{project_id}/members - staff members of the project

Access is decided by app.core.access; a project outside the caller's
company or client links is a 404.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentIdentity, CurrentUser, DbSession
from app.core.access import require_project_access
from app.core.errors import ConflictError, NotFoundError
from app.core.identifiers import ClientId, ProjectId, UserId
from app.core.responses import DataResponse
from app.models.project import ProjectMember
from app.models.user import User
from app.repositories.client_repository import ClientRepository
from app.repositories.project_repository import ProjectRepository
from app.repositories.user_repository import UserRepository
from app.schemas.project import (
    ProjectClientLink,
    ProjectCreate,
    ProjectMemberAdd,
    ProjectMemberRoleUpdate,
    ProjectStatus,
    ProjectUpdate,
    client_to_dict,
    member_to_dict,
    project_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ===================================================================
# Projects
# ===================================================================


@router.get("")
async def list_projects(
    identity: CurrentUser,
    db: DbSession,
    status: Annotated[ProjectStatus | None, Query()] = None,
) -> DataResponse[list[dict]]:
    projects = await ProjectRepository.list_for_company(
        db, identity.company_id, status=status
    )
    return DataResponse(data=[project_to_dict(p) for p in projects])


@router.post("", status_code=201)
async def create_project(
    body: ProjectCreate,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Create a project in the caller's company.

    When ``client_id`` is given the client must belong to the same company
    and is linked to the new project.
    """
    if body.client_id is not None:
        client = await ClientRepository.get_in_company(
            db, body.client_id, identity.company_id
        )
        if client is None:
            raise NotFoundError("Client", body.client_id)

    project = await ProjectRepository.create(
        db,
        company_id=identity.company_id,
        creator_id=identity.user_id,
        **body.model_dump(exclude={"client_id"}),
    )
    if body.client_id is not None:
        await ProjectRepository.link_client(db, project.id, body.client_id)
    await db.commit()

    logger.info("User %s created project %s", identity.user_id, project.id)
    return DataResponse(data=project_to_dict(project))


@router.get("/{project_id}")
async def get_project(
    project_id: ProjectId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    access = await require_project_access(db, identity, project_id)

    project = await ProjectRepository.get_in_company(db, project_id, identity.company_id)
    if project is None:
        raise NotFoundError("Project", project_id)

    data = project_to_dict(project)
    data["my_role"] = access.member_role
    data["member_count"] = await ProjectRepository.count_members(db, project_id)
    data["members"] = [
        member_to_dict(member, user)
        for member, user in await ProjectRepository.list_members(db, project_id)
    ]
    data["clients"] = [
        client_to_dict(c) for c in await ProjectRepository.list_clients(db, project_id)
    ]
    return DataResponse(data=data)


@router.patch("/{project_id}")
async def update_project(
    project_id: ProjectId,
    body: ProjectUpdate,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id, write=True)

    project = await ProjectRepository.get_in_company(db, project_id, identity.company_id)
    if project is None:
        raise NotFoundError("Project", project_id)

    project = await ProjectRepository.update(
        db, project, **body.model_dump(exclude_unset=True)
    )
    await db.commit()
    return DataResponse(data=project_to_dict(project))


@router.delete("/{project_id}")
async def delete_project(
    project_id: ProjectId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Soft-delete a project. Requires company admin or project admin."""
    await require_project_access(db, identity, project_id, manage=True)

    project = await ProjectRepository.get_in_company(db, project_id, identity.company_id)
    if project is None:
        raise NotFoundError("Project", project_id)

    await ProjectRepository.soft_delete(db, project)
    await db.commit()
    logger.info("User %s deleted project %s", identity.user_id, project_id)
    return DataResponse(data={"id": project_id, "deleted": True})


# ===================================================================
# Client links
# ===================================================================


@router.get("/{project_id}/clients")
async def list_project_clients(
    project_id: ProjectId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[list[dict]]:
    await require_project_access(db, identity, project_id)
    clients = await ProjectRepository.list_clients(db, project_id)
    return DataResponse(data=[client_to_dict(c) for c in clients])


@router.post("/{project_id}/clients", status_code=201)
async def link_project_client(
    project_id: ProjectId,
    body: ProjectClientLink,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Give a client of the same company portal access to the project."""
    await require_project_access(db, identity, project_id, write=True)

    client = await ClientRepository.get_in_company(db, body.client_id, identity.company_id)
    if client is None:
        raise NotFoundError("Client", body.client_id)

    _, created = await ProjectRepository.link_client(db, project_id, client.id)
    if not created:
        raise ConflictError(
            code="CLIENT_ALREADY_LINKED",
            message="Client is already linked to this project",
        )
    await db.commit()
    return DataResponse(data=client_to_dict(client))


@router.delete("/{project_id}/clients/{client_id}")
async def unlink_project_client(
    project_id: ProjectId,
    client_id: ClientId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id, write=True)

    client = await ClientRepository.get_in_company(db, client_id, identity.company_id)
    if client is None or not await ProjectRepository.unlink_client(
        db, project_id, client_id
    ):
        raise NotFoundError("Client", client_id)
    await db.commit()
    return DataResponse(data={"project_id": project_id, "client_id": client_id})


# ===================================================================
# Members
# ===================================================================


@router.get("/{project_id}/members")
async def list_project_members(
    project_id: ProjectId,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[list[dict]]:
    """Staff members of the project. Open to staff and linked clients."""
    await require_project_access(db, identity, project_id)
    members = await ProjectRepository.list_members(db, project_id)
    return DataResponse(data=[member_to_dict(m, u) for m, u in members])


@router.post("/{project_id}/members", status_code=201)
async def add_project_member(
    project_id: ProjectId,
    body: ProjectMemberAdd,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Add a staff member of the caller's company to the project.

    Raises:
        ConflictError: If the user is already a member. Use PATCH to
            change their role.
    """
    await require_project_access(db, identity, project_id, manage=True)

    user = await UserRepository.get_in_company(db, body.user_id, identity.company_id)
    if user is None:
        raise NotFoundError("User", body.user_id)
    if await ProjectRepository.get_member(db, project_id, user.id) is not None:
        raise ConflictError(
            code="MEMBER_ALREADY_EXISTS",
            message="User is already a member of this project",
        )

    member = await ProjectRepository.add_member(db, project_id, user.id, body.role)
    await db.commit()
    logger.info(
        "User %s added user %s to project %s", identity.user_id, user.id, project_id
    )
    return DataResponse(data=member_to_dict(member, user))


async def _get_member_or_404(
    db: AsyncSession, project_id: int, user_id: int, company_id: int
) -> tuple[ProjectMember, User]:
    user = await UserRepository.get_in_company(db, user_id, company_id)
    if user is None:
        raise NotFoundError("Project member", user_id)
    member = await ProjectRepository.get_member(db, project_id, user_id)
    if member is None:
        raise NotFoundError("Project member", user_id)
    return member, user


async def _guard_last_admin(
    db: AsyncSession, project_id: int, member: ProjectMember
) -> None:
    # A project that has project admins keeps at least one
    if member.role != "admin":
        return
    if await ProjectRepository.count_admins(db, project_id) <= 1:
        raise ConflictError(
            code="LAST_PROJECT_ADMIN",
            message="Cannot remove or demote the last project admin",
        )


@router.patch("/{project_id}/members/{user_id}")
async def update_project_member(
    project_id: ProjectId,
    user_id: UserId,
    body: ProjectMemberRoleUpdate,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Change a member's project role."""
    await require_project_access(db, identity, project_id, manage=True)

    member, user = await _get_member_or_404(db, project_id, user_id, identity.company_id)
    if body.role != "admin":
        await _guard_last_admin(db, project_id, member)

    member = await ProjectRepository.set_member_role(db, member, body.role)
    await db.commit()
    return DataResponse(data=member_to_dict(member, user))


@router.delete("/{project_id}/members/{user_id}")
async def remove_project_member(
    project_id: ProjectId,
    user_id: UserId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Remove a staff member from the project."""
    await require_project_access(db, identity, project_id, manage=True)

    member, _ = await _get_member_or_404(db, project_id, user_id, identity.company_id)
    await _guard_last_admin(db, project_id, member)

    await ProjectRepository.remove_member(db, member)
    await db.commit()
    logger.info(
        "User %s removed user %s from project %s", identity.user_id, user_id, project_id
    )
    return DataResponse(data={"project_id": project_id, "user_id": user_id})
