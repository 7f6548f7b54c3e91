"""Project invitation endpoint.

Endpoint:
- POST /projects/{project_id}/invitations - invite by email (manage access)

A staff user of the caller's company is added to the project directly and
notified. Anyone else gets a pending invitation with an e-mailed link to
set up their account; only the token hash is stored. Users of other
companies are never looked up, so the response does not reveal whether
an address is registered elsewhere.
"""

import logging
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, EmailStr

from app.api.deps import CurrentUser, DbSession
from app.core.access import require_project_access
from app.core.auth import generate_login_token
from app.core.config import settings
from app.core.email import send_project_added_email, send_project_invitation_email
from app.core.errors import ConflictError, NotFoundError
from app.core.identifiers import ProjectId
from app.core.responses import DataResponse
from app.repositories.invitation_repository import InvitationRepository
from app.repositories.project_repository import ProjectRepository
from app.repositories.user_repository import UserRepository
from app.schemas.project import MemberRole, member_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()


class InvitationCreate(BaseModel):
    """Request body for POST /projects/{project_id}/invitations."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    role: MemberRole = "member"


@router.post("/{project_id}/invitations", status_code=201)
async def invite_to_project(
    project_id: ProjectId,
    body: InvitationCreate,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Add a colleague to the project or invite someone new.

    Returns:
        ``{"status": "added", "member": ...}`` for an existing colleague,
        ``{"status": "invited", "invitation": ...}`` otherwise.

    Raises:
        ConflictError: If the colleague is already a project member.
    """
    await require_project_access(db, identity, project_id, manage=True)

    project = await ProjectRepository.get_in_company(db, project_id, identity.company_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    inviter = await UserRepository.get_in_company(
        db, identity.user_id, identity.company_id
    )
    inviter_name = inviter.name if inviter is not None else None
    email = str(body.email).lower()

    colleague = await UserRepository.get_in_company_by_email(
        db, email, identity.company_id
    )
    if colleague is not None:
        if await ProjectRepository.get_member(db, project_id, colleague.id) is not None:
            raise ConflictError(
                code="MEMBER_ALREADY_EXISTS",
                message="User is already a member of this project",
            )
        member = await ProjectRepository.add_member(
            db, project_id, colleague.id, body.role
        )
        await db.commit()
        logger.info(
            "User %s added user %s to project %s by invitation",
            identity.user_id,
            colleague.id,
            project_id,
        )
        await send_project_added_email(
            to_email=colleague.email,
            inviter_name=inviter_name,
            project_title=project.title,
        )
        return DataResponse(
            data={"status": "added", "member": member_to_dict(member, colleague)}
        )

    await InvitationRepository.cancel_pending(db, project_id, email)
    plain_token, token_hash = generate_login_token()
    invitation = await InvitationRepository.create(
        db,
        company_id=identity.company_id,
        project_id=project_id,
        email=email,
        project_role=body.role,
        token_hash=token_hash,
        expires_at=datetime.now(UTC) + timedelta(days=settings.invitation_ttl_days),
        invited_by_id=identity.user_id,
    )
    await db.commit()
    logger.info(
        "User %s invited a new user to project %s", identity.user_id, project_id
    )
    await send_project_invitation_email(
        to_email=email,
        inviter_name=inviter_name,
        project_title=project.title,
        token=plain_token,
    )
    return DataResponse(
        data={
            "status": "invited",
            "invitation": {
                "id": invitation.id,
                "email": invitation.email,
                "role": invitation.project_role,
                "expires_at": invitation.expires_at.isoformat(),
            },
        }
    )
