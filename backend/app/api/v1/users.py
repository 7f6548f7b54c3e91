"""Company staff user endpoints.

Endpoints:
- GET /users - users of the caller's company
- GET /users/{user_id} - one user of the caller's company
- PATCH /users/{user_id} - update name (self or admin) and role (admin only)
- DELETE /users/{user_id} - soft delete (admin only, never yourself)

Users of other companies are a 404. Soft-deleted users can no longer
authenticate; their sessions and API tokens stop resolving.
"""

import logging

from fastapi import APIRouter

from app.api.deps import CurrentUser, DbSession
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.core.identifiers import UserId
from app.core.responses import DataResponse
from app.repositories.user_repository import UserRepository
from app.schemas.user import UserUpdate, user_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_users(identity: CurrentUser, db: DbSession) -> DataResponse[list[dict]]:
    users = await UserRepository.list_for_company(db, identity.company_id)
    return DataResponse(data=[user_to_dict(u) for u in users])


@router.get("/{user_id}")
async def get_user(
    user_id: UserId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    user = await UserRepository.get_in_company(db, user_id, identity.company_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return DataResponse(data=user_to_dict(user))


@router.patch("/{user_id}")
async def update_user(
    user_id: UserId,
    body: UserUpdate,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Update a user of the caller's company.

    Raises:
        NotFoundError: If the user is not in the caller's company.
        ForbiddenError: If a non-admin edits someone else or changes a role.
        ConflictError: If the change would leave the company without an admin.
    """
    user = await UserRepository.get_in_company(db, user_id, identity.company_id)
    if user is None:
        raise NotFoundError("User", user_id)

    changes = body.model_dump(exclude_unset=True)
    if user.id != identity.user_id and not identity.is_admin:
        raise ForbiddenError("You can only update your own profile")
    if "role" in changes and changes["role"] != user.role:
        if not identity.is_admin:
            raise ForbiddenError("Only company admins can change roles")
        if (
            user.role == "admin"
            and await UserRepository.count_admins(db, identity.company_id) <= 1
        ):
            raise ConflictError(
                code="LAST_COMPANY_ADMIN",
                message="A company must keep at least one admin",
            )
        user = await UserRepository.set_role(db, user, changes["role"])
        logger.info(
            "User %s changed role of user %s to %s",
            identity.user_id,
            user.id,
            changes["role"],
        )
    changes.pop("role", None)

    if changes:
        user = await UserRepository.update(db, user.id, **changes)
    await db.commit()
    return DataResponse(data=user_to_dict(user))


@router.delete("/{user_id}")
async def delete_user(
    user_id: UserId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Soft-delete a user. Company admins only."""
    if user_id == identity.user_id:
        raise ValidationError("You cannot delete your own account")
    if not identity.is_admin:
        raise ForbiddenError("Only company admins can delete users")

    user = await UserRepository.get_in_company(db, user_id, identity.company_id)
    if user is None:
        raise NotFoundError("User", user_id)

    await UserRepository.soft_delete(db, user)
    await db.commit()
    logger.info("User %s deleted user %s", identity.user_id, user_id)
    return DataResponse(data={"id": user_id, "deleted": True})
