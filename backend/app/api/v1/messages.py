"""Project message endpoints (staff or portal client).

Mounted under /projects/{project_id}:
- GET /messages - conversation, oldest first
- POST /messages - post a message, optionally replying to another one
"""

from fastapi import APIRouter

from app.api.deps import CurrentIdentity, DbSession
from app.core.access import require_project_access, verify_message_in_project
from app.core.errors import NotFoundError
from app.core.identifiers import ProjectId
from app.core.responses import DataResponse
from app.repositories.collaboration_repository import MessageRepository
from app.schemas.project import MessageCreate, message_to_dict

router = APIRouter()


@router.get("/{project_id}/messages")
async def list_messages(
    project_id: ProjectId,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[list[dict]]:
    await require_project_access(db, identity, project_id)
    rows = await MessageRepository.list_for_project(db, project_id)
    return DataResponse(data=[message_to_dict(r) for r in rows])


@router.post("/{project_id}/messages", status_code=201)
async def post_message(
    project_id: ProjectId,
    body: MessageCreate,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    """Post a message as the caller.

    A ``reply_to_id`` must name a live message of the same project.
    """
    await require_project_access(db, identity, project_id, write=True)
    if body.reply_to_id is not None and not await verify_message_in_project(
        db, body.reply_to_id, project_id
    ):
        raise NotFoundError("Message", body.reply_to_id)

    row = await MessageRepository.create(
        db,
        project_id=project_id,
        author=identity,
        content=body.content,
        reply_to_id=body.reply_to_id,
    )
    await db.commit()
    return DataResponse(data=message_to_dict(row))
