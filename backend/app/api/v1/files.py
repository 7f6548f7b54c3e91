"""Project file endpoints (staff or portal client).

Mounted under /projects/{project_id}:
- GET /files - live files, newest first
- POST /files - register an uploaded file by URL
- DELETE /files/{file_id} - soft delete, staff only

Storage is external; these endpoints only track metadata.
"""

import logging

from fastapi import APIRouter

from app.api.deps import CurrentIdentity, DbSession
from app.core.access import require_project_access, verify_file_in_project
from app.core.errors import ForbiddenError, NotFoundError
from app.core.identifiers import FileId, ProjectId
from app.core.identity import ClientIdentity
from app.core.responses import DataResponse
from app.repositories.collaboration_repository import FileRepository
from app.schemas.project import FileRegister, file_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{project_id}/files")
async def list_files(
    project_id: ProjectId,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[list[dict]]:
    await require_project_access(db, identity, project_id)
    rows = await FileRepository.list_for_project(db, project_id)
    return DataResponse(data=[file_to_dict(r) for r in rows])


@router.post("/{project_id}/files", status_code=201)
async def register_file(
    project_id: ProjectId,
    body: FileRegister,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    """Record a file uploaded by the caller. Clients may share files too."""
    await require_project_access(db, identity, project_id, write=True)
    row = await FileRepository.create(
        db,
        project_id=project_id,
        uploader=identity,
        name=body.name,
        url=str(body.url),
        mime_type=body.mime_type,
        size=body.size,
    )
    await db.commit()
    return DataResponse(data=file_to_dict(row))


@router.delete("/{project_id}/files/{file_id}")
async def delete_file(
    project_id: ProjectId,
    file_id: FileId,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id, write=True)
    if isinstance(identity, ClientIdentity):
        raise ForbiddenError("Only staff can delete files")
    if not await verify_file_in_project(db, file_id, project_id):
        raise NotFoundError("File", file_id)

    row = await FileRepository.get_in_project(db, file_id, project_id)
    if row is None:
        raise NotFoundError("File", file_id)

    await FileRepository.soft_delete(db, row)
    await db.commit()
    logger.info("User %s deleted file %s", identity.user_id, file_id)
    return DataResponse(data={"id": file_id, "deleted": True})
