"""Repository for project files and messages.

Both are authored by either a staff user or a portal client, never both.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identity import ClientIdentity, Identity
from app.models.project import ProjectFile, ProjectMessage


def _author_columns(identity: Identity) -> tuple[int | None, int | None]:
    """Return (user_id, client_id) for the author of a new row."""
    if isinstance(identity, ClientIdentity):
        return None, identity.client_id
    return identity.user_id, None


class FileRepository:
    """Stateless repository for ProjectFile table operations."""

    @staticmethod
    async def list_for_project(db: AsyncSession, project_id: int) -> list[ProjectFile]:
        stmt = (
            select(ProjectFile)
            .where(
                ProjectFile.project_id == project_id,
                ProjectFile.soft_delete.is_(False),
            )
            .order_by(ProjectFile.created_at.desc(), ProjectFile.id.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_in_project(
        db: AsyncSession, file_id: int, project_id: int
    ) -> ProjectFile | None:
        stmt = select(ProjectFile).where(
            ProjectFile.id == file_id,
            ProjectFile.project_id == project_id,
            ProjectFile.soft_delete.is_(False),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        project_id: int,
        uploader: Identity,
        name: str,
        url: str,
        mime_type: str | None = None,
        size: int | None = None,
    ) -> ProjectFile:
        user_id, client_id = _author_columns(uploader)
        row = ProjectFile(
            project_id=project_id,
            uploaded_by_id=user_id,
            uploaded_by_client_id=client_id,
            name=name,
            url=url,
            mime_type=mime_type,
            size=size,
        )
        db.add(row)
        await db.flush()
        await db.refresh(row)
        return row

    @staticmethod
    async def soft_delete(db: AsyncSession, row: ProjectFile) -> None:
        row.soft_delete = True
        await db.flush()


class MessageRepository:
    """Stateless repository for ProjectMessage table operations."""

    @staticmethod
    async def list_for_project(
        db: AsyncSession, project_id: int
    ) -> list[ProjectMessage]:
        """List live messages oldest first (conversation order)."""
        stmt = (
            select(ProjectMessage)
            .where(
                ProjectMessage.project_id == project_id,
                ProjectMessage.soft_delete.is_(False),
            )
            .order_by(ProjectMessage.created_at, ProjectMessage.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        project_id: int,
        author: Identity,
        content: str,
        reply_to_id: int | None = None,
    ) -> ProjectMessage:
        """Post a message. ``reply_to_id`` must already be verified in-project."""
        user_id, client_id = _author_columns(author)
        row = ProjectMessage(
            project_id=project_id,
            user_id=user_id,
            client_id=client_id,
            content=content,
            reply_to_id=reply_to_id,
        )
        db.add(row)
        await db.flush()
        await db.refresh(row)
        return row
