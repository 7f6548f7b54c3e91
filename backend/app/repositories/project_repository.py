"""Repository for Project, ProjectMember and ClientProject operations.

Every read filters on the caller's scope (company_id for staff, a
ClientProject row for portal clients) and on ``soft_delete = false``.
Authorization decisions live in app.core.access; this module only
performs scoped data access.
"""

from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.client import Client
from app.models.project import ClientProject, Project, ProjectMember
from app.models.user import User

# Fields that may be updated via ProjectRepository.update().
# Security: company_id and soft_delete are never client-writable.
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "start_date",
        "end_date",
        "color_code",
    }
)


class ProjectRepository:
    """Stateless repository for project-related tables."""

    # -----------------------------------------------------------------
    # Projects
    # -----------------------------------------------------------------

    @staticmethod
    async def list_for_company(
        db: AsyncSession, company_id: int, *, status: str | None = None
    ) -> list[Project]:
        """List non-deleted projects of a company, newest first."""
        stmt = select(Project).where(
            Project.company_id == company_id,
            Project.soft_delete.is_(False),
        )
        if status is not None:
            stmt = stmt.where(Project.status == status)
        stmt = stmt.order_by(Project.created_at.desc(), Project.id.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_client(db: AsyncSession, client_id: int) -> list[Project]:
        """List non-deleted projects a portal client is linked to."""
        stmt = (
            select(Project)
            .join(ClientProject, ClientProject.project_id == Project.id)
            .where(
                ClientProject.client_id == client_id,
                Project.soft_delete.is_(False),
            )
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_in_company(
        db: AsyncSession, project_id: int, company_id: int
    ) -> Project | None:
        stmt = select(Project).where(
            Project.id == project_id,
            Project.company_id == company_id,
            Project.soft_delete.is_(False),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_client(
        db: AsyncSession, project_id: int, client_id: int
    ) -> Project | None:
        stmt = (
            select(Project)
            .join(ClientProject, ClientProject.project_id == Project.id)
            .where(
                Project.id == project_id,
                ClientProject.client_id == client_id,
                Project.soft_delete.is_(False),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        company_id: int,
        creator_id: int,
        title: str,
        description: str | None = None,
        status: str = "active",
        priority: str = "medium",
        start_date: date | None = None,
        end_date: date | None = None,
        color_code: str | None = None,
    ) -> Project:
        """Create a project and add its creator as a project admin."""
        project = Project(
            company_id=company_id,
            title=title,
            description=description,
            status=status,
            priority=priority,
            start_date=start_date,
            end_date=end_date,
            color_code=color_code,
        )
        db.add(project)
        await db.flush()
        db.add(ProjectMember(project_id=project.id, user_id=creator_id, role="admin"))
        await db.flush()
        await db.refresh(project)
        return project

    @staticmethod
    async def update(
        db: AsyncSession, project: Project, **kwargs: str | date | None
    ) -> Project:
        """Apply allowed field changes to a project already fetched in scope.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        for field, value in kwargs.items():
            setattr(project, field, value)
        await db.flush()
        await db.refresh(project)
        return project

    @staticmethod
    async def soft_delete(db: AsyncSession, project: Project) -> None:
        project.soft_delete = True
        await db.flush()

    # -----------------------------------------------------------------
    # Staff membership
    # -----------------------------------------------------------------

    @staticmethod
    async def get_member(
        db: AsyncSession, project_id: int, user_id: int
    ) -> ProjectMember | None:
        stmt = select(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_members(
        db: AsyncSession, project_id: int
    ) -> list[tuple[ProjectMember, User]]:
        """List staff members of a project with their (non-deleted) user rows."""
        stmt = (
            select(ProjectMember, User)
            .join(User, User.id == ProjectMember.user_id)
            .where(
                ProjectMember.project_id == project_id,
                User.soft_delete.is_(False),
            )
            .order_by(ProjectMember.id)
        )
        result = await db.execute(stmt)
        return [(member, user) for member, user in result.all()]

    @staticmethod
    async def count_members(db: AsyncSession, project_id: int) -> int:
        stmt = select(func.count(ProjectMember.id)).where(
            ProjectMember.project_id == project_id
        )
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def count_admins(db: AsyncSession, project_id: int) -> int:
        stmt = select(func.count(ProjectMember.id)).where(
            ProjectMember.project_id == project_id,
            ProjectMember.role == "admin",
        )
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def add_member(
        db: AsyncSession, project_id: int, user_id: int, role: str
    ) -> ProjectMember:
        """Add a staff member. The caller checks get_member() first.

        Raises:
            sqlalchemy.exc.IntegrityError: If the user is already a member.
        """
        member = ProjectMember(project_id=project_id, user_id=user_id, role=role)
        db.add(member)
        await db.flush()
        await db.refresh(member)
        return member

    @staticmethod
    async def set_member_role(
        db: AsyncSession, member: ProjectMember, role: str
    ) -> ProjectMember:
        member.role = role
        await db.flush()
        await db.refresh(member)
        return member

    @staticmethod
    async def remove_member(db: AsyncSession, member: ProjectMember) -> None:
        await db.delete(member)
        await db.flush()

    # -----------------------------------------------------------------
    # Client links
    # -----------------------------------------------------------------

    @staticmethod
    async def list_clients(db: AsyncSession, project_id: int) -> list[Client]:
        """List non-deleted clients linked to a project."""
        stmt = (
            select(Client)
            .join(ClientProject, ClientProject.client_id == Client.id)
            .where(
                ClientProject.project_id == project_id,
                Client.soft_delete.is_(False),
            )
            .order_by(Client.name, Client.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def link_client(
        db: AsyncSession, project_id: int, client_id: int
    ) -> tuple[ClientProject, bool]:
        """Link a client to a project.

        Returns:
            (link, created) where created is False if the link already existed.
        """
        stmt = select(ClientProject).where(
            ClientProject.project_id == project_id,
            ClientProject.client_id == client_id,
        )
        existing = (await db.execute(stmt)).scalar_one_or_none()
        if existing is not None:
            return existing, False
        link = ClientProject(project_id=project_id, client_id=client_id)
        db.add(link)
        await db.flush()
        return link, True

    @staticmethod
    async def unlink_client(db: AsyncSession, project_id: int, client_id: int) -> bool:
        """Remove a client link. Returns False if there was nothing to remove."""
        stmt = delete(ClientProject).where(
            ClientProject.project_id == project_id,
            ClientProject.client_id == client_id,
        )
        result = await db.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]
