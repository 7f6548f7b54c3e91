"""Repository for staff User operations.

"Active" means the user is not soft-deleted, has a company, and that
company is not soft-deleted. Only active users may authenticate.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.company import Company
from app.models.user import User

# Fields that may be updated via UserRepository.update().
# Security: Never add 'id', 'email', 'role' or 'company_id'.
# - id: primary key, immutable
# - email: unique identity
# - role/company_id: privilege and tenant scope, changed only by admins
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "password_hash",
        "token_invalidated_before",
    }
)


class UserRepository:
    """Stateless repository for User table operations.

    All methods are static - no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_active(db: AsyncSession, user_id: int) -> User | None:
        """Fetch an active user (user and company present, not soft-deleted).

        Args:
            db: Async database session.
            user_id: Staff user primary key.

        Returns:
            User if active, None otherwise.
        """
        stmt = (
            select(User)
            .join(Company, Company.id == User.company_id)
            .where(
                User.id == user_id,
                User.soft_delete.is_(False),
                Company.soft_delete.is_(False),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active_by_email(db: AsyncSession, email: str) -> User | None:
        """Fetch an active user by email address (case-insensitive).

        Args:
            db: Async database session.
            email: Email address to look up.

        Returns:
            User if found and active, None otherwise.
        """
        stmt = (
            select(User)
            .join(Company, Company.id == User.company_id)
            .where(
                User.email == email.lower(),
                User.soft_delete.is_(False),
                Company.soft_delete.is_(False),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_in_company(
        db: AsyncSession, user_id: int, company_id: int
    ) -> User | None:
        """Fetch a non-deleted user belonging to the given company."""
        stmt = select(User).where(
            User.id == user_id,
            User.company_id == company_id,
            User.soft_delete.is_(False),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_in_company_by_email(
        db: AsyncSession, email: str, company_id: int
    ) -> User | None:
        """Fetch a non-deleted user of the given company by email (case-insensitive)."""
        stmt = select(User).where(
            User.email == email.lower(),
            User.company_id == company_id,
            User.soft_delete.is_(False),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_company(db: AsyncSession, company_id: int) -> list[User]:
        """List non-deleted users of a company, oldest first."""
        stmt = (
            select(User)
            .where(
                User.company_id == company_id,
                User.soft_delete.is_(False),
            )
            .order_by(User.created_at, User.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_admins(db: AsyncSession, company_id: int) -> int:
        stmt = select(func.count(User.id)).where(
            User.company_id == company_id,
            User.role == "admin",
            User.soft_delete.is_(False),
        )
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def update(
        db: AsyncSession,
        user_id: int,
        **kwargs: str | datetime | None,
    ) -> User | None:
        """Update user fields.

        Only fields in _UPDATABLE_FIELDS are allowed. Unknown field names
        raise ValueError.

        Args:
            db: Async database session.
            user_id: Primary key of the user to update.
            **kwargs: Field names and values to update.

        Returns:
            Updated User if found, None if user does not exist.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        user = await db.get(User, user_id)
        if user is None:
            return None

        for field, value in kwargs.items():
            setattr(user, field, value)

        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def set_role(db: AsyncSession, user: User, role: str) -> User:
        """Change a user's company role.

        Kept apart from update() so the admin-only check stays visible at
        the single call site.
        """
        user.role = role
        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def soft_delete(db: AsyncSession, user: User) -> None:
        user.soft_delete = True
        await db.flush()
