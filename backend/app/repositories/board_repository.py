"""Repository for Kanban Board and Card operations.

Callers verify that the parent project is in scope first
(app.core.access); these methods then scope by project_id so a board or
card from another project is never returned.
"""

from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Board, Card

_CARD_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "description",
        "priority",
        "start_date",
        "due_date",
        "completed_at",
    }
)


class BoardRepository:
    """Stateless repository for Board table operations."""

    @staticmethod
    async def list_for_project(db: AsyncSession, project_id: int) -> list[Board]:
        stmt = (
            select(Board)
            .where(Board.project_id == project_id, Board.soft_delete.is_(False))
            .order_by(Board.position, Board.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_in_project(
        db: AsyncSession, board_id: int, project_id: int
    ) -> Board | None:
        stmt = select(Board).where(
            Board.id == board_id,
            Board.project_id == project_id,
            Board.soft_delete.is_(False),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession, *, project_id: int, title: str, position: int | None = None
    ) -> Board:
        """Create a board. Without an explicit position it is appended last."""
        if position is None:
            stmt = select(func.coalesce(func.max(Board.position) + 1, 0)).where(
                Board.project_id == project_id,
                Board.soft_delete.is_(False),
            )
            position = (await db.execute(stmt)).scalar_one()
        board = Board(project_id=project_id, title=title, position=position)
        db.add(board)
        await db.flush()
        await db.refresh(board)
        return board

    @staticmethod
    async def update(
        db: AsyncSession,
        board: Board,
        *,
        title: str | None = None,
        position: int | None = None,
    ) -> Board:
        if title is not None:
            board.title = title
        if position is not None:
            board.position = position
        await db.flush()
        await db.refresh(board)
        return board

    @staticmethod
    async def soft_delete(db: AsyncSession, board: Board) -> None:
        board.soft_delete = True
        await db.flush()


class CardRepository:
    """Stateless repository for Card table operations."""

    @staticmethod
    async def list_for_project(
        db: AsyncSession, project_id: int, *, board_id: int | None = None
    ) -> list[Card]:
        """List live cards on live boards of a project, optionally one board."""
        stmt = (
            select(Card)
            .join(Board, Board.id == Card.board_id)
            .where(
                Board.project_id == project_id,
                Board.soft_delete.is_(False),
                Card.soft_delete.is_(False),
            )
        )
        if board_id is not None:
            stmt = stmt.where(Card.board_id == board_id)
        stmt = stmt.order_by(Card.board_id, Card.position, Card.id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_in_project(
        db: AsyncSession, card_id: int, project_id: int
    ) -> Card | None:
        stmt = (
            select(Card)
            .join(Board, Board.id == Card.board_id)
            .where(
                Card.id == card_id,
                Board.project_id == project_id,
                Board.soft_delete.is_(False),
                Card.soft_delete.is_(False),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        board_id: int,
        title: str,
        description: str | None = None,
        priority: str = "medium",
        start_date: date | None = None,
        due_date: date | None = None,
        position: int | None = None,
    ) -> Card:
        """Create a card. Without an explicit position it is appended last."""
        if position is None:
            stmt = select(func.coalesce(func.max(Card.position) + 1, 0)).where(
                Card.board_id == board_id,
                Card.soft_delete.is_(False),
            )
            position = (await db.execute(stmt)).scalar_one()
        card = Card(
            board_id=board_id,
            title=title,
            description=description,
            priority=priority,
            start_date=start_date,
            due_date=due_date,
            position=position,
        )
        db.add(card)
        await db.flush()
        await db.refresh(card)
        return card

    @staticmethod
    async def update(
        db: AsyncSession, card: Card, **kwargs: str | date | datetime | None
    ) -> Card:
        """Apply allowed field changes to a card.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(kwargs) - _CARD_UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        for field, value in kwargs.items():
            setattr(card, field, value)
        await db.flush()
        await db.refresh(card)
        return card

    @staticmethod
    async def move(db: AsyncSession, card: Card, *, board_id: int, position: int) -> Card:
        """Move a card to a board/position. The target board must already be verified."""
        card.board_id = board_id
        card.position = position
        await db.flush()
        await db.refresh(card)
        return card

    @staticmethod
    async def soft_delete(db: AsyncSession, card: Card) -> None:
        card.soft_delete = True
        await db.flush()
