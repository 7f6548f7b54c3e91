"""Repository for Invoice and Quote operations.

Staff reads filter on company_id; portal reads filter on client_id.
Line items are eager-loaded with selectinload for detail views only.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.billing import Invoice, InvoiceItem, Quote


class InvoiceRepository:
    """Stateless repository for Invoice table operations."""

    @staticmethod
    async def list_for_company(
        db: AsyncSession, company_id: int, *, status: str | None = None
    ) -> list[Invoice]:
        stmt = select(Invoice).where(
            Invoice.company_id == company_id,
            Invoice.soft_delete.is_(False),
        )
        if status is not None:
            stmt = stmt.where(Invoice.status == status)
        stmt = stmt.order_by(Invoice.issue_date.desc(), Invoice.id.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_client(db: AsyncSession, client_id: int) -> list[Invoice]:
        """List invoices addressed to a portal client."""
        stmt = (
            select(Invoice)
            .where(
                Invoice.client_id == client_id,
                Invoice.soft_delete.is_(False),
            )
            .order_by(Invoice.issue_date.desc(), Invoice.id.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_in_company(
        db: AsyncSession, invoice_id: int, company_id: int
    ) -> Invoice | None:
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.items))
            .where(
                Invoice.id == invoice_id,
                Invoice.company_id == company_id,
                Invoice.soft_delete.is_(False),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_client(
        db: AsyncSession, invoice_id: int, client_id: int
    ) -> Invoice | None:
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.items))
            .where(
                Invoice.id == invoice_id,
                Invoice.client_id == client_id,
                Invoice.soft_delete.is_(False),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def replace(
        db: AsyncSession,
        invoice: Invoice,
        *,
        client_id: int,
        invoice_number: str,
        status: str,
        issue_date: date,
        due_date: date,
        currency: str,
        notes: str | None,
        subtotal: Decimal,
        tax: Decimal,
        total: Decimal,
        items: list[InvoiceItem],
    ) -> Invoice:
        """Overwrite an invoice and swap in a new set of line items.

        ``invoice`` must come from get_in_company() so its items are loaded;
        the old items are deleted as orphans on flush.
        """
        invoice.client_id = client_id
        invoice.invoice_number = invoice_number
        invoice.status = status
        invoice.issue_date = issue_date
        invoice.due_date = due_date
        invoice.currency = currency
        invoice.notes = notes
        invoice.subtotal = subtotal
        invoice.tax = tax
        invoice.total = total
        invoice.items = items
        await db.flush()
        return invoice

    @staticmethod
    async def soft_delete(db: AsyncSession, invoice: Invoice) -> None:
        invoice.soft_delete = True
        await db.flush()


class QuoteRepository:
    """Stateless repository for Quote table operations."""

    @staticmethod
    async def list_for_company(
        db: AsyncSession, company_id: int, *, status: str | None = None
    ) -> list[Quote]:
        stmt = select(Quote).where(
            Quote.company_id == company_id,
            Quote.soft_delete.is_(False),
        )
        if status is not None:
            stmt = stmt.where(Quote.status == status)
        stmt = stmt.order_by(Quote.issue_date.desc(), Quote.id.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_client(db: AsyncSession, client_id: int) -> list[Quote]:
        """List quotes addressed to a portal client."""
        stmt = (
            select(Quote)
            .where(
                Quote.client_id == client_id,
                Quote.soft_delete.is_(False),
            )
            .order_by(Quote.issue_date.desc(), Quote.id.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_in_company(
        db: AsyncSession, quote_id: int, company_id: int
    ) -> Quote | None:
        stmt = (
            select(Quote)
            .options(selectinload(Quote.items))
            .where(
                Quote.id == quote_id,
                Quote.company_id == company_id,
                Quote.soft_delete.is_(False),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_client(
        db: AsyncSession, quote_id: int, client_id: int
    ) -> Quote | None:
        stmt = (
            select(Quote)
            .options(selectinload(Quote.items))
            .where(
                Quote.id == quote_id,
                Quote.client_id == client_id,
                Quote.soft_delete.is_(False),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def soft_delete(db: AsyncSession, quote: Quote) -> None:
        quote.soft_delete = True
        await db.flush()
