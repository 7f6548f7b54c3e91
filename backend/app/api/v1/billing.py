"""Staff billing endpoints for invoices and quotes.

Endpoints:
- GET /invoices, GET /invoices/{invoice_id}, DELETE /invoices/{invoice_id}
- PUT /invoices/{invoice_id} - replace an invoice and its line items
- GET /quotes, GET /quotes/{quote_id}, DELETE /quotes/{quote_id}

All reads and deletes are scoped to the caller's company. Deletes are
soft.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, DbSession
from app.core.access import verify_user_invoice_access, verify_user_quote_access
from app.core.errors import NotFoundError
from app.core.identifiers import InvoiceId, QuoteId
from app.core.responses import DataResponse
from app.models.billing import InvoiceItem
from app.repositories.billing_repository import InvoiceRepository, QuoteRepository
from app.repositories.client_repository import ClientRepository
from app.schemas.billing import (
    InvoiceStatus,
    InvoiceUpdate,
    QuoteStatus,
    compute_invoice_totals,
    invoice_to_dict,
    quote_to_dict,
)

logger = logging.getLogger(__name__)

invoices_router = APIRouter()
quotes_router = APIRouter()


# ===================================================================
# Invoices
# ===================================================================


@invoices_router.get("")
async def list_invoices(
    identity: CurrentUser,
    db: DbSession,
    status: Annotated[InvoiceStatus | None, Query()] = None,
) -> DataResponse[list[dict]]:
    invoices = await InvoiceRepository.list_for_company(
        db, identity.company_id, status=status
    )
    return DataResponse(data=[invoice_to_dict(i) for i in invoices])


@invoices_router.get("/{invoice_id}")
async def get_invoice(
    invoice_id: InvoiceId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    if not await verify_user_invoice_access(db, invoice_id, identity.company_id):
        raise NotFoundError("Invoice", invoice_id)

    invoice = await InvoiceRepository.get_in_company(db, invoice_id, identity.company_id)
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    return DataResponse(data=invoice_to_dict(invoice, with_items=True))


@invoices_router.put("/{invoice_id}")
async def replace_invoice(
    invoice_id: InvoiceId,
    body: InvoiceUpdate,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Replace an invoice and its line items.

    Amounts, subtotal, tax and total are recomputed from the submitted
    items and tax rate. The new client must belong to the caller's company.
    """
    if not await verify_user_invoice_access(db, invoice_id, identity.company_id):
        raise NotFoundError("Invoice", invoice_id)

    invoice = await InvoiceRepository.get_in_company(db, invoice_id, identity.company_id)
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    client = await ClientRepository.get_in_company(db, body.client_id, identity.company_id)
    if client is None:
        raise NotFoundError("Client", body.client_id)

    totals = compute_invoice_totals(body.items, body.tax_rate)
    invoice = await InvoiceRepository.replace(
        db,
        invoice,
        client_id=client.id,
        invoice_number=body.invoice_number,
        status=body.status,
        issue_date=body.issue_date,
        due_date=body.due_date,
        currency=body.currency,
        notes=body.notes,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        items=[
            InvoiceItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=amount,
            )
            for item, amount in zip(body.items, totals.amounts, strict=True)
        ],
    )
    await db.commit()
    logger.info("User %s replaced invoice %s", identity.user_id, invoice_id)
    return DataResponse(data=invoice_to_dict(invoice, with_items=True))


@invoices_router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: InvoiceId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Soft-delete an invoice."""
    if not await verify_user_invoice_access(db, invoice_id, identity.company_id):
        raise NotFoundError("Invoice", invoice_id)

    invoice = await InvoiceRepository.get_in_company(db, invoice_id, identity.company_id)
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    await InvoiceRepository.soft_delete(db, invoice)
    await db.commit()
    logger.info("User %s deleted invoice %s", identity.user_id, invoice_id)
    return DataResponse(data={"id": invoice_id, "deleted": True})


# ===================================================================
# Quotes
# ===================================================================


@quotes_router.get("")
async def list_quotes(
    identity: CurrentUser,
    db: DbSession,
    status: Annotated[QuoteStatus | None, Query()] = None,
) -> DataResponse[list[dict]]:
    quotes = await QuoteRepository.list_for_company(
        db, identity.company_id, status=status
    )
    return DataResponse(data=[quote_to_dict(q) for q in quotes])


@quotes_router.get("/{quote_id}")
async def get_quote(
    quote_id: QuoteId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    if not await verify_user_quote_access(db, quote_id, identity.company_id):
        raise NotFoundError("Quote", quote_id)

    quote = await QuoteRepository.get_in_company(db, quote_id, identity.company_id)
    if quote is None:
        raise NotFoundError("Quote", quote_id)
    return DataResponse(data=quote_to_dict(quote, with_items=True))


@quotes_router.delete("/{quote_id}")
async def delete_quote(
    quote_id: QuoteId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Soft-delete a quote."""
    if not await verify_user_quote_access(db, quote_id, identity.company_id):
        raise NotFoundError("Quote", quote_id)

    quote = await QuoteRepository.get_in_company(db, quote_id, identity.company_id)
    if quote is None:
        raise NotFoundError("Quote", quote_id)
    await QuoteRepository.soft_delete(db, quote)
    await db.commit()
    logger.info("User %s deleted quote %s", identity.user_id, quote_id)
    return DataResponse(data={"id": quote_id, "deleted": True})
