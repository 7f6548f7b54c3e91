"""Invoice and quote request schemas and response serializers.

Monetary values are rendered as strings to keep Decimal precision.
Line amounts and totals are always computed server-side.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.billing import Invoice, InvoiceItem, Quote, QuoteItem

InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]
QuoteStatus = Literal["draft", "sent", "accepted", "rejected", "expired"]

_CENT = Decimal("0.01")


# =============================================================================
# Requests
# =============================================================================


class InvoiceItemInput(BaseModel):
    """One line of an invoice replacement."""

    model_config = ConfigDict(extra="forbid")

    description: str = Field(min_length=1, max_length=2000)
    quantity: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class InvoiceUpdate(BaseModel):
    """Request body for PUT /invoices/{invoice_id}.

    Replaces the invoice and all of its line items. ``tax_rate`` is a
    percentage applied to the subtotal.
    """

    model_config = ConfigDict(extra="forbid")

    client_id: int = Field(ge=1)
    invoice_number: str = Field(min_length=1, max_length=50)
    status: InvoiceStatus
    issue_date: date
    due_date: date
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    currency: str = Field("USD", pattern=r"^[A-Z]{3}$")
    notes: str | None = Field(None, max_length=10000)
    items: list[InvoiceItemInput] = Field(min_length=1, max_length=200)

    @model_validator(mode="after")
    def due_not_before_issue(self) -> "InvoiceUpdate":
        if self.due_date < self.issue_date:
            raise ValueError("due_date must not be before issue_date")
        return self


# =============================================================================
# Totals
# =============================================================================


class InvoiceTotals(NamedTuple):
    amounts: list[Decimal]
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def _round_money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def compute_invoice_totals(
    items: list[InvoiceItemInput], tax_rate: Decimal
) -> InvoiceTotals:
    """Line amounts, subtotal, tax and total, each rounded half-up to cents.

    The subtotal is the sum of the rounded line amounts, so the lines
    shown to the client always add up.
    """
    amounts = [_round_money(i.quantity * i.unit_price) for i in items]
    subtotal = sum(amounts, Decimal("0.00"))
    tax = _round_money(subtotal * tax_rate / 100)
    return InvoiceTotals(
        amounts=amounts, subtotal=subtotal, tax=tax, total=subtotal + tax
    )


# =============================================================================
# Serializers
# =============================================================================


def _money(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def _item_to_dict(item: InvoiceItem | QuoteItem) -> dict:
    return {
        "id": item.id,
        "description": item.description,
        "quantity": _money(item.quantity),
        "unit_price": _money(item.unit_price),
        "amount": _money(item.amount),
    }


def invoice_to_dict(invoice: Invoice, *, with_items: bool = False) -> dict:
    """Serialize an invoice. ``with_items`` requires items to be eager-loaded."""
    data = {
        "id": invoice.id,
        "company_id": invoice.company_id,
        "client_id": invoice.client_id,
        "invoice_number": invoice.invoice_number,
        "status": invoice.status,
        "issue_date": invoice.issue_date.isoformat(),
        "due_date": invoice.due_date.isoformat(),
        "subtotal": _money(invoice.subtotal),
        "tax": _money(invoice.tax),
        "total": _money(invoice.total),
        "currency": invoice.currency,
        "notes": invoice.notes,
    }
    if with_items:
        data["items"] = [_item_to_dict(i) for i in invoice.items]
    return data


def quote_to_dict(quote: Quote, *, with_items: bool = False) -> dict:
    """Serialize a quote. ``with_items`` requires items to be eager-loaded."""
    data = {
        "id": quote.id,
        "company_id": quote.company_id,
        "client_id": quote.client_id,
        "quote_number": quote.quote_number,
        "status": quote.status,
        "issue_date": quote.issue_date.isoformat(),
        "expiry_date": quote.expiry_date.isoformat(),
        "subtotal": _money(quote.subtotal),
        "tax": _money(quote.tax),
        "total": _money(quote.total),
        "currency": quote.currency,
        "notes": quote.notes,
    }
    if with_items:
        data["items"] = [_item_to_dict(i) for i in quote.items]
    return data
