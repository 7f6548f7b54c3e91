"""Pydantic request schemas and response serializers for API endpoints."""

from app.schemas.billing import (
    InvoiceItemInput,
    InvoiceUpdate,
    compute_invoice_totals,
    invoice_to_dict,
    quote_to_dict,
)
from app.schemas.project import (
    BoardCreate,
    BoardUpdate,
    CardCreate,
    CardMove,
    CardUpdate,
    FileRegister,
    MessageCreate,
    ProjectClientLink,
    ProjectCreate,
    ProjectMemberAdd,
    ProjectMemberRoleUpdate,
    ProjectUpdate,
)
from app.schemas.user import UserUpdate, user_to_dict

__all__ = [
    # Projects
    "ProjectClientLink",
    "ProjectCreate",
    "ProjectMemberAdd",
    "ProjectMemberRoleUpdate",
    "ProjectUpdate",
    # Boards and cards
    "BoardCreate",
    "BoardUpdate",
    "CardCreate",
    "CardMove",
    "CardUpdate",
    # Collaboration
    "FileRegister",
    "MessageCreate",
    # Users
    "UserUpdate",
    "user_to_dict",
    # Billing
    "InvoiceItemInput",
    "InvoiceUpdate",
    "compute_invoice_totals",
    "invoice_to_dict",
    "quote_to_dict",
]
