"""SQLAlchemy ORM models for ClientDesk.

All models are exported from this module for convenient imports:
    from app.models import Client, Project, Invoice, ...

Models are organized by domain:
- company.py: Company (tenant boundary)
- user.py: User (staff)
- client.py: Client (portal)
- login_token.py: ClientLoginToken (portal magic links)
- api_token.py: ApiToken (staff bearer tokens)
- invitation.py: CompanyInvitation (pending project invites)
- project.py: Project, ProjectMember, ClientProject, Board, Card, ProjectFile, ProjectMessage
- billing.py: Invoice, InvoiceItem, Quote, QuoteItem
"""

from app.models.api_token import ApiToken
from app.models.base import Base, SoftDeleteMixin, TimestampMixin
from app.models.billing import Invoice, InvoiceItem, Quote, QuoteItem
from app.models.client import Client
from app.models.company import Company
from app.models.invitation import CompanyInvitation
from app.models.login_token import ClientLoginToken
from app.models.project import (
    Board,
    Card,
    ClientProject,
    Project,
    ProjectFile,
    ProjectMember,
    ProjectMessage,
)
from app.models.user import User

__all__ = [
    "ApiToken",
    "Base",
    "Board",
    "Card",
    "Client",
    "ClientLoginToken",
    "ClientProject",
    "Company",
    "CompanyInvitation",
    "Invoice",
    "InvoiceItem",
    "Project",
    "ProjectFile",
    "ProjectMember",
    "ProjectMessage",
    "Quote",
    "QuoteItem",
    "SoftDeleteMixin",
    "TimestampMixin",
    "User",
]
