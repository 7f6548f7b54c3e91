"""Client portal read endpoints (portal session only).

Endpoints:
- GET /portal/projects - projects linked to the client
- GET /portal/projects/{project_id} - project detail with staff members
- GET /portal/invoices - invoices addressed to the client
- GET /portal/invoices/{invoice_id} - invoice detail with items
- GET /portal/quotes - quotes addressed to the client
- GET /portal/quotes/{quote_id} - quote detail with items

Anything outside the client's links responds 404, identical to a
missing row.
"""

from fastapi import APIRouter

from app.api.deps import CurrentClient, DbSession
from app.core.access import (
    require_project_access,
    verify_client_invoice_access,
    verify_client_quote_access,
)
from app.core.errors import NotFoundError
from app.core.identifiers import InvoiceId, ProjectId, QuoteId
from app.core.responses import DataResponse
from app.repositories.billing_repository import InvoiceRepository, QuoteRepository
from app.repositories.project_repository import ProjectRepository
from app.schemas.billing import invoice_to_dict, quote_to_dict
from app.schemas.project import member_to_dict, project_to_dict

router = APIRouter()


# ===================================================================
# Projects
# ===================================================================


@router.get("/projects")
async def list_projects(
    identity: CurrentClient, db: DbSession
) -> DataResponse[list[dict]]:
    projects = await ProjectRepository.list_for_client(db, identity.client_id)
    return DataResponse(data=[project_to_dict(p) for p in projects])


@router.get("/projects/{project_id}")
async def get_project(
    project_id: ProjectId,
    identity: CurrentClient,
    db: DbSession,
) -> DataResponse[dict]:
    """Project detail with the staff members working on it."""
    await require_project_access(db, identity, project_id)

    project = await ProjectRepository.get_for_client(db, project_id, identity.client_id)
    if project is None:
        raise NotFoundError("Project", project_id)

    data = project_to_dict(project)
    data["members"] = [
        member_to_dict(member, user)
        for member, user in await ProjectRepository.list_members(db, project_id)
    ]
    return DataResponse(data=data)


# ===================================================================
# Invoices
# ===================================================================


@router.get("/invoices")
async def list_invoices(
    identity: CurrentClient, db: DbSession
) -> DataResponse[list[dict]]:
    invoices = await InvoiceRepository.list_for_client(db, identity.client_id)
    return DataResponse(data=[invoice_to_dict(i) for i in invoices])


@router.get("/invoices/{invoice_id}")
async def get_invoice(
    invoice_id: InvoiceId,
    identity: CurrentClient,
    db: DbSession,
) -> DataResponse[dict]:
    if not await verify_client_invoice_access(db, invoice_id, identity.client_id):
        raise NotFoundError("Invoice", invoice_id)

    invoice = await InvoiceRepository.get_for_client(db, invoice_id, identity.client_id)
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    return DataResponse(data=invoice_to_dict(invoice, with_items=True))


# ===================================================================
# Quotes
# ===================================================================


@router.get("/quotes")
async def list_quotes(
    identity: CurrentClient, db: DbSession
) -> DataResponse[list[dict]]:
    quotes = await QuoteRepository.list_for_client(db, identity.client_id)
    return DataResponse(data=[quote_to_dict(q) for q in quotes])


@router.get("/quotes/{quote_id}")
async def get_quote(
    quote_id: QuoteId,
    identity: CurrentClient,
    db: DbSession,
) -> DataResponse[dict]:
    if not await verify_client_quote_access(db, quote_id, identity.client_id):
        raise NotFoundError("Quote", quote_id)

    quote = await QuoteRepository.get_for_client(db, quote_id, identity.client_id)
    if quote is None:
        raise NotFoundError("Quote", quote_id)
    return DataResponse(data=quote_to_dict(quote, with_items=True))
