"""API v1 router aggregator.

All v1 endpoint routers are included here and mounted at /api/v1.
"""

from fastapi import APIRouter

from app.api.v1 import (
    api_tokens,
    auth,
    billing,
    boards,
    files,
    invitations,
    messages,
    portal,
    portal_auth,
    projects,
    users,
)

router = APIRouter()

# =============================================================================
# Staff authentication
# =============================================================================

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(api_tokens.router, prefix="/api-tokens", tags=["auth"])

# =============================================================================
# Company staff
# =============================================================================

router.include_router(users.router, prefix="/users", tags=["users"])

# =============================================================================
# Client portal
# =============================================================================

router.include_router(portal_auth.router, prefix="/portal/auth", tags=["portal"])
router.include_router(portal.router, prefix="/portal", tags=["portal"])

# =============================================================================
# Projects and collaboration (boards, files and messages accept both
# staff and portal sessions)
# =============================================================================

_PROJECTS_PREFIX = "/projects"

router.include_router(projects.router, prefix=_PROJECTS_PREFIX, tags=["projects"])
router.include_router(invitations.router, prefix=_PROJECTS_PREFIX, tags=["projects"])
router.include_router(boards.router, prefix=_PROJECTS_PREFIX, tags=["boards"])
router.include_router(files.router, prefix=_PROJECTS_PREFIX, tags=["files"])
router.include_router(messages.router, prefix=_PROJECTS_PREFIX, tags=["messages"])

# =============================================================================
# Billing
# =============================================================================

router.include_router(billing.invoices_router, prefix="/invoices", tags=["billing"])
router.include_router(billing.quotes_router, prefix="/quotes", tags=["billing"])
