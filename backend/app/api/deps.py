"""Shared dependencies for API endpoints.

Authentication dependencies wrap the resolvers in app.core.auth_resolvers
and turn their None result into UnauthorizedError (401). Handlers receive
the resolved identity explicitly and pass it on; nothing downstream reads
cookies or headers again.

Declare path id dependencies (app.core.identifiers) BEFORE these so
malformed ids are rejected before any database access.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth_resolvers import resolve_client, resolve_identity, resolve_user
from app.core.database import get_db
from app.core.errors import UnauthorizedError
from app.core.identity import ClientIdentity, Identity, UserIdentity


async def get_current_user(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserIdentity:
    """Resolve a staff caller (session cookie, then bearer API token).

    Raises:
        UnauthorizedError: If no staff identity resolves.
    """
    identity = await resolve_user(request, db)
    if identity is None:
        raise UnauthorizedError()
    return identity


async def get_current_client(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ClientIdentity:
    """Resolve a portal client from the portal session cookie.

    Raises:
        UnauthorizedError: If no client identity resolves.
    """
    identity = await resolve_client(request, db)
    if identity is None:
        raise UnauthorizedError()
    return identity


async def get_current_identity(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Identity:
    """Resolve either caller kind; staff takes precedence.

    Raises:
        UnauthorizedError: If neither a staff nor a client identity resolves.
    """
    identity = await resolve_identity(request, db)
    if identity is None:
        raise UnauthorizedError()
    return identity


# Reusable type aliases for dependency injection
CurrentUser = Annotated[UserIdentity, Depends(get_current_user)]
CurrentClient = Annotated[ClientIdentity, Depends(get_current_client)]
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
