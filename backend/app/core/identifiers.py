"""Path identifier parsing.

Integer ids in URL paths are parsed by a dependency that handlers declare
BEFORE their auth dependency. FastAPI solves dependencies in declaration
order, so a malformed id is rejected with 400 VALIDATION_ERROR before any
session lookup or query runs.

Plain ``project_id: int`` path parameters are not used for this: FastAPI
validates path parameters only after all dependencies have been solved.

Usage:
    @router.get("/{project_id}")
    async def get_project(project_id: ProjectId, user: CurrentUser, db: DbSession):
        ...
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request

from app.core.errors import ValidationError

# Largest value of a signed 64-bit integer column
MAX_ID = 2**63 - 1


def parse_id(raw: str | None) -> int | None:
    """Parse a positive decimal id within the signed 64-bit range.

    Returns:
        The id, or None for anything else (signs, whitespace, non-ASCII
        digits, zero, overflow).
    """
    if not raw or not raw.isascii() or not raw.isdigit():
        return None
    value = int(raw)
    if value < 1 or value > MAX_ID:
        return None
    return value


def path_id(name: str) -> Callable[[Request], Awaitable[int]]:
    """Build a dependency that parses the path parameter ``name``.

    Raises (from the dependency):
        ValidationError: If the segment is not a valid id.
    """

    async def dependency(request: Request) -> int:
        raw = request.path_params.get(name)
        value = parse_id(raw)
        if value is None:
            raise ValidationError(
                f"Invalid {name}",
                details=[{"loc": ["path", name], "msg": "must be a positive integer"}],
            )
        return value

    dependency.__name__ = f"parse_{name}"
    return dependency


ProjectId = Annotated[int, Depends(path_id("project_id"))]
BoardId = Annotated[int, Depends(path_id("board_id"))]
CardId = Annotated[int, Depends(path_id("card_id"))]
FileId = Annotated[int, Depends(path_id("file_id"))]
ClientId = Annotated[int, Depends(path_id("client_id"))]
InvoiceId = Annotated[int, Depends(path_id("invoice_id"))]
QuoteId = Annotated[int, Depends(path_id("quote_id"))]
TokenId = Annotated[int, Depends(path_id("token_id"))]
UserId = Annotated[int, Depends(path_id("user_id"))]
