"""Kanban board and card endpoints (staff or portal client).

Mounted under /projects/{project_id}:
- GET/POST /boards, PATCH/DELETE /boards/{board_id}
- GET/POST /cards, GET/PATCH/DELETE /cards/{card_id}
- POST /cards/{card_id}/move

Reads need project access; writes need write access (viewers and
non-members are refused). Deletes are soft and staff only.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query

from app.api.deps import CurrentIdentity, DbSession
from app.core.access import require_project_access, verify_board_in_project
from app.core.errors import ForbiddenError, NotFoundError
from app.core.identifiers import BoardId, CardId, ProjectId
from app.core.identity import ClientIdentity
from app.core.responses import DataResponse
from app.repositories.board_repository import BoardRepository, CardRepository
from app.schemas.project import (
    BoardCreate,
    BoardUpdate,
    CardCreate,
    CardMove,
    CardUpdate,
    board_to_dict,
    card_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ===================================================================
# Boards
# ===================================================================


@router.get("/{project_id}/boards")
async def list_boards(
    project_id: ProjectId,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[list[dict]]:
    await require_project_access(db, identity, project_id)
    boards = await BoardRepository.list_for_project(db, project_id)
    return DataResponse(data=[board_to_dict(b) for b in boards])


@router.post("/{project_id}/boards", status_code=201)
async def create_board(
    project_id: ProjectId,
    body: BoardCreate,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id, write=True)
    board = await BoardRepository.create(
        db, project_id=project_id, title=body.title, position=body.position
    )
    await db.commit()
    return DataResponse(data=board_to_dict(board))


@router.patch("/{project_id}/boards/{board_id}")
async def update_board(
    project_id: ProjectId,
    board_id: BoardId,
    body: BoardUpdate,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id, write=True)

    board = await BoardRepository.get_in_project(db, board_id, project_id)
    if board is None:
        raise NotFoundError("Board", board_id)

    board = await BoardRepository.update(
        db, board, title=body.title, position=body.position
    )
    await db.commit()
    return DataResponse(data=board_to_dict(board))


@router.delete("/{project_id}/boards/{board_id}")
async def delete_board(
    project_id: ProjectId,
    board_id: BoardId,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    """Soft-delete a board. Cards on it disappear from listings with it."""
    await require_project_access(db, identity, project_id, write=True)
    if isinstance(identity, ClientIdentity):
        raise ForbiddenError("Only staff can delete boards")

    board = await BoardRepository.get_in_project(db, board_id, project_id)
    if board is None:
        raise NotFoundError("Board", board_id)

    await BoardRepository.soft_delete(db, board)
    await db.commit()
    logger.info("User %s deleted board %s", identity.user_id, board_id)
    return DataResponse(data={"id": board_id, "deleted": True})


# ===================================================================
# Cards
# ===================================================================


@router.get("/{project_id}/cards")
async def list_cards(
    project_id: ProjectId,
    identity: CurrentIdentity,
    db: DbSession,
    board_id: Annotated[int | None, Query(ge=1)] = None,
) -> DataResponse[list[dict]]:
    await require_project_access(db, identity, project_id)
    cards = await CardRepository.list_for_project(db, project_id, board_id=board_id)
    return DataResponse(data=[card_to_dict(c) for c in cards])


@router.post("/{project_id}/cards", status_code=201)
async def create_card(
    project_id: ProjectId,
    body: CardCreate,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id, write=True)
    if not await verify_board_in_project(db, body.board_id, project_id):
        raise NotFoundError("Board", body.board_id)

    card = await CardRepository.create(db, **body.model_dump())
    await db.commit()
    return DataResponse(data=card_to_dict(card))


@router.get("/{project_id}/cards/{card_id}")
async def get_card(
    project_id: ProjectId,
    card_id: CardId,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id)

    card = await CardRepository.get_in_project(db, card_id, project_id)
    if card is None:
        raise NotFoundError("Card", card_id)
    return DataResponse(data=card_to_dict(card))


@router.patch("/{project_id}/cards/{card_id}")
async def update_card(
    project_id: ProjectId,
    card_id: CardId,
    body: CardUpdate,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id, write=True)

    card = await CardRepository.get_in_project(db, card_id, project_id)
    if card is None:
        raise NotFoundError("Card", card_id)

    card = await CardRepository.update(db, card, **body.model_dump(exclude_unset=True))
    await db.commit()
    return DataResponse(data=card_to_dict(card))


@router.post("/{project_id}/cards/{card_id}/move")
async def move_card(
    project_id: ProjectId,
    card_id: CardId,
    body: CardMove,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    """Move a card to another board of the same project, or reorder it."""
    await require_project_access(db, identity, project_id, write=True)

    card = await CardRepository.get_in_project(db, card_id, project_id)
    if card is None:
        raise NotFoundError("Card", card_id)
    if not await verify_board_in_project(db, body.board_id, project_id):
        raise NotFoundError("Board", body.board_id)

    card = await CardRepository.move(
        db, card, board_id=body.board_id, position=body.position
    )
    await db.commit()
    return DataResponse(data=card_to_dict(card))


@router.delete("/{project_id}/cards/{card_id}")
async def delete_card(
    project_id: ProjectId,
    card_id: CardId,
    identity: CurrentIdentity,
    db: DbSession,
) -> DataResponse[dict]:
    await require_project_access(db, identity, project_id, write=True)
    if isinstance(identity, ClientIdentity):
        raise ForbiddenError("Only staff can delete cards")

    card = await CardRepository.get_in_project(db, card_id, project_id)
    if card is None:
        raise NotFoundError("Card", card_id)

    await CardRepository.soft_delete(db, card)
    await db.commit()
    logger.info("User %s deleted card %s", identity.user_id, card_id)
    return DataResponse(data={"id": card_id, "deleted": True})
