"""
Segment API endpoints.

CRUD for segments plus card and spacer edits. Card inserts and removals
renumber positions, so ownership flags are re-keyed and saved in the same
request.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.api.containers import DeleteResponse
from spellbinder.config import MAX_SEGMENT_OFFSET
from spellbinder.db import (
    delete_segment,
    get_segment,
    list_segments,
    load_ledger,
    save_ledger,
    segment_to_model,
    upsert_segment,
)
from spellbinder.db.database import get_session
from spellbinder.models.segment import Segment
from spellbinder.services.library import generate_id
from spellbinder.services.position_edit import insert_card_rekeyed, remove_card_rekeyed

router = APIRouter(prefix="/segments", tags=["segments"])


class SegmentResponse(BaseModel):
    """Response model for a segment."""

    id: str
    name: str
    set_code: str = ""
    card_ids: list[str] = Field(default_factory=list)
    card_count: int = 0
    offset: int = 0
    target_container_id: str | None = None
    spacers_before: dict[int, int] = Field(
        default_factory=dict,
        description="Card position -> blank pockets reserved before it",
    )


class SegmentCreateRequest(BaseModel):
    """Request model for creating a segment."""

    name: str = Field(..., min_length=1)
    set_code: str = ""
    card_ids: list[str] = Field(default_factory=list)
    offset: int = Field(default=0, ge=0, le=MAX_SEGMENT_OFFSET)
    target_container_id: str | None = None


class SegmentUpdateRequest(BaseModel):
    """Request model for updating a segment. Omitted fields are kept."""

    name: str | None = Field(default=None, min_length=1)
    offset: int | None = Field(default=None, ge=0, le=MAX_SEGMENT_OFFSET)
    target_container_id: str | None = None
    clear_target: bool = Field(
        default=False,
        description="Drop the target container and use auto-fill",
    )


class CardInsertRequest(BaseModel):
    """Request model for inserting a card into a segment."""

    card_id: str = Field(..., min_length=1)
    before_position: int | None = Field(
        default=None,
        ge=0,
        description="Insert in front of this position; omit to append",
    )


class CardEditResponse(BaseModel):
    """Response model for card insert/remove."""

    segment: SegmentResponse
    position: int
    card_id: str


class SpacerResponse(BaseModel):
    """Response model for spacer edits."""

    segment_id: str
    position: int
    spacer_count: int
    changed: bool


def segment_response(segment: Segment) -> SegmentResponse:
    return SegmentResponse(
        id=segment.id,
        name=segment.name,
        set_code=segment.set_code,
        card_ids=list(segment.card_ids),
        card_count=len(segment.card_ids),
        offset=segment.offset,
        target_container_id=segment.target_container_id,
        spacers_before=dict(segment.spacers_before),
    )


async def _load_segment(session: AsyncSession, segment_id: str) -> Segment:
    db_segment = await get_segment(session, segment_id)
    if db_segment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Segment not found")
    return segment_to_model(db_segment)


@router.get("", response_model=list[SegmentResponse])
async def list_all_segments(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[SegmentResponse]:
    return [segment_response(segment_to_model(s)) for s in await list_segments(session)]


@router.post("", response_model=SegmentResponse, status_code=status.HTTP_201_CREATED)
async def create_segment(
    request: SegmentCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SegmentResponse:
    """Create a segment with an empty spacer map."""
    segment = Segment(
        id=generate_id(),
        name=request.name,
        set_code=request.set_code,
        card_ids=list(request.card_ids),
        offset=request.offset,
        target_container_id=request.target_container_id,
    )
    await upsert_segment(session, segment)
    return segment_response(segment)


@router.get("/{segment_id}", response_model=SegmentResponse)
async def get_one_segment(
    segment_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SegmentResponse:
    return segment_response(await _load_segment(session, segment_id))


@router.put("/{segment_id}", response_model=SegmentResponse)
async def update_segment(
    segment_id: str,
    request: SegmentUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SegmentResponse:
    """Rename a segment, change its offset, or pin/unpin a target container."""
    segment = await _load_segment(session, segment_id)
    if request.name is not None:
        segment.name = request.name
    if request.offset is not None:
        segment.offset = request.offset
    if request.clear_target:
        segment.target_container_id = None
    elif request.target_container_id is not None:
        segment.target_container_id = request.target_container_id

    await upsert_segment(session, segment)
    return segment_response(segment)


@router.delete("/{segment_id}", response_model=DeleteResponse)
async def remove_segment(
    segment_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    """Delete a segment along with its owned/skipped flags and plan memberships."""
    deleted = await delete_segment(session, segment_id)
    message = "Segment deleted." if deleted else "No segment found to delete."
    return DeleteResponse(id=segment_id, deleted=deleted, message=message)


# --- Cards ---


@router.post("/{segment_id}/cards", response_model=CardEditResponse)
async def insert_card(
    segment_id: str,
    request: CardInsertRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardEditResponse:
    """
    Insert a card into a segment.

    If the card displaced had blank pockets before it, the new card fills
    one of them.
    """
    segment = await _load_segment(session, segment_id)
    ledger = await load_ledger(session)

    position = insert_card_rekeyed(segment, ledger, request.card_id, request.before_position)

    await upsert_segment(session, segment)
    await save_ledger(session, ledger)
    return CardEditResponse(
        segment=segment_response(segment), position=position, card_id=request.card_id
    )


@router.delete("/{segment_id}/cards/{position}", response_model=CardEditResponse)
async def remove_card(
    segment_id: str,
    position: Annotated[int, Path(ge=0)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardEditResponse:
    """Remove the card at a position, along with the blanks reserved before it."""
    segment = await _load_segment(session, segment_id)
    ledger = await load_ledger(session)

    removed = remove_card_rekeyed(segment, ledger, position)
    if removed is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Segment has no card at position {position}",
        )

    await upsert_segment(session, segment)
    await save_ledger(session, ledger)
    return CardEditResponse(segment=segment_response(segment), position=position, card_id=removed)


# --- Spacers ---


@router.post("/{segment_id}/spacers/{position}", response_model=SpacerResponse)
async def add_spacer(
    segment_id: str,
    position: Annotated[int, Path(ge=0)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SpacerResponse:
    """Reserve one more blank pocket before a card. Out-of-range positions are ignored."""
    segment = await _load_segment(session, segment_id)
    changed = segment.add_spacer(position)
    if changed:
        await upsert_segment(session, segment)
    return SpacerResponse(
        segment_id=segment_id,
        position=position,
        spacer_count=segment.spacer_count_before(position),
        changed=changed,
    )


@router.delete("/{segment_id}/spacers/{position}", response_model=SpacerResponse)
async def remove_spacer(
    segment_id: str,
    position: Annotated[int, Path(ge=0)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SpacerResponse:
    """Release one blank pocket before a card. No-op when there is none."""
    segment = await _load_segment(session, segment_id)
    changed = segment.remove_spacer(position)
    if changed:
        await upsert_segment(session, segment)
    return SpacerResponse(
        segment_id=segment_id,
        position=position,
        spacer_count=segment.spacer_count_before(position),
        changed=changed,
    )
