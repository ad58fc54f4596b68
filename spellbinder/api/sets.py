"""
Set API endpoints.

Thin proxy over the card lookup, plus segment creation from a set checklist.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.api.segments import SegmentResponse, segment_response
from spellbinder.config import MAX_SEGMENT_OFFSET
from spellbinder.db import upsert_segment
from spellbinder.db.database import get_session
from spellbinder.models.card import CardRecord, sort_by_collector_number
from spellbinder.models.segment import Segment
from spellbinder.services.card_lookup import CardLookupError, ScryfallCardLookup, get_card_lookup
from spellbinder.services.library import generate_id

router = APIRouter(prefix="/sets", tags=["sets"])


class SetResponse(BaseModel):
    code: str
    name: str
    released_at: str | None = None
    set_type: str = ""
    card_count: int = 0
    icon_svg_uri: str | None = None


class CardResponse(BaseModel):
    id: str
    name: str
    set_code: str
    collector_number: str
    rarity: str
    type_line: str
    image_uri: str | None = None


class SegmentFromSetRequest(BaseModel):
    """Create a segment holding a whole set checklist."""

    name: str | None = Field(default=None, description="Defaults to the set name")
    offset: int = Field(default=0, ge=0, le=MAX_SEGMENT_OFFSET)
    target_container_id: str | None = None


def card_response(card: CardRecord) -> CardResponse:
    return CardResponse(
        id=card.id,
        name=card.name,
        set_code=card.set_code,
        collector_number=card.collector_number,
        rarity=card.rarity,
        type_line=card.type_line,
        image_uri=card.image_uri(),
    )


async def _set_cards(lookup: ScryfallCardLookup, set_code: str) -> list[CardRecord]:
    try:
        cards = await lookup.fetch_set_cards(set_code)
    except CardLookupError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    return sort_by_collector_number(cards)


@router.get("", response_model=list[SetResponse])
async def list_sets(
    lookup: Annotated[ScryfallCardLookup, Depends(get_card_lookup)],
) -> list[SetResponse]:
    try:
        sets = await lookup.fetch_sets()
    except CardLookupError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    return [
        SetResponse(
            code=s.code,
            name=s.name,
            released_at=s.released_at,
            set_type=s.set_type,
            card_count=s.card_count,
            icon_svg_uri=s.icon_svg_uri,
        )
        for s in sets
    ]


@router.get("/{set_code}/cards", response_model=list[CardResponse])
async def list_set_cards(
    set_code: str,
    lookup: Annotated[ScryfallCardLookup, Depends(get_card_lookup)],
) -> list[CardResponse]:
    """Every printing in a set, in collector number order."""
    return [card_response(card) for card in await _set_cards(lookup, set_code)]


@router.post(
    "/{set_code}/segment", response_model=SegmentResponse, status_code=status.HTTP_201_CREATED
)
async def create_segment_from_set(
    set_code: str,
    request: SegmentFromSetRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    lookup: Annotated[ScryfallCardLookup, Depends(get_card_lookup)],
) -> SegmentResponse:
    """Create a segment from a set checklist, in collector number order."""
    cards = await _set_cards(lookup, set_code)
    if not cards:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No cards found for set '{set_code}'",
        )

    segment = Segment(
        id=generate_id(),
        name=request.name or cards[0].set_name or set_code.upper(),
        set_code=set_code.lower(),
        card_ids=[card.id for card in cards],
        offset=request.offset,
        target_container_id=request.target_container_id,
    )
    await upsert_segment(session, segment)
    return segment_response(segment)
