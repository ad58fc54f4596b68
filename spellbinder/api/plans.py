"""
Plan API endpoints.

Plans order containers and segments; the placements endpoint runs the
placement engine over them. Position edits made through a plan are
followed by a fresh placement pass, returned in the response.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.api.containers import DeleteResponse
from spellbinder.db import (
    delete_plan,
    get_container,
    get_plan,
    get_segment,
    list_plans,
    load_library,
    plan_to_model,
    save_ledger,
    upsert_plan,
    upsert_segment,
)
from spellbinder.db.database import get_session
from spellbinder.models.ownership import OwnershipLedger
from spellbinder.models.placement import PlacementResult
from spellbinder.models.plan import BinderPlan
from spellbinder.services.binder_workspace import PlanWorkspace
from spellbinder.services.card_lookup import ScryfallCardLookup, get_card_lookup
from spellbinder.services.library import Library, generate_id

router = APIRouter(prefix="/plans", tags=["plans"])


class PlanResponse(BaseModel):
    """Response model for a plan."""

    id: str
    name: str
    container_ids: list[str] = Field(default_factory=list)
    segment_ids: list[str] = Field(default_factory=list)


class PlanCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)


class PlanUpdateRequest(BaseModel):
    name: str = Field(..., min_length=1)


class ReorderRequest(BaseModel):
    """Full new order of ids."""

    ids: list[str]


class PlacementOut(BaseModel):
    """One placed card."""

    card_id: str
    segment_id: str
    position: int
    ownership_key: str
    container_id: str
    container_index: int
    page_number: int
    slot_on_page: int
    owned: bool = False
    skipped: bool = False
    card_name: str | None = None
    image_uri: str | None = None


class OverflowOut(BaseModel):
    segment_id: str
    segment_name: str
    overflow_count: int


class CompletionOut(BaseModel):
    total: int
    owned: int
    skipped: int
    missing: int
    completion_percentage: float


class PlacementResponse(BaseModel):
    """Response model for a placement pass."""

    plan_id: str
    placements: list[PlacementOut] = Field(default_factory=list)
    overflow: list[OverflowOut] = Field(default_factory=list)
    total_cards: int = 0
    total_capacity: int = Field(
        default=0,
        description="Sum of container capacities; boxes count as a very large number",
    )
    unresolved_count: int = 0
    completion: CompletionOut


class InsertAtSlotRequest(BaseModel):
    """Drop a new card on a pocket."""

    container_id: str
    page_number: int = Field(..., ge=1)
    slot_on_page: int = Field(..., ge=1)
    card_id: str = Field(..., min_length=1)


def plan_response(plan: BinderPlan) -> PlanResponse:
    return PlanResponse(
        id=plan.id,
        name=plan.name,
        container_ids=list(plan.container_ids),
        segment_ids=list(plan.segment_ids),
    )


def placement_response(
    plan_id: str, result: PlacementResult, ledger: OwnershipLedger
) -> PlacementResponse:
    stats = ledger.completion(result.placements)
    return PlacementResponse(
        plan_id=plan_id,
        placements=[
            PlacementOut(
                card_id=p.card_id,
                segment_id=p.segment_id,
                position=p.position,
                ownership_key=p.ownership_key,
                container_id=p.container_id,
                container_index=p.container_index,
                page_number=p.page_number,
                slot_on_page=p.slot_on_page,
                owned=ledger.is_owned(p.ownership_key),
                skipped=ledger.is_skipped(p.ownership_key),
                card_name=p.card.name if p.card else None,
                image_uri=p.card.image_uri() if p.card else None,
            )
            for p in result.placements
        ],
        overflow=[
            OverflowOut(
                segment_id=o.segment_id,
                segment_name=o.segment_name,
                overflow_count=o.overflow_count,
            )
            for o in result.overflow
        ],
        total_cards=result.total_cards,
        total_capacity=result.total_capacity,
        unresolved_count=result.unresolved_count,
        completion=CompletionOut(
            total=stats.total,
            owned=stats.owned,
            skipped=stats.skipped,
            missing=stats.missing,
            completion_percentage=stats.completion_percentage,
        ),
    )


async def _load_plan(session: AsyncSession, plan_id: str) -> BinderPlan:
    db_plan = await get_plan(session, plan_id)
    if db_plan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    return plan_to_model(db_plan)


async def _open_workspace(session: AsyncSession, plan_id: str) -> tuple[Library, PlanWorkspace]:
    library = await load_library(session)
    workspace = library.workspace_for(plan_id)
    if workspace is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    return library, workspace


# --- Plan CRUD ---


@router.get("", response_model=list[PlanResponse])
async def list_all_plans(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[PlanResponse]:
    return [plan_response(plan_to_model(p)) for p in await list_plans(session)]


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    request: PlanCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanResponse:
    plan = BinderPlan(id=generate_id(), name=request.name)
    await upsert_plan(session, plan)
    return plan_response(plan)


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_one_plan(
    plan_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanResponse:
    return plan_response(await _load_plan(session, plan_id))


@router.put("/{plan_id}", response_model=PlanResponse)
async def rename_plan(
    plan_id: str,
    request: PlanUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanResponse:
    plan = await _load_plan(session, plan_id)
    plan.name = request.name
    await upsert_plan(session, plan)
    return plan_response(plan)


@router.delete("/{plan_id}", response_model=DeleteResponse)
async def remove_plan(
    plan_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    """Delete a plan. Its containers and segments are kept."""
    deleted = await delete_plan(session, plan_id)
    message = "Plan deleted." if deleted else "No plan found to delete."
    return DeleteResponse(id=plan_id, deleted=deleted, message=message)


# --- Membership ---


@router.post("/{plan_id}/containers/{container_id}", response_model=PlanResponse)
async def add_container_to_plan(
    plan_id: str,
    container_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanResponse:
    """Append a container to the fill order. Adding twice is a no-op."""
    plan = await _load_plan(session, plan_id)
    if await get_container(session, container_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Container not found")
    if plan.add_container(container_id):
        await upsert_plan(session, plan)
    return plan_response(plan)


@router.delete("/{plan_id}/containers/{container_id}", response_model=PlanResponse)
async def remove_container_from_plan(
    plan_id: str,
    container_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanResponse:
    plan = await _load_plan(session, plan_id)
    if plan.remove_container(container_id):
        await upsert_plan(session, plan)
    return plan_response(plan)


@router.put("/{plan_id}/containers", response_model=PlanResponse)
async def reorder_plan_containers(
    plan_id: str,
    request: ReorderRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanResponse:
    """Replace the container fill order."""
    plan = await _load_plan(session, plan_id)
    plan.reorder_containers(request.ids)
    await upsert_plan(session, plan)
    return plan_response(plan)


@router.post("/{plan_id}/segments/{segment_id}", response_model=PlanResponse)
async def add_segment_to_plan(
    plan_id: str,
    segment_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    index: Annotated[int | None, Query(ge=0)] = None,
) -> PlanResponse:
    """Add a segment at the end, or at `index`. Adding twice is a no-op."""
    plan = await _load_plan(session, plan_id)
    if await get_segment(session, segment_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Segment not found")
    added = (
        plan.add_segment(segment_id) if index is None else plan.insert_segment(segment_id, index)
    )
    if added:
        await upsert_plan(session, plan)
    return plan_response(plan)


@router.delete("/{plan_id}/segments/{segment_id}", response_model=PlanResponse)
async def remove_segment_from_plan(
    plan_id: str,
    segment_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanResponse:
    plan = await _load_plan(session, plan_id)
    if plan.remove_segment(segment_id):
        await upsert_plan(session, plan)
    return plan_response(plan)


@router.put("/{plan_id}/segments", response_model=PlanResponse)
async def reorder_plan_segments(
    plan_id: str,
    request: ReorderRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanResponse:
    """Replace the segment placement order."""
    plan = await _load_plan(session, plan_id)
    plan.reorder_segments(request.ids)
    await upsert_plan(session, plan)
    return plan_response(plan)


# --- Placement ---


@router.get("/{plan_id}/placements", response_model=PlacementResponse)
async def get_placements(
    plan_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    lookup: Annotated[ScryfallCardLookup, Depends(get_card_lookup)],
    resolve_cards: bool = False,
) -> PlacementResponse:
    """
    Lay the plan's segments into its containers.

    With resolve_cards=true, card records are fetched first; ids the card
    lookup cannot resolve are skipped and counted in unresolved_count.
    """
    library, workspace = await _open_workspace(session, plan_id)
    if resolve_cards:
        await workspace.resolve_cards(lookup)
    return placement_response(plan_id, workspace.result, library.ledger)


@router.post("/{plan_id}/insert-at-slot", response_model=PlacementResponse)
async def insert_at_slot(
    plan_id: str,
    request: InsertAtSlotRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    lookup: Annotated[ScryfallCardLookup, Depends(get_card_lookup)],
    resolve_cards: bool = False,
) -> PlacementResponse:
    """
    Drop a new card on a pocket and re-place.

    The card joins the segment that owns the surrounding pockets. Pass the
    same resolve_cards flag used to fetch the placements being shown, so
    pockets are read from that layout. Returns 409 when the container holds
    no cards yet (no segment to extend).
    """
    library, workspace = await _open_workspace(session, plan_id)
    if resolve_cards:
        await workspace.resolve_cards(lookup)
    if workspace.container(request.container_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Container is not part of this plan",
        )

    point = workspace.insert_card_at_slot(
        request.container_id, request.page_number, request.slot_on_page, request.card_id
    )
    if point is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Container is empty; add the card to a segment instead",
        )

    segment = workspace.segment(point.segment_id)
    if segment is not None:
        await upsert_segment(session, segment)
    await save_ledger(session, library.ledger)
    if resolve_cards:
        await workspace.resolve_cards(lookup)
    return placement_response(plan_id, workspace.result, library.ledger)


@router.delete("/{plan_id}/cards/{segment_id}/{position}", response_model=PlacementResponse)
async def remove_at_slot(
    plan_id: str,
    segment_id: str,
    position: Annotated[int, Path(ge=0)],
    session: Annotated[AsyncSession, Depends(get_session)],
    lookup: Annotated[ScryfallCardLookup, Depends(get_card_lookup)],
    resolve_cards: bool = False,
) -> PlacementResponse:
    """Remove a card from its segment by position and re-place."""
    library, workspace = await _open_workspace(session, plan_id)
    removed = workspace.remove_card_at_slot(segment_id, position)
    if removed is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No such card in this plan",
        )

    segment = workspace.segment(segment_id)
    if segment is not None:
        await upsert_segment(session, segment)
    await save_ledger(session, library.ledger)
    if resolve_cards:
        await workspace.resolve_cards(lookup)
    return placement_response(plan_id, workspace.result, library.ledger)
