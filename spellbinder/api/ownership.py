"""
Ownership API endpoints.

Owned and skipped are independent flags on a card occurrence, addressed by
segment id and position.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.db import load_ledger, save_ledger
from spellbinder.db.database import get_session
from spellbinder.models.ownership import OwnershipLedger
from spellbinder.models.placement import ownership_key

router = APIRouter(prefix="/ownership", tags=["ownership"])


class LedgerResponse(BaseModel):
    """All owned and skipped keys ('<segment_id>:<position>')."""

    owned: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class FlagResponse(BaseModel):
    """Flags on one card occurrence after an edit."""

    key: str
    owned: bool
    skipped: bool


class BulkOwnedRequest(BaseModel):
    keys: list[str] = Field(..., examples=[["0f6c...:0", "0f6c...:1"]])
    owned: bool = True


def _flags(ledger: OwnershipLedger, key: str) -> FlagResponse:
    return FlagResponse(key=key, owned=ledger.is_owned(key), skipped=ledger.is_skipped(key))


@router.get("", response_model=LedgerResponse)
async def get_ledger(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> LedgerResponse:
    ledger = await load_ledger(session)
    return LedgerResponse(owned=sorted(ledger.owned), skipped=sorted(ledger.skipped))


@router.post("/{segment_id}/{position}/owned", response_model=FlagResponse)
async def toggle_owned(
    segment_id: str,
    position: Annotated[int, Path(ge=0)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> FlagResponse:
    """Flip the owned flag on one card occurrence."""
    ledger = await load_ledger(session)
    key = ownership_key(segment_id, position)
    ledger.toggle_owned(key)
    await save_ledger(session, ledger)
    return _flags(ledger, key)


@router.post("/{segment_id}/{position}/skipped", response_model=FlagResponse)
async def toggle_skipped(
    segment_id: str,
    position: Annotated[int, Path(ge=0)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> FlagResponse:
    """Flip the skipped flag on one card occurrence."""
    ledger = await load_ledger(session)
    key = ownership_key(segment_id, position)
    ledger.toggle_skipped(key)
    await save_ledger(session, ledger)
    return _flags(ledger, key)


@router.put("/owned", response_model=LedgerResponse)
async def set_many_owned(
    request: BulkOwnedRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> LedgerResponse:
    """Mark several occurrences owned (or not owned) at once."""
    ledger = await load_ledger(session)
    ledger.set_many_owned(request.keys, request.owned)
    await save_ledger(session, ledger)
    return LedgerResponse(owned=sorted(ledger.owned), skipped=sorted(ledger.skipped))
