"""
Import API endpoints.

Loads exports of the original browser app into the database.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.db import load_ledger, save_library
from spellbinder.db.database import get_session
from spellbinder.parsers.legacy_export import parse_legacy_export

router = APIRouter(prefix="/import", tags=["import"])


class LegacyImportResponse(BaseModel):
    """Counts of what was imported."""

    containers: int
    segments: int
    plans: int
    owned: int
    skipped: int


@router.post("/legacy", response_model=LegacyImportResponse)
async def import_legacy_export(
    payload: Annotated[dict[str, Any], Body(...)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> LegacyImportResponse:
    """
    Import a browser-storage export.

    Records with matching ids are overwritten. Owned/skipped flags are
    merged with the ones already stored.
    """
    try:
        library = parse_legacy_export(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Could not read export: {e}",
        ) from e

    existing = await load_ledger(session)
    library.ledger.owned |= existing.owned
    library.ledger.skipped |= existing.skipped

    await save_library(session, library)
    return LegacyImportResponse(
        containers=len(library.containers),
        segments=len(library.segments),
        plans=len(library.plans),
        owned=len(library.ledger.owned),
        skipped=len(library.ledger.skipped),
    )
