"""
Liveness and readiness checks.

Readiness counts rows in the planner tables, so an uninitialised schema
reports not ready, and says whether the Scryfall card cache exists yet.
"""

from pathlib import Path
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.config import settings
from spellbinder.db.database import get_session
from spellbinder.models.db import ContainerDB, PlanDB, SegmentDB

router = APIRouter(tags=["health"])


class LivenessResponse(BaseModel):
    status: Literal["alive"]
    app: str


class ReadinessResponse(BaseModel):
    """Table row counts are None when the database could not be queried."""

    status: Literal["ready", "not ready"]
    containers: int | None = None
    segments: int | None = None
    plans: int | None = None
    card_cache: Literal["present", "empty"]


def _card_cache_state() -> Literal["present", "empty"]:
    # The lookup creates the directory on its first write
    return "present" if Path(settings.card_cache_dir).is_dir() else "empty"


@router.get("/health", response_model=LivenessResponse)
async def health() -> LivenessResponse:
    """The process is up. Touches nothing else."""
    return LivenessResponse(status="alive", app=settings.app_name)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ReadinessResponse:
    """Count planner rows; 503 when the tables cannot be read."""
    card_cache = _card_cache_state()
    try:
        counts = [
            (await session.execute(select(func.count()).select_from(table))).scalar_one()
            for table in (ContainerDB, SegmentDB, PlanDB)
        ]
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="not ready", card_cache=card_cache)

    containers, segments, plans = counts
    return ReadinessResponse(
        status="ready",
        containers=containers,
        segments=segments,
        plans=plans,
        card_cache=card_cache,
    )
