"""
Container API endpoints.

Provides CRUD operations for binders and storage boxes.
"""

import dataclasses
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.db import (
    container_to_model,
    delete_container,
    get_container,
    list_containers,
    upsert_container,
)
from spellbinder.db.database import get_session
from spellbinder.models.container import Container, PhysicalBinder, StorageBox
from spellbinder.services.library import generate_id

router = APIRouter(prefix="/containers", tags=["containers"])


class ContainerResponse(BaseModel):
    """Response model for a container."""

    id: str
    name: str
    kind: Literal["binder", "box"]
    page_count: int | None = None
    slots_per_page: int | None = None
    capacity: int | None = Field(
        default=None,
        description="Total pockets; null for boxes (unlimited)",
    )
    has_cover_image: bool = False


class ContainerCreateRequest(BaseModel):
    """Request model for creating a container."""

    name: str = Field(..., min_length=1, examples=["Dominaria United"])
    kind: Literal["binder", "box"] = "binder"
    page_count: int | None = Field(default=None, ge=1, description="Required for binders")
    slots_per_page: Literal[9, 12] | None = Field(
        default=None, description="Required for binders: 9 (3x3) or 12 (3x4)"
    )


class ContainerUpdateRequest(BaseModel):
    """Request model for updating a container. Omitted fields are kept."""

    name: str | None = Field(default=None, min_length=1)
    page_count: int | None = Field(default=None, ge=1)
    slots_per_page: Literal[9, 12] | None = None


class DeleteResponse(BaseModel):
    """Response model for delete operations."""

    id: str
    deleted: bool
    message: str = ""


def container_response(container: Container) -> ContainerResponse:
    if isinstance(container, PhysicalBinder):
        return ContainerResponse(
            id=container.id,
            name=container.name,
            kind="binder",
            page_count=container.page_count,
            slots_per_page=container.slots_per_page,
            capacity=container.page_count * container.slots_per_page,
            has_cover_image=container.has_cover_image,
        )
    return ContainerResponse(
        id=container.id,
        name=container.name,
        kind="box",
        has_cover_image=container.has_cover_image,
    )


@router.get("", response_model=list[ContainerResponse])
async def list_all_containers(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[ContainerResponse]:
    """List every binder and box."""
    return [container_response(container_to_model(c)) for c in await list_containers(session)]


@router.post("", response_model=ContainerResponse, status_code=status.HTTP_201_CREATED)
async def create_container(
    request: ContainerCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ContainerResponse:
    """Create a binder (pages x pockets) or an unlimited storage box."""
    container: Container
    if request.kind == "box":
        container = StorageBox(id=generate_id(), name=request.name)
    else:
        if request.page_count is None or request.slots_per_page is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Binders need page_count and slots_per_page",
            )
        container = PhysicalBinder(
            id=generate_id(),
            name=request.name,
            page_count=request.page_count,
            slots_per_page=request.slots_per_page,
        )

    await upsert_container(session, container)
    return container_response(container)


@router.get("/{container_id}", response_model=ContainerResponse)
async def get_one_container(
    container_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ContainerResponse:
    db_container = await get_container(session, container_id)
    if db_container is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Container not found")
    return container_response(container_to_model(db_container))


@router.put("/{container_id}", response_model=ContainerResponse)
async def update_container(
    container_id: str,
    request: ContainerUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ContainerResponse:
    """
    Rename or resize a container.

    Page layout fields only apply to binders.
    """
    db_container = await get_container(session, container_id)
    if db_container is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Container not found")

    container = container_to_model(db_container)
    changes: dict[str, object] = {}
    if request.name is not None:
        changes["name"] = request.name
    if isinstance(container, PhysicalBinder):
        if request.page_count is not None:
            changes["page_count"] = request.page_count
        if request.slots_per_page is not None:
            changes["slots_per_page"] = request.slots_per_page
    elif request.page_count is not None or request.slots_per_page is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Boxes have no pages",
        )

    updated = dataclasses.replace(container, **changes)  # type: ignore[arg-type]
    await upsert_container(session, updated)
    return container_response(updated)


@router.delete("/{container_id}", response_model=DeleteResponse)
async def remove_container(
    container_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    """
    Delete a container.

    It is removed from every plan. Segments pinned to it fall back to auto-fill.
    """
    deleted = await delete_container(session, container_id)
    message = "Container deleted." if deleted else "No container found to delete."
    return DeleteResponse(id=container_id, deleted=deleted, message=message)
