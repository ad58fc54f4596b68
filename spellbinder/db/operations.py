"""
Database CRUD operations.

Provides async functions for creating, reading, updating, and deleting
containers, segments, plans and ownership flags, plus converters between
ORM rows and domain models.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.models.container import Container, PhysicalBinder, StorageBox
from spellbinder.models.db import ContainerDB, OwnershipFlagDB, PlanDB, SegmentDB
from spellbinder.models.ownership import OwnershipLedger
from spellbinder.models.placement import ownership_key, parse_ownership_key
from spellbinder.models.plan import BinderPlan
from spellbinder.models.segment import Segment
from spellbinder.services.library import Library

OWNED_FLAG = "owned"
SKIPPED_FLAG = "skipped"

# --- Container Operations ---


async def get_container(session: AsyncSession, container_id: str) -> ContainerDB | None:
    """Get a container by id. Returns None if not found."""
    return await session.get(ContainerDB, container_id)


async def list_containers(session: AsyncSession) -> list[ContainerDB]:
    """All containers, oldest first."""
    result = await session.execute(select(ContainerDB).order_by(ContainerDB.created_at))
    return list(result.scalars().all())


async def upsert_container(session: AsyncSession, container: Container) -> ContainerDB:
    """
    Insert or update a container.

    If a container with the same id exists, updates it.
    Otherwise creates a new record.
    """
    page_count: int | None = None
    slots_per_page: int | None = None
    if isinstance(container, PhysicalBinder):
        page_count = container.page_count
        slots_per_page = container.slots_per_page

    existing = await get_container(session, container.id)
    if existing:
        existing.name = container.name
        existing.kind = container.kind
        existing.page_count = page_count
        existing.slots_per_page = slots_per_page
        existing.has_cover_image = container.has_cover_image
        await session.flush()
        return existing

    db_container = ContainerDB(
        id=container.id,
        name=container.name,
        kind=container.kind,
        page_count=page_count,
        slots_per_page=slots_per_page,
        has_cover_image=container.has_cover_image,
    )
    session.add(db_container)
    await session.flush()
    return db_container


def container_to_model(db_container: ContainerDB) -> Container:
    """Convert a database container to a domain model."""
    if db_container.kind == "box":
        return StorageBox(
            id=db_container.id,
            name=db_container.name,
            has_cover_image=db_container.has_cover_image,
        )
    return PhysicalBinder(
        id=db_container.id,
        name=db_container.name,
        page_count=db_container.page_count or 1,
        slots_per_page=db_container.slots_per_page or 9,
        has_cover_image=db_container.has_cover_image,
    )


async def delete_container(session: AsyncSession, container_id: str) -> bool:
    """
    Delete a container and remove it from every plan.

    Segments targeting it are left alone; placement ignores dangling targets.
    Returns True if deleted, False if not found.
    """
    container = await get_container(session, container_id)
    if not container:
        return False

    for plan in await list_plans(session):
        if container_id in plan.container_ids:
            plan.container_ids = [cid for cid in plan.container_ids if cid != container_id]

    await session.delete(container)
    await session.flush()
    return True


# --- Segment Operations ---


async def get_segment(session: AsyncSession, segment_id: str) -> SegmentDB | None:
    """Get a segment by id. Returns None if not found."""
    return await session.get(SegmentDB, segment_id)


async def list_segments(session: AsyncSession) -> list[SegmentDB]:
    """All segments, oldest first."""
    result = await session.execute(select(SegmentDB).order_by(SegmentDB.created_at))
    return list(result.scalars().all())


async def upsert_segment(session: AsyncSession, segment: Segment) -> SegmentDB:
    """Insert or update a segment (card list and spacer map replaced wholesale)."""
    spacers = {str(position): count for position, count in segment.spacers_before.items()}

    existing = await get_segment(session, segment.id)
    if existing:
        existing.name = segment.name
        existing.set_code = segment.set_code
        existing.card_ids = list(segment.card_ids)
        existing.offset = segment.offset
        existing.target_container_id = segment.target_container_id
        existing.spacers_before = spacers
        await session.flush()
        return existing

    db_segment = SegmentDB(
        id=segment.id,
        name=segment.name,
        set_code=segment.set_code,
        card_ids=list(segment.card_ids),
        offset=segment.offset,
        target_container_id=segment.target_container_id,
        spacers_before=spacers,
    )
    session.add(db_segment)
    await session.flush()
    return db_segment


def segment_to_model(db_segment: SegmentDB) -> Segment:
    """Convert a database segment to a domain model."""
    return Segment(
        id=db_segment.id,
        name=db_segment.name,
        set_code=db_segment.set_code,
        card_ids=list(db_segment.card_ids),
        offset=db_segment.offset,
        target_container_id=db_segment.target_container_id,
        spacers_before={
            int(position): int(count) for position, count in db_segment.spacers_before.items()
        },
    )


async def delete_segment(session: AsyncSession, segment_id: str) -> bool:
    """
    Delete a segment, its ownership flags, and its plan memberships.

    Returns True if deleted, False if not found.
    """
    segment = await get_segment(session, segment_id)
    if not segment:
        return False

    await session.execute(delete(OwnershipFlagDB).where(OwnershipFlagDB.segment_id == segment_id))
    for plan in await list_plans(session):
        if segment_id in plan.segment_ids:
            plan.segment_ids = [sid for sid in plan.segment_ids if sid != segment_id]

    await session.delete(segment)
    await session.flush()
    return True


# --- Plan Operations ---


async def get_plan(session: AsyncSession, plan_id: str) -> PlanDB | None:
    """Get a plan by id. Returns None if not found."""
    return await session.get(PlanDB, plan_id)


async def list_plans(session: AsyncSession) -> list[PlanDB]:
    """All plans, oldest first."""
    result = await session.execute(select(PlanDB).order_by(PlanDB.created_at))
    return list(result.scalars().all())


async def upsert_plan(session: AsyncSession, plan: BinderPlan) -> PlanDB:
    """Insert or update a plan."""
    existing = await get_plan(session, plan.id)
    if existing:
        existing.name = plan.name
        existing.container_ids = list(plan.container_ids)
        existing.segment_ids = list(plan.segment_ids)
        await session.flush()
        return existing

    db_plan = PlanDB(
        id=plan.id,
        name=plan.name,
        container_ids=list(plan.container_ids),
        segment_ids=list(plan.segment_ids),
    )
    session.add(db_plan)
    await session.flush()
    return db_plan


def plan_to_model(db_plan: PlanDB) -> BinderPlan:
    """Convert a database plan to a domain model."""
    return BinderPlan(
        id=db_plan.id,
        name=db_plan.name,
        container_ids=list(db_plan.container_ids),
        segment_ids=list(db_plan.segment_ids),
    )


async def delete_plan(session: AsyncSession, plan_id: str) -> bool:
    """Delete a plan. Containers and segments are untouched."""
    plan = await get_plan(session, plan_id)
    if not plan:
        return False

    await session.delete(plan)
    await session.flush()
    return True


# --- Ownership Operations ---


async def load_ledger(session: AsyncSession) -> OwnershipLedger:
    """Read every owned / skipped flag into a ledger."""
    result = await session.execute(select(OwnershipFlagDB))
    ledger = OwnershipLedger()
    for row in result.scalars().all():
        key = ownership_key(row.segment_id, row.position)
        if row.flag == OWNED_FLAG:
            ledger.owned.add(key)
        elif row.flag == SKIPPED_FLAG:
            ledger.skipped.add(key)
    return ledger


async def save_ledger(session: AsyncSession, ledger: OwnershipLedger) -> int:
    """
    Replace all stored flags with the ledger's contents.

    Malformed keys are not stored. Returns the number of rows written.
    """
    await session.execute(delete(OwnershipFlagDB))

    rows: list[OwnershipFlagDB] = []
    for flag, keys in ((OWNED_FLAG, ledger.owned), (SKIPPED_FLAG, ledger.skipped)):
        for key in sorted(keys):
            parsed = parse_ownership_key(key)
            if parsed is None:
                continue
            segment_id, position = parsed
            rows.append(OwnershipFlagDB(segment_id=segment_id, position=position, flag=flag))

    session.add_all(rows)
    await session.flush()
    return len(rows)


# --- Whole library ---


async def load_library(session: AsyncSession) -> Library:
    """Load everything into an in-memory Library."""
    library = Library(ledger=await load_ledger(session))
    for db_container in await list_containers(session):
        container = container_to_model(db_container)
        library.containers[container.id] = container
    for db_segment in await list_segments(session):
        segment = segment_to_model(db_segment)
        library.segments[segment.id] = segment
    for db_plan in await list_plans(session):
        plan = plan_to_model(db_plan)
        library.plans[plan.id] = plan
    return library


async def save_library(session: AsyncSession, library: Library) -> None:
    """Upsert every container, segment and plan, and replace ownership flags."""
    for container in library.containers.values():
        await upsert_container(session, container)
    for segment in library.segments.values():
        await upsert_segment(session, segment)
    for plan in library.plans.values():
        await upsert_plan(session, plan)
    await save_ledger(session, library.ledger)
