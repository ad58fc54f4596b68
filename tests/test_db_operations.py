"""Tests for database CRUD operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from spellbinder.db.operations import (
    container_to_model,
    delete_container,
    delete_plan,
    delete_segment,
    get_container,
    get_plan,
    get_segment,
    list_containers,
    load_ledger,
    load_library,
    plan_to_model,
    save_ledger,
    save_library,
    segment_to_model,
    upsert_container,
    upsert_plan,
    upsert_segment,
)
from spellbinder.models.container import PhysicalBinder, StorageBox
from spellbinder.models.ownership import OwnershipLedger
from spellbinder.models.plan import BinderPlan
from spellbinder.models.segment import Segment
from spellbinder.services.library import Library


class TestContainerOperations:
    async def test_round_trip_binder(self, session: AsyncSession) -> None:
        binder = PhysicalBinder(id="b1", name="Main", page_count=10, slots_per_page=12)

        await upsert_container(session, binder)
        stored = await get_container(session, "b1")

        assert stored is not None
        assert container_to_model(stored) == binder

    async def test_round_trip_box(self, session: AsyncSession) -> None:
        box = StorageBox(id="x1", name="Bulk", has_cover_image=True)

        await upsert_container(session, box)
        stored = await get_container(session, "x1")

        assert stored is not None
        assert stored.page_count is None
        assert container_to_model(stored) == box

    async def test_upsert_updates(self, session: AsyncSession) -> None:
        await upsert_container(session, StorageBox(id="x1", name="Bulk"))
        await upsert_container(session, StorageBox(id="x1", name="Renamed"))

        containers = await list_containers(session)

        assert len(containers) == 1
        assert containers[0].name == "Renamed"

    async def test_delete_removes_from_plans(self, session: AsyncSession) -> None:
        await upsert_container(session, StorageBox(id="x1", name="Bulk"))
        await upsert_plan(session, BinderPlan(id="p1", name="Plan", container_ids=["x1", "x2"]))

        assert await delete_container(session, "x1")

        plan = await get_plan(session, "p1")
        assert plan is not None
        assert plan.container_ids == ["x2"]
        assert not await delete_container(session, "x1")


class TestSegmentOperations:
    async def test_round_trip_keeps_spacers(self, session: AsyncSession) -> None:
        """Spacer map keys survive storage as JSON object keys."""
        segment = Segment(
            id="s1",
            name="Set",
            set_code="dmu",
            card_ids=["a", "b", "c"],
            offset=3,
            target_container_id="b1",
            spacers_before={2: 1},
        )

        await upsert_segment(session, segment)
        stored = await get_segment(session, "s1")

        assert stored is not None
        assert segment_to_model(stored) == segment

    async def test_upsert_replaces_card_list(self, session: AsyncSession) -> None:
        segment = Segment(id="s1", name="Set", card_ids=["a"])
        await upsert_segment(session, segment)

        segment.insert_card("b", before_position=0)
        await upsert_segment(session, segment)

        stored = await get_segment(session, "s1")
        assert stored is not None
        assert stored.card_ids == ["b", "a"]

    async def test_delete_drops_flags_and_memberships(self, session: AsyncSession) -> None:
        await upsert_segment(session, Segment(id="s1", name="Set", card_ids=["a"]))
        await upsert_plan(session, BinderPlan(id="p1", name="Plan", segment_ids=["s1"]))
        await save_ledger(session, OwnershipLedger(owned={"s1:0", "s2:0"}))

        assert await delete_segment(session, "s1")

        ledger = await load_ledger(session)
        assert ledger.owned == {"s2:0"}
        plan = await get_plan(session, "p1")
        assert plan is not None
        assert plan.segment_ids == []


class TestPlanOperations:
    async def test_round_trip(self, session: AsyncSession) -> None:
        plan = BinderPlan(id="p1", name="Plan", container_ids=["b1"], segment_ids=["s1", "s2"])

        await upsert_plan(session, plan)
        stored = await get_plan(session, "p1")

        assert stored is not None
        assert plan_to_model(stored) == plan

    async def test_delete(self, session: AsyncSession) -> None:
        await upsert_plan(session, BinderPlan(id="p1", name="Plan"))

        assert await delete_plan(session, "p1")
        assert not await delete_plan(session, "p1")


class TestLedgerOperations:
    async def test_save_replaces_flags(self, session: AsyncSession) -> None:
        await save_ledger(session, OwnershipLedger(owned={"s1:0", "s1:1"}))

        written = await save_ledger(session, OwnershipLedger(owned={"s1:1"}, skipped={"s1:1"}))
        ledger = await load_ledger(session)

        assert written == 2
        assert ledger.owned == {"s1:1"}
        assert ledger.skipped == {"s1:1"}

    async def test_malformed_keys_not_stored(self, session: AsyncSession) -> None:
        written = await save_ledger(session, OwnershipLedger(owned={"garbage", "s1:0"}))

        assert written == 1


class TestLibraryOperations:
    async def test_save_and_load(self, session: AsyncSession) -> None:
        library = Library()
        binder = library.add_binder("Main", page_count=2, slots_per_page=9)
        segment = library.add_segment("Set", "tst", ["a", "b"])
        plan = library.create_plan("Plan")
        plan.add_container(binder.id)
        plan.add_segment(segment.id)
        library.ledger.set_owned(f"{segment.id}:1", True)

        await save_library(session, library)
        loaded = await load_library(session)

        assert loaded.containers == library.containers
        assert loaded.segments == library.segments
        assert loaded.plans == library.plans
        assert loaded.ledger.owned == library.ledger.owned
        workspace = loaded.workspace_for(plan.id)
        assert workspace is not None
        assert len(workspace.result.placements) == 2
