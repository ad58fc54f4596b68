import logging

import pytest

from spellbinder.models.container import PhysicalBinder, StorageBox
from spellbinder.models.segment import Segment
from spellbinder.services.placement_engine import (
    calculate_placements,
    group_by_container,
    group_by_page,
    placements_for_container,
    placements_for_page,
    resolve_and_place,
)
from tests.factories import FakeCardLookup, make_card


def cards(prefix: str, count: int) -> list[str]:
    return [f"{prefix}{i}" for i in range(count)]


@pytest.fixture
def binder() -> PhysicalBinder:
    """Two pages of nine pockets: 18 slots."""
    return PhysicalBinder(id="binder-a", name="A", page_count=2, slots_per_page=9)


class TestSingleContainer:
    def test_overflow_past_capacity(self, binder: PhysicalBinder) -> None:
        """20 cards into 18 pockets: 18 placed, 2 overflow."""
        segment = Segment(id="s1", name="Set", card_ids=cards("c", 20))

        result = calculate_placements([segment], [binder])

        assert len(result.placements) == 18
        assert len(result.overflow) == 1
        assert result.overflow[0].segment_id == "s1"
        assert result.overflow[0].overflow_count == 2
        assert result.total_cards == 20
        assert result.total_capacity == 18

    def test_offset_reserves_leading_slots(self, binder: PhysicalBinder) -> None:
        segment = Segment(id="s1", name="Set", card_ids=cards("c", 20), offset=3)

        result = calculate_placements([segment], [binder])

        first = result.placements[0]
        assert (first.page_number, first.slot_on_page, first.slot_index) == (1, 4, 3)
        assert len(result.placements) == 15
        assert result.overflow_total == 5

    def test_spacer_leaves_blank_pocket(self) -> None:
        box = StorageBox(id="box", name="Box")
        segment = Segment(id="s1", name="Set", card_ids=cards("c", 5), spacers_before={2: 1})

        result = calculate_placements([segment], [box])

        assert [p.slot_index for p in result.placements] == [0, 1, 3, 4, 5]

    def test_positions_follow_card_order(self, binder: PhysicalBinder) -> None:
        segment = Segment(id="s1", name="Set", card_ids=["a", "a", "b"])

        result = calculate_placements([segment], [binder])

        assert [(p.card_id, p.position) for p in result.placements] == [
            ("a", 0),
            ("a", 1),
            ("b", 2),
        ]
        assert result.placements[1].ownership_key == "s1:1"

    def test_offset_larger_than_capacity_overflows_everything(self) -> None:
        tiny = PhysicalBinder(id="t", name="Tiny", page_count=1, slots_per_page=9)
        first = Segment(id="s1", name="First", card_ids=cards("a", 4))
        second = Segment(id="s2", name="Second", card_ids=cards("b", 2), offset=6)

        result = calculate_placements([first, second], [tiny])

        assert len(result.placements) == 4
        assert result.overflow_total == 2


class TestSharedFill:
    def test_second_segment_continues_after_first(self, binder: PhysicalBinder) -> None:
        first = Segment(id="s1", name="First", card_ids=cards("a", 4))
        second = Segment(id="s2", name="Second", card_ids=cards("b", 3))

        result = calculate_placements([first, second], [binder])

        assert [p.slot_index for p in result.placements if p.segment_id == "s2"] == [4, 5, 6]

    def test_auto_fill_spills_into_next_container(self, binder: PhysicalBinder) -> None:
        box = StorageBox(id="box", name="Box")
        segment = Segment(id="s1", name="Set", card_ids=cards("c", 20))

        result = calculate_placements([segment], [binder, box])

        assert not result.has_overflow
        spill = [p for p in result.placements if p.container_id == "box"]
        assert [p.slot_index for p in spill] == [0, 1]
        assert spill[0].container_index == 1

    def test_card_and_its_spacers_stay_together(self) -> None:
        """A card whose blanks do not fit moves to the next container with them."""
        small = PhysicalBinder(id="small", name="Small", page_count=1, slots_per_page=9)
        box = StorageBox(id="box", name="Box")
        segment = Segment(id="s1", name="Set", card_ids=cards("c", 9), spacers_before={8: 2})

        result = calculate_placements([segment], [small, box])

        last = result.placements[-1]
        assert last.container_id == "box"
        assert last.slot_index == 2


class TestTargetContainer:
    def test_full_target_with_no_later_container_overflows(
        self, binder: PhysicalBinder
    ) -> None:
        """Target full and nothing after it: the card overflows."""
        filler = Segment(id="s1", name="Filler", card_ids=cards("a", 18))
        pinned = Segment(id="s2", name="Pinned", card_ids=["x"], target_container_id="binder-a")

        result = calculate_placements([filler, pinned], [binder])

        assert [o.segment_id for o in result.overflow] == ["s2"]

    def test_target_never_falls_back_to_earlier_container(self) -> None:
        early = StorageBox(id="early", name="Early")
        target = PhysicalBinder(id="target", name="Target", page_count=1, slots_per_page=9)
        filler = Segment(
            id="s1", name="Filler", card_ids=cards("a", 9), target_container_id="target"
        )
        pinned = Segment(id="s2", name="Pinned", card_ids=["x"], target_container_id="target")

        result = calculate_placements([filler, pinned], [early, target])

        assert result.overflow_total == 1
        assert all(p.container_id == "target" for p in result.placements)

    def test_target_falls_forward(self, binder: PhysicalBinder) -> None:
        box = StorageBox(id="box", name="Box")
        filler = Segment(id="s1", name="Filler", card_ids=cards("a", 18))
        pinned = Segment(id="s2", name="Pinned", card_ids=["x"], target_container_id="binder-a")

        result = calculate_placements([filler, pinned], [binder, box])

        assert result.placements[-1].container_id == "box"
        assert not result.has_overflow

    def test_target_skips_ahead_of_earlier_containers(self, binder: PhysicalBinder) -> None:
        box = StorageBox(id="box", name="Box")
        pinned = Segment(id="s1", name="Pinned", card_ids=cards("c", 2), target_container_id="box")

        result = calculate_placements([pinned], [binder, box])

        assert {p.container_id for p in result.placements} == {"box"}

    def test_offset_goes_to_target(self, binder: PhysicalBinder) -> None:
        box = StorageBox(id="box", name="Box")
        pinned = Segment(
            id="s1", name="Pinned", card_ids=["c"], offset=2, target_container_id="box"
        )

        result = calculate_placements([pinned], [binder, box])

        assert result.placements[0].slot_index == 2
        assert result.placements[0].container_id == "box"

    def test_dangling_target_means_auto_fill(self, binder: PhysicalBinder) -> None:
        segment = Segment(id="s1", name="Set", card_ids=["c"], target_container_id="deleted")

        result = calculate_placements([segment], [binder])

        assert result.placements[0].container_id == "binder-a"


class TestInvariants:
    def test_deterministic(self, binder: PhysicalBinder) -> None:
        segments = [
            Segment(id="s1", name="One", card_ids=cards("a", 7), offset=2, spacers_before={3: 1}),
            Segment(id="s2", name="Two", card_ids=cards("b", 15)),
        ]

        assert calculate_placements(segments, [binder]) == calculate_placements(segments, [binder])

    def test_conservation_and_capacity(self, binder: PhysicalBinder) -> None:
        """Placed + overflow == total, and no container exceeds its capacity."""
        other = PhysicalBinder(id="binder-b", name="B", page_count=1, slots_per_page=12)
        segments = [
            Segment(id="s1", name="One", card_ids=cards("a", 11), spacers_before={4: 3}),
            Segment(id="s2", name="Two", card_ids=cards("b", 9), target_container_id="binder-b"),
            Segment(id="s3", name="Three", card_ids=cards("c", 10), offset=5),
        ]

        result = calculate_placements(segments, [binder, other])

        assert len(result.placements) + result.overflow_total == result.total_cards == 30
        per_container = group_by_container(result.placements)
        assert len(per_container.get("binder-a", [])) <= 18
        assert len(per_container.get("binder-b", [])) <= 12
        slots = [(p.container_id, p.slot_index) for p in result.placements]
        assert len(slots) == len(set(slots))

    def test_no_containers_overflows_all(self) -> None:
        segment = Segment(id="s1", name="Set", card_ids=cards("c", 3))

        result = calculate_placements([segment], [])

        assert result.placements == []
        assert result.overflow_total == 3

    def test_logs_overflow(
        self, binder: PhysicalBinder, caplog: pytest.LogCaptureFixture
    ) -> None:
        segment = Segment(id="s1", name="Set", card_ids=cards("c", 19))

        with caplog.at_level(logging.INFO, logger="spellbinder.services.placement_engine"):
            calculate_placements([segment], [binder])

        assert "overflowed by 1" in caplog.text


class TestCardMap:
    def test_unresolved_ids_are_skipped(self, binder: PhysicalBinder) -> None:
        """Ids missing from the card map take no pocket and are counted separately."""
        segment = Segment(id="s1", name="Set", card_ids=["a", "gone", "b"])
        card_map = {"a": make_card("a"), "b": make_card("b")}

        result = calculate_placements([segment], [binder], card_map)

        assert [(p.card_id, p.position, p.slot_index) for p in result.placements] == [
            ("a", 0, 0),
            ("b", 2, 1),
        ]
        assert result.unresolved_count == 1
        assert not result.has_overflow
        assert result.placements[0].card == card_map["a"]

    async def test_resolve_and_place(self, binder: PhysicalBinder) -> None:
        lookup = FakeCardLookup(cards=[make_card("a")])
        segment = Segment(id="s1", name="Set", card_ids=["a", "b"])

        result = await resolve_and_place([segment], [binder], lookup)

        assert lookup.requested == [["a", "b"]]
        assert len(result.placements) == 1
        assert result.unresolved_count == 1


class TestResultQueries:
    def test_page_queries(self) -> None:
        first = PhysicalBinder(id="a", name="A", page_count=3, slots_per_page=9)
        segment = Segment(id="s1", name="Set", card_ids=cards("c", 20))

        result = calculate_placements([segment], [first])

        assert len(placements_for_container(result.placements, "a")) == 20
        assert len(placements_for_page(result.placements, "a", 2)) == 9
        assert len(placements_for_page(result.placements, "a", 3)) == 2
        pages = group_by_page(result.placements)
        assert sorted(pages["a"]) == [1, 2, 3]
