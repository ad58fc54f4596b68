"""
Placement engine.

Lays segments into containers as one continuous fill. Each container keeps
a "next free slot" counter shared by every segment in the pass, so a
segment picks up exactly where the previous one stopped.

Per segment:
  1. Resolve the target container (unknown ids mean no target).
  2. Reserve `offset` blank slots in the target, or in the first container
     with room when there is no target.
  3. For each card, find a container with room for its spacers plus the
     card: the target first, then containers after the target in order
     (all containers when there is no target). Consume the spacers there
     and place the card. With no room anywhere the card overflows.

INVARIANT: the function is pure. Counters live for one call only.
INVARIANT: len(placements) + overflow + unresolved == total_cards.
INVARIANT: no container receives more placements than its capacity.
"""

import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from typing import Protocol

from spellbinder.models.card import CardRecord
from spellbinder.models.container import Container, capacity, slot_index_to_location
from spellbinder.models.placement import CardPlacement, OverflowRecord, PlacementResult
from spellbinder.models.segment import Segment

logger = logging.getLogger(__name__)


class CardLookup(Protocol):
    """Anything that can resolve card ids to records. Missing ids are omitted."""

    async def resolve_cards(self, card_ids: Sequence[str]) -> dict[str, CardRecord]: ...


class _FillState:
    """Next-free-slot counters for one placement pass."""

    def __init__(self, containers: Sequence[Container]) -> None:
        self.containers = containers
        self.capacities = [capacity(c) for c in containers]
        self.next_slot = [0] * len(containers)

    def index_of(self, container_id: str | None) -> int | None:
        if container_id is None:
            return None
        for index, container in enumerate(self.containers):
            if container.id == container_id:
                return index
        return None

    def has_room(self, index: int, needed: int) -> bool:
        return self.next_slot[index] + needed <= self.capacities[index]

    def first_with_room(self, start: int, needed: int) -> int | None:
        for index in range(start, len(self.containers)):
            if self.has_room(index, needed):
                return index
        return None


def calculate_placements(
    segments: Sequence[Segment],
    containers: Sequence[Container],
    cards: Mapping[str, CardRecord] | None = None,
) -> PlacementResult:
    """
    Assign every card occurrence to a pocket, or count it as overflow.

    Args:
        segments: Segments in placement order
        containers: Containers in fill order (auto-fill tie-break)
        cards: Resolved card records. When given, positions whose id is
            missing are skipped without consuming a slot. When None every
            id is placed.

    Returns:
        Placements in segment order then position order, overflow per
        segment, total card count and total capacity.
    """
    state = _FillState(containers)
    result = PlacementResult(
        total_cards=sum(len(segment.card_ids) for segment in segments),
        total_capacity=sum(state.capacities),
    )

    for segment in segments:
        target = state.index_of(segment.target_container_id)
        # Auto-fill never reaches back before the target
        search_start = target + 1 if target is not None else 0

        if segment.offset > 0:
            offset_index = target if target is not None else state.first_with_room(0, 1)
            if offset_index is not None:
                state.next_slot[offset_index] += segment.offset

        segment_overflow = 0
        for position, card_id in enumerate(segment.card_ids):
            card = None
            if cards is not None:
                card = cards.get(card_id)
                if card is None:
                    result.unresolved_count += 1
                    continue

            spacers = segment.spacer_count_before(position)
            needed = spacers + 1

            destination: int | None = None
            if target is not None and state.has_room(target, needed):
                destination = target
            else:
                destination = state.first_with_room(search_start, needed)

            if destination is None:
                segment_overflow += 1
                continue

            state.next_slot[destination] += spacers
            slot_index = state.next_slot[destination]
            container = containers[destination]
            location = slot_index_to_location(container, slot_index)
            result.placements.append(
                CardPlacement(
                    card_id=card_id,
                    segment_id=segment.id,
                    position=position,
                    container_id=container.id,
                    container_index=destination,
                    slot_index=slot_index,
                    page_number=location.page_number,
                    slot_on_page=location.slot_on_page,
                    card=card,
                )
            )
            state.next_slot[destination] = slot_index + 1

        if segment_overflow > 0:
            logger.info(
                "Segment %s (%s) overflowed by %d cards",
                segment.id,
                segment.name,
                segment_overflow,
            )
            result.overflow.append(
                OverflowRecord(
                    segment_id=segment.id,
                    segment_name=segment.name,
                    overflow_count=segment_overflow,
                )
            )

    logger.debug(
        "Placed %d of %d cards across %d containers (%d overflow, %d unresolved)",
        len(result.placements),
        result.total_cards,
        len(containers),
        result.overflow_total,
        result.unresolved_count,
    )
    return result


async def resolve_and_place(
    segments: Sequence[Segment],
    containers: Sequence[Container],
    lookup: CardLookup,
) -> PlacementResult:
    """Resolve every card id through `lookup`, then run the placement pass."""
    card_ids = [card_id for segment in segments for card_id in segment.card_ids]
    cards = await lookup.resolve_cards(card_ids)
    return calculate_placements(segments, containers, cards)


# --- Result queries ---


def placements_for_container(
    placements: Sequence[CardPlacement], container_id: str
) -> list[CardPlacement]:
    return [p for p in placements if p.container_id == container_id]


def placements_for_page(
    placements: Sequence[CardPlacement], container_id: str, page_number: int
) -> list[CardPlacement]:
    return [
        p for p in placements if p.container_id == container_id and p.page_number == page_number
    ]


def group_by_container(placements: Sequence[CardPlacement]) -> dict[str, list[CardPlacement]]:
    """Container id -> placements, in placement order."""
    grouped: dict[str, list[CardPlacement]] = defaultdict(list)
    for placement in placements:
        grouped[placement.container_id].append(placement)
    return dict(grouped)


def group_by_page(
    placements: Sequence[CardPlacement],
) -> dict[str, dict[int, list[CardPlacement]]]:
    """Container id -> page number -> placements."""
    grouped: dict[str, dict[int, list[CardPlacement]]] = {}
    for placement in placements:
        pages = grouped.setdefault(placement.container_id, {})
        pages.setdefault(placement.page_number, []).append(placement)
    return grouped
