"""
Plan workspace: segments + containers + ownership, kept in sync with placement.

Every mutating method applies one edit, mirrors any position renumbering
into the ownership ledger, then recomputes placement before returning.
Edits are applied one at a time; there is no background recomputation.
"""

import logging
from collections.abc import Mapping, Sequence

from spellbinder.config import MAX_SEGMENT_OFFSET
from spellbinder.models.card import CardRecord
from spellbinder.models.container import Container
from spellbinder.models.ownership import CompletionStats, OwnershipLedger
from spellbinder.models.placement import PlacementResult
from spellbinder.models.segment import Segment
from spellbinder.services.placement_engine import CardLookup, calculate_placements
from spellbinder.services.position_edit import (
    InsertionPoint,
    insert_card_rekeyed,
    locate_insertion,
    remove_card_rekeyed,
)

logger = logging.getLogger(__name__)


class PlanWorkspace:
    """
    Live placement state for one plan.

    Attributes:
        segments: Segments in placement order (mutated in place by edits)
        containers: Containers in fill order
        ledger: Owned / skipped flags
        cards: Resolved card records, or None to place by id only
        result: Latest placement result
    """

    def __init__(
        self,
        segments: Sequence[Segment],
        containers: Sequence[Container],
        ledger: OwnershipLedger | None = None,
        cards: Mapping[str, CardRecord] | None = None,
    ) -> None:
        self.segments = list(segments)
        self.containers = list(containers)
        self.ledger = ledger if ledger is not None else OwnershipLedger()
        self.cards: dict[str, CardRecord] | None = dict(cards) if cards is not None else None
        self.result = self.recalculate()

    def recalculate(self) -> PlacementResult:
        self.result = calculate_placements(self.segments, self.containers, self.cards)
        return self.result

    async def resolve_cards(self, lookup: CardLookup) -> PlacementResult:
        """Fetch card records for every id in the plan and re-place."""
        card_ids = [card_id for segment in self.segments for card_id in segment.card_ids]
        self.cards = await lookup.resolve_cards(card_ids)
        return self.recalculate()

    def segment(self, segment_id: str) -> Segment | None:
        return next((s for s in self.segments if s.id == segment_id), None)

    def container(self, container_id: str) -> Container | None:
        return next((c for c in self.containers if c.id == container_id), None)

    def completion(self) -> CompletionStats:
        return self.ledger.completion(self.result.placements)

    # --- Card edits ---

    def insert_card(
        self, segment_id: str, card_id: str, before_position: int | None = None
    ) -> int | None:
        """
        Insert a card into a segment, re-key ownership, re-place.

        Returns:
            The new card's position, or None if the segment is not in this plan.
        """
        segment = self.segment(segment_id)
        if segment is None:
            return None

        position = insert_card_rekeyed(segment, self.ledger, card_id, before_position)
        logger.debug("Inserted %s into segment %s at %d", card_id, segment_id, position)

        self.recalculate()
        return position

    def insert_card_at_slot(
        self, container_id: str, page_number: int, slot_on_page: int, card_id: str
    ) -> InsertionPoint | None:
        """
        Drop a new card on a pocket of a container.

        Returns:
            Where the card went in segment terms, or None when the container
            is unknown or empty (nothing to extend).
        """
        container = self.container(container_id)
        if container is None:
            return None

        point = locate_insertion(self.result.placements, container, page_number, slot_on_page)
        if point is None:
            logger.info(
                "No segment owns page %d slot %d of %s; insert skipped",
                page_number,
                slot_on_page,
                container_id,
            )
            return None

        self.insert_card(point.segment_id, card_id, point.before_position)
        return point

    def remove_card_at_slot(self, segment_id: str, position: int) -> str | None:
        """
        Remove the card at a segment position, re-key ownership, re-place.

        Returns:
            The removed card id, or None when nothing was removed.
        """
        segment = self.segment(segment_id)
        if segment is None:
            return None

        removed = remove_card_rekeyed(segment, self.ledger, position)
        if removed is None:
            return None

        logger.debug("Removed %s from segment %s at %d", removed, segment_id, position)
        self.recalculate()
        return removed

    # --- Spacers / offset / target ---

    def add_spacer(self, segment_id: str, position: int) -> bool:
        segment = self.segment(segment_id)
        if segment is None or not segment.add_spacer(position):
            return False
        self.recalculate()
        return True

    def remove_spacer(self, segment_id: str, position: int) -> bool:
        segment = self.segment(segment_id)
        if segment is None or not segment.remove_spacer(position):
            return False
        self.recalculate()
        return True

    def set_offset(self, segment_id: str, offset: int) -> bool:
        """
        Change a segment's leading blank slots.

        Raises:
            ValueError: If offset is outside 0-MAX_SEGMENT_OFFSET
        """
        if not 0 <= offset <= MAX_SEGMENT_OFFSET:
            raise ValueError(f"Offset {offset} out of range 0-{MAX_SEGMENT_OFFSET}")
        segment = self.segment(segment_id)
        if segment is None:
            return False
        segment.offset = offset
        self.recalculate()
        return True

    def set_target_container(self, segment_id: str, container_id: str | None) -> bool:
        """Pin a segment to a container, or clear the pin with None."""
        segment = self.segment(segment_id)
        if segment is None:
            return False
        segment.target_container_id = container_id
        self.recalculate()
        return True
