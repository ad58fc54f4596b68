"""
Locate which segment a new card belongs to when dropped on a pocket.

Given a pocket in a container, look at the placed cards either side of it
in that container. The card joins the segment of the card before the
pocket (or after it, at the very start). It is inserted in front of the
following card when that card is in the same segment, otherwise appended
to the owning segment.

Any insert or removal renumbers later positions, so ownership keys are
shifted in the same call.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from spellbinder.models.container import Container, location_to_slot_index
from spellbinder.models.ownership import OwnershipLedger
from spellbinder.models.placement import CardPlacement
from spellbinder.models.segment import Segment


@dataclass(frozen=True, slots=True)
class InsertionPoint:
    """
    Where a new card goes in segment terms.

    Attributes:
        segment_id: Owning segment
        before_position: Insert in front of this position; None appends
    """

    segment_id: str
    before_position: int | None


def locate_insertion(
    placements: Sequence[CardPlacement],
    container: Container,
    page_number: int,
    slot_on_page: int,
) -> InsertionPoint | None:
    """
    Resolve a pocket to an insertion point.

    Returns None when the container holds no placed cards, since there is
    no segment to extend.
    """
    target_index = location_to_slot_index(container, page_number, slot_on_page)
    in_container = sorted(
        (p for p in placements if p.container_id == container.id),
        key=lambda p: p.slot_index,
    )

    before: CardPlacement | None = None
    after: CardPlacement | None = None
    for placement in in_container:
        if placement.slot_index < target_index:
            before = placement
        else:
            after = placement
            break

    owner = before or after
    if owner is None:
        return None

    if after is not None and (before is None or after.segment_id == before.segment_id):
        return InsertionPoint(segment_id=owner.segment_id, before_position=after.position)
    return InsertionPoint(segment_id=owner.segment_id, before_position=None)


def insert_card_rekeyed(
    segment: Segment,
    ledger: OwnershipLedger,
    card_id: str,
    before_position: int | None = None,
) -> int:
    """
    Insert a card into a segment and shift ownership keys to match.

    Returns:
        The position the new card occupies.
    """
    if before_position is not None and 0 <= before_position < len(segment.card_ids):
        # Re-key first so existing flags follow their cards up one
        ledger.shift_for_insert(segment.id, before_position)
    return segment.insert_card(card_id, before_position)


def remove_card_rekeyed(segment: Segment, ledger: OwnershipLedger, position: int) -> str | None:
    """
    Remove a card from a segment, dropping its flags and shifting later keys.

    Returns:
        The removed card id, or None when position is out of range.
    """
    removed = segment.remove_card(position)
    if removed is not None:
        ledger.shift_for_remove(segment.id, position)
    return removed
