"""
Placement result types.

Placements are computed, never stored. A placement ties one card occurrence
(segment id + position) to a container pocket for the current layout only;
ownership is tracked against the occurrence, not the pocket.
"""

from dataclasses import dataclass, field

from spellbinder.models.card import CardRecord


def ownership_key(segment_id: str, position: int) -> str:
    """Stable identity for a card occurrence: '<segment_id>:<position>'."""
    return f"{segment_id}:{position}"


def parse_ownership_key(key: str) -> tuple[str, int] | None:
    """Split an ownership key back into (segment_id, position). None if malformed."""
    segment_id, sep, position = key.rpartition(":")
    if not sep or not segment_id or not position.isdigit():
        return None
    return segment_id, int(position)


@dataclass(frozen=True, slots=True)
class CardPlacement:
    """
    One card occurrence assigned to one pocket.

    Attributes:
        card_id: Card identifier from the segment
        segment_id: Segment the occurrence belongs to
        position: Index of the occurrence in the segment's card list
        container_id: Container receiving the card
        container_index: Position of that container in the plan's order
        slot_index: 0-based linear slot inside the container
        page_number: 1-based page (always 1 for boxes)
        slot_on_page: 1-based pocket on the page (linear position for boxes)
        card: Resolved card record, when a card map was supplied
    """

    card_id: str
    segment_id: str
    position: int
    container_id: str
    container_index: int
    slot_index: int
    page_number: int
    slot_on_page: int
    card: CardRecord | None = None

    @property
    def ownership_key(self) -> str:
        return ownership_key(self.segment_id, self.position)


@dataclass(frozen=True, slots=True)
class OverflowRecord:
    """Card occurrences in a segment that found no free pocket."""

    segment_id: str
    segment_name: str
    overflow_count: int


@dataclass
class PlacementResult:
    """Output of one placement pass."""

    placements: list[CardPlacement] = field(default_factory=list)
    overflow: list[OverflowRecord] = field(default_factory=list)
    total_cards: int = 0
    total_capacity: int = 0
    # Positions skipped because the card lookup could not resolve their id
    unresolved_count: int = 0

    @property
    def overflow_total(self) -> int:
        return sum(record.overflow_count for record in self.overflow)

    @property
    def has_overflow(self) -> bool:
        return bool(self.overflow)
