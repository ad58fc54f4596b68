"""
Segment model with its spacer map.

A segment is an ordered checklist of card ids placed as one run. Blank
pockets can be reserved before any card via the spacer map, which is keyed
by position in the card list.

INVARIANT: spacer map keys are valid positions in card_ids.
INVARIANT: spacer map values are >= 1 (zero-count entries are deleted).
INVARIANT: card_ids and spacers_before are always renumbered together.
"""

from dataclasses import dataclass, field

from spellbinder.config import MAX_SEGMENT_OFFSET


@dataclass
class Segment:
    """
    An ordered run of cards to be placed into containers.

    Attributes:
        id: Stable segment identifier (ownership keys are built from it)
        name: Display name
        set_code: Source set code the checklist came from (e.g., "dmu")
        card_ids: Card ids in placement order; duplicates are distinct positions
        offset: Blank slots reserved before the first card (0-9)
        target_container_id: Preferred container, tried before auto-fill
        spacers_before: position -> blank slots inserted before that card
    """

    id: str
    name: str
    set_code: str = ""
    card_ids: list[str] = field(default_factory=list)
    offset: int = 0
    target_container_id: str | None = None
    spacers_before: dict[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 0 <= self.offset <= MAX_SEGMENT_OFFSET:
            raise ValueError(
                f"Segment '{self.name}' offset {self.offset} out of range 0-{MAX_SEGMENT_OFFSET}"
            )
        # Drop entries that cannot belong to a card, keep the map sparse
        self.spacers_before = {
            position: count
            for position, count in self.spacers_before.items()
            if 0 <= position < len(self.card_ids) and count > 0
        }

    def __len__(self) -> int:
        return len(self.card_ids)

    def _in_range(self, position: int) -> bool:
        return 0 <= position < len(self.card_ids)

    def spacer_count_before(self, position: int) -> int:
        """Blank slots reserved immediately before the card at `position`."""
        return self.spacers_before.get(position, 0)

    def add_spacer(self, position: int) -> bool:
        """Reserve one more blank slot before a card. No-op when out of range."""
        if not self._in_range(position):
            return False
        self.spacers_before[position] = self.spacers_before.get(position, 0) + 1
        return True

    def remove_spacer(self, position: int) -> bool:
        """Release one blank slot before a card. No-op when there is none."""
        current = self.spacers_before.get(position, 0)
        if not self._in_range(position) or current <= 0:
            return False
        if current > 1:
            self.spacers_before[position] = current - 1
        else:
            del self.spacers_before[position]
        return True

    def insert_card(self, card_id: str, before_position: int | None = None) -> int:
        """
        Insert a card and renumber the spacer map to match.

        Spacers at or after the insertion point move up with their card. If
        the card being displaced had blanks before it, the new card fills one
        of them, so that count drops by one.

        Args:
            card_id: Card to insert
            before_position: Position to insert at; None or out of range appends

        Returns:
            The position the card now occupies.
        """
        if before_position is None or not self._in_range(before_position):
            self.card_ids.append(card_id)
            return len(self.card_ids) - 1

        displaced_spacers = self.spacers_before.get(before_position, 0)
        self.card_ids.insert(before_position, card_id)

        shifted: dict[int, int] = {}
        for position, count in self.spacers_before.items():
            if position < before_position:
                shifted[position] = count
            else:
                shifted[position + 1] = count

        if displaced_spacers > 1:
            shifted[before_position + 1] = displaced_spacers - 1
        elif displaced_spacers == 1:
            del shifted[before_position + 1]

        self.spacers_before = shifted
        return before_position

    def remove_card(self, position: int) -> str | None:
        """
        Remove the card at `position` along with the blanks reserved before it.

        Returns:
            The removed card id, or None when position is out of range.
        """
        if not self._in_range(position):
            return None

        removed = self.card_ids.pop(position)
        self.spacers_before = {
            (index if index < position else index - 1): count
            for index, count in self.spacers_before.items()
            if index != position
        }
        return removed

    def total_spacers(self) -> int:
        """Blank slots reserved across the whole segment, offset excluded."""
        return sum(self.spacers_before.values())
