"""
Owned / skipped flags keyed by card occurrence.

Keys are '<segment_id>:<position>' (see ownership_key). Positions are list
indices, not stable ids, so every insert or removal in a segment must be
mirrored here with shift_for_insert / shift_for_remove in the same edit.

INVARIANT: owned and skipped are independent flags; a key may carry both.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from spellbinder.models.placement import CardPlacement, ownership_key, parse_ownership_key


@dataclass(frozen=True, slots=True)
class CompletionStats:
    """Owned / skipped / missing counts over a set of placed cards."""

    total: int
    owned: int
    skipped: int

    @property
    def missing(self) -> int:
        """Placed cards that are neither owned nor skipped."""
        return self.total - self.owned - self.skipped

    @property
    def completion_percentage(self) -> float:
        """Owned share of the cards still wanted (skipped cards excluded)."""
        wanted = self.total - self.skipped
        if wanted <= 0:
            return 100.0
        return round(self.owned / wanted * 100, 1)


def _shift_keys(keys: set[str], segment_id: str, pivot: int, removing: bool) -> set[str]:
    shifted: set[str] = set()
    for key in keys:
        parsed = parse_ownership_key(key)
        if parsed is None or parsed[0] != segment_id:
            shifted.add(key)
            continue
        position = parsed[1]
        if removing:
            if position == pivot:
                continue
            if position > pivot:
                position -= 1
        elif position >= pivot:
            position += 1
        shifted.add(ownership_key(segment_id, position))
    return shifted


@dataclass
class OwnershipLedger:
    """Which card occurrences the user owns or has chosen to skip."""

    owned: set[str] = field(default_factory=set)
    skipped: set[str] = field(default_factory=set)

    # --- Owned ---

    def is_owned(self, key: str) -> bool:
        return key in self.owned

    def toggle_owned(self, key: str) -> bool:
        """Flip the owned flag. Returns the new state."""
        if key in self.owned:
            self.owned.discard(key)
            return False
        self.owned.add(key)
        return True

    def set_owned(self, key: str, owned: bool) -> None:
        if owned:
            self.owned.add(key)
        else:
            self.owned.discard(key)

    def set_many_owned(self, keys: Iterable[str], owned: bool) -> None:
        for key in keys:
            self.set_owned(key, owned)

    # --- Skipped ---

    def is_skipped(self, key: str) -> bool:
        return key in self.skipped

    def toggle_skipped(self, key: str) -> bool:
        """Flip the skipped flag. Returns the new state."""
        if key in self.skipped:
            self.skipped.discard(key)
            return False
        self.skipped.add(key)
        return True

    def set_skipped(self, key: str, skipped: bool) -> None:
        if skipped:
            self.skipped.add(key)
        else:
            self.skipped.discard(key)

    # --- Re-keying ---

    def shift_for_insert(self, segment_id: str, insert_position: int) -> None:
        """A card was inserted at insert_position: keys at or after it move up one."""
        self.owned = _shift_keys(self.owned, segment_id, insert_position, removing=False)
        self.skipped = _shift_keys(self.skipped, segment_id, insert_position, removing=False)

    def shift_for_remove(self, segment_id: str, remove_position: int) -> None:
        """A card was removed: its key is dropped and later keys move down one."""
        self.owned = _shift_keys(self.owned, segment_id, remove_position, removing=True)
        self.skipped = _shift_keys(self.skipped, segment_id, remove_position, removing=True)

    def drop_segment(self, segment_id: str) -> None:
        """Forget every flag belonging to a deleted segment."""
        prefix = f"{segment_id}:"
        self.owned = {key for key in self.owned if not key.startswith(prefix)}
        self.skipped = {key for key in self.skipped if not key.startswith(prefix)}

    # --- Reporting ---

    def completion(self, placements: Iterable[CardPlacement]) -> CompletionStats:
        """Count owned / skipped among placed cards."""
        total = owned = skipped = 0
        for placement in placements:
            key = placement.ownership_key
            total += 1
            if key in self.skipped:
                skipped += 1
            elif key in self.owned:
                owned += 1
        return CompletionStats(total=total, owned=owned, skipped=skipped)
