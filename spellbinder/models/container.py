"""
Container capacity model.

A container is either a page-based binder with a fixed number of pockets
or a storage box with no practical limit. Placement works on a linear slot
index per container; this module converts between that index and the
(page, slot-on-page) pair shown to the user.

INVARIANT: binder capacity == page_count * slots_per_page.
INVARIANT: boxes report page 1 and a 1-based linear slot for every index.
"""

import sys
from dataclasses import dataclass
from typing import Literal

from spellbinder.config import ALLOWED_SLOTS_PER_PAGE

ContainerKind = Literal["binder", "box"]

# Stand-in for "unlimited" when summing capacities; larger than any real collection
UNBOUNDED_CAPACITY = sys.maxsize

# Boxes have no pages; every box slot lives on this page
BOX_PAGE_NUMBER = 1


@dataclass(frozen=True, slots=True)
class PhysicalBinder:
    """
    A binder with a fixed number of pages and pockets per page.

    Attributes:
        id: Stable container identifier
        name: Display name
        page_count: Number of pages (>= 1)
        slots_per_page: Pockets per page (9 or 12)
        has_cover_image: Whether a cover image has been uploaded
    """

    id: str
    name: str
    page_count: int
    slots_per_page: int
    has_cover_image: bool = False

    def __post_init__(self) -> None:
        if self.page_count < 1:
            raise ValueError(f"Binder '{self.name}' must have at least one page")
        if self.slots_per_page not in ALLOWED_SLOTS_PER_PAGE:
            raise ValueError(
                f"Binder '{self.name}' has {self.slots_per_page} slots per page "
                f"(allowed: {', '.join(str(n) for n in ALLOWED_SLOTS_PER_PAGE)})"
            )

    @property
    def kind(self) -> ContainerKind:
        return "binder"


@dataclass(frozen=True, slots=True)
class StorageBox:
    """A storage box. Boxes hold any number of cards in a single row."""

    id: str
    name: str
    has_cover_image: bool = False

    @property
    def kind(self) -> ContainerKind:
        return "box"


Container = PhysicalBinder | StorageBox


@dataclass(frozen=True, slots=True)
class SlotLocation:
    """Where a linear slot index lands inside a container (both 1-based)."""

    page_number: int
    slot_on_page: int


def capacity(container: Container) -> int:
    """Total slots in a container. Boxes report UNBOUNDED_CAPACITY."""
    match container:
        case PhysicalBinder(page_count=pages, slots_per_page=per_page):
            return pages * per_page
        case StorageBox():
            return UNBOUNDED_CAPACITY


def slot_index_to_location(container: Container, index: int) -> SlotLocation:
    """
    Convert a 0-based linear slot index to a page/slot pair.

    Callers must check the index against capacity() first; this function
    does not validate.
    """
    match container:
        case PhysicalBinder(slots_per_page=per_page):
            return SlotLocation(
                page_number=index // per_page + 1,
                slot_on_page=index % per_page + 1,
            )
        case StorageBox():
            return SlotLocation(page_number=BOX_PAGE_NUMBER, slot_on_page=index + 1)


def location_to_slot_index(container: Container, page_number: int, slot_on_page: int) -> int:
    """Inverse of slot_index_to_location."""
    match container:
        case PhysicalBinder(slots_per_page=per_page):
            return (page_number - 1) * per_page + (slot_on_page - 1)
        case StorageBox():
            return slot_on_page - 1
