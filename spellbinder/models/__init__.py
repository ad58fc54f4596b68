from spellbinder.models.card import CardRecord, CardSet, sort_by_collector_number
from spellbinder.models.container import (
    BOX_PAGE_NUMBER,
    UNBOUNDED_CAPACITY,
    Container,
    ContainerKind,
    PhysicalBinder,
    SlotLocation,
    StorageBox,
    capacity,
    location_to_slot_index,
    slot_index_to_location,
)
from spellbinder.models.ownership import CompletionStats, OwnershipLedger
from spellbinder.models.placement import (
    CardPlacement,
    OverflowRecord,
    PlacementResult,
    ownership_key,
    parse_ownership_key,
)
from spellbinder.models.plan import BinderPlan
from spellbinder.models.segment import Segment

__all__ = [
    "BOX_PAGE_NUMBER",
    "BinderPlan",
    "CardPlacement",
    "CardRecord",
    "CardSet",
    "CompletionStats",
    "Container",
    "ContainerKind",
    "OverflowRecord",
    "OwnershipLedger",
    "PhysicalBinder",
    "PlacementResult",
    "Segment",
    "SlotLocation",
    "StorageBox",
    "UNBOUNDED_CAPACITY",
    "capacity",
    "location_to_slot_index",
    "ownership_key",
    "parse_ownership_key",
    "slot_index_to_location",
    "sort_by_collector_number",
]
