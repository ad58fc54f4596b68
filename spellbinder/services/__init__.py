"""
Spellbinder services.

Placement, position edits, plan workspaces and the card lookup client.
"""

from spellbinder.services.binder_workspace import PlanWorkspace
from spellbinder.services.card_lookup import (
    CardLookupError,
    ScryfallCardLookup,
    get_card_lookup,
)
from spellbinder.services.library import Library, generate_id
from spellbinder.services.placement_engine import (
    CardLookup,
    calculate_placements,
    group_by_container,
    group_by_page,
    placements_for_container,
    placements_for_page,
    resolve_and_place,
)
from spellbinder.services.position_edit import InsertionPoint, locate_insertion

__all__ = [
    "CardLookup",
    "CardLookupError",
    "InsertionPoint",
    "Library",
    "PlanWorkspace",
    "ScryfallCardLookup",
    "calculate_placements",
    "generate_id",
    "get_card_lookup",
    "group_by_container",
    "group_by_page",
    "locate_insertion",
    "placements_for_container",
    "placements_for_page",
    "resolve_and_place",
]
