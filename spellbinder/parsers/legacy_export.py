"""
Parser for browser-storage exports of the original single-page app.

The export is a JSON object keyed by the storage keys the app used:

    {
      "spellbinder-binders": [...],
      "spellbinder-segments": [...],
      "spellbinder-plans": [...],
      "spellbinder-collection": ["<segment_id>:<position>", ...],
      "spellbinder-skipped": [...]
    }

Each value may also be the raw JSON string the browser stored. Older
exports carry binders without a "type" (always page binders) and segments
whose "spacersBefore" is a list of card ids; those spacers cannot be mapped
to positions and are dropped.

Decks ("spellbinder-decks", each linking a card to a segment occurrence
through "linkedCardKey") are not imported. A warning names how many were
left behind.
"""

import json
import logging
from typing import Any

from spellbinder.models.container import Container, PhysicalBinder, StorageBox
from spellbinder.models.ownership import OwnershipLedger
from spellbinder.models.plan import BinderPlan
from spellbinder.models.segment import Segment
from spellbinder.services.library import Library

logger = logging.getLogger(__name__)

BINDERS_KEY = "spellbinder-binders"
SEGMENTS_KEY = "spellbinder-segments"
PLANS_KEY = "spellbinder-plans"
OWNED_KEY = "spellbinder-collection"
SKIPPED_KEY = "spellbinder-skipped"
DECKS_KEY = "spellbinder-decks"


class LegacyExportError(ValueError):
    """Raised when an export cannot be read at all."""

    pass


def _entries(payload: dict[str, Any], key: str) -> list[Any]:
    value = payload.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise LegacyExportError(f"'{key}' is not valid JSON") from e
    if not isinstance(value, list):
        raise LegacyExportError(f"'{key}' must be a list")
    return value


def parse_container(data: dict[str, Any]) -> Container:
    """Read one stored binder/box. Untyped entries are page binders."""
    kind = data.get("type", "binder")
    if kind == "box":
        return StorageBox(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            has_cover_image=bool(data.get("hasCoverImage", False)),
        )
    return PhysicalBinder(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        page_count=int(data["pageCount"]),
        slots_per_page=int(data["slotsPerPage"]),
        has_cover_image=bool(data.get("hasCoverImage", False)),
    )


def parse_segment(data: dict[str, Any]) -> Segment:
    """Read one stored segment, migrating the old list-style spacer format."""
    raw_spacers = data.get("spacersBefore")
    spacers: dict[int, int] = {}
    if isinstance(raw_spacers, dict):
        spacers = {int(position): int(count) for position, count in raw_spacers.items()}

    return Segment(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        set_code=str(data.get("scryfallSetCode", "")),
        card_ids=[str(card_id) for card_id in data.get("cardIds", [])],
        offset=int(data.get("offset") or 0),
        target_container_id=data.get("targetBinderId") or None,
        spacers_before=spacers,
    )


def parse_plan(data: dict[str, Any]) -> BinderPlan:
    return BinderPlan(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        container_ids=[str(cid) for cid in data.get("binderIds", [])],
        segment_ids=[str(sid) for sid in data.get("segmentIds", [])],
    )


def parse_legacy_export(payload: dict[str, Any]) -> Library:
    """
    Build a Library from a legacy storage export.

    Raises:
        LegacyExportError: If a key holds something other than a list
        ValueError: If an entry breaks a model invariant
    """
    library = Library(
        ledger=OwnershipLedger(
            owned={str(key) for key in _entries(payload, OWNED_KEY)},
            skipped={str(key) for key in _entries(payload, SKIPPED_KEY)},
        )
    )

    for data in _entries(payload, BINDERS_KEY):
        container = parse_container(data)
        library.containers[container.id] = container
    for data in _entries(payload, SEGMENTS_KEY):
        segment = parse_segment(data)
        library.segments[segment.id] = segment
    for data in _entries(payload, PLANS_KEY):
        plan = parse_plan(data)
        library.plans[plan.id] = plan

    decks = _entries(payload, DECKS_KEY)
    if decks:
        logger.warning("Skipping %d decks from legacy export; decks are not imported", len(decks))

    logger.info(
        "Parsed legacy export: %d containers, %d segments, %d plans",
        len(library.containers),
        len(library.segments),
        len(library.plans),
    )
    return library
