"""
In-memory library of containers, segments, plans and ownership flags.

Deleting a container removes it from every plan; segments that targeted it
keep the dangling id, which the placement engine treats as "no target".
Deleting a segment removes it from every plan and drops its ownership flags.
"""

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field

from spellbinder.config import MAX_SEGMENT_OFFSET
from spellbinder.models.container import Container, PhysicalBinder, StorageBox
from spellbinder.models.ownership import OwnershipLedger
from spellbinder.models.plan import BinderPlan
from spellbinder.models.segment import Segment
from spellbinder.services.binder_workspace import PlanWorkspace
from spellbinder.services.position_edit import insert_card_rekeyed, remove_card_rekeyed

logger = logging.getLogger(__name__)


def generate_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Library:
    """Everything a user has defined, keyed by id (insertion-ordered)."""

    containers: dict[str, Container] = field(default_factory=dict)
    segments: dict[str, Segment] = field(default_factory=dict)
    plans: dict[str, BinderPlan] = field(default_factory=dict)
    ledger: OwnershipLedger = field(default_factory=OwnershipLedger)

    # --- Containers ---

    def add_binder(self, name: str, page_count: int, slots_per_page: int) -> PhysicalBinder:
        binder = PhysicalBinder(
            id=generate_id(), name=name, page_count=page_count, slots_per_page=slots_per_page
        )
        self.containers[binder.id] = binder
        return binder

    def add_box(self, name: str) -> StorageBox:
        box = StorageBox(id=generate_id(), name=name)
        self.containers[box.id] = box
        return box

    def update_container(self, container_id: str, **changes: object) -> Container | None:
        """
        Replace fields on a container (name, page_count, ...).

        Raises:
            ValueError: If the new layout breaks binder invariants
        """
        existing = self.containers.get(container_id)
        if existing is None:
            return None
        updated = dataclasses.replace(existing, **changes)  # type: ignore[arg-type]
        self.containers[container_id] = updated
        return updated

    def remove_container(self, container_id: str) -> bool:
        if self.containers.pop(container_id, None) is None:
            return False
        for plan in self.plans.values():
            plan.remove_container(container_id)
        return True

    def containers_in_order(self, container_ids: list[str]) -> list[Container]:
        """Look up containers by id, silently dropping unknown ids."""
        return [self.containers[cid] for cid in container_ids if cid in self.containers]

    # --- Segments ---

    def add_segment(
        self,
        name: str,
        set_code: str,
        card_ids: list[str],
        offset: int = 0,
        target_container_id: str | None = None,
    ) -> Segment:
        segment = Segment(
            id=generate_id(),
            name=name,
            set_code=set_code,
            card_ids=list(card_ids),
            offset=offset,
            target_container_id=target_container_id,
        )
        self.segments[segment.id] = segment
        return segment

    def update_segment(
        self,
        segment_id: str,
        *,
        name: str | None = None,
        offset: int | None = None,
        target_container_id: str | None = None,
        clear_target: bool = False,
    ) -> Segment | None:
        """
        Update display fields of a segment.

        Raises:
            ValueError: If the new offset is out of range
        """
        segment = self.segments.get(segment_id)
        if segment is None:
            return None
        if offset is not None:
            if not 0 <= offset <= MAX_SEGMENT_OFFSET:
                raise ValueError(f"Offset {offset} out of range 0-{MAX_SEGMENT_OFFSET}")
            segment.offset = offset
        if name is not None:
            segment.name = name
        if clear_target:
            segment.target_container_id = None
        elif target_container_id is not None:
            segment.target_container_id = target_container_id
        return segment

    def remove_segment(self, segment_id: str) -> bool:
        if self.segments.pop(segment_id, None) is None:
            return False
        for plan in self.plans.values():
            plan.remove_segment(segment_id)
        self.ledger.drop_segment(segment_id)
        return True

    def remove_card_from_segment(self, segment_id: str, card_id: str) -> bool:
        """Remove the first occurrence of a card id and re-key ownership."""
        segment = self.segments.get(segment_id)
        if segment is None or card_id not in segment.card_ids:
            return False
        remove_card_rekeyed(segment, self.ledger, segment.card_ids.index(card_id))
        return True

    def insert_card(
        self, segment_id: str, card_id: str, before_position: int | None = None
    ) -> int | None:
        """Insert a card into a segment and re-key ownership. None if no such segment."""
        segment = self.segments.get(segment_id)
        if segment is None:
            return None
        return insert_card_rekeyed(segment, self.ledger, card_id, before_position)

    def remove_card(self, segment_id: str, position: int) -> str | None:
        """Remove the card at a position and re-key ownership."""
        segment = self.segments.get(segment_id)
        if segment is None:
            return None
        return remove_card_rekeyed(segment, self.ledger, position)

    def segments_in_order(self, segment_ids: list[str]) -> list[Segment]:
        """Look up segments by id, silently dropping unknown ids."""
        return [self.segments[sid] for sid in segment_ids if sid in self.segments]

    # --- Plans ---

    def create_plan(self, name: str) -> BinderPlan:
        plan = BinderPlan(id=generate_id(), name=name)
        self.plans[plan.id] = plan
        return plan

    def remove_plan(self, plan_id: str) -> bool:
        return self.plans.pop(plan_id, None) is not None

    def workspace_for(self, plan_id: str) -> PlanWorkspace | None:
        """Build a live workspace over a plan's segments and containers."""
        plan = self.plans.get(plan_id)
        if plan is None:
            return None
        logger.debug(
            "Opening plan %s with %d containers and %d segments",
            plan.name,
            len(plan.container_ids),
            len(plan.segment_ids),
        )
        return PlanWorkspace(
            segments=self.segments_in_order(plan.segment_ids),
            containers=self.containers_in_order(plan.container_ids),
            ledger=self.ledger,
        )
