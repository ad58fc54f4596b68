from dataclasses import dataclass, field


@dataclass
class BinderPlan:
    """
    A named workspace: which containers and segments take part, in order.

    Container order is the tie-break for auto-fill; segment order is the
    order segments are laid down. Containers and segments may belong to
    several plans at once.
    """

    id: str
    name: str
    container_ids: list[str] = field(default_factory=list)
    segment_ids: list[str] = field(default_factory=list)

    def add_container(self, container_id: str) -> bool:
        """Append a container. Returns False if it is already in the plan."""
        if container_id in self.container_ids:
            return False
        self.container_ids.append(container_id)
        return True

    def remove_container(self, container_id: str) -> bool:
        if container_id not in self.container_ids:
            return False
        self.container_ids.remove(container_id)
        return True

    def reorder_containers(self, container_ids: list[str]) -> None:
        self.container_ids = list(container_ids)

    def add_segment(self, segment_id: str) -> bool:
        """Append a segment. Returns False if it is already in the plan."""
        if segment_id in self.segment_ids:
            return False
        self.segment_ids.append(segment_id)
        return True

    def insert_segment(self, segment_id: str, index: int) -> bool:
        """Insert a segment at `index` (list.insert semantics)."""
        if segment_id in self.segment_ids:
            return False
        self.segment_ids.insert(index, segment_id)
        return True

    def remove_segment(self, segment_id: str) -> bool:
        if segment_id not in self.segment_ids:
            return False
        self.segment_ids.remove(segment_id)
        return True

    def reorder_segments(self, segment_ids: list[str]) -> None:
        self.segment_ids = list(segment_ids)
