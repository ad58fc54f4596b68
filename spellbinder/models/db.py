"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence. Card id
lists and spacer maps are stored as JSON; JSON object keys are strings, so
spacer positions are converted back to int when read.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ContainerDB(Base):
    """
    A binder or storage box.

    page_count / slots_per_page are NULL for boxes.
    """

    __tablename__ = "containers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    kind: Mapped[str] = mapped_column(String(10))
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    slots_per_page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    has_cover_image: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ContainerDB(id={self.id}, kind={self.kind}, name={self.name})>"


class SegmentDB(Base):
    """
    A segment: an ordered card checklist with offset, target and spacers.

    target_container_id is deliberately not a foreign key: deleting a
    container leaves the id dangling and placement ignores it.
    """

    __tablename__ = "segments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    set_code: Mapped[str] = mapped_column(String(20), default="")
    card_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    offset: Mapped[int] = mapped_column(Integer, default=0)
    target_container_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    spacers_before: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<SegmentDB(id={self.id}, name={self.name}, cards={len(self.card_ids)})>"


class PlanDB(Base):
    """A named plan: ordered container ids and segment ids."""

    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    container_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    segment_ids: Mapped[list[str]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<PlanDB(id={self.id}, name={self.name})>"


class OwnershipFlagDB(Base):
    """
    One owned or skipped flag on a card occurrence.

    Rows are keyed by (segment_id, position, flag) where flag is
    'owned' or 'skipped'.
    """

    __tablename__ = "ownership_flags"
    __table_args__ = (
        UniqueConstraint("segment_id", "position", "flag", name="uq_segment_position_flag"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    segment_id: Mapped[str] = mapped_column(String(36), index=True)
    position: Mapped[int] = mapped_column(Integer)
    flag: Mapped[str] = mapped_column(String(10))

    def __repr__(self) -> str:
        return f"<OwnershipFlagDB({self.segment_id}:{self.position} {self.flag})>"
