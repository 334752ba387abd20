"""
Event model: races and their legs in a single self-referencing table.

Key design decisions:
- `categories` and `registration_fees` are JSON inside scalar columns; the
  column types hand back a list and a {category: Decimal} dict
- `parent_event_id` references another event; ON DELETE CASCADE removes the
  legs together with their parent
- Index on `event_date` backs the default listing order (most recent first)
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)

from app.db.base import Base, TimestampMixin
from app.db.types import DecimalMap

EVENT_STATUSES = ("upcoming", "ongoing", "finished")


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    event_date = Column(Date, nullable=False)
    event_time = Column(String(255), nullable=False)  # free-form, e.g. "08:00" or "6 AM gun start"
    location = Column(String(255), nullable=False)
    distance = Column(Numeric(8, 2), nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    registration_fees = Column(DecimalMap, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="upcoming")
    is_leg = Column(Boolean, nullable=False, default=False)
    leg_number = Column(Integer, nullable=True)
    parent_event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    __table_args__ = (
        CheckConstraint("status IN ('upcoming', 'ongoing', 'finished')", name="check_event_status"),
        CheckConstraint("distance IS NULL OR distance >= 0", name="check_event_distance_non_negative"),
        Index("ix_events_event_date", "event_date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, date={self.event_date}, leg={self.is_leg})>"
