from sqlalchemy import (
    Column, Integer, String, Text, Date, Time, DateTime, ForeignKey, Enum, Index, CheckConstraint, Uuid,
)
import uuid
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.core.clock import utcnow
import enum


class EventStatusEnum(str, enum.Enum):
    active = "active"
    cancelled = "cancelled"
    completed = "completed"


class Event(Base):
    __tablename__ = "events"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=True)
    location = Column(String(255), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    organizer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    max_attendees = Column(Integer, nullable=False)
    # Maintained alongside the registrations table; guarded by the
    # conditional UPDATE in the registration ledger.
    registered_count = Column(Integer, nullable=False, default=0)
    status = Column(Enum(EventStatusEnum), default=EventStatusEnum.active, nullable=False)
    cancellation_reason = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    organizer = relationship("User", lazy="raise")
    category = relationship("Category", lazy="raise")

    __table_args__ = (
        CheckConstraint("max_attendees > 0", name="check_event_capacity_positive"),
        CheckConstraint("registered_count >= 0", name="check_event_registered_non_negative"),
        CheckConstraint("registered_count <= max_attendees", name="check_event_registered_lte_capacity"),
        Index('idx_event_date', 'date'),
        Index('idx_event_organizer', 'organizer_id'),
        Index('idx_event_category', 'category_id'),
        Index('idx_event_created_at', 'created_at'),
    )
