from sqlalchemy import Column, DateTime, ForeignKey, Index, UniqueConstraint, Uuid
import uuid
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.core.clock import utcnow


class Registration(Base):
    __tablename__ = "registrations"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    registered_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", lazy="raise")
    event = relationship("Event", lazy="raise")

    # One registration per attendee per event, even under concurrent inserts
    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_registration_event_user'),
        Index('idx_registration_user', 'user_id'),
        Index('idx_registration_event', 'event_id'),
    )
