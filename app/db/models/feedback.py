from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint, Uuid
import uuid
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.core.clock import utcnow


class Feedback(Base):
    __tablename__ = "feedback"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", lazy="raise")
    event = relationship("Event", lazy="raise")

    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_feedback_event_user'),
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_feedback_rating_range"),
        Index('idx_feedback_event', 'event_id'),
    )
