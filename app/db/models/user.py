from sqlalchemy import Column, String, DateTime, Boolean, Enum, Uuid
import uuid
from app.core.clock import utcnow
from app.db.session import Base
import enum


class RoleEnum(str, enum.Enum):
    attendee = "attendee"
    organizer = "organizer"
    admin = "admin"


class User(Base):
    __tablename__ = "users"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(RoleEnum), default=RoleEnum.attendee, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    # SHA-256 digest of the outstanding reset token, if any
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
