"""Database models package."""
from app.db.models.user import User, RoleEnum
from app.db.models.category import Category
from app.db.models.event import Event, EventStatusEnum
from app.db.models.registration import Registration
from app.db.models.feedback import Feedback

__all__ = ["User", "RoleEnum", "Category", "Event", "EventStatusEnum", "Registration", "Feedback"]
