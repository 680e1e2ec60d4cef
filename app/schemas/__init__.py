from pydantic import BaseModel, EmailStr, Field, StrictBool
from typing import Optional, List, Generic, TypeVar
from uuid import UUID
from datetime import datetime, date as date_type, time as time_type
from enum import Enum

from app.db.models.user import RoleEnum
from app.db.models.event import EventStatusEnum

T = TypeVar("T")


class SignupRole(str, Enum):
    """Roles a caller may pick for themselves at sign-up."""
    attendee = "attendee"
    organizer = "organizer"


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# --- auth / users ---

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str
    role: SignupRole = SignupRole.attendee


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class UserStatusUpdate(BaseModel):
    is_blocked: StrictBool


class RoleUpdate(BaseModel):
    role: RoleEnum


class UserOut(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    role: RoleEnum
    is_blocked: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut


class UserStatusResponse(MessageResponse):
    user: UserOut


# --- catalog ---

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    date: date_type
    time: Optional[time_type] = None
    location: Optional[str] = None
    category_id: Optional[int] = None
    max_attendees: int = Field(gt=0)
    image_url: Optional[str] = None


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[date_type] = None
    time: Optional[time_type] = None
    location: Optional[str] = None
    category_id: Optional[int] = None
    max_attendees: Optional[int] = Field(default=None, gt=0)
    status: Optional[EventStatusEnum] = None
    image_url: Optional[str] = None


class EventStatusUpdate(BaseModel):
    status: EventStatusEnum
    reason: Optional[str] = None
    kind: Optional[str] = None


class EventOut(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    date: date_type
    time: Optional[time_type] = None
    location: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    organizer_id: UUID
    organizer_name: Optional[str] = None
    max_attendees: int
    registered_count: int
    available_spots: int
    status: EventStatusEnum
    cancellation_reason: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginationMetadata(BaseModel):
    total: int
    page: int
    per_page: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    pagination: PaginationMetadata


# --- registrations ---

class RegistrationCreate(BaseModel):
    event_id: UUID
    # Defaults to the caller; only admins may register someone else
    user_id: Optional[UUID] = None


class RegistrationOut(BaseModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    registered_at: datetime

    class Config:
        from_attributes = True


class EventRegistrationOut(RegistrationOut):
    user_name: str
    user_email: EmailStr


class UserRegistrationOut(RegistrationOut):
    title: str
    date: date_type
    time: Optional[time_type] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    status: EventStatusEnum


# --- feedback ---

class FeedbackCreate(BaseModel):
    event_id: UUID
    user_id: Optional[UUID] = None
    # Range is checked by the feedback ledger so it can report invalid_rating
    rating: int
    comment: Optional[str] = None


class FeedbackOut(BaseModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class FeedbackDetailOut(FeedbackOut):
    user_name: str
    event_title: str


class FeedbackEligibility(BaseModel):
    can_feedback: bool
    reason: Optional[str] = None
    kind: Optional[str] = None


# --- reporting ---

class StatsOut(BaseModel):
    total_users: int
    total_events: int
    total_registrations: int
    upcoming_events: int


class ActivityOut(BaseModel):
    type: str
    id: UUID
    created_at: datetime
    user_name: str
    event_title: str
