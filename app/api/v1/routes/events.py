from fastapi import APIRouter, Depends, Query, status
from app.schemas import EventCreate, EventUpdate, EventOut, MessageResponse, PaginatedResponse, PaginationMetadata
from app.db.session import get_session
from app.db.models import EventStatusEnum
from app.services.event_service import EventService
from app.auth import Identity, get_current_identity, get_optional_identity, organizer_required
from app.core.errors import unwrap
from app.core.config import settings
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(session: AsyncSession = Depends(get_session)) -> EventService:
    return EventService(session)


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    payload: EventCreate,
    identity: Identity = Depends(organizer_required),
    event_service: EventService = Depends(get_event_service)
):
    return unwrap(await event_service.create_event(identity, payload))


@router.get("", response_model=PaginatedResponse[EventOut])
async def get_events(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Number of items per page"),
    category_id: Optional[int] = Query(None, description="Filter by category"),
    status: Optional[EventStatusEnum] = Query(None, description="Filter by status"),
    search: Optional[str] = Query(None, description="Search in event title and description"),
    upcoming: bool = Query(False, description="Only events dated today or later"),
    viewer: Optional[Identity] = Depends(get_optional_identity),
    event_service: EventService = Depends(get_event_service)
):
    """
    List events with pagination and filtering.

    Anonymous callers and attendees see active events; organizers also see
    their own events in any status; admins see everything.
    """
    skip = (page - 1) * per_page
    total_count, events = await event_service.list_events_paginated(
        viewer,
        skip=skip,
        limit=per_page,
        category_id=category_id,
        status=status,
        search=search,
        upcoming=upcoming,
    )
    total_pages = (total_count + per_page - 1) // per_page

    return PaginatedResponse[EventOut](
        items=events,
        pagination=PaginationMetadata(
            total=total_count,
            page=page,
            per_page=per_page,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1
        )
    )


@router.get("/{event_id}", response_model=EventOut)
async def get_event_detail(
    event_id: UUID,
    event_service: EventService = Depends(get_event_service)
):
    return unwrap(await event_service.get_event(event_id))


@router.put("/{event_id}", response_model=EventOut)
async def update_event_endpoint(
    event_id: UUID,
    payload: EventUpdate,
    identity: Identity = Depends(get_current_identity),
    event_service: EventService = Depends(get_event_service)
):
    return unwrap(await event_service.update_event(identity, event_id, payload))


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event_endpoint(
    event_id: UUID,
    identity: Identity = Depends(get_current_identity),
    event_service: EventService = Depends(get_event_service)
):
    return unwrap(await event_service.delete_event(identity, event_id))
