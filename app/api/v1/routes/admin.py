"""Admin dashboard and moderation routes. Every route requires the admin role."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
from app.schemas import StatsOut, ActivityOut, RoleUpdate, UserOut, EventOut, EventStatusUpdate
from app.db.session import get_session
from app.services.admin_service import AdminService
from app.services.event_service import EventService
from app.services.user_service import UserService
from app.auth import Identity, admin_required
from app.core.errors import unwrap

router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_service(session: AsyncSession = Depends(get_session)) -> AdminService:
    return AdminService(session)


@router.get("/stats", response_model=StatsOut)
async def get_stats(
    identity: Identity = Depends(admin_required),
    admin_service: AdminService = Depends(get_admin_service)
):
    return await admin_service.get_stats()


@router.get("/activities", response_model=List[ActivityOut])
async def get_recent_activities(
    limit: int = Query(10, description="Number of entries to return (1-100)"),
    identity: Identity = Depends(admin_required),
    admin_service: AdminService = Depends(get_admin_service)
):
    return unwrap(await admin_service.recent_activities(limit))


@router.put("/users/{user_id}/role", response_model=UserOut)
async def update_user_role(
    user_id: UUID,
    payload: RoleUpdate,
    identity: Identity = Depends(admin_required),
    session: AsyncSession = Depends(get_session)
):
    return unwrap(await UserService(session).set_role(identity, user_id, payload.role))


@router.put("/events/{event_id}/status", response_model=EventOut)
async def update_event_status(
    event_id: UUID,
    payload: EventStatusUpdate,
    identity: Identity = Depends(admin_required),
    session: AsyncSession = Depends(get_session)
):
    """Change an event's status. Cancelling requires a reason, which attendees are shown."""
    return unwrap(await EventService(session).moderate_status(identity, event_id, payload.status, payload.reason))
