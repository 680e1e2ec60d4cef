from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
from app.schemas import RegistrationCreate, RegistrationOut, EventRegistrationOut, UserRegistrationOut, MessageResponse
from app.db.session import get_session
from app.services.registration_service import RegistrationService
from app.auth import Identity, get_current_identity
from app.core.errors import unwrap

router = APIRouter(prefix="/registrations", tags=["registrations"])


def get_registration_service(session: AsyncSession = Depends(get_session)) -> RegistrationService:
    return RegistrationService(session)


@router.post("", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
async def register_for_event(
    payload: RegistrationCreate,
    identity: Identity = Depends(get_current_identity),
    registration_service: RegistrationService = Depends(get_registration_service)
):
    """
    Take a seat at an event.

    Fails with ``event_full`` once every seat is taken and with
    ``duplicate_registration`` if the attendee already holds one.
    """
    return unwrap(await registration_service.register(identity, payload))


@router.delete("/{registration_id}", response_model=MessageResponse)
async def cancel_registration(
    registration_id: UUID,
    identity: Identity = Depends(get_current_identity),
    registration_service: RegistrationService = Depends(get_registration_service)
):
    return unwrap(await registration_service.cancel(identity, registration_id))


@router.get("/event/{event_id}", response_model=List[EventRegistrationOut])
async def list_event_registrations(
    event_id: UUID,
    identity: Identity = Depends(get_current_identity),
    registration_service: RegistrationService = Depends(get_registration_service)
):
    return unwrap(await registration_service.list_for_event(identity, event_id))


@router.get("/user/{user_id}", response_model=List[UserRegistrationOut])
async def list_user_registrations(
    user_id: UUID,
    identity: Identity = Depends(get_current_identity),
    registration_service: RegistrationService = Depends(get_registration_service)
):
    return unwrap(await registration_service.list_for_user(identity, user_id))
