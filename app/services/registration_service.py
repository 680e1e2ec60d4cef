from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from app.auth import Identity, forbidden
from app.core.clock import today
from app.core.errors import ErrorKind, Failure, Result, is_failure
from app.core.logging import logger
from app.db import repositories as repo
from app.db.models import Registration, EventStatusEnum
from app.events import publisher
from app.schemas import RegistrationCreate


class RegistrationService:
    """
    The registration ledger.

    ``register`` checks, in order: the event exists and is open, the
    attendee is not already registered, and a seat is free. The seat check
    and the insert happen atomically in the repository; the duplicate check
    here only gives the common case a clean answer, the unique constraint
    covers the concurrent one.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def register(self, identity: Identity, payload: RegistrationCreate) -> Result[Registration]:
        attendee_id = payload.user_id or identity.id
        if str(attendee_id) != str(identity.id):
            if not identity.is_admin:
                return forbidden("You can only register yourself for events")
            if await repo.get_user(self.session, attendee_id) is None:
                return Failure(ErrorKind.not_found, "User not found")

        event = await repo.get_event(self.session, payload.event_id)
        if event is None:
            return Failure(ErrorKind.not_found, "Event not found")
        if event.status != EventStatusEnum.active:
            return Failure(ErrorKind.validation_error, "Registrations are closed for this event")
        if event.date < today():
            return Failure(ErrorKind.validation_error, "Event has already taken place")

        if await repo.get_registration_for_pair(self.session, event.id, attendee_id):
            return Failure(ErrorKind.duplicate_registration, "Already registered for this event")

        result = await repo.create_registration(self.session, event.id, attendee_id)
        if is_failure(result):
            logger.info(f"Registration of {attendee_id} for event {event.id} rejected: {result.kind.value}")
            return result

        logger.info(f"User {attendee_id} registered for event {event.id}")
        await publisher.publish_event("registration.created", {
            "registration_id": str(result.id),
            "user_id": str(attendee_id),
            "event_id": str(event.id),
        })
        return result

    async def cancel(self, identity: Identity, registration_id) -> Result[dict]:
        """
        Cancel a registration held by the caller (admins may cancel any).

        Someone else's registration is reported as not found. Cancelling for
        an event that already took place is allowed.
        """
        not_found = Failure(ErrorKind.not_found, "Registration not found")
        registration = await repo.get_registration(self.session, registration_id)
        if registration is None or not identity.can_manage(registration.user_id):
            return not_found
        if not await repo.delete_registration(self.session, registration):
            return not_found
        logger.info(f"Registration {registration_id} cancelled by {identity.id}")
        return {"success": True, "message": "Registration cancelled successfully"}

    async def list_for_event(self, identity: Identity, event_id) -> Result[List[dict]]:
        event = await repo.get_event(self.session, event_id)
        if event is None:
            return Failure(ErrorKind.not_found, "Event not found")
        if not identity.can_manage(event.organizer_id):
            return forbidden()
        return await repo.list_registrations_for_event(self.session, event_id)

    async def list_for_user(self, identity: Identity, user_id) -> Result[List[dict]]:
        if not identity.can_manage(user_id):
            return forbidden()
        return await repo.list_registrations_for_user(self.session, user_id)
