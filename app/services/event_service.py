from sqlalchemy.ext.asyncio import AsyncSession
from app.auth import Identity, forbidden
from app.core.clock import today
from app.core.errors import ErrorKind, Failure, Result
from app.core.logging import logger
from app.db import repositories as repo
from app.db.models import EventStatusEnum
from app.events import publisher
from app.schemas import EventCreate, EventUpdate
from typing import List, Optional, Tuple


def _event_not_found() -> Failure:
    return Failure(ErrorKind.not_found, "Event not found")


class EventService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _check_category(self, category_id: Optional[int]) -> Optional[Failure]:
        if category_id is not None and await repo.get_category(self.session, category_id) is None:
            return Failure(ErrorKind.validation_error, "Category not found")
        return None

    async def create_event(self, identity: Identity, payload: EventCreate) -> Result[dict]:
        if payload.date < today():
            return Failure(ErrorKind.validation_error, "Event date cannot be in the past")
        failure = await self._check_category(payload.category_id)
        if failure:
            return failure

        event = await repo.create_event(self.session, payload, identity.id)
        logger.info(f"User {identity.id} created event {event.id}")
        await publisher.publish_event("event.created", {"event_id": str(event.id), "organizer_id": str(identity.id)})
        return await repo.get_event_detail(self.session, event.id)

    async def get_event(self, event_id) -> Result[dict]:
        event = await repo.get_event_detail(self.session, event_id)
        if event is None:
            return _event_not_found()
        return event

    async def list_events_paginated(
        self,
        viewer: Optional[Identity],
        skip: int,
        limit: int,
        category_id: Optional[int] = None,
        status: Optional[EventStatusEnum] = None,
        search: Optional[str] = None,
        upcoming: bool = False,
    ) -> Tuple[int, List[dict]]:
        """
        List events visible to ``viewer`` with pagination support.
        Returns tuple of (total_count, events).
        """
        filters = dict(
            viewer_id=viewer.id if viewer else None,
            include_all=bool(viewer and viewer.is_admin),
            category_id=category_id,
            status=status,
            search=search,
            starts_from=today() if upcoming else None,
        )
        total = await repo.count_events(self.session, **filters)
        events = await repo.list_events(self.session, limit=limit, offset=skip, **filters)
        return total, events

    async def update_event(self, identity: Identity, event_id, payload: EventUpdate) -> Result[dict]:
        """
        Partial update by the event's organizer or an admin.

        Organizers may move an event between ``active`` and ``completed``;
        cancelling goes through admin moderation so that a reason is recorded,
        and a cancelled event's status is likewise left to admins.
        """
        event = await repo.get_event(self.session, event_id)
        if event is None:
            return _event_not_found()
        if not identity.can_manage(event.organizer_id):
            return forbidden("You can only edit your own events")

        values = payload.model_dump(exclude_unset=True)
        for required in ("title", "date", "max_attendees", "status"):
            if required in values and values[required] is None:
                values.pop(required)

        status = values.get("status")
        if status is not None and not identity.is_admin:
            if status == EventStatusEnum.cancelled:
                return forbidden("Only an admin can cancel an event")
            if event.status == EventStatusEnum.cancelled:
                return forbidden("Only an admin can reactivate a cancelled event")
        if status is not None and status != EventStatusEnum.cancelled:
            values["cancellation_reason"] = None

        if "category_id" in values:
            failure = await self._check_category(values["category_id"])
            if failure:
                return failure

        if values and not await repo.update_event(self.session, event.id, values):
            if "max_attendees" not in values:
                # Deleted between the lookup and the update
                return _event_not_found()
            current = await repo.count_registrations_for_event(self.session, event.id)
            return Failure(
                ErrorKind.validation_error,
                f"max_attendees cannot be lower than the current number of registrations ({current})",
            )
        return await repo.get_event_detail(self.session, event.id)

    async def delete_event(self, identity: Identity, event_id) -> Result[dict]:
        """Delete an event; its registrations and feedback are removed with it."""
        event = await repo.get_event(self.session, event_id)
        if event is None:
            return _event_not_found()
        if not identity.can_manage(event.organizer_id):
            return forbidden("You can only delete your own events")
        if not await repo.delete_event(self.session, event_id):
            return _event_not_found()
        logger.info(f"User {identity.id} deleted event {event_id}")
        return {"success": True, "message": "Event deleted successfully"}

    async def moderate_status(self, identity: Identity, event_id, status: EventStatusEnum, reason: Optional[str]) -> Result[dict]:
        """
        Admin status change. Cancelling requires a reason; any other status
        clears it. Registered attendees are notified of a cancellation.
        """
        event = await repo.get_event(self.session, event_id)
        if event is None:
            return _event_not_found()

        reason = (reason or "").strip()
        if status == EventStatusEnum.cancelled and not reason:
            return Failure(ErrorKind.validation_error, "A reason is required to cancel an event")

        values = {"status": status, "cancellation_reason": reason if status == EventStatusEnum.cancelled else None}
        await repo.update_event(self.session, event.id, values)
        logger.info(f"Admin {identity.id} set event {event.id} status to {status.value}")

        if status == EventStatusEnum.cancelled:
            await publisher.publish_event("event.cancelled", {
                "event_id": str(event.id),
                "event_title": event.title,
                "reason": reason,
            })
        return await repo.get_event_detail(self.session, event.id)
