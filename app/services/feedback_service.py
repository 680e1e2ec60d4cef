from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.auth import Identity, forbidden
from app.core.clock import today
from app.core.errors import ErrorKind, Failure, Result, is_failure
from app.core.logging import logger
from app.db import repositories as repo
from app.db.models import Feedback
from app.schemas import FeedbackCreate

MIN_RATING = 1
MAX_RATING = 5


class FeedbackService:
    """
    The feedback ledger: one rating per attendee per event, accepted only
    from registered attendees once the event date has passed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _eligibility_failure(self, event_id, user_id) -> Optional[Failure]:
        """First unmet precondition, checked in order, or None when eligible."""
        if await repo.get_registration_for_pair(self.session, event_id, user_id) is None:
            return Failure(ErrorKind.not_registered, "You must be registered for this event to leave feedback")

        event = await repo.get_event(self.session, event_id)
        if event is None:
            return Failure(ErrorKind.not_found, "Event not found")
        if event.date >= today():
            return Failure(ErrorKind.event_not_yet_occurred, "Event has not occurred yet")

        if await repo.get_feedback_for_pair(self.session, event_id, user_id) is not None:
            return Failure(ErrorKind.already_submitted, "You have already submitted feedback for this event")
        return None

    async def can_submit(self, identity: Identity, event_id, user_id) -> Result[dict]:
        if not identity.can_manage(user_id):
            return forbidden()
        failure = await self._eligibility_failure(event_id, user_id)
        if failure is None:
            return {"can_feedback": True, "reason": None, "kind": None}
        return {"can_feedback": False, "reason": failure.message, "kind": failure.kind.value}

    async def submit(self, identity: Identity, payload: FeedbackCreate) -> Result[Feedback]:
        """
        Record feedback. Eligibility is re-checked here rather than trusted
        from an earlier ``can_submit``; the unique constraint settles a
        concurrent double submit.
        """
        user_id = payload.user_id or identity.id
        if str(user_id) != str(identity.id):
            return forbidden("You can only submit your own feedback")

        if not MIN_RATING <= payload.rating <= MAX_RATING:
            return Failure(ErrorKind.invalid_rating, f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        failure = await self._eligibility_failure(payload.event_id, user_id)
        if failure:
            return failure

        result = await repo.create_feedback(self.session, payload.event_id, user_id, payload.rating, payload.comment)
        if not is_failure(result):
            logger.info(f"User {user_id} rated event {payload.event_id} {payload.rating}/5")
        return result

    async def list_for_event(self, identity: Identity, event_id) -> Result[List[dict]]:
        event = await repo.get_event(self.session, event_id)
        if event is None:
            return Failure(ErrorKind.not_found, "Event not found")
        if not identity.can_manage(event.organizer_id):
            return forbidden()
        return await repo.list_feedback_for_event(self.session, event_id)

    async def list_for_organizer(self, identity: Identity, organizer_id) -> Result[List[dict]]:
        if not identity.can_manage(organizer_id):
            return forbidden()
        return await repo.list_feedback_for_organizer(self.session, organizer_id)
