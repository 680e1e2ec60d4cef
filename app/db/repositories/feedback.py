"""Feedback ledger queries."""
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import ErrorKind, Failure, Result
from app.db.models import Feedback, Event, User


async def get_feedback_for_pair(db: AsyncSession, event_id, user_id) -> Optional[Feedback]:
    q = select(Feedback).where(Feedback.event_id == event_id, Feedback.user_id == user_id)
    res = await db.execute(q)
    return res.scalars().first()


async def create_feedback(db: AsyncSession, event_id, user_id, rating: int, comment: Optional[str]) -> Result[Feedback]:
    """Insert feedback; the (event, user) unique constraint rejects a concurrent second entry."""
    feedback = Feedback(event_id=event_id, user_id=user_id, rating=rating, comment=comment)
    db.add(feedback)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return Failure(ErrorKind.already_submitted, "You have already submitted feedback for this event")
    return feedback


def _detail_query():
    return (
        select(
            Feedback.id,
            Feedback.event_id,
            Feedback.user_id,
            Feedback.rating,
            Feedback.comment,
            Feedback.created_at,
            User.name.label("user_name"),
            Event.title.label("event_title"),
        )
        .join(User, Feedback.user_id == User.id)
        .join(Event, Feedback.event_id == Event.id)
        .order_by(Feedback.created_at.desc())
    )


async def list_feedback_for_event(db: AsyncSession, event_id) -> List[dict]:
    res = await db.execute(_detail_query().where(Feedback.event_id == event_id))
    return [dict(row) for row in res.mappings().all()]


async def list_feedback_for_organizer(db: AsyncSession, organizer_id) -> List[dict]:
    res = await db.execute(_detail_query().where(Event.organizer_id == organizer_id))
    return [dict(row) for row in res.mappings().all()]
