"""
Registration ledger queries.

Capacity is enforced by a conditional UPDATE on the event's maintained
``registered_count``: the increment only happens while the count is below
``max_attendees``, and the row lock the UPDATE takes serializes competing
registrations for the same event. The registration INSERT runs in the same
transaction, so a unique-constraint violation rolls the increment back.
"""
from typing import Optional, List
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import ErrorKind, Failure, Result
from app.core.logging import logger
from app.db.models import Registration, Event, User


async def get_registration(db: AsyncSession, registration_id) -> Optional[Registration]:
    res = await db.execute(select(Registration).where(Registration.id == registration_id))
    return res.scalars().first()


async def get_registration_for_pair(db: AsyncSession, event_id, user_id) -> Optional[Registration]:
    q = select(Registration).where(
        Registration.event_id == event_id,
        Registration.user_id == user_id,
    )
    res = await db.execute(q)
    return res.scalars().first()


async def count_registrations_for_event(db: AsyncSession, event_id) -> int:
    res = await db.execute(select(Event.registered_count).where(Event.id == event_id))
    return res.scalar() or 0


async def create_registration(db: AsyncSession, event_id, user_id) -> Result[Registration]:
    """
    Claim a seat and insert the registration atomically.

    Returns the new Registration, or a Failure of kind ``event_full`` /
    ``duplicate_registration``.
    """
    claimed = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.registered_count < Event.max_attendees)
        .values(registered_count=Event.registered_count + 1)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount == 0:
        # Nothing was written; end the transaction without expiring the session
        await db.commit()
        return Failure(ErrorKind.event_full, "Event is full")

    registration = Registration(event_id=event_id, user_id=user_id)
    db.add(registration)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info(f"Concurrent duplicate registration rejected for event {event_id} user {user_id}")
        return Failure(ErrorKind.duplicate_registration, "Already registered for this event")
    return registration


async def delete_registration(db: AsyncSession, registration: Registration) -> bool:
    """
    Delete a registration and release its seat in one transaction.

    The seat is released only if this call actually removed the row, so two
    concurrent cancellations cannot both decrement the counter.
    """
    event_id = registration.event_id
    res = await db.execute(
        delete(Registration)
        .where(Registration.id == registration.id)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        await db.commit()
        return False
    await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.registered_count > 0)
        .values(registered_count=Event.registered_count - 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    db.expunge(registration)
    return True


async def list_registrations_for_event(db: AsyncSession, event_id) -> List[dict]:
    q = (
        select(
            Registration.id,
            Registration.event_id,
            Registration.user_id,
            Registration.registered_at,
            User.name.label("user_name"),
            User.email.label("user_email"),
        )
        .join(User, Registration.user_id == User.id)
        .where(Registration.event_id == event_id)
        .order_by(Registration.registered_at.desc())
    )
    res = await db.execute(q)
    return [dict(row) for row in res.mappings().all()]


async def list_registrations_for_user(db: AsyncSession, user_id) -> List[dict]:
    q = (
        select(
            Registration.id,
            Registration.event_id,
            Registration.user_id,
            Registration.registered_at,
            Event.title,
            Event.date,
            Event.time,
            Event.location,
            Event.image_url,
            Event.status,
        )
        .join(Event, Registration.event_id == Event.id)
        .where(Registration.user_id == user_id)
        .order_by(Event.date.asc())
    )
    res = await db.execute(q)
    return [dict(row) for row in res.mappings().all()]
