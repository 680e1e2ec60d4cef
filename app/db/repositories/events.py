"""Event catalog queries."""
from datetime import date
from typing import Optional, List
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.models import Event, EventStatusEnum, Category, User, Registration, Feedback
from app.core.clock import utcnow
from app.schemas import EventCreate


def _event_projection():
    return (
        select(Event, Category.name.label("category_name"), User.name.label("organizer_name"))
        .outerjoin(Category, Event.category_id == Category.id)
        .join(User, Event.organizer_id == User.id)
        .execution_options(populate_existing=True)
    )


def _to_dict(ev: Event, category_name: Optional[str], organizer_name: Optional[str]) -> dict:
    return {
        'id': ev.id,
        'title': ev.title,
        'description': ev.description,
        'date': ev.date,
        'time': ev.time,
        'location': ev.location,
        'category_id': ev.category_id,
        'category_name': category_name,
        'organizer_id': ev.organizer_id,
        'organizer_name': organizer_name,
        'max_attendees': ev.max_attendees,
        'registered_count': ev.registered_count,
        'available_spots': max(0, ev.max_attendees - ev.registered_count),
        'status': ev.status,
        'cancellation_reason': ev.cancellation_reason,
        'image_url': ev.image_url,
        'created_at': ev.created_at,
        'updated_at': ev.updated_at,
    }


def _apply_filters(
    q,
    viewer_id=None,
    include_all: bool = False,
    category_id: Optional[int] = None,
    status: Optional[EventStatusEnum] = None,
    search: Optional[str] = None,
    starts_from: Optional[date] = None,
):
    if not include_all:
        # Non-admins see active events, plus their own in any state
        visible = Event.status == EventStatusEnum.active
        if viewer_id is not None:
            visible = or_(visible, Event.organizer_id == viewer_id)
        q = q.where(visible)
    if category_id is not None:
        q = q.where(Event.category_id == category_id)
    if status is not None:
        q = q.where(Event.status == status)
    if starts_from is not None:
        q = q.where(Event.date >= starts_from)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.where(or_(
            func.lower(Event.title).like(pattern),
            func.lower(func.coalesce(Event.description, '')).like(pattern),
        ))
    return q


async def list_events(
    db: AsyncSession,
    limit: int = 20,
    offset: int = 0,
    **filters,
) -> List[dict]:
    """
    List events, newest date first, with category/organizer names and
    available spots. Accepts the same keyword filters as ``count_events``.
    """
    q = _apply_filters(_event_projection(), **filters)
    q = q.order_by(Event.date.desc(), Event.created_at.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    return [_to_dict(ev, category_name, organizer_name) for ev, category_name, organizer_name in res.all()]


async def count_events(db: AsyncSession, **filters) -> int:
    q = _apply_filters(select(func.count(Event.id)), **filters)
    res = await db.execute(q)
    return res.scalar() or 0


async def get_event(db: AsyncSession, event_id) -> Optional[Event]:
    """Fetch the event row, re-reading it from the store."""
    q = select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    res = await db.execute(q)
    return res.scalars().first()


async def get_event_detail(db: AsyncSession, event_id) -> Optional[dict]:
    res = await db.execute(_event_projection().where(Event.id == event_id))
    row = res.first()
    if row is None:
        return None
    return _to_dict(*row)


async def create_event(db: AsyncSession, payload: EventCreate, organizer_id) -> Event:
    ev = Event(**payload.model_dump(), organizer_id=organizer_id, registered_count=0)
    db.add(ev)
    await db.commit()
    return ev


async def update_event(db: AsyncSession, event_id, values: dict) -> bool:
    """
    Apply a partial update in a single statement.

    When ``max_attendees`` changes the update only succeeds if the current
    registrations still fit, so a concurrent registration cannot push the
    count past the new capacity. Returns False if nothing was updated.
    """
    q = update(Event).where(Event.id == event_id)
    if "max_attendees" in values:
        q = q.where(Event.registered_count <= values["max_attendees"])
    q = q.values(**values, updated_at=utcnow()).execution_options(synchronize_session=False)
    res = await db.execute(q)
    await db.commit()
    return res.rowcount == 1


async def delete_event(db: AsyncSession, event_id) -> bool:
    """Delete an event and every registration and feedback entry that references it."""
    await db.execute(delete(Feedback).where(Feedback.event_id == event_id))
    await db.execute(delete(Registration).where(Registration.event_id == event_id))
    res = await db.execute(delete(Event).where(Event.id == event_id))
    await db.commit()
    return res.rowcount == 1
