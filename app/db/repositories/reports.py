"""Read-only aggregates for the admin dashboard."""
from datetime import date
from typing import List
from sqlalchemy import select, func, union_all, literal_column, String
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.models import User, Event, EventStatusEnum, Registration


async def _count(db: AsyncSession, q) -> int:
    res = await db.execute(q)
    return res.scalar() or 0


async def get_stats(db: AsyncSession, today: date) -> dict:
    return {
        "total_users": await _count(db, select(func.count(User.id))),
        "total_events": await _count(db, select(func.count(Event.id))),
        "total_registrations": await _count(db, select(func.count(Registration.id))),
        "upcoming_events": await _count(
            db,
            select(func.count(Event.id)).where(
                Event.date >= today,
                Event.status == EventStatusEnum.active,
            ),
        ),
    }


async def list_recent_activities(db: AsyncSession, limit: int) -> List[dict]:
    """
    Registrations and event creations merged into one feed, newest first.
    """
    registrations = (
        select(
            literal_column("'registration'", String).label("type"),
            Registration.id.label("id"),
            Registration.registered_at.label("created_at"),
            User.name.label("user_name"),
            Event.title.label("event_title"),
        )
        .select_from(Registration)
        .join(User, Registration.user_id == User.id)
        .join(Event, Registration.event_id == Event.id)
    )
    created = (
        select(
            literal_column("'event'", String).label("type"),
            Event.id.label("id"),
            Event.created_at.label("created_at"),
            User.name.label("user_name"),
            Event.title.label("event_title"),
        )
        .select_from(Event)
        .join(User, Event.organizer_id == User.id)
    )
    feed = union_all(registrations, created).subquery()
    q = select(feed).order_by(feed.c.created_at.desc()).limit(limit)
    res = await db.execute(q)
    return [dict(row) for row in res.mappings().all()]
