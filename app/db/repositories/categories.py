"""Category queries. The public list is cached and invalidated on every write."""
from typing import Optional, List
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.models import Category, Event
from app.cache.cache_decorators import cached, invalidate

CATEGORY_LIST_KEY = "categories:list"


@cached(CATEGORY_LIST_KEY)
async def list_categories(db: AsyncSession) -> List[dict]:
    res = await db.execute(select(Category).order_by(Category.name))
    return [
        {"id": c.id, "name": c.name, "description": c.description}
        for c in res.scalars().all()
    ]


async def get_category(db: AsyncSession, category_id: int) -> Optional[Category]:
    res = await db.execute(select(Category).where(Category.id == category_id))
    return res.scalars().first()


async def get_category_by_name(db: AsyncSession, name: str) -> Optional[Category]:
    res = await db.execute(select(Category).where(func.lower(Category.name) == name.lower()))
    return res.scalars().first()


async def create_category(db: AsyncSession, name: str, description: Optional[str]) -> Category:
    category = Category(name=name, description=description)
    db.add(category)
    await db.commit()
    await invalidate(CATEGORY_LIST_KEY)
    return category


async def update_category(db: AsyncSession, category: Category, values: dict) -> Category:
    for field, value in values.items():
        setattr(category, field, value)
    await db.commit()
    await invalidate(CATEGORY_LIST_KEY)
    return category


async def count_events_in_category(db: AsyncSession, category_id: int) -> int:
    res = await db.execute(select(func.count(Event.id)).where(Event.category_id == category_id))
    return res.scalar() or 0


async def delete_category(db: AsyncSession, category: Category) -> bool:
    """
    Delete a category. Returns False if an event started referencing it
    after the caller checked, in which case nothing is deleted.
    """
    await db.delete(category)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False
    await invalidate(CATEGORY_LIST_KEY)
    return True
