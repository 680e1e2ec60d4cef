"""User (identity store) queries."""
from datetime import datetime
from typing import Optional, List
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.models import User, Event, Registration, Feedback, RoleEnum
from app.schemas import UserCreate
from app.core.errors import ErrorKind, Failure, Result
from app.core.logging import logger
from app.core.security import hash_password


def _email_taken() -> Failure:
    return Failure(ErrorKind.conflict, "Email already registered")


async def create_user(db: AsyncSession, user_in: UserCreate) -> Result[User]:
    """
    Create a new user with hashed password.

    Args:
        db: Database session
        user_in: User registration data

    Returns:
        Created User object, or a ``conflict`` Failure when a concurrent
        sign-up claimed the email first
    """
    user = User(
        name=user_in.name,
        email=user_in.email.lower(),
        hashed_password=hash_password(user_in.password),
        role=RoleEnum(user_in.role.value),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info(f"Concurrent sign-up rejected for {user_in.email.lower()}")
        return _email_taken()
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == email.lower()).execution_options(populate_existing=True)
    res = await db.execute(q)
    return res.scalars().first()


async def get_user(db: AsyncSession, user_id) -> Optional[User]:
    """Fetch a user by id, always re-reading the row from the store."""
    q = select(User).where(User.id == user_id).execution_options(populate_existing=True)
    res = await db.execute(q)
    return res.scalars().first()


async def list_users(db: AsyncSession) -> List[User]:
    res = await db.execute(select(User).order_by(User.created_at.desc()))
    return list(res.scalars().all())


async def update_user(db: AsyncSession, user: User, values: dict) -> Result[User]:
    for field, value in values.items():
        setattr(user, field, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return _email_taken()
    return user


async def set_user_blocked(db: AsyncSession, user: User, blocked: bool) -> User:
    user.is_blocked = blocked
    await db.commit()
    return user


async def set_user_role(db: AsyncSession, user: User, role: RoleEnum) -> User:
    user.role = role
    await db.commit()
    return user


async def set_reset_token(db: AsyncSession, user: User, token_hash: str, expires_at: datetime) -> None:
    user.reset_token_hash = token_hash
    user.reset_token_expires_at = expires_at
    await db.commit()


async def get_user_by_reset_token(db: AsyncSession, token_hash: str, now: datetime) -> Optional[User]:
    q = select(User).where(
        User.reset_token_hash == token_hash,
        User.reset_token_expires_at > now,
    )
    res = await db.execute(q)
    return res.scalars().first()


async def consume_reset_token(db: AsyncSession, user_id, token_hash: str, hashed_password: str) -> bool:
    """
    Set the new password and clear the token in one statement.

    Returns False when the token was already used by a concurrent request.
    """
    res = await db.execute(
        update(User)
        .where(User.id == user_id, User.reset_token_hash == token_hash)
        .values(hashed_password=hashed_password, reset_token_hash=None, reset_token_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return res.rowcount == 1


async def count_events_organized_by(db: AsyncSession, user_id) -> int:
    res = await db.execute(select(func.count(Event.id)).where(Event.organizer_id == user_id))
    return res.scalar() or 0


async def delete_user(db: AsyncSession, user_id) -> bool:
    """
    Delete a user together with their registrations and feedback.

    Seats held by the user's registrations are released in the same
    transaction.
    """
    held = select(Registration.event_id).where(Registration.user_id == user_id)
    await db.execute(
        update(Event)
        .where(Event.id.in_(held), Event.registered_count > 0)
        .values(registered_count=Event.registered_count - 1)
        .execution_options(synchronize_session=False)
    )
    await db.execute(delete(Feedback).where(Feedback.user_id == user_id))
    await db.execute(delete(Registration).where(Registration.user_id == user_id))
    res = await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
    return res.rowcount == 1
