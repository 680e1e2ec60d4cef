from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from app.auth import Identity, forbidden
from app.core.errors import ErrorKind, Failure, Result
from app.core.logging import logger
from app.core.security import hash_password, validate_password
from app.db import repositories as repo
from app.db.models import User, RoleEnum
from app.schemas import UserUpdate


def _user_not_found() -> Failure:
    return Failure(ErrorKind.not_found, "User not found")


class UserService:
    """Profile management for the caller and account moderation for admins."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_users(self) -> List[User]:
        return await repo.list_users(self.session)

    async def get_user(self, identity: Identity, user_id) -> Result[User]:
        if not identity.can_manage(user_id):
            return forbidden()
        user = await repo.get_user(self.session, user_id)
        if user is None:
            return _user_not_found()
        return user

    async def update_user(self, identity: Identity, user_id, payload: UserUpdate) -> Result[User]:
        if not identity.can_manage(user_id):
            return forbidden()
        user = await repo.get_user(self.session, user_id)
        if user is None:
            return _user_not_found()

        values = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in values:
            values["email"] = values["email"].lower()
            existing = await repo.get_user_by_email(self.session, values["email"])
            if existing is not None and existing.id != user.id:
                return Failure(ErrorKind.conflict, "Email already registered")
        if "password" in values:
            try:
                validate_password(values["password"])
            except ValueError as e:
                return Failure(ErrorKind.validation_error, str(e))
            values["hashed_password"] = hash_password(values.pop("password"))

        return await repo.update_user(self.session, user, values)

    async def set_blocked(self, identity: Identity, user_id, blocked: bool) -> Result[User]:
        """Block or unblock an account; takes effect on the user's next request."""
        if str(identity.id) == str(user_id):
            return Failure(ErrorKind.validation_error, "You cannot block yourself")
        user = await repo.get_user(self.session, user_id)
        if user is None:
            return _user_not_found()
        user = await repo.set_user_blocked(self.session, user, blocked)
        logger.info(f"Admin {identity.id} {'blocked' if blocked else 'unblocked'} user {user.id}")
        return user

    async def set_role(self, identity: Identity, user_id, role: RoleEnum) -> Result[User]:
        if str(identity.id) == str(user_id) and role != RoleEnum.admin:
            return Failure(ErrorKind.validation_error, "You cannot change your own role")
        user = await repo.get_user(self.session, user_id)
        if user is None:
            return _user_not_found()
        user = await repo.set_user_role(self.session, user, role)
        logger.info(f"Admin {identity.id} set role of user {user.id} to {role.value}")
        return user

    async def delete_user(self, identity: Identity, user_id) -> Result[dict]:
        """
        Delete an account with its registrations and feedback.

        Refused for the caller's own account and for organizers who still
        own events.
        """
        if str(identity.id) == str(user_id):
            return Failure(ErrorKind.validation_error, "You cannot delete yourself")
        user = await repo.get_user(self.session, user_id)
        if user is None:
            return _user_not_found()
        if await repo.count_events_organized_by(self.session, user.id) > 0:
            return Failure(ErrorKind.conflict, "Cannot delete a user who still organizes events")

        if not await repo.delete_user(self.session, user.id):
            return _user_not_found()
        logger.info(f"Admin {identity.id} deleted user {user_id}")
        return {"success": True, "message": "User deleted successfully"}
