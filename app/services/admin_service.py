from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.clock import today
from app.core.errors import ErrorKind, Failure, Result
from app.db import repositories as repo

MAX_ACTIVITY_LIMIT = 100


class AdminService:
    """Dashboard aggregates. Read-only."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_stats(self) -> dict:
        return await repo.get_stats(self.session, today())

    async def recent_activities(self, limit: int) -> Result[List[dict]]:
        if limit < 1 or limit > MAX_ACTIVITY_LIMIT:
            return Failure(ErrorKind.validation_error, f"limit must be between 1 and {MAX_ACTIVITY_LIMIT}")
        return await repo.list_recent_activities(self.session, limit)
