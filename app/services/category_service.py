from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import ErrorKind, Failure, Result
from app.db import repositories as repo
from app.db.models import Category
from app.schemas import CategoryCreate, CategoryUpdate


class CategoryService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_categories(self) -> List[dict]:
        return await repo.list_categories(self.session)

    async def create_category(self, payload: CategoryCreate) -> Result[Category]:
        if await repo.get_category_by_name(self.session, payload.name):
            return Failure(ErrorKind.conflict, "Category already exists")
        return await repo.create_category(self.session, payload.name, payload.description)

    async def update_category(self, category_id: int, payload: CategoryUpdate) -> Result[Category]:
        category = await repo.get_category(self.session, category_id)
        if category is None:
            return Failure(ErrorKind.not_found, "Category not found")
        values = payload.model_dump(exclude_unset=True)
        if values.get("name"):
            existing = await repo.get_category_by_name(self.session, values["name"])
            if existing is not None and existing.id != category.id:
                return Failure(ErrorKind.conflict, "Category already exists")
        elif "name" in values:
            values.pop("name")
        return await repo.update_category(self.session, category, values)

    async def delete_category(self, category_id: int) -> Result[dict]:
        """Delete a category; refused while any event is assigned to it."""
        category = await repo.get_category(self.session, category_id)
        if category is None:
            return Failure(ErrorKind.not_found, "Category not found")
        in_use = Failure(ErrorKind.conflict, "Cannot delete category that is assigned to events")
        if await repo.count_events_in_category(self.session, category_id) > 0:
            return in_use
        if not await repo.delete_category(self.session, category):
            return in_use
        return {"success": True, "message": "Category deleted successfully"}
