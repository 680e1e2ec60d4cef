from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from app.schemas import CategoryCreate, CategoryUpdate, CategoryOut, MessageResponse
from app.db.session import get_session
from app.services.category_service import CategoryService
from app.auth import Identity, admin_required
from app.core.errors import unwrap

router = APIRouter(prefix="/categories", tags=["categories"])


def get_category_service(session: AsyncSession = Depends(get_session)) -> CategoryService:
    return CategoryService(session)


@router.get("", response_model=List[CategoryOut])
async def list_categories(category_service: CategoryService = Depends(get_category_service)):
    return await category_service.list_categories()


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    identity: Identity = Depends(admin_required),
    category_service: CategoryService = Depends(get_category_service)
):
    return unwrap(await category_service.create_category(payload))


@router.put("/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    identity: Identity = Depends(admin_required),
    category_service: CategoryService = Depends(get_category_service)
):
    return unwrap(await category_service.update_category(category_id, payload))


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: int,
    identity: Identity = Depends(admin_required),
    category_service: CategoryService = Depends(get_category_service)
):
    return unwrap(await category_service.delete_category(category_id))
