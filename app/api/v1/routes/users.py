from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
from app.schemas import UserOut, UserUpdate, UserStatusUpdate, UserStatusResponse, MessageResponse
from app.db.session import get_session
from app.services.user_service import UserService
from app.auth import Identity, get_current_identity, admin_required
from app.core.errors import unwrap

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(session)


@router.get("", response_model=List[UserOut])
async def list_users(
    identity: Identity = Depends(admin_required),
    user_service: UserService = Depends(get_user_service)
):
    return await user_service.list_users()


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: UUID,
    identity: Identity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service)
):
    return unwrap(await user_service.get_user(identity, user_id))


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    identity: Identity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service)
):
    return unwrap(await user_service.update_user(identity, user_id, payload))


@router.put("/{user_id}/status", response_model=UserStatusResponse)
async def update_user_status(
    user_id: UUID,
    payload: UserStatusUpdate,
    identity: Identity = Depends(admin_required),
    user_service: UserService = Depends(get_user_service)
):
    """Block or unblock an account. A blocked user's next request is refused."""
    user = unwrap(await user_service.set_blocked(identity, user_id, payload.is_blocked))
    action = "blocked" if user.is_blocked else "unblocked"
    return UserStatusResponse(message=f"User {action} successfully", user=UserOut.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    identity: Identity = Depends(admin_required),
    user_service: UserService = Depends(get_user_service)
):
    return unwrap(await user_service.delete_user(identity, user_id))
