from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
from app.schemas import FeedbackCreate, FeedbackOut, FeedbackDetailOut, FeedbackEligibility
from app.db.session import get_session
from app.services.feedback_service import FeedbackService
from app.auth import Identity, get_current_identity
from app.core.errors import unwrap

router = APIRouter(prefix="/feedback", tags=["feedback"])


def get_feedback_service(session: AsyncSession = Depends(get_session)) -> FeedbackService:
    return FeedbackService(session)


@router.post("", response_model=FeedbackOut, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    payload: FeedbackCreate,
    identity: Identity = Depends(get_current_identity),
    feedback_service: FeedbackService = Depends(get_feedback_service)
):
    return unwrap(await feedback_service.submit(identity, payload))


@router.get("/can-feedback/{event_id}/{user_id}", response_model=FeedbackEligibility)
async def check_feedback_eligibility(
    event_id: UUID,
    user_id: UUID,
    identity: Identity = Depends(get_current_identity),
    feedback_service: FeedbackService = Depends(get_feedback_service)
):
    """Whether ``user_id`` may rate ``event_id`` now, with the reason when not."""
    return unwrap(await feedback_service.can_submit(identity, event_id, user_id))


@router.get("/event/{event_id}", response_model=List[FeedbackDetailOut])
async def list_event_feedback(
    event_id: UUID,
    identity: Identity = Depends(get_current_identity),
    feedback_service: FeedbackService = Depends(get_feedback_service)
):
    return unwrap(await feedback_service.list_for_event(identity, event_id))


@router.get("/organizer/{organizer_id}", response_model=List[FeedbackDetailOut])
async def list_organizer_feedback(
    organizer_id: UUID,
    identity: Identity = Depends(get_current_identity),
    feedback_service: FeedbackService = Depends(get_feedback_service)
):
    return unwrap(await feedback_service.list_for_organizer(identity, organizer_id))
