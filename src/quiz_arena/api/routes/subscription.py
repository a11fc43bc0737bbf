"""Mailing-list subscription route."""

from fastapi import APIRouter, HTTPException, status

from quiz_arena.core.dependencies import SubscriptionManagerDep
from quiz_arena.schemas.subscription import SubscribeRequest
from quiz_arena.schemas.user import MessageResponse
from quiz_arena.utils.subscription_manager import AlreadySubscribedError

router = APIRouter(prefix="/api", tags=["Subscription"])


@router.post(
    "/subscribe",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to the mailing list",
)
def subscribe(
    req: SubscribeRequest, subscription_manager: SubscriptionManagerDep
) -> MessageResponse:
    try:
        subscription_manager.subscribe(req.email)
    except AlreadySubscribedError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already subscribed",
        )
    return MessageResponse(message="Subscribed successfully!")
