import uuid
from typing import Any

from fastapi import APIRouter

from onboarding.api.deps import CurrentProfile, SessionDep
from onboarding.models import Message, NotificationReadPublic, NotificationsPublic
from onboarding.services import notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationsPublic)
def read_notifications(
    session: SessionDep,
    current_profile: CurrentProfile,
    limit: int = notifications.DEFAULT_LIST_LIMIT,
    unread_only: bool = False,
) -> Any:
    data = notifications.list_for(
        session, actor_id=current_profile.id, limit=limit, unread_only=unread_only
    )
    return NotificationsPublic(
        data=data,
        count=len(data),
        unread_count=notifications.unread_count(session, actor_id=current_profile.id),
    )


@router.post("/read-all", response_model=Message)
def mark_all_notifications_read(
    session: SessionDep, current_profile: CurrentProfile
) -> Any:
    updated = notifications.mark_all_read(session, actor_id=current_profile.id)
    return Message(message=f"{updated} notifications marked as read")


@router.post("/{notification_id}/read", response_model=NotificationReadPublic)
def mark_notification_read(
    session: SessionDep, current_profile: CurrentProfile, notification_id: uuid.UUID
) -> Any:
    updated = notifications.mark_read(
        session, notification_id=notification_id, actor_id=current_profile.id
    )
    return NotificationReadPublic(id=notification_id, updated=updated)
