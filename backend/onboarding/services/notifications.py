"""Per-recipient notification records.

Recording a notification happens inside the caller's transaction but under a
SAVEPOINT: if the insert fails only the savepoint is rolled back, the error is
logged and the business transaction carries on. Delivery to the outbound
channel happens after the caller commits, so a recipient is never told about
a transition that was rolled back.
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import update
from sqlmodel import Session, col, func, select

from onboarding.core.db import atomic
from onboarding.core.errors import AuthorizationError, NotFoundError
from onboarding.models import Notification, NotificationSeverity
from onboarding.services.delivery import DeliveryChannel, get_delivery_channel

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


def notify(
    session: Session,
    *,
    recipient_id: uuid.UUID,
    title: str,
    message: str,
    severity: NotificationSeverity = NotificationSeverity.INFO,
    link: str | None = None,
) -> Notification | None:
    # pending business changes must fail loudly, not inside the savepoint
    session.flush()
    try:
        with session.begin_nested():
            notification = Notification(
                recipient_id=recipient_id,
                title=title,
                message=message,
                severity=severity.value,
                link=link,
            )
            session.add(notification)
    except Exception:
        logger.exception("Could not record notification %r for %s", title, recipient_id)
        return None
    return notification


def deliver(
    notifications: Iterable[Notification | None],
    channel: DeliveryChannel | None = None,
) -> None:
    channel = channel or get_delivery_channel()
    for notification in notifications:
        if notification is None:
            continue
        try:
            channel.deliver(notification)
        except Exception:
            logger.exception("Delivery failed for notification %s", notification.id)


def mark_read(
    session: Session, *, notification_id: uuid.UUID, actor_id: uuid.UUID
) -> bool:
    """Return True when the notification flipped from unread to read."""
    with atomic(session):
        notification = session.get(Notification, notification_id)
        if not notification:
            raise NotFoundError(
                "Notification not found", notification_id=str(notification_id)
            )
        if notification.recipient_id != actor_id:
            raise AuthorizationError(
                "Only the recipient can mark a notification as read",
                actor_id=str(actor_id),
            )
        if notification.is_read:
            return False
        notification.is_read = True
        session.add(notification)
    return True


def mark_all_read(session: Session, *, actor_id: uuid.UUID) -> int:
    with atomic(session):
        result = session.exec(  # type: ignore[call-overload]
            update(Notification)
            .where(
                col(Notification.recipient_id) == actor_id,
                col(Notification.is_read).is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        updated = result.rowcount
    session.expire_all()
    return updated


def list_for(
    session: Session,
    *,
    actor_id: uuid.UUID,
    limit: int = DEFAULT_LIST_LIMIT,
    unread_only: bool = False,
) -> list[Notification]:
    statement = select(Notification).where(Notification.recipient_id == actor_id)
    if unread_only:
        statement = statement.where(col(Notification.is_read).is_(False))
    statement = statement.order_by(col(Notification.created_at).desc()).limit(limit)
    return list(session.exec(statement).all())


def unread_count(session: Session, *, actor_id: uuid.UUID) -> int:
    statement = (
        select(func.count())
        .select_from(Notification)
        .where(
            Notification.recipient_id == actor_id,
            col(Notification.is_read).is_(False),
        )
    )
    return session.exec(statement).one()
