import uuid
from typing import Any

from sqlmodel import Session, col, select

from onboarding.core.errors import NotFoundError
from onboarding.models import ActivityEventType, ActivityLogEntry, Application
from onboarding.services import authorization


def append(
    session: Session,
    *,
    application_id: uuid.UUID,
    event_type: ActivityEventType,
    description: str,
    actor_id: uuid.UUID | None = None,
    metadata: dict[str, Any] | None = None,
) -> ActivityLogEntry:
    entry = ActivityLogEntry(
        application_id=application_id,
        event_type=event_type.value,
        description=description,
        actor_id=actor_id,
        event_metadata=metadata or {},
    )
    session.add(entry)
    session.flush()
    return entry


def timeline(
    session: Session, *, application_id: uuid.UUID, actor_id: uuid.UUID
) -> list[ActivityLogEntry]:
    application = session.get(Application, application_id)
    if not application:
        raise NotFoundError("Application not found", application_id=str(application_id))
    authorization.require_read(session, actor_id, application.owner_id)

    statement = (
        select(ActivityLogEntry)
        .where(ActivityLogEntry.application_id == application_id)
        .order_by(col(ActivityLogEntry.created_at).desc())
    )
    return list(session.exec(statement).all())
