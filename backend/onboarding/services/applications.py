"""Application lifecycle: drafts, submission and the review decisions.

Status only moves forward::

    draft -> submitted -> under_review -> accepted | rejected

Every status change is a compare-and-set on the current status, so when two
reviewers race on the same application exactly one UPDATE matches and the
other caller gets a ``ConflictError``. State, progress, activity entry and
notification record are written in one transaction.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, select

from onboarding.core.db import atomic
from onboarding.core.errors import ConflictError, NotFoundError, ValidationError
from onboarding.models import (
    ActivityEventType,
    Application,
    ApplicationStatus,
    NotificationSeverity,
    Profile,
    get_datetime_utc,
)
from onboarding.services import activity, authorization, notifications, progress
from onboarding.services.delivery import DeliveryChannel

logger = logging.getLogger(__name__)

TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: frozenset({ApplicationStatus.SUBMITTED}),
    ApplicationStatus.SUBMITTED: frozenset({ApplicationStatus.UNDER_REVIEW}),
    ApplicationStatus.UNDER_REVIEW: frozenset(
        {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.ACCEPTED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}

ACTIVE_STATUSES = frozenset(
    {ApplicationStatus.SUBMITTED.value, ApplicationStatus.UNDER_REVIEW.value}
)

# a new draft may only follow a rejection
DRAFT_BLOCKING_STATUSES = ACTIVE_STATUSES | {ApplicationStatus.ACCEPTED.value}


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return target in TRANSITIONS[current]


def _load(session: Session, application_id: uuid.UUID) -> Application:
    application = session.get(Application, application_id)
    if not application:
        raise NotFoundError("Application not found", application_id=str(application_id))
    return application


def _ensure_transition(application: Application, target: ApplicationStatus) -> None:
    current = ApplicationStatus(application.status)
    if not can_transition(current, target):
        raise ConflictError(
            f"Cannot move application from {current.value} to {target.value}",
            current_status=current.value,
            requested_status=target.value,
        )


def _compare_and_set(
    session: Session,
    application: Application,
    target: ApplicationStatus,
    **changes: Any,
) -> ApplicationStatus:
    expected = ApplicationStatus(application.status)
    result = session.exec(  # type: ignore[call-overload]
        update(Application)
        .where(
            col(Application.id) == application.id,
            col(Application.status) == expected.value,
        )
        .values(status=target.value, updated_at=get_datetime_utc(), **changes)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError(
            "Application was changed by another request",
            current_status=expected.value,
            requested_status=target.value,
        )
    session.refresh(application)
    return expected


def _find_draft(session: Session, owner_id: uuid.UUID) -> Application | None:
    statement = select(Application).where(
        Application.owner_id == owner_id,
        Application.status == ApplicationStatus.DRAFT.value,
    )
    return session.exec(statement).first()


def _merge_form(
    session: Session, application: Application, form_patch: dict[str, Any]
) -> Application:
    with atomic(session):
        # assign a new dict so the JSON column is flagged dirty
        application.form_data = {**(application.form_data or {}), **form_patch}
        application.updated_at = get_datetime_utc()
        session.add(application)
        progress.recompute(session, application)
    session.refresh(application)
    return application


def create_draft(
    session: Session, *, owner_id: uuid.UUID, form: dict[str, Any] | None = None
) -> Application:
    """Return the owner's single draft, creating it on first use."""
    form = form or {}
    if not session.get(Profile, owner_id):
        raise NotFoundError("Profile not found", profile_id=str(owner_id))

    draft = _find_draft(session, owner_id)
    if draft:
        return _merge_form(session, draft, form)

    blocking = session.exec(
        select(Application).where(
            Application.owner_id == owner_id,
            col(Application.status).in_(DRAFT_BLOCKING_STATUSES),
        )
    ).first()
    if blocking:
        raise ConflictError(
            "An application is already in progress or accepted",
            application_id=str(blocking.id),
            current_status=blocking.status,
        )

    try:
        with atomic(session):
            application = Application(owner_id=owner_id, form_data=dict(form))
            session.add(application)
            session.flush()
            progress.recompute(session, application)
    except IntegrityError:
        # a concurrent save created the draft first; fold this one into it
        draft = _find_draft(session, owner_id)
        if not draft:
            raise ConflictError("Duplicate draft", owner_id=str(owner_id))
        return _merge_form(session, draft, form)

    session.refresh(application)
    logger.info("Created draft application %s for %s", application.id, owner_id)
    return application


def update_draft(
    session: Session,
    *,
    application_id: uuid.UUID,
    actor_id: uuid.UUID,
    form_patch: dict[str, Any],
) -> Application:
    application = _load(session, application_id)
    authorization.require_write(session, actor_id, application)
    return _merge_form(session, application, form_patch)


def get(session: Session, *, application_id: uuid.UUID, actor_id: uuid.UUID) -> Application:
    application = _load(session, application_id)
    authorization.require_read(session, actor_id, application.owner_id)
    return application


def list_applications(
    session: Session,
    *,
    actor_id: uuid.UUID,
    status: ApplicationStatus | None = None,
    skip: int = 0,
    limit: int = 100,
) -> tuple[list[Application], int]:
    count_statement = select(func.count()).select_from(Application)
    statement = select(Application)
    if not authorization.is_admin(session, actor_id):
        count_statement = count_statement.where(Application.owner_id == actor_id)
        statement = statement.where(Application.owner_id == actor_id)
    if status is not None:
        count_statement = count_statement.where(Application.status == status.value)
        statement = statement.where(Application.status == status.value)

    count = session.exec(count_statement).one()
    statement = (
        statement.order_by(col(Application.created_at).desc()).offset(skip).limit(limit)
    )
    return list(session.exec(statement).all()), count


def submit(
    session: Session,
    *,
    application_id: uuid.UUID,
    actor_id: uuid.UUID,
    channel: DeliveryChannel | None = None,
) -> Application:
    application = _load(session, application_id)
    authorization.require_owner(
        actor_id, application.owner_id, action="submit this application"
    )
    _ensure_transition(application, ApplicationStatus.SUBMITTED)
    missing = progress.missing_required_fields(application.form_data)
    if missing:
        raise ValidationError("Required fields are missing", missing_fields=missing)

    with atomic(session):
        _compare_and_set(
            session,
            application,
            ApplicationStatus.SUBMITTED,
            submitted_at=application.submitted_at or get_datetime_utc(),
        )
        progress.recompute(session, application)
        activity.append(
            session,
            application_id=application.id,
            event_type=ActivityEventType.SUBMITTED,
            description="Application submitted for review",
            actor_id=actor_id,
        )
        notification = notifications.notify(
            session,
            recipient_id=application.owner_id,
            title="Application Submitted Successfully",
            message="Your application has been submitted and is under review.",
            severity=NotificationSeverity.SUCCESS,
            link="/candidate/dashboard",
        )
    notifications.deliver([notification], channel)
    logger.info("Application %s submitted by %s", application_id, actor_id)
    session.refresh(application)
    return application


def _review_transition(
    session: Session,
    *,
    application_id: uuid.UUID,
    actor_id: uuid.UUID,
    target: ApplicationStatus,
    description: str,
    metadata: dict[str, Any],
    title: str,
    message: str,
    severity: NotificationSeverity,
    link: str,
    channel: DeliveryChannel | None,
    **changes: Any,
) -> Application:
    application = _load(session, application_id)
    _ensure_transition(application, target)

    with atomic(session):
        previous = _compare_and_set(session, application, target, **changes)
        activity.append(
            session,
            application_id=application.id,
            event_type=ActivityEventType.STATUS_CHANGED,
            description=description,
            actor_id=actor_id,
            metadata={
                "old_status": previous.value,
                "new_status": target.value,
                **metadata,
            },
        )
        notification = notifications.notify(
            session,
            recipient_id=application.owner_id,
            title=title,
            message=message,
            severity=severity,
            link=link,
        )
    notifications.deliver([notification], channel)
    logger.info(
        "Application %s moved %s -> %s by %s",
        application_id,
        previous.value,
        target.value,
        actor_id,
    )
    session.refresh(application)
    return application


def begin_review(
    session: Session,
    *,
    application_id: uuid.UUID,
    actor_id: uuid.UUID,
    channel: DeliveryChannel | None = None,
) -> Application:
    authorization.require_admin(session, actor_id, action="start a review")
    return _review_transition(
        session,
        application_id=application_id,
        actor_id=actor_id,
        target=ApplicationStatus.UNDER_REVIEW,
        description="Application review started",
        metadata={},
        title="Application Under Review",
        message="An administrator has started reviewing your application.",
        severity=NotificationSeverity.INFO,
        link="/candidate/status",
        channel=channel,
        reviewed_by_id=actor_id,
    )


def approve(
    session: Session,
    *,
    application_id: uuid.UUID,
    actor_id: uuid.UUID,
    notes: str | None = None,
    channel: DeliveryChannel | None = None,
) -> Application:
    authorization.require_admin(session, actor_id, action="approve applications")
    return _review_transition(
        session,
        application_id=application_id,
        actor_id=actor_id,
        target=ApplicationStatus.ACCEPTED,
        description="Application approved by admin",
        metadata={"admin_notes": notes},
        title="Application Approved!",
        message=(
            "Your application has been approved. "
            "Please upload any remaining documents to proceed."
        ),
        severity=NotificationSeverity.SUCCESS,
        link="/candidate/documents",
        channel=channel,
        reviewed_by_id=actor_id,
        reviewed_at=get_datetime_utc(),
        admin_notes=notes,
        rejection_reason=None,
    )


def reject(
    session: Session,
    *,
    application_id: uuid.UUID,
    actor_id: uuid.UUID,
    reason: str,
    notes: str | None = None,
    channel: DeliveryChannel | None = None,
) -> Application:
    authorization.require_admin(session, actor_id, action="reject applications")
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required", field="reason")

    return _review_transition(
        session,
        application_id=application_id,
        actor_id=actor_id,
        target=ApplicationStatus.REJECTED,
        description="Application rejected by admin",
        metadata={"rejection_reason": reason, "admin_notes": notes},
        title="Application Status Update",
        message=f"Your application was not accepted. Reason: {reason}",
        severity=NotificationSeverity.WARNING,
        link="/candidate/dashboard",
        channel=channel,
        reviewed_by_id=actor_id,
        reviewed_at=get_datetime_utc(),
        admin_notes=notes,
        rejection_reason=reason,
    )


def statistics(session: Session, *, actor_id: uuid.UUID) -> dict[str, int]:
    authorization.require_admin(session, actor_id, action="view statistics")

    def _count(*criteria: Any) -> int:
        statement = select(func.count()).select_from(Application).where(*criteria)
        return session.exec(statement).one()

    accepted = Application.status == ApplicationStatus.ACCEPTED.value
    return {
        "total_applications": _count(Application.status != ApplicationStatus.DRAFT.value),
        "pending_review": _count(col(Application.status).in_(ACTIVE_STATUSES)),
        "approved": _count(accepted),
        "rejected": _count(Application.status == ApplicationStatus.REJECTED.value),
        "documents_pending": _count(accepted, col(Application.progress_percent) < 100),
        "completed": _count(accepted, col(Application.progress_percent) == 100),
    }
