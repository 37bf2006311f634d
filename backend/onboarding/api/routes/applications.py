import uuid
from typing import Any

from fastapi import APIRouter
from sqlmodel import col, select

from onboarding.api.deps import CurrentProfile, DeliveryChannelDep, SessionDep
from onboarding.models import (
    ActivityLogEntryPublic,
    ApplicationCreate,
    ApplicationPublic,
    ApplicationsPublic,
    ApplicationStatisticsPublic,
    ApplicationStatus,
    ApplicationTimelinePublic,
    ApplicationUpdate,
    ApprovalRequest,
    Profile,
    RejectionRequest,
)
from onboarding.services import activity, applications

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("/", response_model=ApplicationPublic)
def save_application_draft(
    *,
    session: SessionDep,
    current_profile: CurrentProfile,
    application_in: ApplicationCreate,
) -> Any:
    """
    Create the caller's draft, or merge the given fields into the existing one.
    """
    return applications.create_draft(
        session, owner_id=current_profile.id, form=application_in.form_data
    )


@router.get("/", response_model=ApplicationsPublic)
def read_applications(
    session: SessionDep,
    current_profile: CurrentProfile,
    status: ApplicationStatus | None = None,
    skip: int = 0,
    limit: int = 100,
) -> Any:
    data, count = applications.list_applications(
        session, actor_id=current_profile.id, status=status, skip=skip, limit=limit
    )
    return ApplicationsPublic(data=data, count=count)


@router.get("/stats", response_model=ApplicationStatisticsPublic)
def read_application_statistics(
    session: SessionDep, current_profile: CurrentProfile
) -> Any:
    return applications.statistics(session, actor_id=current_profile.id)


@router.get("/{application_id}", response_model=ApplicationPublic)
def read_application(
    session: SessionDep, current_profile: CurrentProfile, application_id: uuid.UUID
) -> Any:
    return applications.get(
        session, application_id=application_id, actor_id=current_profile.id
    )


@router.patch("/{application_id}", response_model=ApplicationPublic)
def update_application_draft(
    *,
    session: SessionDep,
    current_profile: CurrentProfile,
    application_id: uuid.UUID,
    application_in: ApplicationUpdate,
) -> Any:
    return applications.update_draft(
        session,
        application_id=application_id,
        actor_id=current_profile.id,
        form_patch=application_in.form_data,
    )


@router.post("/{application_id}/submit", response_model=ApplicationPublic)
def submit_application(
    session: SessionDep,
    current_profile: CurrentProfile,
    channel: DeliveryChannelDep,
    application_id: uuid.UUID,
) -> Any:
    return applications.submit(
        session,
        application_id=application_id,
        actor_id=current_profile.id,
        channel=channel,
    )


@router.post("/{application_id}/review", response_model=ApplicationPublic)
def start_application_review(
    session: SessionDep,
    current_profile: CurrentProfile,
    channel: DeliveryChannelDep,
    application_id: uuid.UUID,
) -> Any:
    return applications.begin_review(
        session,
        application_id=application_id,
        actor_id=current_profile.id,
        channel=channel,
    )


@router.post("/{application_id}/approve", response_model=ApplicationPublic)
def approve_application(
    *,
    session: SessionDep,
    current_profile: CurrentProfile,
    channel: DeliveryChannelDep,
    application_id: uuid.UUID,
    approval_in: ApprovalRequest,
) -> Any:
    return applications.approve(
        session,
        application_id=application_id,
        actor_id=current_profile.id,
        notes=approval_in.notes,
        channel=channel,
    )


@router.post("/{application_id}/reject", response_model=ApplicationPublic)
def reject_application(
    *,
    session: SessionDep,
    current_profile: CurrentProfile,
    channel: DeliveryChannelDep,
    application_id: uuid.UUID,
    rejection_in: RejectionRequest,
) -> Any:
    return applications.reject(
        session,
        application_id=application_id,
        actor_id=current_profile.id,
        reason=rejection_in.reason,
        notes=rejection_in.notes,
        channel=channel,
    )


@router.get("/{application_id}/timeline", response_model=ApplicationTimelinePublic)
def read_application_timeline(
    session: SessionDep, current_profile: CurrentProfile, application_id: uuid.UUID
) -> Any:
    events = activity.timeline(
        session, application_id=application_id, actor_id=current_profile.id
    )
    actor_ids = {event.actor_id for event in events if event.actor_id}
    actors: dict[uuid.UUID, Profile] = {}
    if actor_ids:
        actors = {
            profile.id: profile
            for profile in session.exec(
                select(Profile).where(col(Profile.id).in_(actor_ids))
            ).all()
        }

    def _to_public(event: Any) -> ActivityLogEntryPublic:
        actor = actors.get(event.actor_id) if event.actor_id else None
        return ActivityLogEntryPublic.model_validate(
            event,
            update={
                "actor_name": actor.full_name if actor else None,
                "actor_role": actor.role if actor else None,
            },
        )

    return ApplicationTimelinePublic(
        application_id=application_id,
        events=[_to_public(event) for event in events],
    )
