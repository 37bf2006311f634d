"""Role lookup and read/write permission checks.

``is_admin`` is the privileged path: it reads the ``role`` column with a
plain SELECT on the profile table and never calls back into ``can_read`` or
``can_write``. Every other check builds on it, so the admin check cannot
re-enter the policy it is enforcing.
"""

import uuid

from sqlmodel import Session, select

from onboarding.core.errors import AuthorizationError
from onboarding.models import Application, ApplicationStatus, Profile, Role

OWNER_WRITABLE_STATUSES = frozenset(
    {ApplicationStatus.DRAFT.value, ApplicationStatus.SUBMITTED.value}
)


def get_role(session: Session, actor_id: uuid.UUID | None) -> Role | None:
    if actor_id is None:
        return None
    row = session.exec(
        select(Profile.role, Profile.is_active).where(Profile.id == actor_id)
    ).first()
    if row is None:
        return None
    role, is_active = row
    if not is_active:
        return None
    return Role(role)


def is_admin(session: Session, actor_id: uuid.UUID | None) -> bool:
    return get_role(session, actor_id) is Role.ADMIN


def can_read(
    session: Session, actor_id: uuid.UUID | None, resource_owner_id: uuid.UUID
) -> bool:
    if actor_id is not None and actor_id == resource_owner_id:
        return True
    return is_admin(session, actor_id)


def can_write(
    session: Session, actor_id: uuid.UUID | None, application: Application
) -> bool:
    """Form edits: the owner, and only while the application is still open.

    Review fields are never written through this check; the admin-only
    transitions call ``require_admin`` instead.
    """
    if actor_id is None or actor_id != application.owner_id:
        return False
    return application.status in OWNER_WRITABLE_STATUSES


def require_admin(session: Session, actor_id: uuid.UUID | None, *, action: str) -> None:
    if not is_admin(session, actor_id):
        raise AuthorizationError(
            f"Only administrators can {action}",
            actor_id=str(actor_id) if actor_id else None,
            required_role=Role.ADMIN.value,
        )


def require_read(
    session: Session, actor_id: uuid.UUID | None, resource_owner_id: uuid.UUID
) -> None:
    if not can_read(session, actor_id, resource_owner_id):
        raise AuthorizationError(
            "Not enough permissions",
            actor_id=str(actor_id) if actor_id else None,
        )


def require_owner(
    actor_id: uuid.UUID | None, resource_owner_id: uuid.UUID, *, action: str
) -> None:
    if actor_id is None or actor_id != resource_owner_id:
        raise AuthorizationError(
            f"Only the applicant can {action}",
            actor_id=str(actor_id) if actor_id else None,
        )


def require_write(
    session: Session, actor_id: uuid.UUID | None, application: Application
) -> None:
    if not can_write(session, actor_id, application):
        raise AuthorizationError(
            "Application can no longer be edited by this actor",
            actor_id=str(actor_id) if actor_id else None,
            status=application.status,
        )
