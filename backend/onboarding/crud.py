import uuid
from typing import Any

from sqlmodel import Session, select

from onboarding.core.security import get_password_hash, verify_password
from onboarding.models import (
    Profile,
    ProfileCreate,
    ProfileUpdateMe,
    Role,
    get_datetime_utc,
)


def create_profile(*, session: Session, profile_create: ProfileCreate) -> Profile:
    db_obj = Profile.model_validate(
        profile_create,
        update={
            "hashed_password": get_password_hash(profile_create.password),
            "role": profile_create.role.value,
        },
    )
    session.add(db_obj)
    session.commit()
    session.refresh(db_obj)
    return db_obj


def update_profile(
    *, session: Session, db_profile: Profile, profile_in: ProfileUpdateMe
) -> Any:
    profile_data = profile_in.model_dump(exclude_unset=True)
    db_profile.sqlmodel_update(profile_data, update={"updated_at": get_datetime_utc()})
    session.add(db_profile)
    session.commit()
    session.refresh(db_profile)
    return db_profile


def set_profile_role(*, session: Session, profile_id: uuid.UUID, role: Role) -> Profile | None:
    db_profile = session.get(Profile, profile_id)
    if not db_profile:
        return None
    db_profile.role = role.value
    db_profile.updated_at = get_datetime_utc()
    session.add(db_profile)
    session.commit()
    session.refresh(db_profile)
    return db_profile


def get_profile_by_email(*, session: Session, email: str) -> Profile | None:
    statement = select(Profile).where(Profile.email == email)
    session_profile = session.exec(statement).first()
    return session_profile


# Dummy hash to use for timing attack prevention when the profile is not found
DUMMY_HASH = get_password_hash("dummy-password-for-timing")


def authenticate(*, session: Session, email: str, password: str) -> Profile | None:
    db_profile = get_profile_by_email(session=session, email=email)
    if not db_profile:
        verify_password(password, DUMMY_HASH)
        return None
    verified, updated_password_hash = verify_password(password, db_profile.hashed_password)
    if not verified:
        return None
    if updated_password_hash:
        db_profile.hashed_password = updated_password_hash
        session.add(db_profile)
        session.commit()
        session.refresh(db_profile)
    return db_profile
