import uuid
from typing import Any

from fastapi import APIRouter, HTTPException

from onboarding import crud
from onboarding.api.deps import CurrentProfile, SessionDep
from onboarding.models import (
    ProfileCreate,
    ProfilePublic,
    ProfileRegister,
    ProfileRoleUpdate,
    ProfileUpdateMe,
)
from onboarding.services import authorization

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", response_model=ProfilePublic)
def register_profile(session: SessionDep, profile_in: ProfileRegister) -> Any:
    """
    Create a new candidate profile without the need to be logged in
    """
    if crud.get_profile_by_email(session=session, email=profile_in.email):
        raise HTTPException(
            status_code=400,
            detail="A profile with this email already exists in the system",
        )
    profile_create = ProfileCreate.model_validate(profile_in)
    return crud.create_profile(session=session, profile_create=profile_create)


@router.get("/me", response_model=ProfilePublic)
def read_profile_me(current_profile: CurrentProfile) -> Any:
    return current_profile


@router.patch("/me", response_model=ProfilePublic)
def update_profile_me(
    *, session: SessionDep, profile_in: ProfileUpdateMe, current_profile: CurrentProfile
) -> Any:
    if profile_in.email:
        existing = crud.get_profile_by_email(session=session, email=profile_in.email)
        if existing and existing.id != current_profile.id:
            raise HTTPException(
                status_code=409, detail="A profile with this email already exists"
            )
    return crud.update_profile(
        session=session, db_profile=current_profile, profile_in=profile_in
    )


@router.patch("/{profile_id}/role", response_model=ProfilePublic)
def update_profile_role(
    *,
    session: SessionDep,
    current_profile: CurrentProfile,
    profile_id: uuid.UUID,
    role_in: ProfileRoleUpdate,
) -> Any:
    authorization.require_admin(session, current_profile.id, action="change roles")
    profile = crud.set_profile_role(
        session=session, profile_id=profile_id, role=role_in.role
    )
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile
