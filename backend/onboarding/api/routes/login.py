from datetime import timedelta
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm

from onboarding import crud
from onboarding.api.deps import CurrentProfile, SessionDep
from onboarding.core import security
from onboarding.core.config import settings
from onboarding.models import ProfilePublic, Token

router = APIRouter(tags=["login"])


@router.post("/login/access-token")
def login_access_token(
    session: SessionDep, form_data: Annotated[OAuth2PasswordRequestForm, Depends()]
) -> Token:
    """
    OAuth2 compatible token login, get an access token for future requests
    """
    profile = crud.authenticate(
        session=session, email=form_data.username, password=form_data.password
    )
    if not profile:
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    elif not profile.is_active:
        raise HTTPException(status_code=400, detail="Inactive profile")
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return Token(
        access_token=security.create_access_token(
            profile.id, expires_delta=access_token_expires
        )
    )


@router.post("/login/test-token", response_model=ProfilePublic)
def test_token(current_profile: CurrentProfile) -> Any:
    """
    Test access token
    """
    return current_profile
