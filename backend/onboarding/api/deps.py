import uuid
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jwt.exceptions import InvalidTokenError
from pydantic import ValidationError
from sqlmodel import Session

from onboarding.core import security
from onboarding.core.config import settings
from onboarding.core.db import get_db
from onboarding.models import Profile, TokenPayload
from onboarding.services.delivery import DeliveryChannel, get_delivery_channel
from onboarding.services.storage import BlobStore, get_blob_store

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/login/access-token"
)


SessionDep = Annotated[Session, Depends(get_db)]
TokenDep = Annotated[str, Depends(reusable_oauth2)]
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]
DeliveryChannelDep = Annotated[DeliveryChannel, Depends(get_delivery_channel)]


def get_current_profile(session: SessionDep, token: TokenDep) -> Profile:
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[security.ALGORITHM]
        )
        token_data = TokenPayload(**payload)
        profile_id = uuid.UUID(str(token_data.sub))
    except (InvalidTokenError, ValidationError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )
    profile = session.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    if not profile.is_active:
        raise HTTPException(status_code=400, detail="Inactive profile")
    return profile


CurrentProfile = Annotated[Profile, Depends(get_current_profile)]
