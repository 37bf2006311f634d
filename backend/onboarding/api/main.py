from fastapi import APIRouter

from onboarding.api.routes import (
    applications,
    documents,
    login,
    notifications,
    users,
    utils,
)

api_router = APIRouter()
api_router.include_router(login.router)
api_router.include_router(users.router)
api_router.include_router(utils.router)
api_router.include_router(applications.router)
api_router.include_router(documents.router)
api_router.include_router(notifications.router)
