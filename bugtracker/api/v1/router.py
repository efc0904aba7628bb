"""API router combining all endpoint routers."""

from fastapi import APIRouter

from bugtracker.api.v1 import auth, bugs, comments, users
from bugtracker.schemas.common import COMMON_ERROR_RESPONSES

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(
    bugs.router, prefix="/bugs", tags=["Bugs"], responses=COMMON_ERROR_RESPONSES
)
router.include_router(
    comments.router, prefix="/bugs", tags=["Comments"], responses=COMMON_ERROR_RESPONSES
)
router.include_router(
    users.router, prefix="/users", tags=["Users"], responses=COMMON_ERROR_RESPONSES
)
