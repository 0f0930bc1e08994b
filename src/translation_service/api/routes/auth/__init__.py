"""Authentication routes package.

- login: Password login and logout
- profile: The /me endpoint
"""

from fastapi import APIRouter

from translation_service.api.routes.auth import login, profile

router = APIRouter(prefix="/auth", tags=["auth"])

router.include_router(login.router)
router.include_router(profile.router)
