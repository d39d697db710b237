"""
API v1 router aggregating all endpoints.
"""

from fastapi import APIRouter

from api.v1.plans import router as plans_router
from api.v1.settings import router as settings_router
from api.v1.topics import router as topics_router
from api.v1.users import router as users_router

router = APIRouter()

router.include_router(users_router, tags=["Users"])
router.include_router(topics_router, tags=["Topics"])
router.include_router(plans_router, tags=["Plans"])
router.include_router(settings_router, tags=["Settings"])
