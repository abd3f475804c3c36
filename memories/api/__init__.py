"""API v1 router initialization."""
from fastapi import APIRouter

from .people import router as people_router
from .reminders import router as reminders_router

# Create v1 router
router = APIRouter()

router.include_router(
    people_router,
    prefix="/users",
    tags=["people"]
)
router.include_router(
    reminders_router,
    prefix="/users",
    tags=["reminders"]
)
