"""Reminder API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from memories.core.exceptions import ReminderNotFoundError
from memories.core.logging import get_logger
from memories.domain.entities.reminder import Reminder
from memories.infrastructure.dependencies import get_reminder_service
from memories.services.reminders import ReminderService

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/{user_id}/reminders/generate",
    response_model=List[Reminder],
    summary="Find forgotten faces",
    description="Creates a reminder for every person not seen for the configured number of years.",
)
async def generate_reminders(
    user_id: str,
    service: ReminderService = Depends(get_reminder_service),
) -> List[Reminder]:
    """Generate reminders and return the newly created ones."""
    return await service.generate(user_id)


@router.get(
    "/{user_id}/reminders",
    response_model=List[Reminder],
    summary="List open reminders",
)
async def list_reminders(
    user_id: str,
    service: ReminderService = Depends(get_reminder_service),
) -> List[Reminder]:
    """List undismissed reminders, newest first."""
    return await service.list(user_id)


@router.post(
    "/{user_id}/reminders/{reminder_id}/dismiss",
    response_model=Reminder,
    summary="Dismiss a reminder",
    responses={404: {"description": "Reminder not found"}},
)
async def dismiss_reminder(
    user_id: str,
    reminder_id: str,
    service: ReminderService = Depends(get_reminder_service),
) -> Reminder:
    """Mark one reminder as dismissed."""
    try:
        return await service.dismiss(user_id, reminder_id)
    except ReminderNotFoundError as e:
        logger.warning("Reminder not found", user_id=user_id, reminder_id=reminder_id)
        raise HTTPException(status_code=404, detail=str(e))
