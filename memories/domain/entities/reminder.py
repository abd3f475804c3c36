"""Reminder entity."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Reminder(BaseModel):
    """A nudge to reconnect with a person not seen for a long time."""
    reminder_id: Optional[str] = Field(None, description="Unique identifier of the reminder")
    user_id: str = Field(..., description="User the reminder belongs to")
    person_id: str = Field(..., description="Person the reminder is about")
    message: Optional[str] = Field(None, description="Human readable reminder text")
    remind_date: datetime = Field(..., description="When the reminder was raised")
    is_dismissed: bool = Field(False, description="Whether the user dismissed it")
