"""Reminder store interface."""
from abc import ABC, abstractmethod
from typing import List

from ...entities.reminder import Reminder


class ReminderStore(ABC):
    """Interface for persisted reminders."""

    @abstractmethod
    async def add(self, reminder: Reminder) -> Reminder:
        """Persist a new reminder and return it with its id."""
        pass

    @abstractmethod
    async def list_undismissed(self, user_id: str) -> List[Reminder]:
        """List a user's undismissed reminders, newest first."""
        pass

    @abstractmethod
    async def dismiss(self, user_id: str, reminder_id: str) -> Reminder:
        """
        Mark a reminder dismissed.

        Raises:
            ReminderNotFoundError: If the user has no such reminder
        """
        pass
