"""Reminders about people who have not been seen for a long time."""
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from memories.core.logging import get_logger
from memories.domain.entities.person import Person
from memories.domain.entities.reminder import Reminder
from memories.infrastructure.database.models import utcnow
from memories.infrastructure.database.unit_of_work import UnitOfWork

logger = get_logger(__name__)


def subtract_years(moment: datetime, years: int) -> datetime:
    """Same calendar date ``years`` earlier; 29 February maps to the 28th."""
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        return moment.replace(year=moment.year - years, day=28)


class ReminderPolicy:
    """Decide which people count as forgotten.

    A person is forgotten once ``now`` is at least ``years`` calendar years
    after their ``last_seen``. People never seen are never forgotten.
    """

    def __init__(self, years: int = 2) -> None:
        self.years = years

    def cutoff(self, now: datetime) -> datetime:
        return subtract_years(now, self.years)

    def is_forgotten(self, now: datetime, last_seen: Optional[datetime]) -> bool:
        if last_seen is None:
            return False
        return last_seen <= self.cutoff(now)

    def select(
        self,
        now: datetime,
        people: Iterable[Person],
        already_reminded: Iterable[str] = (),
    ) -> List[Person]:
        """People to raise a new reminder for.

        Args:
            now: Reference time
            people: Candidate people
            already_reminded: Person ids with an undismissed reminder

        Returns:
            List[Person]: Forgotten people without an open reminder
        """
        skip = set(already_reminded)
        return [
            p for p in people
            if p.person_id not in skip and self.is_forgotten(now, p.last_seen)
        ]

    def message(self, person: Person) -> str:
        name = person.name or "this person"
        return f"You haven't seen {name} in over {self.years} years. Maybe reconnect?"


class ReminderService:
    """Service creating, listing and dismissing reminders."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        policy: Optional[ReminderPolicy] = None,
    ) -> None:
        """Initialize the reminder service.

        Args:
            session_factory: Callable producing database sessions
            policy: Forgotten-person policy, two years by default
        """
        self.session_factory = session_factory
        self.policy = policy or ReminderPolicy()

    async def generate(self, user_id: str, now: Optional[datetime] = None) -> List[Reminder]:
        """Raise one reminder per newly forgotten person.

        Args:
            user_id: Owner of the people
            now: Reference time, current UTC time by default

        Returns:
            List[Reminder]: Reminders created by this call
        """
        now = now or utcnow()
        async with UnitOfWork(self.session_factory) as uow:
            people = await uow.people.list_by_user(user_id)
            open_reminders = await uow.reminders.list_undismissed(user_id)
            forgotten = self.policy.select(now, people, (r.person_id for r in open_reminders))
            created = [
                await uow.reminders.add(Reminder(
                    user_id=user_id,
                    person_id=person.person_id,
                    message=self.policy.message(person),
                    remind_date=now,
                ))
                for person in forgotten
            ]
        logger.info("Generated reminders", user_id=user_id, count=len(created))
        return created

    async def list(self, user_id: str) -> List[Reminder]:
        """Undismissed reminders of a user, newest first."""
        async with UnitOfWork(self.session_factory) as uow:
            return await uow.reminders.list_undismissed(user_id)

    async def dismiss(self, user_id: str, reminder_id: str) -> Reminder:
        """Dismiss one reminder.

        Raises:
            ReminderNotFoundError: If the user has no such reminder
        """
        async with UnitOfWork(self.session_factory) as uow:
            return await uow.reminders.dismiss(user_id, reminder_id)
