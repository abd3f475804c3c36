"""Browsing and naming people."""
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from memories.core.logging import get_logger
from memories.domain.entities.person import Person
from memories.infrastructure.database.unit_of_work import UnitOfWork
from memories.services.models import ServicePersonDetail, ServicePersonSummary

logger = get_logger(__name__)


class PeopleService:
    """Read and rename the people of a user."""

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self.session_factory = session_factory

    async def list_people(self, user_id: str) -> List[ServicePersonSummary]:
        """People of a user with photo counts, most recently seen first.

        People never seen come last.
        """
        async with UnitOfWork(self.session_factory) as uow:
            people = await uow.people.list_by_user(user_id)
            counts = await uow.people.count_photos(user_id)

        ordered = sorted(people, key=lambda p: p.person_id)
        ordered.sort(key=lambda p: p.last_seen or datetime.min, reverse=True)
        return [
            ServicePersonSummary(person=p, photo_count=counts.get(p.person_id, 0))
            for p in ordered
        ]

    async def get_person(self, user_id: str, person_id: str) -> ServicePersonDetail:
        """One person with their photos.

        Raises:
            PersonNotFoundError: If the user has no such person
        """
        async with UnitOfWork(self.session_factory) as uow:
            person = await uow.people.get(person_id, user_id=user_id)
            photos = await uow.people.list_photos(person_id)
        return ServicePersonDetail(person=person, photos=photos)

    async def rename(self, user_id: str, person_id: str, name: Optional[str]) -> Person:
        """Give a person a display name.

        Raises:
            PersonNotFoundError: If the user has no such person
        """
        async with UnitOfWork(self.session_factory) as uow:
            person = await uow.people.rename(person_id, user_id, name)
        logger.info("Renamed person", user_id=user_id, person_id=person_id)
        return person
