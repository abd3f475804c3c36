"""Person registry interface."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.person import Person, PersonPhoto


class PersonRegistry(ABC):
    """Interface for persistent person identities and their photo links."""

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[Person]:
        """List all people of a user, oldest record first."""
        pass

    @abstractmethod
    async def list_links(self, person_id: str) -> List[PersonPhoto]:
        """List the photo links of a person."""
        pass

    @abstractmethod
    async def get(self, person_id: str) -> Person:
        """
        Get a person by id.

        Raises:
            PersonNotFoundError: If no such person exists
        """
        pass

    @abstractmethod
    async def upsert_person(self, person: Person) -> Person:
        """
        Create the person when ``person_id`` is None, otherwise overwrite it.

        Returns:
            The stored Person, with ``person_id`` and ``created_at`` set
        """
        pass

    @abstractmethod
    async def upsert_link(
        self,
        person_id: str,
        photo_id: str,
        embedding_id: Optional[str] = None,
    ) -> bool:
        """
        Link a photo to a person. Re-adding an existing link is a no-op.

        Returns:
            True if a new link was created, False if it already existed
        """
        pass
