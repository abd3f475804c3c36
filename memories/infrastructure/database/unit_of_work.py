"""Unit of work pattern implementation."""
from types import TracebackType
from typing import Callable, Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memories.core.exceptions import StoreUnavailableError
from memories.core.logging import get_logger
from memories.infrastructure.database.repositories import (
    EmbeddingRepository,
    PersonRepository,
    PhotoRepository,
    ReminderRepository,
)

logger = get_logger(__name__)


class UnitOfWork:
    """Unit of work for managing one transaction and its repositories.

    Everything done inside ``async with`` is committed on a clean exit and
    rolled back otherwise. Database failures surface as
    :class:`StoreUnavailableError`.

    Example:
        ```python
        async with UnitOfWork(session_factory) as uow:
            embeddings = await uow.embeddings.list_by_user(user_id)
            await uow.people.upsert_link(person_id, photo_id, embedding_id)
        ```
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        """Initialize unit of work.
        
        Args:
            session_factory: Callable producing a new database session
        """
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "UnitOfWork":
        """Open a session and bind the repositories to it.
        
        Returns:
            UnitOfWork: Self
        """
        self._session = self._session_factory()
        self.photos = PhotoRepository(self._session)
        self.embeddings = EmbeddingRepository(self._session)
        self.people = PersonRepository(self._session)
        self.reminders = ReminderRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        """Commit or roll back, then close the session.
        
        Args:
            exc_type: Exception type if an error occurred
            exc_val: Exception value if an error occurred
            exc_tb: Exception traceback if an error occurred
        """
        try:
            if exc_type is not None:
                await self.rollback()
                if isinstance(exc_val, SQLAlchemyError):
                    logger.error("Store operation failed", error=str(exc_val), exc_info=exc_val)
                    raise StoreUnavailableError("Store operation failed") from exc_val
            else:
                try:
                    await self.commit()
                except SQLAlchemyError as e:
                    logger.error("Commit failed", error=str(e), exc_info=True)
                    await self.rollback()
                    raise StoreUnavailableError("Commit failed") from e
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        await self._session.rollback()
