"""Service container for dependency injection."""
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from memories.core.config import Settings, settings as default_settings
from memories.core.exceptions import StoreUnavailableError
from memories.domain.interfaces.recognition.face_detector import FaceDetector
from memories.infrastructure.database.session import (
    create_engine,
    create_schema,
    create_session_factory,
)
from memories.services.clustering import ClusteringService, UserLockRegistry
from memories.services.ingestion import PhotoIngestionService
from memories.services.people import PeopleService
from memories.services.reminders import ReminderPolicy, ReminderService


class ServiceContainer:
    """Container for application services.

    This container manages the lifecycle and dependencies of all services in the application.
    The face detector is an external collaborator: photo ingestion is only
    available when one is supplied.

    Example:
        ```python
        container = ServiceContainer()
        await container.initialize()

        result = await container.clustering_service.run("user-1")
        ```
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize empty container."""
        self.settings = settings or default_settings
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self.locks: Optional[UserLockRegistry] = None
        self.face_detector: Optional[FaceDetector] = None

        # Domain services
        self.clustering_service: Optional[ClusteringService] = None
        self.people_service: Optional[PeopleService] = None
        self.reminder_service: Optional[ReminderService] = None
        self.ingestion_service: Optional[PhotoIngestionService] = None

    @property
    def initialized(self) -> bool:
        return self.session_factory is not None

    async def initialize(
        self,
        database_url: Optional[str] = None,
        face_detector: Optional[FaceDetector] = None,
    ) -> None:
        """Initialize all services in the correct order.

        Args:
            database_url: Override of the configured database URL
            face_detector: Detector enabling photo ingestion

        Raises:
            StoreUnavailableError: If the database cannot be reached or its schema created
        """
        self.engine = create_engine(database_url or self.settings.DATABASE_URL)
        try:
            await create_schema(self.engine)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Could not prepare the database: {e}") from e
        self.session_factory = create_session_factory(self.engine)
        self.locks = UserLockRegistry()
        self.face_detector = face_detector

        self.clustering_service = ClusteringService(
            self.session_factory,
            self.locks,
            threshold=self.settings.CLUSTER_SIMILARITY_THRESHOLD,
            dimension=self.settings.EMBEDDING_DIMENSION,
            min_overlap=self.settings.PERSON_MATCH_MIN_OVERLAP,
            name_prefix=self.settings.PLACEHOLDER_NAME_PREFIX,
        )
        self.people_service = PeopleService(self.session_factory)
        self.reminder_service = ReminderService(
            self.session_factory,
            ReminderPolicy(years=self.settings.REMINDER_ABSENCE_YEARS),
        )
        if face_detector is not None:
            self.ingestion_service = PhotoIngestionService(
                self.session_factory,
                face_detector,
                dimension=self.settings.EMBEDDING_DIMENSION,
            )

    async def cleanup(self) -> None:
        """Cleanup all services in reverse order of initialization."""
        self.ingestion_service = None
        self.reminder_service = None
        self.people_service = None
        self.clustering_service = None
        self.face_detector = None
        self.locks = None
        self.session_factory = None

        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None


# Global container instance
container = ServiceContainer()
