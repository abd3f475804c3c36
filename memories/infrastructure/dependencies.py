"""FastAPI dependency providers."""
from typing import AsyncGenerator

from fastapi import Depends

from memories.core.container import ServiceContainer, container
from memories.core.exceptions import ServiceNotInitializedError
from memories.services.clustering import ClusteringService
from memories.services.people import PeopleService
from memories.services.reminders import ReminderService


async def get_container() -> ServiceContainer:
    """Dependency provider for the global ServiceContainer instance."""
    if not container.initialized:
        try:
            await container.initialize()
        except Exception as e:
            raise ServiceNotInitializedError(f"Service container could not be initialized: {e}") from e
    return container


async def get_clustering_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[ClusteringService, None]:
    """Dependency provider for ClusteringService."""
    if not container.clustering_service:
        raise ServiceNotInitializedError("ClusteringService not found in initialized container")
    yield container.clustering_service


async def get_people_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[PeopleService, None]:
    """Dependency provider for PeopleService."""
    if not container.people_service:
        raise ServiceNotInitializedError("PeopleService not found in initialized container")
    yield container.people_service


async def get_reminder_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[ReminderService, None]:
    """Dependency provider for ReminderService."""
    if not container.reminder_service:
        raise ServiceNotInitializedError("ReminderService not found in initialized container")
    yield container.reminder_service
