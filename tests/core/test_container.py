"""Tests for the service container."""
import pytest

from memories.core.config import Settings
from memories.core.container import ServiceContainer
from memories.core.exceptions import StoreUnavailableError


class TestServiceContainer:
    """Test suite for ServiceContainer."""

    async def test_initialize_wires_services(self, database_url):
        container = ServiceContainer(Settings(EMBEDDING_DIMENSION=3, REMINDER_ABSENCE_YEARS=5))
        await container.initialize(database_url=database_url)
        try:
            assert container.initialized
            assert container.clustering_service.dimension == 3
            assert container.reminder_service.policy.years == 5
            assert container.ingestion_service is None
        finally:
            await container.cleanup()
        assert not container.initialized

    async def test_unreachable_database_is_store_unavailable(self, tmp_path):
        container = ServiceContainer(Settings())
        try:
            with pytest.raises(StoreUnavailableError):
                await container.initialize(
                    database_url=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'memories.db'}"
                )
        finally:
            await container.cleanup()
        assert container.engine is None
