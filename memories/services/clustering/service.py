"""Clustering runs: load embeddings, cluster, reconcile, persist."""
import asyncio
from typing import Callable, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from memories.core.logging import get_logger
from memories.domain.value_objects.clustering import Cluster, ClusteringRunResult
from memories.infrastructure.database.unit_of_work import UnitOfWork
from memories.services.clustering.engine import ClusterEngine, validate_threshold
from memories.services.clustering.locks import UserLockRegistry
from memories.services.clustering.reconciliation import Reconciler

logger = get_logger(__name__)


class ClusteringService:
    """Service grouping a user's faces into people.

    A run holds the user's lock and a single unit of work from loading the
    embeddings to committing the reconciled people, so a failure leaves the
    registry as it was before the run.

    Example:
        ```python
        service = ClusteringService(session_factory, UserLockRegistry())
        result = await service.run("user-1")
        print(result.message)
        ```
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        locks: UserLockRegistry,
        threshold: float = 0.6,
        dimension: Optional[int] = None,
        min_overlap: float = 0.5,
        name_prefix: str = "Person",
    ) -> None:
        """Initialize the clustering service.

        Args:
            session_factory: Callable producing database sessions
            locks: Registry serializing runs per user
            threshold: Default similarity threshold
            dimension: Expected embedding dimension, inferred when None
            min_overlap: Share of linked members needed to match a person
            name_prefix: Prefix of placeholder names for new people
        """
        self.session_factory = session_factory
        self.locks = locks
        self.threshold = validate_threshold(threshold)
        self.dimension = dimension
        self.min_overlap = min_overlap
        self.name_prefix = name_prefix

    def _engine(self, threshold: Optional[float]) -> ClusterEngine:
        return ClusterEngine(
            threshold=self.threshold if threshold is None else threshold,
            dimension=self.dimension,
        )

    async def cluster_user(self, user_id: str, threshold: Optional[float] = None) -> List[Cluster]:
        """Cluster a user's embeddings without touching their people.

        Args:
            user_id: Owner of the embeddings
            threshold: Override of the default similarity threshold

        Returns:
            List[Cluster]: Clusters in creation order
        """
        engine = self._engine(threshold)
        async with UnitOfWork(self.session_factory) as uow:
            embeddings = await uow.embeddings.list_by_user(user_id)
        return await asyncio.to_thread(engine.cluster, embeddings)

    async def run(self, user_id: str, threshold: Optional[float] = None) -> ClusteringRunResult:
        """Cluster a user's embeddings and reconcile them with their people.

        Args:
            user_id: Owner of the embeddings and people
            threshold: Override of the default similarity threshold

        Returns:
            ClusteringRunResult: Clusters and one person update per cluster

        Raises:
            InvalidThresholdError: If the threshold is outside (0, 1]
            DimensionMismatchError: If the embeddings differ in dimension
            StoreUnavailableError: If the store fails; nothing is persisted
        """
        engine = self._engine(threshold)
        with structlog.contextvars.bound_contextvars(user_id=user_id):
            async with self.locks.hold(user_id):
                try:
                    async with UnitOfWork(self.session_factory) as uow:
                        embeddings = await uow.embeddings.list_by_user(user_id)
                        clusters = await asyncio.to_thread(engine.cluster, embeddings)

                        photo_ids = list(dict.fromkeys(
                            pid for c in clusters for pid in c.photo_ids
                        ))
                        photo_urls = await uow.photos.get_urls(photo_ids) if photo_ids else {}
                        reconciler = Reconciler(
                            uow.people,
                            min_overlap=self.min_overlap,
                            name_prefix=self.name_prefix,
                        )
                        updates = await reconciler.reconcile(user_id, clusters, photo_urls)
                except Exception as e:
                    logger.error("Clustering run failed", error=str(e), exc_info=True)
                    raise

            result = ClusteringRunResult(
                user_id=user_id,
                threshold=engine.threshold,
                embedding_count=len(embeddings),
                clusters=clusters,
                person_updates=updates,
            )
            logger.info(
                "Clustering run complete",
                embedding_count=result.embedding_count,
                cluster_count=len(clusters),
                people_created=result.people_created,
                people_matched=result.people_matched,
            )
            return result
