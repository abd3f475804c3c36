"""Greedy threshold clustering of face embeddings.

The engine makes a single pass over the embeddings in canonical order
(capture time ascending, unknown times last, then embedding id) and assigns
each one to the first existing cluster whose representative it resembles
more than ``threshold``. Otherwise it opens a new cluster with itself as the
representative.

This first-fit policy is an approximation. It never revisits a decision, so
it is not guaranteed to find the best partition, and an unlucky
representative can split one individual in two. Canonical ordering makes the
result reproducible, not optimal.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from memories.core.exceptions import (
    DegenerateVectorError,
    DimensionMismatchError,
    InvalidThresholdError,
)
from memories.core.logging import get_logger
from memories.domain.entities.face import Embedding
from memories.domain.value_objects.clustering import Cluster
from memories.services.vector_math import cosine_similarity, is_degenerate

logger = get_logger(__name__)


def canonical_key(embedding: Embedding) -> Tuple[bool, datetime, str]:
    """Sort key: capture time ascending with unknown times last, then id."""
    captured_at = embedding.captured_at
    return (captured_at is None, captured_at or datetime.min, embedding.embedding_id)


def canonical_order(embeddings: Iterable[Embedding]) -> List[Embedding]:
    """Return the embeddings sorted into canonical order."""
    return sorted(embeddings, key=canonical_key)


def validate_threshold(threshold: float) -> float:
    """Check that a similarity threshold lies in (0, 1].

    Raises:
        InvalidThresholdError: If it does not
    """
    if not 0.0 < threshold <= 1.0:
        raise InvalidThresholdError(
            f"Similarity threshold must be in (0, 1], got {threshold}",
            details={"threshold": threshold},
        )
    return threshold


def _check_dimensions(embeddings: Sequence[Embedding], expected: Optional[int]) -> None:
    if not embeddings:
        return
    dimension = expected if expected is not None else embeddings[0].dimension
    for embedding in embeddings:
        if embedding.dimension != dimension:
            raise DimensionMismatchError(
                f"Embedding {embedding.embedding_id} has dimension {embedding.dimension}, "
                f"expected {dimension}",
                details={
                    "embedding_id": embedding.embedding_id,
                    "dimension": embedding.dimension,
                    "expected": dimension,
                },
            )


class ClusterEngine:
    """Partition embeddings into clusters of the same individual.

    Example:
        ```python
        engine = ClusterEngine(threshold=0.6)
        clusters = engine.cluster(embeddings)
        ```
    """

    def __init__(self, threshold: float = 0.6, dimension: Optional[int] = None) -> None:
        """Initialize the engine.

        Args:
            threshold: Similarity a face must strictly exceed to join a cluster
            dimension: Expected vector length; inferred from the input when None
        """
        self.threshold = validate_threshold(threshold)
        self.dimension = dimension

    def cluster(self, embeddings: Iterable[Embedding]) -> List[Cluster]:
        """Cluster embeddings with the greedy first-fit policy.

        Args:
            embeddings: Embeddings in any order

        Returns:
            Clusters in creation order, members in canonical order. Empty
            input gives an empty list.

        Raises:
            DimensionMismatchError: If the embeddings are not all the same
                dimension. Nothing is clustered in that case.
        """
        ordered = canonical_order(embeddings)
        _check_dimensions(ordered, self.dimension)

        clusters: List[Cluster] = []
        for embedding in ordered:
            if is_degenerate(embedding.vector):
                logger.warning(
                    "Degenerate embedding placed in its own cluster",
                    embedding_id=embedding.embedding_id,
                    photo_id=embedding.photo_id,
                )
                clusters.append(Cluster(
                    representative=embedding.vector,
                    members=[embedding],
                    degenerate=True,
                ))
                continue

            target = self._first_fit(embedding, clusters)
            if target is None:
                clusters.append(Cluster(representative=embedding.vector, members=[embedding]))
            else:
                target.members.append(embedding)

        logger.debug(
            "Clustered embeddings",
            embedding_count=len(ordered),
            cluster_count=len(clusters),
            threshold=self.threshold,
        )
        return clusters

    def _first_fit(self, embedding: Embedding, clusters: List[Cluster]) -> Optional[Cluster]:
        for candidate in clusters:
            if candidate.degenerate:
                continue
            try:
                similarity = cosine_similarity(embedding.vector, candidate.representative)
            except DegenerateVectorError:
                continue
            if similarity > self.threshold:
                return candidate
        return None


def cluster(
    embeddings: Iterable[Embedding],
    threshold: float = 0.6,
    dimension: Optional[int] = None,
) -> List[Cluster]:
    """Convenience wrapper around :class:`ClusterEngine`."""
    return ClusterEngine(threshold=threshold, dimension=dimension).cluster(embeddings)
