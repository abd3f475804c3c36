"""Face clustering: engine, reconciliation and runs."""
from .engine import ClusterEngine, canonical_order, cluster
from .locks import UserLockRegistry
from .reconciliation import Reconciler
from .service import ClusteringService

__all__ = [
    "ClusterEngine",
    "ClusteringService",
    "Reconciler",
    "UserLockRegistry",
    "canonical_order",
    "cluster",
]
