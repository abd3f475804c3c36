"""Value objects package."""
from .clustering import Cluster, ClusteringRunResult, PersonUpdate

__all__ = ["Cluster", "ClusteringRunResult", "PersonUpdate"]
