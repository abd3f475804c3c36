"""Clustering and reconciliation value objects."""
from datetime import datetime
from typing import List, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from memories.domain.entities.face import Embedding


class Cluster(BaseModel):
    """A group of embeddings judged to belong to one individual.

    The representative is the vector of the first member assigned to the
    cluster, not a running centroid.
    """
    representative: np.ndarray = Field(..., description="Comparison anchor for later candidates")
    members: List[Embedding] = Field(..., min_length=1, description="Members in canonical order")
    degenerate: bool = Field(False, description="Singleton holding a zero vector")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def member_ids(self) -> List[str]:
        return [m.embedding_id for m in self.members]

    @property
    def photo_ids(self) -> List[str]:
        """Distinct photo ids of the members, in member order."""
        return list(dict.fromkeys(m.photo_id for m in self.members))

    @property
    def first_seen(self) -> Optional[datetime]:
        stamps = [m.captured_at for m in self.members if m.captured_at is not None]
        return min(stamps) if stamps else None

    @property
    def last_seen(self) -> Optional[datetime]:
        stamps = [m.captured_at for m in self.members if m.captured_at is not None]
        return max(stamps) if stamps else None

    @property
    def earliest_member(self) -> Embedding:
        """Member with the earliest capture time, falling back to canonical order."""
        # members are already in canonical order, nulls last
        return self.members[0]


class PersonUpdate(BaseModel):
    """What reconciliation did with one cluster."""
    person_id: str = Field(..., description="Person the cluster was projected onto")
    name: Optional[str] = Field(None, description="Person name after reconciliation")
    created: bool = Field(..., description="True when a new person was created")
    member_count: int = Field(..., description="Number of embeddings in the cluster")
    links_added: int = Field(..., description="PersonPhoto links created in this run")
    first_seen: Optional[datetime] = Field(None, description="Person first_seen after the run")
    last_seen: Optional[datetime] = Field(None, description="Person last_seen after the run")


class ClusteringRunResult(BaseModel):
    """Outcome of one load-cluster-reconcile run for a user."""
    user_id: str = Field(..., description="User the run was for")
    threshold: float = Field(..., description="Similarity threshold used")
    embedding_count: int = Field(..., description="Embeddings considered")
    clusters: List[Cluster] = Field(default_factory=list, description="Clusters in creation order")
    person_updates: List[PersonUpdate] = Field(default_factory=list, description="One entry per cluster")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def people_created(self) -> int:
        return sum(1 for u in self.person_updates if u.created)

    @property
    def people_matched(self) -> int:
        return sum(1 for u in self.person_updates if not u.created)

    @property
    def message(self) -> str:
        """User-facing summary of the run."""
        if not self.clusters:
            return "no people found"
        return f"found {len(self.clusters)} unique people"
