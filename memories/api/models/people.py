"""API specific people and clustering models."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from memories.domain.entities.person import Person, Photo
from memories.domain.value_objects.clustering import Cluster, ClusteringRunResult, PersonUpdate
from memories.services.models import ServicePersonDetail, ServicePersonSummary

# Constants for validation ranges used in API models
MIN_THRESHOLD = 0.0
MAX_THRESHOLD = 1.0


class ClusteringRequest(BaseModel):
    """Request model for a clustering run."""
    threshold: Optional[float] = Field(
        None,
        description="Cosine similarity a face must exceed to join a cluster; server default when omitted",
        gt=MIN_THRESHOLD, le=MAX_THRESHOLD
    )


class ClusterSummary(BaseModel):
    """API model for one cluster."""
    representative_id: str = Field(..., description="Embedding that anchors the cluster")
    member_ids: List[str] = Field(..., description="Member embeddings in canonical order")
    photo_ids: List[str] = Field(..., description="Distinct photos of the members")
    first_seen: Optional[datetime] = Field(None, description="Earliest member capture time")
    last_seen: Optional[datetime] = Field(None, description="Latest member capture time")

    @classmethod
    def from_cluster(cls, cluster: Cluster) -> "ClusterSummary":
        """Create an API summary from a domain Cluster."""
        return cls(
            representative_id=cluster.members[0].embedding_id,
            member_ids=cluster.member_ids,
            photo_ids=cluster.photo_ids,
            first_seen=cluster.first_seen,
            last_seen=cluster.last_seen,
        )


class ClusteringResponse(BaseModel):
    """Response model for a clustering run."""
    user_id: str = Field(..., description="User the run was for")
    threshold: float = Field(..., description="Similarity threshold used")
    embedding_count: int = Field(..., description="Faces considered")
    message: str = Field(..., description="Human readable summary")
    clusters: List[ClusterSummary] = Field(..., description="Clusters in creation order")
    person_updates: List[PersonUpdate] = Field(..., description="One entry per cluster")

    @classmethod
    def from_service_response(cls, result: ClusteringRunResult) -> "ClusteringResponse":
        """Create an API response from a clustering run result."""
        return cls(
            user_id=result.user_id,
            threshold=result.threshold,
            embedding_count=result.embedding_count,
            message=result.message,
            clusters=[ClusterSummary.from_cluster(c) for c in result.clusters],
            person_updates=result.person_updates,
        )


class PersonResponse(BaseModel):
    """API model for a person."""
    person_id: str = Field(..., description="Unique identifier of the person")
    name: Optional[str] = Field(None, description="Display name")
    profile_image_url: Optional[str] = Field(None, description="URL of the profile photo")
    first_seen: Optional[datetime] = Field(None, description="Earliest sighting")
    last_seen: Optional[datetime] = Field(None, description="Most recent sighting")
    photo_count: Optional[int] = Field(None, description="Distinct photos the person appears in")

    @classmethod
    def from_person(cls, person: Person, photo_count: Optional[int] = None) -> "PersonResponse":
        return cls(
            person_id=person.person_id,
            name=person.name,
            profile_image_url=person.profile_image_url,
            first_seen=person.first_seen,
            last_seen=person.last_seen,
            photo_count=photo_count,
        )

    @classmethod
    def from_summary(cls, summary: ServicePersonSummary) -> "PersonResponse":
        return cls.from_person(summary.person, summary.photo_count)


class PersonDetailResponse(PersonResponse):
    """API model for a person with their photos."""
    photos: List[Photo] = Field(default_factory=list, description="Linked photos, oldest first")

    @classmethod
    def from_detail(cls, detail: ServicePersonDetail) -> "PersonDetailResponse":
        base = PersonResponse.from_person(detail.person, len(detail.photos))
        return cls(**base.model_dump(), photos=detail.photos)


class RenamePersonRequest(BaseModel):
    """Request model for renaming a person."""
    name: Optional[str] = Field(..., description="New display name", max_length=255)
