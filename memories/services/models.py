"""Service-specific models.

This module contains models used by services that are independent of the API layer.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from memories.domain.entities.face import Embedding
from memories.domain.entities.person import Person, Photo


class ServicePersonSummary(BaseModel):
    """Person with the number of photos they appear in."""
    person: Person = Field(..., description="Person record")
    photo_count: int = Field(..., description="Distinct linked photos", ge=0)


class ServicePersonDetail(BaseModel):
    """Person with their linked photos."""
    person: Person = Field(..., description="Person record")
    photos: List[Photo] = Field(..., description="Linked photos, oldest first")


class ServiceIngestionResult(BaseModel):
    """Photo stored by ingestion together with its face embeddings."""
    photo: Photo = Field(..., description="Stored photo")
    embeddings: List[Embedding] = Field(..., description="One embedding per detected face")

    model_config = ConfigDict(arbitrary_types_allowed=True)
