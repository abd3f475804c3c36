"""Core face embedding domain entities."""
from typing import Optional, Union
from datetime import datetime

import numpy as np
from pydantic import BaseModel, Field, field_validator, ConfigDict


class BoundingBox(BaseModel):
    """Face bounding box coordinates, carried through untouched by clustering."""
    x: float = Field(..., description="Left coordinate of the bounding box")
    y: float = Field(..., description="Top coordinate of the bounding box")
    width: float = Field(..., description="Width of the bounding box")
    height: float = Field(..., description="Height of the bounding box")


class Embedding(BaseModel):
    """One detected face: its descriptor vector and where/when it was seen."""
    embedding_id: str = Field(..., description="Unique identifier of the embedding")
    vector: np.ndarray = Field(..., description="Face embedding vector")
    photo_id: str = Field(..., description="Identifier of the photo holding the face")
    bounding_box: Optional[BoundingBox] = Field(None, description="Face bounding box in the photo")
    captured_at: Optional[datetime] = Field(None, description="When the photo was taken, if known")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator('vector', mode='before')
    @classmethod
    def validate_vector(cls, v: Union[np.ndarray, list, tuple]) -> np.ndarray:
        """Validate and convert the vector to a one-dimensional numpy array."""
        arr = np.asarray(v)
        if arr.ndim != 1:
            raise ValueError("Embedding vector must be one-dimensional")
        return arr

    @property
    def dimension(self) -> int:
        """Number of components in the vector."""
        return int(self.vector.shape[0])


class DetectedFace(BaseModel):
    """Raw detector output for one face, before it is stored."""
    vector: np.ndarray = Field(..., description="Face descriptor vector")
    bounding_box: BoundingBox = Field(..., description="Bounding box coordinates")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator('vector', mode='before')
    @classmethod
    def validate_vector(cls, v: Union[np.ndarray, list, tuple]) -> np.ndarray:
        """Convert the vector to a numpy array if needed."""
        return np.asarray(v)
