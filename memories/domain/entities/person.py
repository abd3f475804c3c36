"""Person, photo and link entities."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Photo(BaseModel):
    """A stored photograph owned by a user."""
    photo_id: str = Field(..., description="Unique identifier of the photo")
    user_id: str = Field(..., description="Owner of the photo")
    url: str = Field(..., description="Public URL of the stored image")
    date_taken: Optional[datetime] = Field(None, description="Capture time, if known")


class Person(BaseModel):
    """A persistent identity projected from clustering output.

    ``person_id`` is ``None`` until the registry assigns one on first upsert.
    """
    person_id: Optional[str] = Field(None, description="Unique identifier of the person")
    user_id: str = Field(..., description="Owner of the person record")
    name: Optional[str] = Field(None, description="Display name")
    profile_image_url: Optional[str] = Field(None, description="URL of the profile photo")
    first_seen: Optional[datetime] = Field(None, description="Earliest sighting")
    last_seen: Optional[datetime] = Field(None, description="Most recent sighting")
    created_at: Optional[datetime] = Field(None, description="When the record was created")


class PersonPhoto(BaseModel):
    """Link between a person and a photo they appear in."""
    person_id: str = Field(..., description="Linked person")
    photo_id: str = Field(..., description="Linked photo")
    embedding_id: Optional[str] = Field(None, description="Face embedding that produced the link")
