"""Embedding store interface."""
from abc import ABC, abstractmethod
from typing import List

from ...entities.face import BoundingBox, Embedding
from ...entities.person import Photo


class PhotoStore(ABC):
    """Interface for photo records."""

    @abstractmethod
    async def add(self, user_id: str, url: str, date_taken=None) -> Photo:
        """
        Create a photo record.

        Args:
            user_id: Owner of the photo
            url: Public URL of the stored image
            date_taken: Capture time, if known

        Returns:
            The stored Photo with its assigned id
        """
        pass

    @abstractmethod
    async def get_urls(self, photo_ids: List[str]) -> dict:
        """
        Map photo ids to their URLs.

        Args:
            photo_ids: Photos to look up

        Returns:
            Dict of photo_id to url; unknown ids are omitted
        """
        pass


class EmbeddingStore(ABC):
    """Interface for durable face embeddings."""

    @abstractmethod
    async def add(self, photo_id: str, vector: List[float], bounding_box: BoundingBox) -> Embedding:
        """
        Store one face embedding for a photo.

        Args:
            photo_id: Photo holding the face
            vector: Face descriptor
            bounding_box: Face bounding box within the photo

        Returns:
            The stored Embedding with its assigned id
        """
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[Embedding]:
        """
        List every embedding belonging to photos owned by a user.

        Order is unspecified; the clustering engine imposes its own.

        Args:
            user_id: Owner of the photos

        Returns:
            Embeddings with ``captured_at`` taken from the photo

        Raises:
            StoreUnavailableError: If the store cannot be read
        """
        pass
