"""Face detector interface."""
from abc import ABC, abstractmethod
from typing import List

from ...entities.face import DetectedFace


class FaceDetector(ABC):
    """Interface for the external face detection and descriptor model."""

    @abstractmethod
    async def detect(self, image_bytes: bytes) -> List[DetectedFace]:
        """
        Detect faces and compute a descriptor for each.

        Args:
            image_bytes: Raw image data

        Returns:
            One DetectedFace per face found; empty if there are none
        """
        pass
