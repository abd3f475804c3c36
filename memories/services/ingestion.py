"""Photo ingestion: store a photo and the faces detected in it."""
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from memories.core.exceptions import DimensionMismatchError
from memories.core.logging import get_logger
from memories.domain.entities.face import DetectedFace
from memories.domain.interfaces.recognition.face_detector import FaceDetector
from memories.infrastructure.database.unit_of_work import UnitOfWork
from memories.services.models import ServiceIngestionResult

logger = get_logger(__name__)


class PhotoIngestionService:
    """Service for ingesting photos.

    The image itself is stored elsewhere; this service records the photo,
    runs the face detector on its bytes and stores one embedding per face.

    Example:
        ```python
        service = PhotoIngestionService(session_factory, detector, dimension=128)
        result = await service.ingest(
            user_id="user-1",
            url="https://cdn.example.com/user-1/beach.jpg",
            image_bytes=data,
            date_taken=datetime(2023, 7, 1),
        )
        ```
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        detector: FaceDetector,
        dimension: Optional[int] = None,
    ) -> None:
        """Initialize the ingestion service.

        Args:
            session_factory: Callable producing database sessions
            detector: External face detector
            dimension: Required descriptor length; not checked when None
        """
        self._session_factory = session_factory
        self._detector = detector
        self._dimension = dimension

    def _validate(self, faces: List[DetectedFace]) -> None:
        if not faces:
            return
        expected = self._dimension if self._dimension is not None else faces[0].vector.shape[0]
        for i, face in enumerate(faces):
            if face.vector.ndim != 1 or face.vector.shape[0] != expected:
                raise DimensionMismatchError(
                    f"Detected face {i} has {face.vector.size} components, expected {expected}",
                    details={"face_index": i, "expected": expected},
                )

    async def ingest(
        self,
        user_id: str,
        url: str,
        image_bytes: bytes,
        date_taken: Optional[datetime] = None,
    ) -> ServiceIngestionResult:
        """Store a photo and its face embeddings.

        Args:
            user_id: Owner of the photo
            url: Public URL where the image is stored
            image_bytes: Raw image data handed to the detector
            date_taken: Capture time, if known

        Returns:
            ServiceIngestionResult: Stored photo and embeddings

        Raises:
            DimensionMismatchError: If a descriptor has the wrong length.
                Nothing is stored in that case.
            StoreUnavailableError: If the store fails
        """
        faces = await self._detector.detect(image_bytes)
        self._validate(faces)

        async with UnitOfWork(self._session_factory) as uow:
            photo = await uow.photos.add(user_id, url, date_taken)
            embeddings = [
                await uow.embeddings.add(photo.photo_id, face.vector.tolist(), face.bounding_box)
                for face in faces
            ]

        if not embeddings:
            logger.warning("No faces detected in photo", user_id=user_id, photo_id=photo.photo_id)
        else:
            logger.info(
                "Ingested photo",
                user_id=user_id,
                photo_id=photo.photo_id,
                faces_count=len(embeddings),
            )
        return ServiceIngestionResult(photo=photo, embeddings=embeddings)
