"""Tests for photo ingestion."""
from datetime import datetime
from typing import List

import numpy as np
import pytest
from sqlalchemy import func, select

from memories.core.exceptions import DimensionMismatchError
from memories.domain.entities.face import BoundingBox, DetectedFace
from memories.domain.interfaces.recognition.face_detector import FaceDetector
from memories.infrastructure.database.models import Photo
from memories.infrastructure.database.unit_of_work import UnitOfWork
from memories.services.ingestion import PhotoIngestionService

USER = "user-1"


class StubDetector(FaceDetector):
    """Returns a fixed list of faces for any image."""

    def __init__(self, vectors: List[List[float]]) -> None:
        self.vectors = vectors
        self.calls: List[bytes] = []

    async def detect(self, image_bytes: bytes) -> List[DetectedFace]:
        self.calls.append(image_bytes)
        return [
            DetectedFace(vector=v, bounding_box=BoundingBox(x=i * 10, y=5, width=40, height=40))
            for i, v in enumerate(self.vectors)
        ]


async def stored_embeddings(session_factory):
    async with UnitOfWork(session_factory) as uow:
        return await uow.embeddings.list_by_user(USER)


class TestPhotoIngestionService:
    """Test suite for PhotoIngestionService."""

    async def test_stores_photo_and_one_embedding_per_face(self, session_factory):
        detector = StubDetector([[0.1, 0.2, 0.3], [0.3, 0.2, 0.1]])
        service = PhotoIngestionService(session_factory, detector, dimension=3)

        result = await service.ingest(USER, "https://cdn.example.com/a.jpg", b"jpeg-bytes",
                                      date_taken=datetime(2022, 7, 4))

        assert detector.calls == [b"jpeg-bytes"]
        assert result.photo.url == "https://cdn.example.com/a.jpg"
        assert len(result.embeddings) == 2
        assert result.embeddings[1].bounding_box == BoundingBox(x=10, y=5, width=40, height=40)

        stored = await stored_embeddings(session_factory)
        assert {e.embedding_id for e in stored} == {e.embedding_id for e in result.embeddings}
        assert all(e.captured_at == datetime(2022, 7, 4) for e in stored)
        assert all(e.photo_id == result.photo.photo_id for e in stored)
        assert any(np.allclose(e.vector, [0.1, 0.2, 0.3]) for e in stored)

    async def test_wrong_dimension_stores_nothing(self, session_factory):
        detector = StubDetector([[0.1, 0.2, 0.3], [0.1, 0.2]])
        service = PhotoIngestionService(session_factory, detector, dimension=3)

        with pytest.raises(DimensionMismatchError):
            await service.ingest(USER, "https://cdn.example.com/b.jpg", b"x")

        assert await stored_embeddings(session_factory) == []
        async with session_factory() as session:
            photo_count = await session.execute(select(func.count()).select_from(Photo))
            assert photo_count.scalar_one() == 0

    async def test_configured_dimension_applies_to_first_face(self, session_factory):
        service = PhotoIngestionService(session_factory, StubDetector([[1.0, 0.0]]), dimension=128)
        with pytest.raises(DimensionMismatchError):
            await service.ingest(USER, "https://cdn.example.com/c.jpg", b"x")

    async def test_photo_without_faces_is_kept(self, session_factory):
        service = PhotoIngestionService(session_factory, StubDetector([]), dimension=3)

        result = await service.ingest(USER, "https://cdn.example.com/d.jpg", b"x")

        assert result.embeddings == []
        async with UnitOfWork(session_factory) as uow:
            assert (await uow.photos.get(result.photo.photo_id)).url == "https://cdn.example.com/d.jpg"
