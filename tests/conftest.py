"""Shared fixtures: a throwaway SQLite database per test and seeding helpers."""
from datetime import datetime
from typing import List, Optional, Sequence

import pytest

from memories.domain.entities.face import BoundingBox, Embedding
from memories.domain.entities.person import Photo
from memories.infrastructure.database.session import (
    create_engine,
    create_schema,
    create_session_factory,
)
from memories.infrastructure.database.unit_of_work import UnitOfWork

BOX = BoundingBox(x=10, y=20, width=64, height=64)


@pytest.fixture
def database_url(tmp_path):
    """URL of an empty SQLite file for this test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'memories-test.db'}"


@pytest.fixture
async def engine(database_url):
    engine = create_engine(database_url, echo=False)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def add_photo(session_factory):
    """Store a photo with one embedding per vector and return both."""

    async def _add_photo(
        user_id: str,
        vectors: Sequence[Sequence[float]],
        date_taken: Optional[datetime] = None,
        url: Optional[str] = None,
    ) -> tuple[Photo, List[Embedding]]:
        async with UnitOfWork(session_factory) as uow:
            photo = await uow.photos.add(
                user_id,
                url or f"https://cdn.example.com/{user_id}/{len(vectors)}-{date_taken}.jpg",
                date_taken,
            )
            embeddings = [await uow.embeddings.add(photo.photo_id, list(v), BOX) for v in vectors]
        return photo, embeddings

    return _add_photo
