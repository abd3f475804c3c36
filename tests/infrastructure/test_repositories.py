"""Tests for the SQLAlchemy repositories and unit of work."""
import uuid
from datetime import datetime

import pytest

from memories.core.exceptions import PersonNotFoundError, PhotoNotFoundError
from memories.domain.entities.face import BoundingBox
from memories.domain.entities.person import Person
from memories.infrastructure.database.unit_of_work import UnitOfWork

USER = "user-1"
BOX = BoundingBox(x=1, y=2, width=3, height=4)


class TestEmbeddingRepository:
    """Test suite for EmbeddingRepository."""

    async def test_list_by_user_joins_capture_time(self, session_factory, add_photo):
        photo, (embedding,) = await add_photo(USER, [[0.5, 0.25, 0.125]], datetime(2020, 2, 2))
        await add_photo("user-2", [[1.0, 0.0, 0.0]], datetime(2020, 2, 2))
        await add_photo(USER, [[0.0, 1.0, 0.0]])

        async with UnitOfWork(session_factory) as uow:
            stored = await uow.embeddings.list_by_user(USER)

        assert len(stored) == 2
        dated = next(e for e in stored if e.embedding_id == embedding.embedding_id)
        assert dated.photo_id == photo.photo_id
        assert dated.captured_at == datetime(2020, 2, 2)
        assert dated.vector.tolist() == [0.5, 0.25, 0.125]
        assert dated.bounding_box == BoundingBox(x=10, y=20, width=64, height=64)
        assert any(e.captured_at is None for e in stored)

    async def test_add_for_unknown_photo(self, session_factory):
        async with UnitOfWork(session_factory) as uow:
            with pytest.raises(PhotoNotFoundError):
                await uow.embeddings.add(str(uuid.uuid4()), [1.0], BOX)


class TestPhotoRepository:
    """Test suite for PhotoRepository."""

    async def test_get_urls_skips_unknown_ids(self, session_factory, add_photo):
        photo, _ = await add_photo(USER, [], url="https://cdn.example.com/p.jpg")

        async with UnitOfWork(session_factory) as uow:
            urls = await uow.photos.get_urls([photo.photo_id, str(uuid.uuid4()), "garbage"])

        assert urls == {photo.photo_id: "https://cdn.example.com/p.jpg"}


class TestPersonRepository:
    """Test suite for PersonRepository."""

    async def test_upsert_person_creates_then_updates(self, session_factory):
        async with UnitOfWork(session_factory) as uow:
            created = await uow.people.upsert_person(Person(user_id=USER, name="Person 1"))
        assert created.person_id is not None
        assert created.created_at is not None

        async with UnitOfWork(session_factory) as uow:
            updated = await uow.people.upsert_person(
                created.model_copy(update={"last_seen": datetime(2024, 4, 4)})
            )
        async with UnitOfWork(session_factory) as uow:
            fetched = await uow.people.get(created.person_id)

        assert updated.person_id == created.person_id
        assert fetched.last_seen == datetime(2024, 4, 4)
        assert fetched.name == "Person 1"

    async def test_upsert_link_is_idempotent(self, session_factory, add_photo):
        photo, (embedding,) = await add_photo(USER, [[1.0, 0.0]])
        async with UnitOfWork(session_factory) as uow:
            person = await uow.people.upsert_person(Person(user_id=USER))
            assert await uow.people.upsert_link(person.person_id, photo.photo_id, embedding.embedding_id)
            assert not await uow.people.upsert_link(person.person_id, photo.photo_id, embedding.embedding_id)
            assert await uow.people.upsert_link(person.person_id, photo.photo_id)
            assert not await uow.people.upsert_link(person.person_id, photo.photo_id)
            links = await uow.people.list_links(person.person_id)

        assert sorted((l.embedding_id or "") for l in links) == ["", embedding.embedding_id]

    async def test_list_by_user_is_oldest_first(self, session_factory):
        async with UnitOfWork(session_factory) as uow:
            first = await uow.people.upsert_person(Person(user_id=USER, name="A"))
            second = await uow.people.upsert_person(Person(user_id=USER, name="B"))
            await uow.people.upsert_person(Person(user_id="user-2", name="C"))
        async with UnitOfWork(session_factory) as uow:
            people = await uow.people.list_by_user(USER)
        assert {p.person_id for p in people} == {first.person_id, second.person_id}
        assert [p.created_at for p in people] == sorted(p.created_at for p in people)

    @pytest.mark.parametrize("person_id", ["not-a-uuid", "00000000-0000-0000-0000-000000000000"])
    async def test_get_unknown(self, session_factory, person_id):
        async with UnitOfWork(session_factory) as uow:
            with pytest.raises(PersonNotFoundError):
                await uow.people.get(person_id)


class TestUnitOfWork:
    """Test suite for UnitOfWork."""

    async def test_exception_rolls_back(self, session_factory):
        with pytest.raises(RuntimeError):
            async with UnitOfWork(session_factory) as uow:
                await uow.photos.add(USER, "https://cdn.example.com/lost.jpg")
                raise RuntimeError("boom")

        async with UnitOfWork(session_factory) as uow:
            assert await uow.embeddings.list_by_user(USER) == []
            assert await uow.people.list_by_user(USER) == []

    async def test_clean_exit_commits(self, session_factory):
        async with UnitOfWork(session_factory) as uow:
            photo = await uow.photos.add(USER, "https://cdn.example.com/kept.jpg")

        async with UnitOfWork(session_factory) as uow:
            assert (await uow.photos.get(photo.photo_id)).url == "https://cdn.example.com/kept.jpg"
