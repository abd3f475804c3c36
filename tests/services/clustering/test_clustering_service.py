"""Tests for clustering runs against a real database."""
import asyncio
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from memories.core.exceptions import (
    DimensionMismatchError,
    InvalidThresholdError,
    StoreUnavailableError,
)
from memories.infrastructure.database.repositories import PersonRepository
from memories.infrastructure.database.session import create_engine, create_session_factory
from memories.infrastructure.database.unit_of_work import UnitOfWork
from memories.services.clustering import ClusteringService, UserLockRegistry

USER = "user-1"
ALICE = [1.0, 0.0, 0.0]
ALICE_LATER = [0.98, 0.2, 0.0]
BOB = [0.0, 1.0, 0.0]
CAROL = [0.0, 0.0, 1.0]


@pytest.fixture
def service(session_factory):
    return ClusteringService(session_factory, UserLockRegistry(), threshold=0.6, dimension=3)


async def people_of(session_factory, user_id=USER):
    async with UnitOfWork(session_factory) as uow:
        people = await uow.people.list_by_user(user_id)
        links = {
            p.person_id: {(l.photo_id, l.embedding_id) for l in await uow.people.list_links(p.person_id)}
            for p in people
        }
    return people, links


class TestClusteringService:
    """Test suite for ClusteringService."""

    async def test_no_embeddings_reports_no_people(self, service, session_factory):
        result = await service.run(USER)
        assert result.clusters == []
        assert result.person_updates == []
        assert result.message == "no people found"
        people, _ = await people_of(session_factory)
        assert people == []

    async def test_first_run_creates_people_and_links(self, service, session_factory, add_photo):
        _, (alice_1,) = await add_photo(USER, [ALICE], datetime(2020, 6, 1),
                                        url="https://cdn.example.com/alice-2020.jpg")
        _, (bob_1,) = await add_photo(USER, [BOB], datetime(2020, 7, 1))
        _, (alice_2,) = await add_photo(USER, [ALICE_LATER], datetime(2021, 6, 1))

        result = await service.run(USER)

        assert result.embedding_count == 3
        assert [c.member_ids for c in result.clusters] == [
            [alice_1.embedding_id, alice_2.embedding_id],
            [bob_1.embedding_id],
        ]
        assert result.people_created == 2
        assert result.message == "found 2 unique people"

        people, links = await people_of(session_factory)
        by_name = {p.name: p for p in people}
        assert set(by_name) == {"Person 1", "Person 2"}
        alice = by_name["Person 1"]
        assert alice.first_seen == datetime(2020, 6, 1)
        assert alice.last_seen == datetime(2021, 6, 1)
        assert alice.profile_image_url == "https://cdn.example.com/alice-2020.jpg"
        assert {emb for _, emb in links[alice.person_id]} == {
            alice_1.embedding_id, alice_2.embedding_id
        }

    async def test_rerun_creates_nothing_new(self, service, session_factory, add_photo):
        await add_photo(USER, [ALICE, BOB], datetime(2020, 6, 1))
        await add_photo(USER, [ALICE_LATER, CAROL], datetime(2021, 6, 1))
        await service.run(USER)
        people_before, links_before = await people_of(session_factory)

        result = await service.run(USER)

        assert result.people_created == 0
        assert all(u.links_added == 0 for u in result.person_updates)
        people_after, links_after = await people_of(session_factory)
        assert people_after == people_before
        assert links_after == links_before

    async def test_new_photo_extends_matched_person(self, service, session_factory, add_photo):
        await add_photo(USER, [ALICE], datetime(2019, 1, 1))
        await add_photo(USER, [ALICE_LATER, BOB], datetime(2020, 1, 1))
        first = await service.run(USER)
        alice_id = first.person_updates[0].person_id

        _, (newest,) = await add_photo(USER, [[0.99, 0.1, 0.0]], datetime(2023, 8, 15))
        result = await service.run(USER)

        assert result.people_created == 0
        alice_update = next(u for u in result.person_updates if u.person_id == alice_id)
        assert alice_update.links_added == 1
        assert alice_update.last_seen == datetime(2023, 8, 15)

        people, links = await people_of(session_factory)
        assert len(people) == 2
        assert newest.embedding_id in {emb for _, emb in links[alice_id]}

    async def test_names_survive_reclustering(self, service, session_factory, add_photo):
        await add_photo(USER, [ALICE], datetime(2019, 1, 1))
        first = await service.run(USER)
        person_id = first.person_updates[0].person_id
        async with UnitOfWork(session_factory) as uow:
            await uow.people.rename(person_id, USER, "Alice")

        await add_photo(USER, [ALICE_LATER], datetime(2020, 1, 1))
        result = await service.run(USER)

        assert result.person_updates[0].person_id == person_id
        assert result.person_updates[0].name == "Alice"

    async def test_users_are_isolated(self, service, session_factory, add_photo):
        await add_photo(USER, [ALICE], datetime(2019, 1, 1))
        await add_photo("user-2", [ALICE], datetime(2019, 1, 1))

        await service.run(USER)
        result = await service.run("user-2")

        assert result.people_created == 1
        assert result.person_updates[0].name == "Person 1"

    async def test_dimension_mismatch_persists_nothing(self, service, session_factory, add_photo):
        await add_photo(USER, [ALICE], datetime(2019, 1, 1))
        await add_photo(USER, [[1.0, 0.0, 0.0, 0.0]], datetime(2019, 2, 1))

        with pytest.raises(DimensionMismatchError):
            await service.run(USER)

        people, _ = await people_of(session_factory)
        assert people == []

    async def test_failure_mid_reconciliation_rolls_back(self, service, session_factory, add_photo, monkeypatch):
        await add_photo(USER, [ALICE, BOB, CAROL], datetime(2019, 1, 1))
        original = PersonRepository.upsert_link
        calls = {"n": 0}

        async def flaky_upsert_link(self, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))
            return await original(self, *args, **kwargs)

        monkeypatch.setattr(PersonRepository, "upsert_link", flaky_upsert_link)

        with pytest.raises(StoreUnavailableError):
            await service.run(USER)

        people, _ = await people_of(session_factory)
        assert people == []

    async def test_missing_schema_is_store_unavailable(self, tmp_path):
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        service = ClusteringService(create_session_factory(engine), UserLockRegistry())
        try:
            with pytest.raises(StoreUnavailableError):
                await service.run(USER)
        finally:
            await engine.dispose()

    async def test_concurrent_runs_for_same_user_are_serialized(self, service, session_factory, add_photo):
        await add_photo(USER, [ALICE, BOB], datetime(2019, 1, 1))

        first, second = await asyncio.gather(service.run(USER), service.run(USER))

        assert first.people_created + second.people_created == 2
        people, _ = await people_of(session_factory)
        assert len(people) == 2

    async def test_cluster_user_does_not_touch_people(self, service, session_factory, add_photo):
        await add_photo(USER, [ALICE, BOB], datetime(2019, 1, 1))

        clusters = await service.cluster_user(USER)

        assert len(clusters) == 2
        people, _ = await people_of(session_factory)
        assert people == []

    async def test_threshold_override(self, service, add_photo):
        await add_photo(USER, [ALICE, ALICE_LATER], datetime(2019, 1, 1))
        assert len(await service.cluster_user(USER, threshold=0.6)) == 1
        assert len(await service.cluster_user(USER, threshold=0.999)) == 2

    async def test_invalid_threshold_rejected(self, service):
        with pytest.raises(InvalidThresholdError):
            await service.run(USER, threshold=1.5)


class TestUserLockRegistry:
    """Test suite for UserLockRegistry."""

    async def test_same_user_waits(self):
        locks = UserLockRegistry()
        async with locks.hold("a"):
            assert locks.is_locked("a")
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(locks.lock_for("a").acquire(), timeout=0.05)
        assert not locks.is_locked("a")

    async def test_other_users_proceed(self):
        locks = UserLockRegistry()
        async with locks.hold("a"):
            await asyncio.wait_for(locks.lock_for("b").acquire(), timeout=0.05)
            assert locks.is_locked("b")
            locks.lock_for("b").release()

    def test_same_lock_per_user(self):
        locks = UserLockRegistry()
        assert locks.lock_for("a") is locks.lock_for("a")
        assert locks.lock_for("a") is not locks.lock_for("b")

    async def test_lock_is_forgotten_after_last_run(self):
        locks = UserLockRegistry()
        async with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    async def test_lock_is_kept_while_a_run_waits(self):
        locks = UserLockRegistry()
        order = []

        async def run(name):
            async with locks.hold("a"):
                order.append((name, len(locks)))
                await asyncio.sleep(0.01)

        await asyncio.gather(run("first"), run("second"))

        assert order == [("first", 1), ("second", 1)]
        assert len(locks) == 0

    async def test_many_users_leave_nothing_behind(self, service, add_photo):
        for user_id in ("user-1", "user-2", "user-3"):
            await add_photo(user_id, [ALICE], datetime(2019, 1, 1))
            await service.run(user_id)
        assert len(service.locks) == 0
