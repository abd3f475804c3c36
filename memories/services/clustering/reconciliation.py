"""Projection of freshly computed clusters onto persistent people.

A cluster is matched to an existing person when at least ``min_overlap`` of
its members are already linked to that person. Links that carry an
embedding id are matched by embedding id; older links without one fall back
to the photo id. The person with the largest overlap wins, ties go to the
oldest record (then the smallest id).

Matched people keep their name; their seen range is widened to cover the
cluster and the missing links are added. Unmatched clusters become new
people named "Person N". Links are idempotent, so re-running over the same
clusters adds nothing. A cluster that never matches still creates a new
person on every run.
"""
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from memories.core.logging import get_logger
from memories.domain.entities.person import Person, PersonPhoto
from memories.domain.interfaces.storage.person_registry import PersonRegistry
from memories.domain.value_objects.clustering import Cluster, PersonUpdate

logger = get_logger(__name__)


def _min_time(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _max_time(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


class _LinkIndex:
    """Which person each embedding (or photo) is already linked to."""

    def __init__(self) -> None:
        self.by_embedding: Dict[str, Set[str]] = defaultdict(set)
        self.by_photo: Dict[str, Set[str]] = defaultdict(set)

    def add(self, link: PersonPhoto) -> None:
        if link.embedding_id is not None:
            self.by_embedding[link.embedding_id].add(link.person_id)
        else:
            self.by_photo[link.photo_id].add(link.person_id)

    def people_for(self, embedding_id: str, photo_id: str) -> Set[str]:
        return self.by_embedding.get(embedding_id, set()) | self.by_photo.get(photo_id, set())


class Reconciler:
    """Create-or-update people from clusters for one user."""

    def __init__(
        self,
        registry: PersonRegistry,
        min_overlap: float = 0.5,
        name_prefix: str = "Person",
    ) -> None:
        """Initialize the reconciler.

        Args:
            registry: Person registry to read and write
            min_overlap: Share of members that must already be linked for a match
            name_prefix: Prefix of placeholder names for new people
        """
        self.registry = registry
        self.min_overlap = min_overlap
        self.name_prefix = name_prefix

    async def reconcile(
        self,
        user_id: str,
        clusters: Sequence[Cluster],
        photo_urls: Mapping[str, str],
    ) -> List[PersonUpdate]:
        """Project clusters onto the user's people.

        Args:
            user_id: Owner of the clusters and people
            clusters: Clusters in creation order
            photo_urls: Photo id to URL, used for new profile images

        Returns:
            One PersonUpdate per cluster, in cluster order
        """
        people = await self.registry.list_by_user(user_id)
        people_by_id: Dict[str, Person] = {p.person_id: p for p in people}
        index = _LinkIndex()
        for person in people:
            for link in await self.registry.list_links(person.person_id):
                index.add(link)

        existing_count = len(people)
        created = 0
        updates: List[PersonUpdate] = []
        for cluster in clusters:
            match = self._best_match(cluster, index, people_by_id)
            if match is None:
                created += 1
                person = await self._create_person(
                    user_id, cluster, photo_urls, existing_count + created
                )
                is_new = True
            else:
                person = await self._update_person(match, cluster)
                is_new = False
            people_by_id[person.person_id] = person

            links_added = 0
            for member in cluster.members:
                if await self.registry.upsert_link(person.person_id, member.photo_id, member.embedding_id):
                    links_added += 1
                index.add(PersonPhoto(
                    person_id=person.person_id,
                    photo_id=member.photo_id,
                    embedding_id=member.embedding_id,
                ))

            logger.debug(
                "Reconciled cluster",
                user_id=user_id,
                person_id=person.person_id,
                created=is_new,
                member_count=len(cluster.members),
                links_added=links_added,
            )
            updates.append(PersonUpdate(
                person_id=person.person_id,
                name=person.name,
                created=is_new,
                member_count=len(cluster.members),
                links_added=links_added,
                first_seen=person.first_seen,
                last_seen=person.last_seen,
            ))
        return updates

    def _best_match(
        self,
        cluster: Cluster,
        index: _LinkIndex,
        people_by_id: Mapping[str, Person],
    ) -> Optional[Person]:
        overlap: Dict[str, int] = defaultdict(int)
        for member in cluster.members:
            for person_id in index.people_for(member.embedding_id, member.photo_id):
                overlap[person_id] += 1
        if not overlap:
            return None

        def rank(person_id: str) -> Tuple[int, datetime, str]:
            created_at = people_by_id[person_id].created_at or datetime.max
            return (-overlap[person_id], created_at, person_id)

        best = min(overlap, key=rank)
        if overlap[best] < self.min_overlap * len(cluster.members):
            return None
        return people_by_id[best]

    async def _create_person(
        self,
        user_id: str,
        cluster: Cluster,
        photo_urls: Mapping[str, str],
        number: int,
    ) -> Person:
        person = await self.registry.upsert_person(Person(
            user_id=user_id,
            name=f"{self.name_prefix} {number}",
            profile_image_url=photo_urls.get(cluster.earliest_member.photo_id),
            first_seen=cluster.first_seen,
            last_seen=cluster.last_seen,
        ))
        logger.info("Created person from cluster", user_id=user_id, person_id=person.person_id)
        return person

    async def _update_person(self, person: Person, cluster: Cluster) -> Person:
        first_seen = _min_time(person.first_seen, cluster.first_seen)
        last_seen = _max_time(person.last_seen, cluster.last_seen)
        if first_seen == person.first_seen and last_seen == person.last_seen:
            return person
        return await self.registry.upsert_person(
            person.model_copy(update={"first_seen": first_seen, "last_seen": last_seen})
        )
