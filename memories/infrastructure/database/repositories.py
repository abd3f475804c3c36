"""Database repositories for the memories service."""
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memories.core.exceptions import (
    PersonNotFoundError,
    PhotoNotFoundError,
    ReminderNotFoundError,
)
from memories.domain.entities.face import BoundingBox, Embedding
from memories.domain.entities.person import Person as PersonEntity
from memories.domain.entities.person import PersonPhoto as PersonPhotoEntity
from memories.domain.entities.person import Photo as PhotoEntity
from memories.domain.entities.reminder import Reminder as ReminderEntity
from memories.domain.interfaces.storage import (
    EmbeddingStore,
    PersonRegistry,
    PhotoStore,
    ReminderStore,
)
from memories.infrastructure.database.models import (
    FaceEmbedding,
    Person,
    PersonPhoto,
    Photo,
    Reminder,
)


def _to_uuid(value: str) -> Optional[uuid.UUID]:
    """Parse an id string; None when it is not a valid UUID."""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _photo_entity(photo: Photo) -> PhotoEntity:
    return PhotoEntity(
        photo_id=str(photo.id),
        user_id=photo.user_id,
        url=photo.url,
        date_taken=photo.date_taken,
    )


def _person_entity(person: Person) -> PersonEntity:
    return PersonEntity(
        person_id=str(person.id),
        user_id=person.user_id,
        name=person.name,
        profile_image_url=person.profile_image_url,
        first_seen=person.first_seen,
        last_seen=person.last_seen,
        created_at=person.created_at,
    )


def _reminder_entity(reminder: Reminder) -> ReminderEntity:
    return ReminderEntity(
        reminder_id=str(reminder.id),
        user_id=reminder.user_id,
        person_id=str(reminder.person_id),
        message=reminder.message,
        remind_date=reminder.remind_date,
        is_dismissed=reminder.is_dismissed,
    )


class PhotoRepository(PhotoStore):
    """Repository for photo operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.
        
        Args:
            session: Database session
        """
        self._session = session

    async def add(self, user_id: str, url: str, date_taken: Optional[datetime] = None) -> PhotoEntity:
        """Create a new photo record.
        
        Args:
            user_id: Owner of the photo
            url: Public URL of the stored image
            date_taken: Capture time, if known
            
        Returns:
            PhotoEntity: Created photo
        """
        photo = Photo(user_id=user_id, url=url, date_taken=date_taken)
        self._session.add(photo)
        await self._session.flush()
        return _photo_entity(photo)

    async def get(self, photo_id: str) -> PhotoEntity:
        """Get photo by ID.

        Raises:
            PhotoNotFoundError: If photo not found
        """
        key = _to_uuid(photo_id)
        photo = await self._session.get(Photo, key) if key else None
        if not photo:
            raise PhotoNotFoundError(f"Photo not found: {photo_id}")
        return _photo_entity(photo)

    async def get_urls(self, photo_ids: List[str]) -> Dict[str, str]:
        """Map photo IDs to their URLs, skipping unknown IDs."""
        keys = [k for k in (_to_uuid(p) for p in photo_ids) if k is not None]
        if not keys:
            return {}
        stmt = select(Photo.id, Photo.url).where(Photo.id.in_(keys))
        result = await self._session.execute(stmt)
        return {str(photo_id): url for photo_id, url in result.all()}


class EmbeddingRepository(EmbeddingStore):
    """Repository for face embedding operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.
        
        Args:
            session: Database session
        """
        self._session = session

    async def add(self, photo_id: str, vector: List[float], bounding_box: BoundingBox) -> Embedding:
        """Create a new embedding record for a photo.
        
        Args:
            photo_id: Photo holding the face
            vector: Face descriptor components
            bounding_box: Face bounding box
            
        Returns:
            Embedding: Created embedding, timestamped with the photo's capture time

        Raises:
            PhotoNotFoundError: If photo not found
        """
        key = _to_uuid(photo_id)
        photo = await self._session.get(Photo, key) if key else None
        if not photo:
            raise PhotoNotFoundError(f"Photo not found: {photo_id}")

        record = FaceEmbedding(
            photo_id=photo.id,
            vector=[float(x) for x in vector],
            bbox_x=bounding_box.x,
            bbox_y=bounding_box.y,
            bbox_width=bounding_box.width,
            bbox_height=bounding_box.height,
        )
        self._session.add(record)
        await self._session.flush()
        return self._to_entity(record, photo.date_taken)

    async def list_by_user(self, user_id: str) -> List[Embedding]:
        """Get all embeddings of photos owned by a user.
        
        Args:
            user_id: Owner of the photos
            
        Returns:
            List[Embedding]: Embeddings in store order
        """
        stmt = (
            select(FaceEmbedding, Photo.date_taken)
            .join(Photo, FaceEmbedding.photo_id == Photo.id)
            .where(Photo.user_id == user_id)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(record, date_taken) for record, date_taken in result.all()]

    @staticmethod
    def _to_entity(record: FaceEmbedding, captured_at: Optional[datetime]) -> Embedding:
        return Embedding(
            embedding_id=str(record.id),
            vector=record.vector,
            photo_id=str(record.photo_id),
            bounding_box=BoundingBox(
                x=record.bbox_x,
                y=record.bbox_y,
                width=record.bbox_width,
                height=record.bbox_height,
            ),
            captured_at=captured_at,
        )


class PersonRepository(PersonRegistry):
    """Repository for person and person-photo link operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.
        
        Args:
            session: Database session
        """
        self._session = session

    async def _get_model(self, person_id: str, user_id: Optional[str] = None) -> Person:
        key = _to_uuid(person_id)
        person = await self._session.get(Person, key) if key else None
        if not person or (user_id is not None and person.user_id != user_id):
            raise PersonNotFoundError(f"Person not found: {person_id}")
        return person

    async def get(self, person_id: str, user_id: Optional[str] = None) -> PersonEntity:
        """Get person by ID, optionally scoped to an owner.
        
        Raises:
            PersonNotFoundError: If person not found or owned by another user
        """
        return _person_entity(await self._get_model(person_id, user_id))

    async def list_by_user(self, user_id: str) -> List[PersonEntity]:
        """Get all people of a user, oldest record first."""
        stmt = (
            select(Person)
            .where(Person.user_id == user_id)
            .order_by(Person.created_at, Person.id)
        )
        result = await self._session.execute(stmt)
        return [_person_entity(p) for p in result.scalars().all()]

    async def list_links(self, person_id: str) -> List[PersonPhotoEntity]:
        """Get the photo links of a person."""
        key = _to_uuid(person_id)
        if key is None:
            return []
        stmt = select(PersonPhoto).where(PersonPhoto.person_id == key)
        result = await self._session.execute(stmt)
        return [
            PersonPhotoEntity(
                person_id=str(link.person_id),
                photo_id=str(link.photo_id),
                embedding_id=str(link.face_embedding_id) if link.face_embedding_id else None,
            )
            for link in result.scalars().all()
        ]

    async def upsert_person(self, person: PersonEntity) -> PersonEntity:
        """Create a person, or overwrite an existing one.
        
        Args:
            person: Person to store; created when person_id is None
            
        Returns:
            PersonEntity: Stored person
        """
        if person.person_id is None:
            record = Person(user_id=person.user_id)
            self._session.add(record)
        else:
            record = await self._get_model(person.person_id)
        record.name = person.name
        record.profile_image_url = person.profile_image_url
        record.first_seen = person.first_seen
        record.last_seen = person.last_seen
        await self._session.flush()
        return _person_entity(record)

    async def upsert_link(
        self,
        person_id: str,
        photo_id: str,
        embedding_id: Optional[str] = None,
    ) -> bool:
        """Link a photo to a person unless the same link exists.
        
        Returns:
            bool: True if a link was created
        """
        person_key = _to_uuid(person_id)
        photo_key = _to_uuid(photo_id)
        embedding_key = _to_uuid(embedding_id) if embedding_id is not None else None
        stmt = select(PersonPhoto.id).where(
            PersonPhoto.person_id == person_key,
            PersonPhoto.photo_id == photo_key,
        )
        if embedding_key is None:
            stmt = stmt.where(PersonPhoto.face_embedding_id.is_(None))
        else:
            stmt = stmt.where(PersonPhoto.face_embedding_id == embedding_key)
        result = await self._session.execute(stmt)
        if result.first() is not None:
            return False

        self._session.add(PersonPhoto(
            person_id=person_key,
            photo_id=photo_key,
            face_embedding_id=embedding_key,
        ))
        await self._session.flush()
        return True

    async def rename(self, person_id: str, user_id: str, name: Optional[str]) -> PersonEntity:
        """Change the display name of a person.
        
        Raises:
            PersonNotFoundError: If person not found or owned by another user
        """
        record = await self._get_model(person_id, user_id)
        record.name = name
        await self._session.flush()
        return _person_entity(record)

    async def count_photos(self, user_id: str) -> Dict[str, int]:
        """Count distinct linked photos per person of a user."""
        stmt = (
            select(PersonPhoto.person_id, func.count(func.distinct(PersonPhoto.photo_id)))
            .join(Person, PersonPhoto.person_id == Person.id)
            .where(Person.user_id == user_id)
            .group_by(PersonPhoto.person_id)
        )
        result = await self._session.execute(stmt)
        return {str(person_id): count for person_id, count in result.all()}

    async def list_photos(self, person_id: str) -> List[PhotoEntity]:
        """Get the distinct photos linked to a person, oldest first."""
        key = _to_uuid(person_id)
        if key is None:
            return []
        stmt = (
            select(Photo)
            .join(PersonPhoto, PersonPhoto.photo_id == Photo.id)
            .where(PersonPhoto.person_id == key)
            .distinct()
            .order_by(Photo.date_taken, Photo.id)
        )
        result = await self._session.execute(stmt)
        return [_photo_entity(p) for p in result.scalars().all()]


class ReminderRepository(ReminderStore):
    """Repository for reminder operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.
        
        Args:
            session: Database session
        """
        self._session = session

    async def add(self, reminder: ReminderEntity) -> ReminderEntity:
        """Create a new reminder record."""
        record = Reminder(
            user_id=reminder.user_id,
            person_id=uuid.UUID(reminder.person_id),
            message=reminder.message,
            remind_date=reminder.remind_date,
            is_dismissed=reminder.is_dismissed,
        )
        self._session.add(record)
        await self._session.flush()
        return _reminder_entity(record)

    async def list_undismissed(self, user_id: str) -> List[ReminderEntity]:
        """Get undismissed reminders of a user, newest first."""
        stmt = (
            select(Reminder)
            .where(Reminder.user_id == user_id, Reminder.is_dismissed.is_(False))
            .order_by(Reminder.remind_date.desc(), Reminder.id)
        )
        result = await self._session.execute(stmt)
        return [_reminder_entity(r) for r in result.scalars().all()]

    async def dismiss(self, user_id: str, reminder_id: str) -> ReminderEntity:
        """Mark a reminder dismissed.
        
        Raises:
            ReminderNotFoundError: If reminder not found or owned by another user
        """
        key = _to_uuid(reminder_id)
        record = await self._session.get(Reminder, key) if key else None
        if not record or record.user_id != user_id:
            raise ReminderNotFoundError(f"Reminder not found: {reminder_id}")
        record.is_dismissed = True
        await self._session.flush()
        return _reminder_entity(record)
