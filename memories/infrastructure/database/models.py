"""SQLAlchemy models for the memories service."""
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp, the convention for every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Photo(Base):
    """Photo uploaded by a user."""

    __tablename__ = "photos"
    __table_args__ = (
        Index('idx_photos_user', 'user_id'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Owner of the photo"
    )
    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Public URL of the stored image"
    )
    date_taken: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow
    )

    # Relationships
    embeddings: Mapped[List["FaceEmbedding"]] = relationship(
        back_populates="photo",
        cascade="all, delete-orphan"
    )


class FaceEmbedding(Base):
    """Face descriptor detected in a photo."""

    __tablename__ = "face_embeddings"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    photo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("photos.id", ondelete="CASCADE"),
        nullable=False
    )
    vector: Mapped[List[float]] = mapped_column(
        JSON,
        nullable=False,
        comment="Face descriptor components"
    )
    bbox_x: Mapped[float] = mapped_column(Float)
    bbox_y: Mapped[float] = mapped_column(Float)
    bbox_width: Mapped[float] = mapped_column(Float)
    bbox_height: Mapped[float] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow
    )

    # Relationships
    photo: Mapped[Photo] = relationship(
        back_populates="embeddings"
    )


class Person(Base):
    """Persistent identity built from face clusters."""

    __tablename__ = "people"
    __table_args__ = (
        Index('idx_people_user', 'user_id'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )
    name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True
    )
    profile_image_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True
    )
    first_seen: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_seen: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow
    )

    # Relationships
    photos: Mapped[List["PersonPhoto"]] = relationship(
        back_populates="person",
        cascade="all, delete-orphan"
    )


class PersonPhoto(Base):
    """Link between a person and a photo they appear in."""

    __tablename__ = "person_photos"
    __table_args__ = (
        UniqueConstraint('person_id', 'photo_id', 'face_embedding_id', name='uq_person_photo_face'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    person_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False
    )
    photo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("photos.id", ondelete="CASCADE"),
        nullable=False
    )
    face_embedding_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("face_embeddings.id", ondelete="CASCADE"),
        nullable=True,
        comment="Embedding that produced the link"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow
    )

    # Relationships
    person: Mapped[Person] = relationship(
        back_populates="photos"
    )
    photo: Mapped[Photo] = relationship()


class Reminder(Base):
    """Reminder to reconnect with a person."""

    __tablename__ = "reminders"
    __table_args__ = (
        Index('idx_reminders_user', 'user_id', 'is_dismissed'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )
    person_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False
    )
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    remind_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_dismissed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow
    )

    # Relationships
    person: Mapped[Person] = relationship()
