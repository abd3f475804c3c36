"""Service interfaces package."""
from .recognition import FaceDetector
from .storage import EmbeddingStore, PersonRegistry, PhotoStore, ReminderStore

__all__ = ["FaceDetector", "EmbeddingStore", "PersonRegistry", "PhotoStore", "ReminderStore"]
