from .embedding_store import EmbeddingStore, PhotoStore
from .person_registry import PersonRegistry
from .reminder_store import ReminderStore

__all__ = ["EmbeddingStore", "PhotoStore", "PersonRegistry", "ReminderStore"]
