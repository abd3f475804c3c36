"""Custom exceptions for the memories service."""
from typing import Optional


class MemoriesError(Exception):
    """Base exception for memories operations."""
    
    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize memories error.
        
        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class DimensionMismatchError(MemoriesError):
    """Raised when two embeddings of different dimension meet.

    Always fatal for a clustering run: it points at an upstream extraction bug.
    """
    pass


class DegenerateVectorError(MemoriesError):
    """Raised when cosine similarity is requested for a zero-norm vector."""
    pass


class InvalidThresholdError(MemoriesError, ValueError):
    """Raised when a similarity threshold lies outside (0, 1]."""
    pass


class StoreUnavailableError(MemoriesError):
    """Raised when the backing store fails; the whole run should be retried."""
    pass


class PhotoNotFoundError(MemoriesError):
    """Raised when attempting to access a non-existent photo."""
    pass


class PersonNotFoundError(MemoriesError):
    """Raised when attempting to access a non-existent person."""
    pass


class ReminderNotFoundError(MemoriesError):
    """Raised when attempting to access a non-existent reminder."""
    pass


class ServiceNotInitializedError(MemoriesError):
    """Raised when a service is requested before the container is initialized."""
    pass
