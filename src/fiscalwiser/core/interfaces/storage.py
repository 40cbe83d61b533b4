"""
Storage interfaces.
"""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Abstract string key-value store, the shape of browser local storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored text for key, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key. Missing keys are ignored."""
        pass
