"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod


class Storage(ABC):
    """Abstract base class for a key/value store of JSON blobs."""

    @abstractmethod
    def get(self, key: str):
        """Load the JSON value stored under key. Returns None if not found."""
        pass

    @abstractmethod
    def set(self, key: str, value) -> None:
        """Store a JSON-serializable value under key, replacing any previous value."""
        pass

    @abstractmethod
    def list_keys(self, prefix: str = '') -> list[str]:
        """List stored keys starting with prefix, sorted."""
        pass
