"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from subtrack.domain.entities import Budget, Category, Settings, Subscription

SUBSCRIPTIONS = "subscriptions"
BUDGETS = "budgets"
CATEGORIES = "categories"
SETTINGS = "settings"


class Database(ABC):
    """Abstract key-value store for subtrack collections.

    Each logical collection (subscriptions, budgets, categories, settings)
    is stored as one JSON-compatible value under its key. Writes replace the
    whole collection; the last write wins.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Raw collection operations
    @abstractmethod
    def get_collection(self, key: str, default: Any = None) -> Any:
        """Get the stored value of a collection, or ``default`` if absent."""
        pass

    @abstractmethod
    def set_collection(self, key: str, value: Any) -> None:
        """Replace the stored value of a collection."""
        pass

    @abstractmethod
    def set_collections(self, values: dict[str, Any]) -> None:
        """Replace several collections atomically: all are written or none."""
        pass

    @abstractmethod
    def delete_collection(self, key: str) -> None:
        """Remove a collection. Missing keys are ignored."""
        pass

    @abstractmethod
    def list_collections(self) -> list[str]:
        """List the keys of all stored collections."""
        pass

    @abstractmethod
    def get_collection_version(self, key: str) -> Optional[int]:
        """Schema version a collection was written with, or None if absent."""
        pass

    # Typed collection operations
    @abstractmethod
    def load_subscriptions(self) -> list[Subscription]:
        """Load all subscriptions."""
        pass

    @abstractmethod
    def save_subscriptions(self, subscriptions: list[Subscription]) -> None:
        """Replace the stored subscriptions."""
        pass

    @abstractmethod
    def load_budgets(self) -> list[Budget]:
        """Load all budgets."""
        pass

    @abstractmethod
    def save_budgets(self, budgets: list[Budget]) -> None:
        """Replace the stored budgets."""
        pass

    @abstractmethod
    def load_categories(self) -> list[Category]:
        """Load all categories."""
        pass

    @abstractmethod
    def save_categories(self, categories: list[Category]) -> None:
        """Replace the stored categories."""
        pass

    @abstractmethod
    def load_settings(self) -> Optional[Settings]:
        """Load settings, or None if never saved."""
        pass

    @abstractmethod
    def save_settings(self, settings: Settings) -> None:
        """Replace the stored settings."""
        pass
