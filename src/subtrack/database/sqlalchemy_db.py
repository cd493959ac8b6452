"""Generic SQLAlchemy database implementation."""

import json
import logging
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from subtrack.database.base import (
    BUDGETS,
    CATEGORIES,
    SETTINGS,
    SUBSCRIPTIONS,
    Database,
)
from subtrack.database.mappers import (
    budget_from_record,
    budget_to_record,
    category_from_record,
    category_to_record,
    settings_from_record,
    settings_to_record,
    subscription_from_record,
    subscription_to_record,
)
from subtrack.database.models import (
    CURRENT_SCHEMA_VERSION,
    Collection,
    create_session_factory,
)
from subtrack.domain.entities import Budget, Category, Settings, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    # Raw collection operations
    def get_collection(self, key: str, default: Any = None) -> Any:
        """Get the stored value of a collection, or ``default`` if absent or unreadable."""
        session = self._get_session()
        row = session.get(Collection, key, populate_existing=True)
        if row is None:
            return default
        try:
            return json.loads(row.payload)
        except ValueError as e:
            logger.error("Stored collection '%s' is not valid JSON, ignoring it: %s", key, e)
            return default

    def _stage(self, session: Session, key: str, value: Any) -> int:
        """Add or update a collection row without committing; returns payload size."""
        payload = json.dumps(value, ensure_ascii=False)
        row = session.get(Collection, key, populate_existing=True)
        if row is None:
            session.add(
                Collection(
                    key=key,
                    schema_version=CURRENT_SCHEMA_VERSION,
                    payload=payload,
                )
            )
        else:
            row.payload = payload
            row.schema_version = CURRENT_SCHEMA_VERSION
        return len(payload)

    def set_collection(self, key: str, value: Any) -> None:
        """Replace the stored value of a collection."""
        self.set_collections({key: value})

    def set_collections(self, values: dict[str, Any]) -> None:
        """Replace several collections in one transaction.

        Either every collection is written or, on error, none is.
        """
        session = self._get_session()
        try:
            sizes = {key: self._stage(session, key, value) for key, value in values.items()}
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        for key, size in sizes.items():
            logger.debug("Stored collection '%s' (%d bytes)", key, size)

    def delete_collection(self, key: str) -> None:
        """Remove a collection. Missing keys are ignored."""
        session = self._get_session()
        row = session.get(Collection, key, populate_existing=True)
        if row is None:
            return
        try:
            session.delete(row)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise

    def list_collections(self) -> list[str]:
        """List the keys of all stored collections."""
        session = self._get_session()
        rows = session.query(Collection.key).order_by(Collection.key).all()
        return [row.key for row in rows]

    def get_collection_version(self, key: str) -> Optional[int]:
        """Schema version a collection was written with, or None if absent."""
        session = self._get_session()
        row = session.get(Collection, key, populate_existing=True)
        return None if row is None else row.schema_version

    # Typed collection operations
    def _load_records(self, key: str, convert: Callable[[dict], T]) -> list[T]:
        """Load a list collection, skipping records that cannot be read."""
        records = self.get_collection(key, default=[])
        if not isinstance(records, list):
            logger.error("Stored %s collection is not a list, ignoring it", key)
            return []
        items = []
        for index, record in enumerate(records):
            try:
                items.append(convert(record))
            except ValueError as e:
                logger.error("Skipping unreadable %s record #%d: %s", key, index, e)
        return items

    def load_subscriptions(self) -> list[Subscription]:
        """Load all subscriptions."""
        return self._load_records(SUBSCRIPTIONS, subscription_from_record)

    def save_subscriptions(self, subscriptions: list[Subscription]) -> None:
        """Replace the stored subscriptions."""
        self.set_collection(SUBSCRIPTIONS, [subscription_to_record(s) for s in subscriptions])

    def load_budgets(self) -> list[Budget]:
        """Load all budgets."""
        return self._load_records(BUDGETS, budget_from_record)

    def save_budgets(self, budgets: list[Budget]) -> None:
        """Replace the stored budgets."""
        self.set_collection(BUDGETS, [budget_to_record(b) for b in budgets])

    def load_categories(self) -> list[Category]:
        """Load all categories."""
        return self._load_records(CATEGORIES, category_from_record)

    def save_categories(self, categories: list[Category]) -> None:
        """Replace the stored categories."""
        self.set_collection(CATEGORIES, [category_to_record(c) for c in categories])

    def load_settings(self) -> Optional[Settings]:
        """Load settings, or None if never saved."""
        record = self.get_collection(SETTINGS)
        if record is None:
            return None
        try:
            return settings_from_record(record)
        except ValueError as e:
            logger.error("Stored settings are unreadable, using defaults: %s", e)
            return None

    def save_settings(self, settings: Settings) -> None:
        """Replace the stored settings."""
        self.set_collection(SETTINGS, settings_to_record(settings))
