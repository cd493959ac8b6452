"""Category domain service."""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from subtrack.database.base import Database
from subtrack.domain.entities import Category
from subtrack.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    duplicate_category_name,
)
from subtrack.domain.validation import validate_category
from subtrack.utils.date_parser import ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_ICON = "📁"

# Colours handed out to categories created without one
PALETTE = (
    "#4F46E5",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#3B82F6",
    "#8B5CF6",
    "#EC4899",
    "#14B8A6",
    "#F97316",
    "#6366F1",
)

# (name, color, icon)
DEFAULT_CATEGORIES = [
    ("Streaming", "#EF4444", "📺"),
    ("Software", "#3B82F6", "💻"),
    ("Utilities", "#F59E0B", "⚡"),
    ("Entertainment", "#8B5CF6", "🎮"),
    ("Fitness", "#10B981", "💪"),
    ("Music", "#EC4899", "🎵"),
    ("News", "#6B7280", "📰"),
    ("Cloud Storage", "#14B8A6", "☁️"),
    ("Food & Delivery", "#F97316", "🍕"),
    ("Other", "#4F46E5", "📁"),
]


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db
        self.categories: list[Category] = []
        self.load()

    def load(self) -> list[Category]:
        """Reload categories from the database."""
        self.categories = self.db.load_categories()
        return self.categories

    def save(self) -> bool:
        """Persist categories.

        Returns:
            True if the write succeeded
        """
        try:
            self.db.save_categories(self.categories)
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to save categories: %s", e)
            return False

    def list_categories(self) -> list[Category]:
        """List categories in creation order."""
        return list(self.categories)

    def get_by_id(self, category_id: str) -> Optional[Category]:
        """Get category by ID.

        Args:
            category_id: Category ID

        Returns:
            Category or None if not found
        """
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def get_by_name(self, name: str) -> Optional[Category]:
        """Get category by name (case-insensitive).

        Args:
            name: Category name

        Returns:
            Category or None if not found
        """
        wanted = name.strip().lower()
        for category in self.categories:
            if category.name.lower() == wanted:
                return category
        return None

    def _next_palette_color(self) -> str:
        return PALETTE[len(self.categories) % len(PALETTE)]

    def create_category(
        self,
        name: str,
        color: Optional[str] = None,
        icon: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Category:
        """Create a category.

        Args:
            name: Category name
            color: ``#RRGGBB`` colour; a palette colour is used when omitted
            icon: Display icon, defaults to a folder
            now: Creation time, defaults to the current time

        Returns:
            The created Category

        Raises:
            ValidationError: If the name or colour is invalid
            ConflictError: If a category with that name already exists
        """
        category = Category(
            id=str(uuid.uuid4()),
            name=name.strip() if name else "",
            color=color or self._next_palette_color(),
            icon=icon or DEFAULT_ICON,
            created_at=ensure_utc(now) if now else utc_now(),
        )

        errors = validate_category(category)
        if errors:
            raise ValidationError(errors)
        if self.get_by_name(category.name) is not None:
            raise ConflictError(duplicate_category_name(category.name))

        self.categories.append(category)
        self.save()
        logger.info("Created category %s", category.name)
        return category

    def delete_category(self, category_id: str) -> None:
        """Delete a category.

        Subscriptions keep their category name.

        Raises:
            NotFoundError: If the category doesn't exist
        """
        category = self.get_by_id(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        self.categories.remove(category)
        self.save()

    def initialize_defaults(self) -> int:
        """Create the default categories if no categories exist yet.

        Returns:
            Number of categories created
        """
        if self.categories:
            return 0
        now = utc_now()
        self.categories = [
            Category(id=str(uuid.uuid4()), name=name, color=color, icon=icon, created_at=now)
            for name, color, icon in DEFAULT_CATEGORIES
        ]
        self.save()
        logger.info("Initialized %d default categories", len(self.categories))
        return len(self.categories)
