"""Backup export and import of the whole store."""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from subtrack.database.base import BUDGETS, CATEGORIES, SETTINGS, SUBSCRIPTIONS, Database
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
from subtrack.database.models import CURRENT_SCHEMA_VERSION
from subtrack.domain.entities import BillingCycleType, Settings
from subtrack.domain.validation import (
    validate_budget,
    validate_category,
    validate_settings,
    validate_subscription,
)
from subtrack.utils.formatters import format_date, format_status

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Name",
    "Cost",
    "Currency",
    "Billing Cycle",
    "Next Billing Date",
    "Category",
    "Status",
    "Notes",
    "Created Date",
]

# collection key -> (record reader, validator, record writer)
LIST_COLLECTIONS: dict[str, tuple[Callable, Callable, Callable]] = {
    SUBSCRIPTIONS: (subscription_from_record, validate_subscription, subscription_to_record),
    BUDGETS: (budget_from_record, validate_budget, budget_to_record),
    CATEGORIES: (category_from_record, validate_category, category_to_record),
}


def _cycle_label(cycle_type: Any) -> str:
    value = cycle_type.value if isinstance(cycle_type, BillingCycleType) else str(cycle_type or "")
    return value.capitalize() if value else "Monthly"


class DataTransferService:
    """Export the store to JSON or CSV files and import JSON backups."""

    def __init__(self, db: Database):
        """Initialize transfer service.

        Args:
            db: Database instance
        """
        self.db = db

    def export_all(self) -> dict[str, Any]:
        """Snapshot of every collection in record form."""
        return {
            "schemaVersion": CURRENT_SCHEMA_VERSION,
            SUBSCRIPTIONS: [subscription_to_record(s) for s in self.db.load_subscriptions()],
            BUDGETS: [budget_to_record(b) for b in self.db.load_budgets()],
            CATEGORIES: [category_to_record(c) for c in self.db.load_categories()],
            SETTINGS: settings_to_record(self.db.load_settings() or Settings()),
        }

    def export_json(self, path: str | Path) -> dict[str, Any]:
        """Write a JSON backup.

        Returns:
            ``{"success": True, "path": ...}`` or ``{"success": False, "error": ...}``
        """
        path = Path(path)
        try:
            data = self.export_all()
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except (OSError, SQLAlchemyError) as e:
            logger.error("JSON export to %s failed: %s", path, e)
            return {"success": False, "error": str(e)}

        logger.info("Exported backup to %s", path)
        return {"success": True, "path": str(path)}

    def export_csv(self, path: str | Path) -> dict[str, Any]:
        """Write subscriptions as a spreadsheet-friendly CSV file.

        Returns:
            ``{"success": True, "path": ..., "rows": n}`` or
            ``{"success": False, "error": ...}``
        """
        path = Path(path)
        try:
            subscriptions = self.db.load_subscriptions()
            with open(path, "w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f, lineterminator="\n")
                writer.writerow(CSV_HEADER)
                for sub in subscriptions:
                    writer.writerow([
                        sub.name,
                        str(sub.cost),
                        sub.currency or "USD",
                        _cycle_label(sub.billing_cycle.type),
                        format_date(sub.next_billing_date),
                        sub.category or "Other",
                        format_status(sub.is_active),
                        sub.notes or "",
                        format_date(sub.created_at),
                    ])
        except (OSError, SQLAlchemyError) as e:
            logger.error("CSV export to %s failed: %s", path, e)
            return {"success": False, "error": str(e)}

        logger.info("Exported %d subscriptions to %s", len(subscriptions), path)
        return {"success": True, "path": str(path), "rows": len(subscriptions)}

    def _check_import(self, data: Any) -> tuple[dict[str, Any], list[str]]:
        """Convert and validate every present collection.

        Returns:
            (normalized records per collection, problems found)
        """
        if not isinstance(data, dict):
            return {}, ["Backup must be a JSON object"]

        version = data.get("schemaVersion", CURRENT_SCHEMA_VERSION)
        if not isinstance(version, int) or version > CURRENT_SCHEMA_VERSION:
            return {}, [f"Unsupported schema version {version!r}"]

        normalized: dict[str, Any] = {}
        errors: list[str] = []

        for key, (read, validate, write) in LIST_COLLECTIONS.items():
            if key not in data:
                continue
            records = data[key]
            if not isinstance(records, list):
                errors.append(f"{key}: expected a list")
                continue
            entities = []
            seen_ids: set[str] = set()
            seen_names: set[str] = set()
            for index, record in enumerate(records):
                try:
                    entity = read(record)
                except ValueError as e:
                    errors.append(f"{key}[{index}]: {e}")
                    continue
                problems = validate(entity)
                if problems:
                    errors.append(f"{key}[{index}]: {', '.join(problems)}")
                    continue
                if entity.id in seen_ids:
                    errors.append(f"{key}[{index}]: duplicate id '{entity.id}'")
                    continue
                seen_ids.add(entity.id)
                if key == CATEGORIES:
                    name = entity.name.strip().lower()
                    if name in seen_names:
                        errors.append(f"{key}[{index}]: duplicate name '{entity.name}'")
                        continue
                    seen_names.add(name)
                entities.append(entity)
            normalized[key] = [write(entity) for entity in entities]

        if SETTINGS in data:
            try:
                settings = settings_from_record(data[SETTINGS])
            except ValueError as e:
                errors.append(f"{SETTINGS}: {e}")
            else:
                problems = validate_settings(settings)
                if problems:
                    errors.append(f"{SETTINGS}: {', '.join(problems)}")
                else:
                    normalized[SETTINGS] = settings_to_record(settings)

        return normalized, errors

    def import_json(self, path: str | Path) -> dict[str, Any]:
        """Load a JSON backup, replacing the collections it contains.

        Nothing is written unless every record in the file is valid.
        Collections absent from the file are left as they are.

        Returns:
            ``{"success": True, "imported": {key: count}}`` or
            ``{"success": False, "error": ..., "errors": [...]}``
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Could not read backup %s: %s", path, e)
            return {"success": False, "error": str(e), "errors": [str(e)]}

        normalized, errors = self._check_import(data)
        if errors:
            logger.error("Backup %s rejected with %d problems", path, len(errors))
            return {"success": False, "error": errors[0], "errors": errors}

        try:
            self.db.set_collections(normalized)
        except SQLAlchemyError as e:
            logger.error("Import from %s failed while writing: %s", path, e)
            return {"success": False, "error": str(e), "errors": [str(e)]}

        imported = {
            key: (len(value) if isinstance(value, list) else 1)
            for key, value in normalized.items()
        }
        logger.info("Imported backup %s: %s", path, imported)
        return {"success": True, "imported": imported}
