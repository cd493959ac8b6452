"""Tests for JSON/CSV export and JSON import."""

import csv
import json
from datetime import datetime, UTC

import pytest
from sqlalchemy.exc import OperationalError

from subtrack.database.factories import create_sqlite_database
from subtrack.database.sqlalchemy_db import SQLAlchemyDatabase
from subtrack.domain.services import create_services
from subtrack.domain.transfer import CSV_HEADER, DataTransferService

from conftest import NOW


@pytest.fixture
def populated(services, sample_subscriptions):
    """Store with subscriptions, a budget, categories and custom settings."""
    services.subscriptions.record_payment(sample_subscriptions["netflix"].id, now=NOW)
    services.budgets.create(amount="100", start=NOW, now=NOW)
    services.categories.initialize_defaults()
    services.settings.update(default_currency="EUR", theme="dark")
    services.settings.set_exchange_rate("EUR", "USD", "1.1")
    return services


def test_export_all_shape(populated):
    data = populated.transfer.export_all()

    assert data["schemaVersion"] == 1
    assert len(data["subscriptions"]) == 3
    assert len(data["budgets"]) == 1
    assert len(data["categories"]) == 10
    assert data["settings"]["defaultCurrency"] == "EUR"
    netflix = next(s for s in data["subscriptions"] if s["name"] == "Netflix")
    assert netflix["cost"] == "15.99"
    assert netflix["billingCycle"] == {"type": "monthly", "customDays": None}
    assert netflix["history"][0]["amount"] == "15.99"


def test_export_json_is_indented(populated, tmp_path):
    path = tmp_path / "backup.json"

    result = populated.transfer.export_json(path)

    assert result == {"success": True, "path": str(path)}
    text = path.read_text(encoding="utf-8")
    assert text.startswith('{\n  "schemaVersion": 1')
    assert json.loads(text)["settings"]["theme"] == "dark"


def test_json_round_trip(populated, tmp_path):
    """Importing an export into an empty store reproduces the collections."""
    path = tmp_path / "backup.json"
    populated.transfer.export_json(path)

    target_db = create_sqlite_database(database_path=str(tmp_path / "target.db"))
    target = create_services(target_db)
    result = target.transfer.import_json(path)
    target.reload()

    assert result["success"]
    assert result["imported"] == {"subscriptions": 3, "budgets": 1, "categories": 10, "settings": 1}
    assert target.subscriptions.get_all() == populated.subscriptions.get_all()
    assert target.budgets.get_all() == populated.budgets.get_all()
    assert target.categories.list_categories() == populated.categories.list_categories()
    assert target.settings.get() == populated.settings.get()
    target_db.disconnect()


def test_import_only_overwrites_present_collections(populated, tmp_path):
    path = tmp_path / "partial.json"
    path.write_text(json.dumps({"budgets": []}), encoding="utf-8")

    result = populated.transfer.import_json(path)
    populated.reload()

    assert result == {"success": True, "imported": {"budgets": 0}}
    assert populated.budgets.get_all() == []
    assert len(populated.subscriptions.get_all()) == 3


def test_invalid_import_leaves_store_untouched(populated, temp_db, tmp_path):
    before = DataTransferService(temp_db).export_all()
    data = dict(before)
    bad = dict(data["subscriptions"][0], cost="-1")
    data["subscriptions"] = data["subscriptions"][1:] + [bad]
    data["budgets"] = []
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    result = populated.transfer.import_json(path)

    assert not result["success"]
    assert "Cost must be greater than 0" in result["error"]
    assert DataTransferService(temp_db).export_all() == before


def test_import_rejects_unknown_cycle_type(services, tmp_path):
    record = {
        "id": "x",
        "name": "Odd",
        "cost": 5,
        "currency": "USD",
        "billingCycle": {"type": "fortnightly"},
        "nextBillingDate": "2024-02-01T00:00:00Z",
    }
    path = tmp_path / "odd.json"
    path.write_text(json.dumps({"subscriptions": [record]}), encoding="utf-8")

    result = services.transfer.import_json(path)

    assert not result["success"]
    assert "Invalid billing cycle type" in result["error"]


def test_import_write_failure_leaves_store_untouched(populated, temp_db, tmp_path, monkeypatch):
    before = DataTransferService(temp_db).export_all()
    path = tmp_path / "backup.json"
    path.write_text(json.dumps({"subscriptions": [], "budgets": []}), encoding="utf-8")
    original_stage = SQLAlchemyDatabase._stage
    staged = []

    def failing_stage(self, session, key, value):
        staged.append(key)
        if len(staged) == 2:
            raise OperationalError("UPDATE", {}, Exception("disk full"))
        return original_stage(self, session, key, value)

    monkeypatch.setattr(SQLAlchemyDatabase, "_stage", failing_stage)

    result = populated.transfer.import_json(path)

    assert result["success"] is False
    assert "disk full" in result["error"]
    assert staged == ["subscriptions", "budgets"]
    monkeypatch.undo()
    assert DataTransferService(temp_db).export_all() == before


def test_import_rejects_duplicate_ids(populated, temp_db, tmp_path):
    before = DataTransferService(temp_db).export_all()
    subscriptions = before["subscriptions"]
    data = {"subscriptions": subscriptions + [dict(subscriptions[0], name="Copy")]}
    path = tmp_path / "dupes.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    result = populated.transfer.import_json(path)

    assert result["success"] is False
    assert result["errors"] == [f"subscriptions[3]: duplicate id '{subscriptions[0]['id']}'"]
    assert DataTransferService(temp_db).export_all() == before


def test_import_rejects_duplicate_category_names(services, temp_db, tmp_path):
    categories = [
        {"id": "c1", "name": "Music", "color": "#112233"},
        {"id": "c2", "name": "music ", "color": "#445566"},
    ]
    path = tmp_path / "categories.json"
    path.write_text(json.dumps({"categories": categories}), encoding="utf-8")

    result = services.transfer.import_json(path)

    assert result["success"] is False
    assert result["errors"] == ["categories[1]: duplicate name 'music '"]
    assert temp_db.load_categories() == []


def test_import_rejects_infinite_rate(services, tmp_path):
    path = tmp_path / "rates.json"
    path.write_text('{"settings": {"exchangeRates": {"EUR": {"USD": 1e400}}}}', encoding="utf-8")

    result = services.transfer.import_json(path)

    assert result["success"] is False
    assert "exchangeRates.EUR.USD" in result["error"]
    assert services.settings.get().exchange_rates == {}


def test_import_rejects_newer_schema(services, tmp_path):
    path = tmp_path / "future.json"
    path.write_text(json.dumps({"schemaVersion": 99, "subscriptions": []}), encoding="utf-8")

    result = services.transfer.import_json(path)

    assert not result["success"]
    assert "Unsupported schema version" in result["error"]


@pytest.mark.parametrize("content", ["not json", "[1, 2]", '{"subscriptions": {}}'])
def test_import_malformed_file(services, tmp_path, content):
    path = tmp_path / "broken.json"
    path.write_text(content, encoding="utf-8")

    result = services.transfer.import_json(path)

    assert result["success"] is False
    assert result["error"]


def test_import_missing_file(services, tmp_path):
    result = services.transfer.import_json(tmp_path / "missing.json")
    assert result["success"] is False


def test_export_to_unwritable_path(services, tmp_path):
    result = services.transfer.export_json(tmp_path / "no-such-dir" / "backup.json")
    assert result["success"] is False
    assert result["error"]


def test_export_csv(services, sample_subscriptions, tmp_path):
    services.subscriptions.toggle_active(sample_subscriptions["github"].id)
    path = tmp_path / "subs.csv"

    result = services.transfer.export_csv(path)

    assert result == {"success": True, "path": str(path), "rows": 3}
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == CSV_HEADER
    assert rows[1] == [
        "Netflix", "15.99", "USD", "Monthly", "2024-01-20", "Streaming", "Active", "", "2024-01-15",
    ]
    assert rows[2][3] == "Yearly"
    assert rows[2][6] == "Inactive"
    assert rows[3][7] == "Downtown, with sauna"


def test_export_csv_quotes_special_fields(services, tmp_path):
    services.subscriptions.create(
        name='The "Best", Service',
        cost="3",
        next_billing_date=datetime(2024, 3, 1, tzinfo=UTC),
        notes="line one\nline two",
        now=NOW,
    )
    path = tmp_path / "subs.csv"

    services.transfer.export_csv(path)

    text = path.read_text(encoding="utf-8")
    assert text.splitlines()[0] == ",".join(CSV_HEADER)
    assert '"The ""Best"", Service",3,USD,Monthly,2024-03-01,Other,Active,"line one\nline two",2024-01-15' in text


def test_export_csv_empty(services, tmp_path):
    path = tmp_path / "empty.csv"
    assert services.transfer.export_csv(path)["rows"] == 0
    assert path.read_text(encoding="utf-8") == ",".join(CSV_HEADER) + "\n"


def test_export_import_cli(invoke, services, sample_subscriptions, tmp_path):
    path = tmp_path / "backup.json"

    result = invoke("export", str(path))
    assert result.exit_code == 0
    assert "Exported data to" in result.output

    services.subscriptions.delete(sample_subscriptions["netflix"].id)

    result = invoke("import", str(path))
    assert result.exit_code == 0
    assert "Imported 3 subscriptions" in result.output

    services.reload()
    assert len(services.subscriptions.get_all()) == 3


def test_export_csv_cli(invoke, sample_subscriptions, tmp_path):
    path = tmp_path / "subs.csv"

    result = invoke("export", str(path), "--format", "csv")

    assert result.exit_code == 0
    assert "Exported 3 subscriptions" in result.output
    assert path.exists()


def test_import_cli_invalid(invoke, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"budgets": [{"id": "b"}]}), encoding="utf-8")

    result = invoke("import", str(path))

    assert result.exit_code == 1
    assert "Import failed" in result.output
