"""Shared pytest fixtures for subtrack tests."""

import os
import tempfile
from datetime import datetime, UTC
from decimal import Decimal

import httpx
import pytest

from subtrack.database.factories import create_sqlite_database
from subtrack.domain.entities import BillingCycle, BillingCycleType
from subtrack.domain.services import create_services

# Fixed clock used across tests
NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def rates_handler():
    """Default HTTP handler for the exchange rate endpoint."""

    def handler(request: httpx.Request) -> httpx.Response:
        base = request.url.params.get("from", "USD")
        if base == "USD":
            return httpx.Response(200, json={"base": "USD", "rates": {"EUR": 0.9, "GBP": 0.8}})
        return httpx.Response(200, json={"base": base, "rates": {"USD": 1.1}})

    return handler


@pytest.fixture
def http_client(rates_handler):
    """HTTP client backed by a mock transport, so tests never hit the network."""
    client = httpx.Client(transport=httpx.MockTransport(rates_handler))
    yield client
    client.close()


@pytest.fixture
def services(temp_db, http_client):
    """Create the full service container with a temporary database."""
    return create_services(temp_db, rates_url="https://rates.test/latest", http_client=http_client)


@pytest.fixture
def subscription_service(services):
    """SubscriptionService with a temporary database."""
    return services.subscriptions


@pytest.fixture
def budget_service(services):
    """BudgetService with a temporary database."""
    return services.budgets


@pytest.fixture
def category_service(services):
    """CategoryService with a temporary database."""
    return services.categories


@pytest.fixture
def settings_service(services):
    """SettingsService with a temporary database."""
    return services.settings


@pytest.fixture
def analytics_service(services):
    """AnalyticsService over the temporary database."""
    return services.analytics


@pytest.fixture
def sample_subscriptions(subscription_service):
    """Create a small set of subscriptions for testing."""
    netflix = subscription_service.create(
        name="Netflix",
        cost=Decimal("15.99"),
        next_billing_date=datetime(2024, 1, 20, tzinfo=UTC),
        category="Streaming",
        now=NOW,
    )
    github = subscription_service.create(
        name="GitHub",
        cost=Decimal("120"),
        next_billing_date=datetime(2024, 6, 1, tzinfo=UTC),
        billing_cycle=BillingCycle(type=BillingCycleType.YEARLY),
        category="Software",
        now=NOW,
    )
    gym = subscription_service.create(
        name="Gym",
        cost=Decimal("10"),
        next_billing_date=datetime(2024, 1, 10, tzinfo=UTC),
        billing_cycle=BillingCycle(type=BillingCycleType.WEEKLY),
        category="Fitness",
        notes="Downtown, with sauna",
        now=NOW,
    )
    return {"netflix": netflix, "github": github, "gym": gym}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def invoke(cli_runner, temp_db, http_client):
    """Invoke the CLI against the temporary database."""
    from subtrack.cli.main import cli

    def run(*args, input=None):
        return cli_runner.invoke(
            cli,
            ["--db-path", temp_db.database_path, "--rates-url", "https://rates.test/latest", *args],
            obj={"http_client": http_client},
            input=input,
        )

    return run
