"""Tests for SubscriptionService."""

from datetime import datetime, timedelta, UTC
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from subtrack.domain.entities import BillingCycle, BillingCycleType
from subtrack.domain.errors import NotFoundError, ValidationError
from subtrack.domain.subscription import SubscriptionService

from conftest import NOW


def test_create_subscription(subscription_service):
    """Test creating a subscription."""
    sub = subscription_service.create(
        name="  Spotify ",
        cost="9.99",
        next_billing_date=datetime(2024, 2, 1, tzinfo=UTC),
        currency="eur",
        now=NOW,
    )

    assert sub.name == "Spotify"
    assert sub.cost == Decimal("9.99")
    assert sub.currency == "EUR"
    assert sub.category == "Other"
    assert sub.is_active
    assert sub.reminder_days == (3,)
    assert sub.created_at == NOW
    assert sub.updated_at == NOW
    assert subscription_service.get_by_id(sub.id) == sub


def test_create_persists(subscription_service, temp_db):
    """A created subscription is visible to a fresh service."""
    sub = subscription_service.create(
        name="Spotify", cost=Decimal("9.99"), next_billing_date=datetime(2024, 2, 1, tzinfo=UTC)
    )

    reloaded = SubscriptionService(temp_db)
    assert reloaded.get_by_id(sub.id) == sub


def test_create_collects_all_errors(subscription_service):
    """All validation problems are reported together and nothing is stored."""
    with pytest.raises(ValidationError) as exc_info:
        subscription_service.create(
            name="",
            cost=Decimal("0"),
            next_billing_date=None,
            billing_cycle=BillingCycle(type=BillingCycleType.CUSTOM),
        )

    messages = exc_info.value.messages
    assert "Name is required" in messages
    assert "Cost must be greater than 0" in messages
    assert "Next billing date is required" in messages
    assert "Custom billing cycle requires valid number of days" in messages
    assert subscription_service.get_all() == []


def test_create_rejects_unparseable_cost(subscription_service):
    with pytest.raises(ValidationError, match="Cost must be greater than 0"):
        subscription_service.create(name="X", cost="abc", next_billing_date=NOW)


def test_create_rejects_unknown_cycle_type(subscription_service):
    with pytest.raises(ValidationError, match="Invalid billing cycle type"):
        subscription_service.create(
            name="X", cost="1", next_billing_date=NOW, billing_cycle=BillingCycle(type="fortnightly")
        )


def test_create_drops_custom_days_for_fixed_cycles(subscription_service):
    sub = subscription_service.create(
        name="X",
        cost="1",
        next_billing_date=NOW,
        billing_cycle=BillingCycle(type=BillingCycleType.MONTHLY, custom_days=12),
    )
    assert sub.billing_cycle.custom_days is None


def test_update_preserves_identity(subscription_service, sample_subscriptions):
    """Update keeps id and created_at and refreshes updated_at."""
    netflix = sample_subscriptions["netflix"]
    later = NOW + timedelta(days=1)

    updated = subscription_service.update(netflix.id, cost="17.99", now=later)

    assert updated.id == netflix.id
    assert updated.created_at == netflix.created_at
    assert updated.updated_at == later
    assert updated.cost == Decimal("17.99")


def test_update_invalid_leaves_record_unchanged(subscription_service, sample_subscriptions):
    netflix = sample_subscriptions["netflix"]

    with pytest.raises(ValidationError):
        subscription_service.update(netflix.id, cost="-5")

    assert subscription_service.get_by_id(netflix.id) == netflix


def test_update_rejects_protected_fields(subscription_service, sample_subscriptions):
    with pytest.raises(ValidationError, match="created_at"):
        subscription_service.update(sample_subscriptions["netflix"].id, created_at=NOW)


def test_update_missing(subscription_service):
    with pytest.raises(NotFoundError):
        subscription_service.update("missing", name="X")


def test_delete(subscription_service, sample_subscriptions):
    subscription_service.delete(sample_subscriptions["gym"].id)
    assert subscription_service.get_by_id(sample_subscriptions["gym"].id) is None
    assert len(subscription_service.get_all()) == 2


def test_delete_missing(subscription_service):
    with pytest.raises(NotFoundError, match="Subscription missing not found"):
        subscription_service.delete("missing")


def test_toggle_active(subscription_service, sample_subscriptions):
    sub_id = sample_subscriptions["netflix"].id
    assert not subscription_service.toggle_active(sub_id).is_active
    assert subscription_service.toggle_active(sub_id).is_active


def test_record_payment(subscription_service, sample_subscriptions, temp_db):
    """Paying appends history and moves the billing date one cycle."""
    netflix = sample_subscriptions["netflix"]

    paid = subscription_service.record_payment(netflix.id, now=NOW)

    assert len(paid.history) == 1
    assert paid.history[0].date == netflix.next_billing_date
    assert paid.history[0].amount == Decimal("15.99")
    assert paid.next_billing_date == datetime(2024, 2, 20, tzinfo=UTC)
    assert SubscriptionService(temp_db).get_by_id(netflix.id).history == paid.history


def test_active_and_inactive(subscription_service, sample_subscriptions):
    subscription_service.toggle_active(sample_subscriptions["gym"].id)
    assert {s.name for s in subscription_service.get_active()} == {"Netflix", "GitHub"}
    assert [s.name for s in subscription_service.get_inactive()] == ["Gym"]


def test_get_by_category(subscription_service, sample_subscriptions):
    assert [s.name for s in subscription_service.get_by_category("Streaming")] == ["Netflix"]


def test_upcoming_renewals(subscription_service, sample_subscriptions):
    upcoming = subscription_service.get_upcoming_renewals(7, now=NOW)
    assert [s.name for s in upcoming] == ["Netflix"]

    later = subscription_service.get_upcoming_renewals(365, now=NOW)
    assert [s.name for s in later] == ["Netflix", "GitHub"]


def test_overdue(subscription_service, sample_subscriptions):
    assert [s.name for s in subscription_service.get_overdue(now=NOW)] == ["Gym"]


def test_due_reminders(subscription_service):
    """A reminder is due when days-until-renewal matches an offset."""
    sub = subscription_service.create(
        name="Cloud",
        cost="5",
        next_billing_date=NOW + timedelta(days=3),
        reminder_days=(7, 3, 1),
        now=NOW,
    )
    subscription_service.create(
        name="Other", cost="5", next_billing_date=NOW + timedelta(days=2), now=NOW
    )

    assert subscription_service.get_due_reminders(now=NOW) == [(sub, 3)]


def test_total_costs(subscription_service, sample_subscriptions):
    # 15.99 monthly + 120 yearly (10) + 10 weekly (40)
    assert subscription_service.get_total_monthly_cost() == Decimal("65.99")
    assert subscription_service.get_total_yearly_cost() == Decimal("791.88")


def test_total_monthly_cost_converts_currency(services):
    services.settings.set_exchange_rate("EUR", "USD", "2")
    services.currency.load_from_settings(services.settings.get())
    services.subscriptions.create(name="A", cost="10", currency="EUR", next_billing_date=NOW)
    services.subscriptions.create(name="B", cost="5", currency="USD", next_billing_date=NOW)

    assert services.subscriptions.get_total_monthly_cost("USD") == Decimal("25")
    assert services.subscriptions.get_total_monthly_cost() == Decimal("15")


def test_spending_by_category(subscription_service, sample_subscriptions):
    spending = subscription_service.get_spending_by_category()
    assert spending == {
        "Streaming": Decimal("15.99"),
        "Software": Decimal("10"),
        "Fitness": Decimal("40"),
    }


def test_search(subscription_service, sample_subscriptions):
    assert [s.name for s in subscription_service.search("net")] == ["Netflix"]
    assert [s.name for s in subscription_service.search("SOFTWARE")] == ["GitHub"]
    assert [s.name for s in subscription_service.search("sauna")] == ["Gym"]
    assert subscription_service.search("nothing") == []


def test_stats(subscription_service, sample_subscriptions):
    stats = subscription_service.get_stats(now=NOW)

    assert stats["total"] == 3
    assert stats["active"] == 3
    assert stats["inactive"] == 0
    assert stats["upcoming_renewals"] == 1
    assert stats["overdue"] == 1
    assert stats["total_monthly_cost"] == Decimal("65.99")


def test_save_failure_is_logged(subscription_service, caplog):
    """A storage failure keeps the change in memory and is logged."""
    with patch.object(
        subscription_service.db,
        "save_subscriptions",
        side_effect=OperationalError("INSERT", {}, Exception("disk full")),
    ):
        sub = subscription_service.create(name="X", cost="1", next_billing_date=NOW)

    assert subscription_service.get_by_id(sub.id) is not None
    assert "Failed to save subscriptions" in caplog.text
