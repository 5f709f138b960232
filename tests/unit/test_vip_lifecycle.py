"""Unit tests for VipLifecycleService (activation, deactivation, revenue)."""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from errors import NotFoundError, ValidationError
from infrastructure.email.protocol import NotificationKind
from schemas.models.account import VipPlan
from services.vip_lifecycle import VipLifecycleService, activation_patch

UTC = timezone.utc
NOW = datetime(2024, 2, 1, tzinfo=UTC)


@pytest.fixture
def service(repo, notifier, clock):
    return VipLifecycleService(repo, notifier, clock=clock)


class TestActivation:
    @pytest.mark.parametrize(
        "plan,days", [("weekly", 7), ("monthly", 30), (VipPlan.MONTHLY, 30)]
    )
    async def test_activate(self, service, repo, notifier, email_provider, plan, days):
        account = repo.add()
        updated = await service.set_vip_status(account.account_id, True, plan, 500)

        assert updated.is_vip is True
        assert updated.vip_plan == VipPlan(plan)
        assert updated.duration == days
        assert updated.activation == NOW
        assert updated.expires - updated.activation == timedelta(days=days)
        assert updated.payment == 500

        await notifier.drain()
        kind, _, payload = email_provider.sent[0]
        assert kind is NotificationKind.VIP_ACTIVATED
        assert payload["duration"] == days
        assert payload["expires"] == NOW + timedelta(days=days)

    async def test_reactivation_replaces_previous_subscription(self, service, repo):
        account = repo.add(
            is_vip=True,
            vip_plan="monthly",
            activation=NOW - timedelta(days=10),
            duration=30,
            expires=NOW + timedelta(days=20),
            payment=1500,
        )
        updated = await service.set_vip_status(account.account_id, True, "weekly", 500)
        assert updated.vip_plan is VipPlan.WEEKLY
        assert updated.expires == NOW + timedelta(days=7)
        assert updated.payment == 500

    @pytest.mark.parametrize(
        "plan,payment,field",
        [
            (None, 500, "vip_plan"),
            ("", 500, "vip_plan"),
            ("yearly", 500, "vip_plan"),
            ("none", 500, "vip_plan"),
            ("weekly", None, "payment"),
            ("weekly", 0, "payment"),
            ("weekly", -5, "payment"),
            ("weekly", "500", "payment"),
            ("weekly", True, "payment"),
            ("weekly", float("nan"), "payment"),
            ("weekly", float("inf"), "payment"),
        ],
    )
    async def test_invalid_activation_leaves_account_untouched(
        self, service, repo, email_provider, plan, payment, field
    ):
        account = repo.add()
        before = dict(repo.docs[account.id])

        with pytest.raises(ValidationError) as exc:
            await service.set_vip_status(account.account_id, True, plan, payment)

        assert exc.value.field == field
        assert repo.docs[account.id] == before
        assert repo.updates == []
        assert email_provider.sent == []


class TestDeactivation:
    async def test_deactivate_resets_everything(self, service, repo, notifier, email_provider):
        account = repo.add(
            is_vip=True,
            vip_plan="weekly",
            activation=NOW - timedelta(days=1),
            duration=7,
            expires=NOW + timedelta(days=6),
            payment=500,
        )
        updated = await service.set_vip_status(account.account_id, False)

        assert updated.is_vip is False
        assert updated.vip_plan is VipPlan.NONE
        assert updated.activation is None
        assert updated.expires is None
        assert updated.duration == 0
        assert updated.payment == 0

        await notifier.drain()
        assert email_provider.kinds() == [NotificationKind.VIP_DEACTIVATED]

    async def test_deactivate_ignores_plan_and_payment(self, service, repo):
        account = repo.add()
        updated = await service.set_vip_status(account.account_id, False, "bogus", -1)
        assert updated.is_vip is False


class TestErrors:
    async def test_unknown_account(self, service, repo):
        with pytest.raises(NotFoundError):
            await service.set_vip_status(str(ObjectId()), True, "weekly", 500)
        assert repo.updates == []

    async def test_invalid_id(self, service):
        with pytest.raises(ValidationError) as exc:
            await service.set_vip_status("not-an-id", False)
        assert exc.value.field == "account_id"

    async def test_desired_state_must_be_bool(self, service, repo):
        account = repo.add()
        with pytest.raises(ValidationError):
            await service.set_vip_status(account.account_id, "true", "weekly", 500)

    async def test_notification_failure_does_not_surface(
        self, service, repo, notifier, email_provider
    ):
        email_provider.raise_for.add(NotificationKind.VIP_ACTIVATED)
        account = repo.add()
        updated = await service.set_vip_status(account.account_id, True, "weekly", 500)
        await notifier.drain()
        assert updated.is_vip is True
        assert repo.get(account.id).is_vip is True


def test_activation_patch():
    patch = activation_patch(VipPlan.WEEKLY, 500, NOW)
    assert patch == {
        "is_vip": True,
        "vip_plan": "weekly",
        "activation": NOW,
        "duration": 7,
        "expires": NOW + timedelta(days=7),
        "payment": 500,
    }


class TestRevenueAnalytics:
    async def test_buckets_by_activation_month(self, service, repo):
        repo.add(vip_plan="weekly", is_vip=True, activation=datetime(2024, 1, 5, tzinfo=UTC),
                 duration=7, expires=datetime(2024, 1, 12, tzinfo=UTC), payment=500)
        repo.add(vip_plan="monthly", is_vip=True, activation=datetime(2024, 1, 20, tzinfo=UTC),
                 duration=30, expires=datetime(2024, 2, 19, tzinfo=UTC), payment=1500)
        repo.add(vip_plan="monthly", is_vip=True, activation=datetime(2024, 3, 1, tzinfo=UTC),
                 duration=30, expires=datetime(2024, 3, 31, tzinfo=UTC), payment=1500)
        # Other year and unpaid: ignored
        repo.add(vip_plan="weekly", is_vip=True, activation=datetime(2023, 12, 31, tzinfo=UTC),
                 duration=7, expires=datetime(2024, 1, 7, tzinfo=UTC), payment=500)
        repo.add()

        report = await service.revenue_analytics(2024)

        assert report.year == 2024
        assert len(report.months) == 12
        jan, feb, mar = report.months[:3]
        assert (jan.month, jan.revenue, jan.subscriptions) == ("Jan", 2000, 2)
        assert (jan.weekly_plans, jan.monthly_plans) == (1, 1)
        assert feb.revenue == 0
        assert mar.monthly_plans == 1
        assert report.total_revenue == 3500
        assert report.total_subscriptions == 3
        assert report.total_weekly_plans == 1
        assert report.total_monthly_plans == 2
        assert report.average_revenue_per_month == pytest.approx(3500 / 12)

    async def test_defaults_to_current_year(self, service):
        report = await service.revenue_analytics()
        assert report.year == NOW.year
        assert report.total_revenue == 0
