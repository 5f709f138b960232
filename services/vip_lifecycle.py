"""
VIP subscription lifecycle.

set_vip_status() is the only way a request handler changes an account's VIP
state. Validation happens before any read; the state change is one
single-document update; the holder is notified in the background once the
update has committed. A failed notification is logged by the Notifier and
never turns a successful mutation into an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from numbers import Real
from typing import Callable, Optional, Union

from errors import NotFoundError, ValidationError
from infrastructure.email.protocol import NotificationKind
from repositories.account_repository import AccountRepository
from schemas.models.account import (
    PLAN_DURATION_DAYS,
    AccountDoc,
    VipPlan,
    deactivation_patch,
)
from services.notifier import Notifier
from shared.datetime_utils import utcnow, year_bounds
from shared.logging import get_logger
from shared.validators import parse_object_id

log = get_logger(__name__)

MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def activation_patch(plan: VipPlan, payment: float, now: datetime) -> dict:
    duration = PLAN_DURATION_DAYS[plan]
    return {
        "is_vip": True,
        "vip_plan": plan.value,
        "activation": now,
        "duration": duration,
        "expires": now + timedelta(days=duration),
        "payment": payment,
    }


def _parse_plan(plan: Union[VipPlan, str, None]) -> Optional[VipPlan]:
    if isinstance(plan, VipPlan):
        return plan if plan in PLAN_DURATION_DAYS else None
    try:
        parsed = VipPlan(plan)
    except ValueError:
        return None
    return parsed if parsed in PLAN_DURATION_DAYS else None


@dataclass
class MonthlyRevenue:
    month: str
    revenue: float = 0
    subscriptions: int = 0
    weekly_plans: int = 0
    monthly_plans: int = 0


@dataclass
class RevenueReport:
    year: int
    months: list[MonthlyRevenue] = field(default_factory=list)

    @property
    def total_revenue(self) -> float:
        return sum(m.revenue for m in self.months)

    @property
    def total_subscriptions(self) -> int:
        return sum(m.subscriptions for m in self.months)

    @property
    def total_weekly_plans(self) -> int:
        return sum(m.weekly_plans for m in self.months)

    @property
    def total_monthly_plans(self) -> int:
        return sum(m.monthly_plans for m in self.months)

    @property
    def average_revenue_per_month(self) -> float:
        return self.total_revenue / 12


class VipLifecycleService:
    def __init__(
        self,
        accounts: AccountRepository,
        notifier: Notifier,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._accounts = accounts
        self._notifier = notifier
        self._clock = clock

    async def set_vip_status(
        self,
        account_id: str,
        desired_vip: bool,
        plan: Union[VipPlan, str, None] = None,
        payment: Optional[float] = None,
    ) -> AccountDoc:
        """Activate or deactivate an account's VIP subscription.

        Raises:
            ValidationError: bad id, or activation without a valid plan and a
                positive payment. Nothing is read or written.
            NotFoundError: the account does not exist.
        """
        oid = parse_object_id(account_id)
        if oid is None:
            raise ValidationError("Invalid account id", field="account_id")
        if not isinstance(desired_vip, bool):
            raise ValidationError("is_vip must be a boolean", field="is_vip")

        if desired_vip:
            vip_plan = _parse_plan(plan)
            if vip_plan is None:
                raise ValidationError("Invalid VIP plan", field="vip_plan")
            if (
                isinstance(payment, bool)
                or not isinstance(payment, Real)
                or not math.isfinite(payment)
                or payment <= 0
            ):
                raise ValidationError(
                    "A positive payment is required to activate VIP",
                    field="payment",
                )

        if await self._accounts.find_by_id(oid) is None:
            raise NotFoundError("Account not found")

        if desired_vip:
            patch = activation_patch(vip_plan, payment, self._clock())
        else:
            patch = deactivation_patch()

        updated = await self._accounts.update_by_id(oid, patch)
        if updated is None:
            # Deleted between the read and the write
            raise NotFoundError("Account not found")

        if desired_vip:
            log.info(
                "vip_activated",
                account_id=updated.account_id,
                plan=updated.vip_plan.value,
                expires=updated.expires.isoformat(),
            )
            self._notifier.dispatch(
                NotificationKind.VIP_ACTIVATED,
                updated,
                {
                    "plan": updated.vip_plan.value,
                    "duration": updated.duration,
                    "activation": updated.activation,
                    "expires": updated.expires,
                },
            )
        else:
            log.info("vip_deactivated", account_id=updated.account_id)
            self._notifier.dispatch(NotificationKind.VIP_DEACTIVATED, updated)

        return updated

    async def revenue_analytics(self, year: Optional[int] = None) -> RevenueReport:
        """Per-month VIP revenue for a calendar year (default: current year)."""
        if year is None:
            year = self._clock().year
        start, end = year_bounds(year)
        report = RevenueReport(
            year=year, months=[MonthlyRevenue(month=name) for name in MONTH_NAMES]
        )
        for account in await self._accounts.find_paid_activations(start, end):
            if account.activation is None:
                continue
            bucket = report.months[account.activation.month - 1]
            bucket.revenue += account.payment
            bucket.subscriptions += 1
            if account.vip_plan == VipPlan.WEEKLY:
                bucket.weekly_plans += 1
            else:
                bucket.monthly_plans += 1
        return report
