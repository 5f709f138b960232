"""
Response DTOs for account and admin endpoints.

AccountResponse      - public view of an account (never the verification code)
BulkDeleteResponse   - POST /admin/accounts/bulk-delete
RevenueResponse      - GET /admin/revenue
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.account import AccountDoc
from services.account_service import BulkDeletionResult
from services.vip_lifecycle import RevenueReport


class AccountResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    username: Optional[str] = None
    email_verified: bool
    is_admin: bool
    is_vip: bool
    vip_plan: str
    activation: Optional[datetime] = None
    duration: int
    expires: Optional[datetime] = None
    profile_image: Optional[str] = None

    @classmethod
    def from_account(cls, account: AccountDoc) -> "AccountResponse":
        return cls(
            id=account.account_id,
            email=account.email,
            username=account.username,
            email_verified=account.email_verified,
            is_admin=account.is_admin,
            is_vip=account.is_vip,
            vip_plan=account.vip_plan.value,
            activation=account.activation,
            duration=account.duration,
            expires=account.expires,
            profile_image=account.profile_image,
        )


class BulkDeleteFailure(BaseModel):
    account_id: str
    reason: str


class BulkDeleteResponse(BaseModel):
    """Per-id outcome of a bulk deletion; one bad id never aborts the rest."""

    model_config = ConfigDict(populate_by_name=True)

    deleted_count: int
    failed_count: int
    deleted: list[str]
    failed: list[BulkDeleteFailure]

    @classmethod
    def from_result(cls, result: BulkDeletionResult) -> "BulkDeleteResponse":
        return cls(
            deleted_count=result.deleted_count,
            failed_count=result.failed_count,
            deleted=result.deleted,
            failed=[BulkDeleteFailure(**item) for item in result.failed],
        )


class MonthlyRevenueItem(BaseModel):
    month: str
    revenue: float
    subscriptions: int
    weekly_plans: int
    monthly_plans: int


class RevenueResponse(BaseModel):
    """Response body for GET /admin/revenue.

    ``months`` always has twelve entries, January first.
    """

    model_config = ConfigDict(populate_by_name=True)

    year: int
    total_revenue: float
    total_subscriptions: int
    total_weekly_plans: int
    total_monthly_plans: int
    average_revenue_per_month: float
    months: list[MonthlyRevenueItem]

    @classmethod
    def from_report(cls, report: RevenueReport) -> "RevenueResponse":
        return cls(
            year=report.year,
            total_revenue=report.total_revenue,
            total_subscriptions=report.total_subscriptions,
            total_weekly_plans=report.total_weekly_plans,
            total_monthly_plans=report.total_monthly_plans,
            average_revenue_per_month=report.average_revenue_per_month,
            months=[
                MonthlyRevenueItem(
                    month=m.month,
                    revenue=m.revenue,
                    subscriptions=m.subscriptions,
                    weekly_plans=m.weekly_plans,
                    monthly_plans=m.monthly_plans,
                )
                for m in report.months
            ],
        )
