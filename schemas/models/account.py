"""
Account document model.

Maps to the `users` MongoDB collection. Only the fields the lifecycle code
reads or writes are modelled; unknown keys written by other parts of the
platform are ignored on load.

VIP invariants:
- is_vip=True  → vip_plan is weekly/monthly, expires > activation,
                 duration matches the plan (7 or 30 days)
- is_vip=False → vip_plan=none, activation/expires None, duration/payment 0
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc


class VipPlan(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    NONE = "none"


PLAN_DURATION_DAYS: dict[VipPlan, int] = {
    VipPlan.WEEKLY: 7,
    VipPlan.MONTHLY: 30,
}


def deactivation_patch() -> dict:
    """The full inactive VIP state, as a `$set` payload."""
    return {
        "is_vip": False,
        "vip_plan": VipPlan.NONE.value,
        "activation": None,
        "duration": 0,
        "expires": None,
        "payment": 0,
    }


class AccountDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    email: str
    username: Optional[str] = None

    email_verified: bool = False
    verification_code: Optional[str] = None  # SHA-256 of the OTP
    verification_code_expiry: Optional[datetime] = None

    is_admin: bool = False
    # Only authorized admins may revoke another admin's privileges
    is_authorized: bool = False

    is_vip: bool = False
    vip_plan: VipPlan = VipPlan.NONE
    activation: Optional[datetime] = None
    duration: int = Field(default=0, ge=0)
    expires: Optional[datetime] = None
    payment: float = 0

    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("vip_plan", mode="before")
    @classmethod
    def _blank_plan_is_none(cls, v):
        # Legacy documents store "" or null for "no plan"
        if v in (None, ""):
            return VipPlan.NONE
        return v

    @field_validator(
        "verification_code_expiry", "activation", "expires", "created_at"
    )
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def account_id(self) -> str:
        return str(self.id)

    @property
    def display_name(self) -> str:
        return self.username or self.email.split("@")[0]

    def to_mongo(self) -> dict:
        data = super().to_mongo()
        data["vip_plan"] = self.vip_plan.value
        return data
