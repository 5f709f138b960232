"""
Request DTOs for admin endpoints.

SetVipRequest      - POST /admin/vip
SetAdminRequest    - POST /admin/role
BulkDeleteRequest  - POST /admin/accounts/bulk-delete
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SetVipRequest(BaseModel):
    """Request body for POST /admin/vip.

    ``vip_plan`` and ``payment`` are only read when activating.
    """

    model_config = ConfigDict(populate_by_name=True)

    account_id: str
    is_vip: bool
    vip_plan: Optional[str] = None
    payment: Optional[float] = None


class SetAdminRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_id: str
    make_admin: bool


class BulkDeleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_ids: list[str] = Field(min_length=1)
