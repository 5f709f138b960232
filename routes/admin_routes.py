"""
Admin endpoints. Every route requires an authenticated admin Actor.

POST /admin/vip                   - activate or cancel an account's VIP plan
GET  /admin/revenue               - per-month VIP revenue for a year
POST /admin/role                  - grant or revoke admin privileges
POST /admin/accounts/bulk-delete  - delete several accounts, reporting per id
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from dependencies import get_account_service, get_admin_actor, get_vip_service
from schemas.dto.requests.admin import BulkDeleteRequest, SetAdminRequest, SetVipRequest
from schemas.dto.responses.account import (
    AccountResponse,
    BulkDeleteResponse,
    RevenueResponse,
)
from schemas.dto.responses.common import ErrorResponse
from services.account_service import AccountService, Actor
from services.vip_lifecycle import VipLifecycleService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


@router.post("/vip", response_model=AccountResponse)
async def set_vip(
    body: SetVipRequest,
    actor: Actor = Depends(get_admin_actor),
    vip: VipLifecycleService = Depends(get_vip_service),
) -> AccountResponse:
    updated = await vip.set_vip_status(
        body.account_id, body.is_vip, plan=body.vip_plan, payment=body.payment
    )
    return AccountResponse.from_account(updated)


@router.get("/revenue", response_model=RevenueResponse)
async def revenue(
    year: Optional[int] = Query(default=None, ge=1970, le=9998),
    actor: Actor = Depends(get_admin_actor),
    vip: VipLifecycleService = Depends(get_vip_service),
) -> RevenueResponse:
    report = await vip.revenue_analytics(year)
    return RevenueResponse.from_report(report)


@router.post("/role", response_model=AccountResponse)
async def set_admin(
    body: SetAdminRequest,
    actor: Actor = Depends(get_admin_actor),
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    updated = await accounts.set_admin(body.account_id, body.make_admin, actor)
    return AccountResponse.from_account(updated)


@router.post("/accounts/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete(
    body: BulkDeleteRequest,
    actor: Actor = Depends(get_admin_actor),
    accounts: AccountService = Depends(get_account_service),
) -> BulkDeleteResponse:
    result = await accounts.bulk_delete_accounts(body.account_ids, actor)
    return BulkDeleteResponse.from_result(result)
