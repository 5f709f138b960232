"""
Account endpoints.

POST   /auth/send-verification        - (re)issue a verification code
POST   /auth/verify-email             - exchange the code for a verified account
DELETE /auth/accounts/{account_id}    - delete own account, or any as admin
PUT    /auth/profile-image            - replace the caller's profile image

Errors are raised as AppError subclasses and rendered by the global handler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_account_service, get_current_actor
from schemas.dto.requests.account import (
    ProfileImageRequest,
    SendVerificationRequest,
    VerifyEmailRequest,
)
from schemas.dto.responses.account import AccountResponse
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from services.account_service import AccountService, Actor

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


@router.post("/send-verification", response_model=MessageResponse)
async def send_verification(
    body: SendVerificationRequest,
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    delivered = await accounts.issue_verification_code(body.email)
    if not delivered:
        return MessageResponse(
            success=True,
            message="Verification code created, but the email could not be sent. Please retry.",
        )
    return MessageResponse(success=True, message="Verification code sent")


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    body: VerifyEmailRequest,
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    await accounts.verify_email(body.email, body.code)
    return MessageResponse(success=True, message="Email verified successfully")


@router.delete(
    "/accounts/{account_id}",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def delete_account(
    account_id: str,
    actor: Actor = Depends(get_current_actor),
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    await accounts.delete_account(account_id, actor)
    return MessageResponse(success=True, message="Account deleted successfully")


@router.put(
    "/profile-image",
    response_model=AccountResponse,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def update_profile_image(
    body: ProfileImageRequest,
    actor: Actor = Depends(get_current_actor),
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    updated = await accounts.update_profile_image(actor.id, body.image)
    return AccountResponse.from_account(updated)
