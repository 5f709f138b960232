"""
Request DTOs for account endpoints.

SendVerificationRequest  - POST /auth/send-verification
VerifyEmailRequest       - POST /auth/verify-email
ProfileImageRequest      - PUT /auth/profile-image
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SendVerificationRequest(BaseModel):
    """Request body for POST /auth/send-verification."""

    model_config = ConfigDict(populate_by_name=True)

    email: str


class VerifyEmailRequest(BaseModel):
    """Request body for POST /auth/verify-email.

    ``code`` is the 6-digit OTP sent to the user's email address.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: str
    code: str = Field(min_length=1, max_length=12)


class ProfileImageRequest(BaseModel):
    """Request body for PUT /auth/profile-image.

    ``image`` is base64, optionally wrapped in a ``data:image/...;base64,`` URI.
    """

    model_config = ConfigDict(populate_by_name=True)

    image: str
