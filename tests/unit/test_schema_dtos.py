"""Unit tests for request and response DTOs."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from bson import ObjectId

from schemas.dto.requests.account import SendVerificationRequest, VerifyEmailRequest
from schemas.dto.requests.admin import BulkDeleteRequest, SetVipRequest
from schemas.dto.responses.account import AccountResponse
from schemas.dto.responses.common import ErrorResponse, HealthResponse, MessageResponse
from schemas.models.account import AccountDoc


class TestSendVerificationRequest:
    def test_email_required(self):
        with pytest.raises(ValidationError):
            SendVerificationRequest.model_validate({})

    def test_valid(self):
        assert SendVerificationRequest(email="a@x.com").email == "a@x.com"


class TestVerifyEmailRequest:
    def test_valid(self):
        req = VerifyEmailRequest(email="a@x.com", code="123456")
        assert req.code == "123456"

    @pytest.mark.parametrize("code", ["", "1" * 13])
    def test_code_length_bounds(self, code):
        with pytest.raises(ValidationError):
            VerifyEmailRequest(email="a@x.com", code=code)


class TestResponses:
    def test_error_response_optional_fields(self):
        body = ErrorResponse(error="Account not found", code="not_found")
        assert body.field is None
        assert body.details is None

    def test_health_response(self):
        body = HealthResponse(status="degraded", checks={"mongodb": "ok", "object_store": "error"})
        assert body.model_dump() == {
            "status": "degraded",
            "checks": {"mongodb": "ok", "object_store": "error"},
        }

    def test_message_response(self):
        assert MessageResponse(success=True).message is None


class TestAdminRequests:
    def test_vip_plan_and_payment_optional(self):
        req = SetVipRequest(account_id="abc", is_vip=False)
        assert req.vip_plan is None
        assert req.payment is None

    def test_bulk_delete_needs_ids(self):
        with pytest.raises(ValidationError):
            BulkDeleteRequest(account_ids=[])


class TestAccountResponse:
    def test_hides_verification_state(self):
        account = AccountDoc(
            _id=ObjectId(),
            email="a@x.com",
            verification_code="hashed",
            payment=5,
        )
        body = AccountResponse.from_account(account).model_dump()
        assert body["id"] == account.account_id
        assert body["vip_plan"] == "none"
        assert "verification_code" not in body
        assert "payment" not in body
