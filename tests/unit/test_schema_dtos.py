"""Unit tests for request and response DTOs."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError

from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    VerifyEmailRequest,
)
from schemas.dto.responses.auth import (
    AccessTokens,
    ProfileResponse,
    RegisterResponse,
    UserSummary,
    VerifyEmailResponse,
)
from schemas.dto.responses.common import ErrorResponse, HealthResponse, envelope
from schemas.models.account import AccountDoc


def _account(**overrides) -> AccountDoc:
    base = dict(
        _id=ObjectId(),
        email="alice@example.com",
        name="Alice Nguyen",
        first_name="Alice",
        last_name="Nguyen",
        password_hash="$argon2id$secret-hash",
        is_verified=True,
        created_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
    )
    base.update(overrides)
    return AccountDoc(**base)


# ── requests ──────────────────────────────────────────────────────────────────


class TestRegisterRequest:
    @pytest.mark.parametrize("key", ["name", "fullName", "fullname", "username"])
    def test_name_aliases(self, key):
        req = RegisterRequest.model_validate({"email": "a@b.c", "password": "x", key: "Alice"})
        assert req.name == "Alice"

    def test_all_fields_optional(self):
        req = RegisterRequest.model_validate({})
        assert (req.email, req.password, req.name) == (None, None, None)

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError):
            RegisterRequest.model_validate({"email": ["a@b.c"]})


@pytest.mark.parametrize("key", ["code", "otp"])
def test_verify_code_aliases(key):
    assert VerifyEmailRequest.model_validate({key: "123456"}).code == "123456"


class TestResetPasswordRequest:
    def test_camel_case(self):
        req = ResetPasswordRequest.model_validate(
            {"otp": "123456", "newPassword": "n3w-pass", "confirmPassword": "n3w-pass"}
        )
        assert req.code == "123456"
        assert req.new_password == "n3w-pass"
        assert req.confirm_password == "n3w-pass"

    def test_password_and_confirm_new_password_aliases(self):
        req = ResetPasswordRequest.model_validate(
            {"code": "1", "password": "p", "confirmNewPassword": "p"}
        )
        assert (req.new_password, req.confirm_password) == ("p", "p")


def test_change_password_aliases():
    req = ChangePasswordRequest.model_validate(
        {"currentPassword": "old", "newPassword": "new", "confirmNewPassword": "new"}
    )
    assert (req.current_password, req.new_password, req.confirm_new_password) == (
        "old",
        "new",
        "new",
    )


@pytest.mark.parametrize("key", ["fullname", "fullName", "name"])
def test_update_profile_aliases(key):
    assert UpdateProfileRequest.model_validate({key: "Bob"}).fullname == "Bob"


def test_login_request_ignores_unknown_keys():
    req = LoginRequest.model_validate({"email": "a@b.c", "password": "p", "remember": True})
    assert req.email == "a@b.c"


# ── responses ─────────────────────────────────────────────────────────────────


class TestUserSummary:
    def test_from_account_camel_case(self):
        account = _account()
        dumped = UserSummary.from_account(account).model_dump(mode="json", by_alias=True)
        assert dumped["id"] == account.account_id
        assert dumped["fullname"] == "Alice Nguyen"
        assert dumped["isVerified"] is True
        assert dumped["createdAt"].startswith("2024-01-15T12:00:00")

    def test_never_exposes_secrets(self):
        dumped = UserSummary.from_account(_account()).model_dump(by_alias=True)
        assert "password_hash" not in dumped
        assert "passwordHash" not in dumped
        assert "codes" not in dumped


class TestProfileResponse:
    def test_status_is_plain_string(self):
        dumped = ProfileResponse.from_account(_account()).model_dump(mode="json", by_alias=True)
        assert dumped["accountStatus"] == "active"
        assert dumped["firstName"] == "Alice"
        assert dumped["lastName"] == "Nguyen"


class TestEnvelope:
    def test_register_otp_code_omitted_when_none(self):
        data = RegisterResponse(user=UserSummary.from_account(_account()), token="tok")
        body = envelope(data, "ok")
        assert body["success"] is True
        assert body["message"] == "ok"
        assert body["data"]["step"] == 1
        assert body["data"]["requiresOtp"] is True
        assert "otpCode" not in body["data"]

    def test_register_otp_code_present_when_set(self):
        data = RegisterResponse(
            user=UserSummary.from_account(_account()), token="tok", otp_code="042519"
        )
        assert envelope(data)["data"]["otpCode"] == "042519"

    def test_nested_camel_case(self):
        data = VerifyEmailResponse(
            verified=True,
            tokens=AccessTokens(access_token="acc"),
            user=UserSummary.from_account(_account()),
        )
        assert envelope(data)["data"]["tokens"] == {"accessToken": "acc"}

    def test_message_omitted_when_none(self):
        assert envelope() == {"success": True, "data": None}


def test_error_response_shape():
    body = ErrorResponse(message="nope", code="not_found").model_dump(exclude_none=True)
    assert body == {"success": False, "message": "nope", "code": "not_found"}


def test_health_response():
    body = HealthResponse(status="healthy", checks={"mongodb": "ok"}).model_dump()
    assert body == {"status": "healthy", "checks": {"mongodb": "ok"}}
