"""
Response DTOs for authentication endpoints (the ``data`` of the envelope).

UserSummary          — account shape embedded in flow responses
ProfileResponse      — GET /api/auth/profile, PUT /api/auth/update-profile
RegisterResponse     — POST /api/auth/register  (201)
VerifyEmailResponse  — POST /api/auth/verify-email  (200)
ResendCodeResponse   — POST /api/auth/resend-verification  (200)
LoginResponse        — POST /api/auth/login  (200)
ForgotPasswordResponse — POST /api/auth/forgot-password  (200)
ResetPasswordResponse  — POST /api/auth/reset-password  (200)

JSON keys are camelCase; ``otpCode`` is only filled outside production.
No response ever carries a password hash or code digest.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from schemas.models.account import AccountDoc, AccountStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserSummary(_CamelModel):
    id: str
    fullname: str
    email: str
    avatar: Optional[str] = None
    is_verified: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account: AccountDoc) -> "UserSummary":
        return cls(
            id=account.account_id,
            fullname=account.name,
            email=account.email,
            avatar=account.avatar,
            is_verified=account.is_verified,
            created_at=account.created_at,
        )


class ProfileResponse(_CamelModel):
    id: str
    email: str
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    is_verified: bool
    account_status: str
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account: AccountDoc) -> "ProfileResponse":
        return cls(
            id=account.account_id,
            email=account.email,
            name=account.name,
            first_name=account.first_name,
            last_name=account.last_name,
            avatar=account.avatar,
            is_verified=account.is_verified,
            account_status=AccountStatus(account.account_status).value,
            last_login_at=account.last_login_at,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class RegisterResponse(_CamelModel):
    step: int = 1
    user: UserSummary
    token: str
    requires_otp: bool = True
    otp_code: Optional[str] = None


class AccessTokens(_CamelModel):
    access_token: str


class VerifyEmailResponse(_CamelModel):
    verified: bool
    tokens: AccessTokens
    user: UserSummary


class ResendCodeResponse(_CamelModel):
    email: str
    otp_code: Optional[str] = None


class LoginResponse(_CamelModel):
    token: str
    user: UserSummary


class ForgotPasswordResponse(_CamelModel):
    token: str
    otp_code: Optional[str] = None


class ResetPasswordResponse(_CamelModel):
    token: str
