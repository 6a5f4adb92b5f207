"""
Request DTOs for authentication endpoints.

RegisterRequest          — POST /api/auth/register
VerifyEmailRequest       — POST /api/auth/verify-email
LoginRequest             — POST /api/auth/login
ForgotPasswordRequest    — POST /api/auth/forgot-password
ResetPasswordRequest     — POST /api/auth/reset-password
ChangePasswordRequest    — PUT  /api/auth/change-password
UpdateProfileRequest     — PUT  /api/auth/update-profile

Every field is optional at the schema level: presence is checked by
AuthService so missing-field errors come back localized. Several fields
accept more than one JSON key because mobile and web clients disagree
(e.g. ``code`` vs ``otp``).
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("name", "fullName", "fullname", "username"),
    )


class VerifyEmailRequest(BaseModel):
    """Request body for POST /api/auth/verify-email.

    ``code`` is the 6-digit OTP sent to the user's email address.
    """

    model_config = ConfigDict(populate_by_name=True)

    code: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("code", "otp")
    )


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    """Request body for POST /api/auth/reset-password."""

    model_config = ConfigDict(populate_by_name=True)

    code: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("code", "otp")
    )
    new_password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("newPassword", "password")
    )
    confirm_password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("confirmPassword", "confirmNewPassword"),
    )


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("currentPassword", "current_password")
    )
    new_password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("newPassword", "new_password")
    )
    confirm_new_password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("confirmNewPassword", "confirm_new_password"),
    )


class UpdateProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fullname: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("fullname", "fullName", "name")
    )
