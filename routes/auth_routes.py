"""
Authentication endpoints, mounted under /api/auth.

POST /register               (alias /register/step1)   → 201
POST /verify-email           (alias /verify-otp)       session bearer
POST /resend-verification    (alias /resend-otp)       session bearer
POST /login
POST /forgot-password
POST /reset-password                                   session bearer
GET  /profile                (alias /me)               access bearer
PUT  /change-password        (alias /update-password)  access bearer
PUT  /update-profile                                   access bearer
PUT  /update-avatar                                    access bearer, multipart "avatar"

Handlers stay thin: AuthService raises AppError subclasses, the global
handler renders them, and every message goes through the request's
Translator. One-time codes are echoed as ``otpCode`` only when
``settings.expose_otp`` is on.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from config import AppSettings
from dependencies import (
    enforce_auth_rate_limit,
    get_auth_service,
    get_bearer_token,
    get_current_account,
    get_settings,
    get_translator,
)
from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    VerifyEmailRequest,
)
from schemas.dto.responses.auth import (
    AccessTokens,
    ForgotPasswordResponse,
    LoginResponse,
    ProfileResponse,
    RegisterResponse,
    ResendCodeResponse,
    ResetPasswordResponse,
    UserSummary,
    VerifyEmailResponse,
)
from schemas.dto.responses.common import envelope
from schemas.models.account import AccountDoc
from services.auth_service import AuthService
from shared.i18n import Translator

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    dependencies=[Depends(enforce_auth_rate_limit)],
)


def _echo(settings: AppSettings, otp_code: str) -> Optional[str]:
    return otp_code if settings.expose_otp else None


@router.post("/register", status_code=201)
@router.post("/register/step1", status_code=201, include_in_schema=False)
async def register(
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    issued = await auth_service.register(body.email, body.password, body.name, tr=tr)
    data = RegisterResponse(
        user=UserSummary.from_account(issued.account),
        token=issued.session_token,
        otp_code=_echo(settings, issued.otp_code),
    )
    return JSONResponse(
        status_code=201, content=envelope(data, tr.t("register.success"))
    )


@router.post("/verify-email")
@router.post("/verify-otp", include_in_schema=False)
async def verify_email(
    body: VerifyEmailRequest,
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    result = await auth_service.verify_email(token, body.code, tr=tr)
    data = VerifyEmailResponse(
        verified=True,
        tokens=AccessTokens(access_token=result.access_token),
        user=UserSummary.from_account(result.account),
    )
    return JSONResponse(content=envelope(data, tr.t("verify.success")))


@router.post("/resend-verification")
@router.post("/resend-otp", include_in_schema=False)
async def resend_verification(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    issued = await auth_service.resend_verification_code(token, tr=tr)
    data = ResendCodeResponse(
        email=issued.account.email, otp_code=_echo(settings, issued.otp_code)
    )
    return JSONResponse(content=envelope(data, tr.t("resend.success")))


@router.post("/login")
async def login(
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    result = await auth_service.login(body.email, body.password, tr=tr)
    data = LoginResponse(
        token=result.access_token, user=UserSummary.from_account(result.account)
    )
    return JSONResponse(content=envelope(data, tr.t("login.success")))


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    issued = await auth_service.forgot_password(body.email, tr=tr)
    data = ForgotPasswordResponse(
        token=issued.session_token, otp_code=_echo(settings, issued.otp_code)
    )
    return JSONResponse(content=envelope(data, tr.t("forgot.success")))


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    result = await auth_service.reset_password(
        token, body.code, body.new_password, body.confirm_password, tr=tr
    )
    data = ResetPasswordResponse(token=result.access_token)
    return JSONResponse(content=envelope(data, tr.t("reset.success")))


@router.get("/profile")
@router.get("/me", include_in_schema=False)
async def profile(
    account: AccountDoc = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    account = await auth_service.get_profile(account.account_id, tr=tr)
    return JSONResponse(content=envelope(ProfileResponse.from_account(account)))


@router.put("/change-password")
@router.put("/update-password", include_in_schema=False)
async def change_password(
    body: ChangePasswordRequest,
    account: AccountDoc = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    await auth_service.change_password(
        account.account_id,
        body.current_password,
        body.new_password,
        body.confirm_new_password,
        tr=tr,
    )
    return JSONResponse(content=envelope(message=tr.t("change_password.success")))


@router.put("/update-profile")
async def update_profile(
    body: UpdateProfileRequest,
    account: AccountDoc = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    account = await auth_service.update_profile(account.account_id, body.fullname, tr=tr)
    return JSONResponse(
        content=envelope(ProfileResponse.from_account(account), tr.t("profile.updated"))
    )


@router.put("/update-avatar")
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    account: AccountDoc = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
    tr: Translator = Depends(get_translator),
) -> JSONResponse:
    data, content_type = None, None
    if avatar is not None:
        # One byte past the cap is enough to reject an oversized file
        data = await avatar.read(settings.cloudinary.avatar_max_bytes + 1)
        content_type = avatar.content_type
    account = await auth_service.update_avatar(
        account.account_id, data, content_type, tr=tr
    )
    return JSONResponse(
        content=envelope(UserSummary.from_account(account), tr.t("avatar.updated"))
    )
