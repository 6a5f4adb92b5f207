"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Long-lived objects (settings, services, the
request limiter) are built once in the lifespan and read from app.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from config import AppSettings
from errors import AuthenticationError, ForbiddenError, RateLimitError
from infrastructure.cache.request_limiter import RequestLimiter
from schemas.models.account import AccountDoc
from services.auth_service import AuthService
from services.token_service import TokenRejected, TokenService
from shared.i18n import Translator
from shared.ip_utils import get_client_ip


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_translator(
    request: Request, settings: AppSettings = Depends(get_settings)
) -> Translator:
    """Translator for the request's Accept-Language header."""
    return Translator.from_header(
        request.headers.get("Accept-Language"), settings.default_locale
    )


def get_bearer_token(request: Request) -> Optional[str]:
    """Return the token from ``Authorization: Bearer <token>``, if any."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        return token or None
    return None


async def enforce_auth_rate_limit(
    request: Request, tr: Translator = Depends(get_translator)
) -> None:
    """Per-IP fixed-window limit shared by every auth route."""
    limiter: Optional[RequestLimiter] = getattr(
        request.app.state, "request_limiter", None
    )
    if limiter is None:
        return
    result = await limiter.hit(get_client_ip(request))
    if not result.allowed:
        raise RateLimitError(
            tr.t("auth.rate_limit"),
            details={"retry_after_seconds": result.reset_seconds},
        )


async def get_current_account(
    token: Optional[str] = Depends(get_bearer_token),
    tokens: TokenService = Depends(get_token_service),
    auth_service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
    tr: Translator = Depends(get_translator),
) -> AccountDoc:
    """Resolve the account behind an access token or fail with 401/403.

    Unverified accounts are only let through outside production, which keeps
    manual testing possible before a mailbox is wired up.
    """
    if not token:
        raise AuthenticationError(tr.t("auth.token_required"))
    try:
        account_id = tokens.verify_access(token)
    except TokenRejected:
        raise AuthenticationError(tr.t("auth.token_invalid")) from None

    account = await auth_service.find_account(account_id)
    if account is None:
        raise AuthenticationError(tr.t("auth.account_not_found"))
    if not account.is_verified and settings.is_production:
        raise ForbiddenError(tr.t("auth.not_verified"))
    return account
