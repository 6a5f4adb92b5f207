"""
Authentication state machine.

Registration:    unregistered → pending verification → verified
Password reset:  verified → reset requested → password changed

Each multi-step flow is gated by a purpose-scoped session token issued at
its first step; the one-time code proves control of the mailbox. Every
domain failure is raised as the most specific AppError so the HTTP layer
only has to render it. Email delivery runs after the account is persisted
and its failure never fails the request: the code stays valid and can be
resent.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Optional

from errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ServiceUnavailableError,
    ValidationError,
)
from infrastructure.email.protocol import EmailProvider
from infrastructure.media.protocol import ImageStore, ImageUploadError
from repositories.protocol import AccountRepository, DuplicateKey
from schemas.models.account import AccountDoc, AccountStatus, CodePurpose
from services.otp_service import InvalidOrExpiredCode, OtpService
from services.rate_limiter import CooldownActive, CooldownLimiter
from services.token_service import SessionPurpose, TokenRejected, TokenService
from shared.crypto import verify_password
from shared.datetime_utils import Clock, utc_now
from shared.i18n import Translator
from shared.logging import get_logger
from shared.validators import (
    is_long_enough,
    normalize_email,
    normalize_identifier,
    split_full_name,
)

log = get_logger(__name__)


@dataclass
class CodeIssued:
    """Outcome of a step that (re)issues a one-time code."""

    account: AccountDoc
    otp_code: str
    email_sent: bool
    session_token: Optional[str] = None


@dataclass
class Authenticated:
    """Outcome of a step that ends with an access token."""

    account: AccountDoc
    access_token: str


class AuthService:
    def __init__(
        self,
        accounts: AccountRepository,
        tokens: TokenService,
        otp: OtpService,
        limiter: CooldownLimiter,
        email: EmailProvider,
        *,
        images: Optional[ImageStore] = None,
        min_password_length: int = 8,
        avatar_max_bytes: int = 5 * 1024 * 1024,
        default_locale: str = "fr",
        clock: Clock = utc_now,
    ) -> None:
        self._accounts = accounts
        self._tokens = tokens
        self._otp = otp
        self._limiter = limiter
        self._email = email
        self._images = images
        self._min_password_length = min_password_length
        self._avatar_max_bytes = avatar_max_bytes
        self._default_tr = Translator(default_locale)
        self._clock = clock

    # ── helpers ──────────────────────────────────────────────────────────────

    def _session_account_id(
        self, session_token: Optional[str], purpose: SessionPurpose, tr: Translator
    ) -> str:
        if not session_token:
            raise AuthenticationError(tr.t("auth.token_required"))
        try:
            return self._tokens.verify_session(session_token, purpose)
        except TokenRejected:
            raise AuthenticationError(tr.t("auth.session_invalid")) from None

    async def _password_matches(self, account: AccountDoc, password: str) -> bool:
        # argon2 verification is CPU-bound; run it in a worker thread
        return await asyncio.to_thread(
            verify_password, password, account.password_hash or ""
        )

    async def _deliver(self, sending: Awaitable[bool], account: AccountDoc, kind: str) -> bool:
        try:
            sent = await sending
        except Exception as e:
            log.error(
                "code_email_failed",
                account_id=account.account_id,
                kind=kind,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        if not sent:
            log.warning("code_email_not_sent", account_id=account.account_id, kind=kind)
        return sent

    # ── registration ─────────────────────────────────────────────────────────

    async def register(
        self,
        email: Optional[str],
        password: Optional[str],
        name: Optional[str],
        *,
        tr: Optional[Translator] = None,
    ) -> CodeIssued:
        tr = tr or self._default_tr
        email = normalize_email(email)
        name = normalize_identifier(name)
        if not name:
            raise ValidationError(tr.t("register.name_required"), field="name")
        if not email or not password:
            raise ValidationError(tr.t("register.missing_fields"))

        existing = await self._accounts.find_by_email(email)
        if existing is not None:
            if existing.is_verified:
                log.warning("registration_failed", reason="already_verified")
                raise ConflictError(tr.t("register.already_registered"))
            await self._accounts.delete(existing.account_id)
            log.info("unverified_account_purged", account_id=existing.account_id)

        first_name, last_name = split_full_name(name)
        account = AccountDoc(
            email=email,
            name=name,
            first_name=first_name,
            last_name=last_name,
            is_verified=False,
            account_status=AccountStatus.ACTIVE,
        )
        account.set_password(password)
        code = self._otp.issue(account, CodePurpose.REGISTRATION_VERIFICATION)

        try:
            account = await self._accounts.create(account)
        except DuplicateKey:
            # Concurrent registration for the same email won the insert
            log.warning("registration_failed", reason="race_condition_duplicate")
            raise ConflictError(tr.t("register.retry")) from None

        session_token = self._tokens.issue_session(
            account.account_id, SessionPurpose.REGISTRATION
        )
        log.info("user_registered", account_id=account.account_id)

        sent = await self._deliver(
            self._email.send_verification_email(account.email, account.name, code, tr.locale),
            account,
            "verification",
        )
        return CodeIssued(account, code, sent, session_token)

    async def verify_email(
        self,
        session_token: Optional[str],
        code: Optional[str],
        *,
        tr: Optional[Translator] = None,
    ) -> Authenticated:
        tr = tr or self._default_tr
        account_id = self._session_account_id(
            session_token, SessionPurpose.REGISTRATION, tr
        )
        code = normalize_identifier(code)
        if not code:
            raise ValidationError(tr.t("verify.code_required"), field="code")

        account = await self._accounts.find_by_id(account_id)
        if account is None:
            # Purged by a newer registration; this session is dead
            raise AuthenticationError(tr.t("auth.session_invalid"))

        try:
            self._otp.validate(account, CodePurpose.REGISTRATION_VERIFICATION, code)
        except InvalidOrExpiredCode:
            await self._accounts.save(account)
            raise ValidationError(tr.t("verify.invalid_or_expired"), field="code") from None

        account.is_verified = True
        await self._accounts.save(account)
        log.info("email_verified", account_id=account.account_id)
        return Authenticated(account, self._tokens.issue_access(account.account_id))

    async def resend_verification_code(
        self, session_token: Optional[str], *, tr: Optional[Translator] = None
    ) -> CodeIssued:
        tr = tr or self._default_tr
        account_id = self._session_account_id(
            session_token, SessionPurpose.REGISTRATION, tr
        )
        account = await self._accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError(tr.t("resend.not_found"))
        if account.is_verified:
            raise ValidationError(tr.t("resend.already_verified"))

        try:
            self._limiter.check(account, CodePurpose.REGISTRATION_VERIFICATION)
        except CooldownActive as e:
            raise RateLimitError(
                tr.t("resend.too_many_requests", minutes=e.remaining_minutes),
                details={"retry_after_minutes": e.remaining_minutes},
            ) from None

        code = self._otp.issue(account, CodePurpose.REGISTRATION_VERIFICATION)
        await self._accounts.save(account)
        sent = await self._deliver(
            self._email.send_verification_email(account.email, account.name, code, tr.locale),
            account,
            "verification",
        )
        return CodeIssued(account, code, sent)

    # ── login ────────────────────────────────────────────────────────────────

    async def login(
        self,
        email: Optional[str],
        password: Optional[str],
        *,
        tr: Optional[Translator] = None,
    ) -> Authenticated:
        tr = tr or self._default_tr
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError(tr.t("login.missing_fields"))

        account = await self._accounts.find_by_email(email)
        if account is None or not await self._password_matches(account, password):
            # Do not reveal which part failed
            log.warning("login_failed", reason="invalid_credentials")
            raise AuthenticationError(tr.t("login.invalid_credentials"))
        if not account.is_verified:
            raise ForbiddenError(tr.t("login.not_verified"))
        if account.account_status != AccountStatus.ACTIVE:
            log.warning(
                "login_failed",
                reason="account_not_active",
                account_id=account.account_id,
                account_status=account.account_status,
            )
            raise ForbiddenError(tr.t("login.account_disabled"))

        account.last_login_at = self._clock()
        await self._accounts.save(account)
        log.info("login_success", account_id=account.account_id)
        return Authenticated(account, self._tokens.issue_access(account.account_id))

    # ── password reset ───────────────────────────────────────────────────────

    async def forgot_password(
        self, email: Optional[str], *, tr: Optional[Translator] = None
    ) -> CodeIssued:
        tr = tr or self._default_tr
        email = normalize_email(email)
        if not email:
            raise ValidationError(tr.t("forgot.email_required"), field="email")

        account = await self._accounts.find_by_email(email)
        if account is None:
            raise NotFoundError(tr.t("forgot.not_found"))
        if not account.is_verified:
            raise ForbiddenError(tr.t("forgot.not_verified"))

        try:
            self._limiter.check(account, CodePurpose.PASSWORD_RESET)
        except CooldownActive as e:
            raise RateLimitError(
                tr.t("forgot.too_many_requests", minutes=e.remaining_minutes),
                details={"retry_after_minutes": e.remaining_minutes},
            ) from None

        session_token = self._tokens.issue_session(
            account.account_id, SessionPurpose.PASSWORD_RESET
        )
        code = self._otp.issue(account, CodePurpose.PASSWORD_RESET)
        await self._accounts.save(account)
        log.info("password_reset_requested", account_id=account.account_id)

        sent = await self._deliver(
            self._email.send_password_reset_email(account.email, account.name, code, tr.locale),
            account,
            "password_reset",
        )
        return CodeIssued(account, code, sent, session_token)

    async def reset_password(
        self,
        session_token: Optional[str],
        code: Optional[str],
        new_password: Optional[str],
        confirm_password: Optional[str],
        *,
        tr: Optional[Translator] = None,
    ) -> Authenticated:
        tr = tr or self._default_tr
        account_id = self._session_account_id(
            session_token, SessionPurpose.PASSWORD_RESET, tr
        )
        code = normalize_identifier(code)
        if not code or not new_password:
            raise ValidationError(tr.t("reset.missing_fields"))
        if new_password != confirm_password:
            raise ValidationError(
                tr.t("reset.passwords_not_match"), field="confirmPassword"
            )
        if not is_long_enough(new_password, self._min_password_length):
            raise ValidationError(
                tr.t("reset.password_too_short", min_length=self._min_password_length),
                field="newPassword",
            )

        account = await self._accounts.find_by_id(account_id)
        if account is None:
            raise AuthenticationError(tr.t("auth.session_invalid"))

        try:
            self._otp.validate(account, CodePurpose.PASSWORD_RESET, code)
        except InvalidOrExpiredCode:
            await self._accounts.save(account)
            raise ValidationError(tr.t("reset.invalid_or_expired"), field="code") from None

        account.set_password(new_password)
        await self._accounts.save(account)
        log.info("password_reset_completed", account_id=account.account_id)
        return Authenticated(account, self._tokens.issue_access(account.account_id))

    # ── authenticated account operations ─────────────────────────────────────

    async def find_account(self, account_id: str) -> Optional[AccountDoc]:
        return await self._accounts.find_by_id(account_id)

    async def get_profile(
        self, account_id: str, *, tr: Optional[Translator] = None
    ) -> AccountDoc:
        tr = tr or self._default_tr
        account = await self._accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError(tr.t("profile.not_found"))
        return account

    async def change_password(
        self,
        account_id: str,
        current_password: Optional[str],
        new_password: Optional[str],
        confirm_new_password: Optional[str],
        *,
        tr: Optional[Translator] = None,
    ) -> AccountDoc:
        tr = tr or self._default_tr
        if not current_password or not new_password or not confirm_new_password:
            raise ValidationError(tr.t("change_password.missing_fields"))
        if not is_long_enough(new_password, self._min_password_length):
            raise ValidationError(
                tr.t("change_password.too_short", min_length=self._min_password_length),
                field="newPassword",
            )
        if new_password != confirm_new_password:
            raise ValidationError(
                tr.t("change_password.not_match"), field="confirmNewPassword"
            )

        account = await self.get_profile(account_id, tr=tr)
        if not await self._password_matches(account, current_password):
            log.warning("password_change_failed", reason="current_incorrect", account_id=account_id)
            raise AuthenticationError(tr.t("change_password.current_incorrect"))
        if new_password == current_password:
            raise ValidationError(tr.t("change_password.same_as_old"), field="newPassword")

        account.set_password(new_password)
        await self._accounts.save(account)
        log.info("password_changed", account_id=account_id)
        return account

    async def update_profile(
        self,
        account_id: str,
        fullname: Optional[str],
        *,
        tr: Optional[Translator] = None,
    ) -> AccountDoc:
        tr = tr or self._default_tr
        fullname = normalize_identifier(fullname)
        if not fullname:
            raise ValidationError(tr.t("profile.fullname_required"), field="fullname")

        account = await self.get_profile(account_id, tr=tr)
        account.name = fullname
        account.first_name, account.last_name = split_full_name(fullname)
        await self._accounts.save(account)
        log.info("profile_updated", account_id=account_id)
        return account

    async def update_avatar(
        self,
        account_id: str,
        data: Optional[bytes],
        content_type: Optional[str],
        *,
        tr: Optional[Translator] = None,
    ) -> AccountDoc:
        """Upload a new avatar image and point the account at it.

        The previous hosted image is removed only after the account has been
        saved with the new one; a failed removal is logged and ignored.
        """
        tr = tr or self._default_tr
        if not data:
            raise ValidationError(tr.t("avatar.file_required"), field="avatar")
        if not (content_type or "").startswith("image/"):
            raise ValidationError(tr.t("avatar.invalid_type"), field="avatar")
        if len(data) > self._avatar_max_bytes:
            raise ValidationError(
                tr.t("avatar.too_large", max_mb=self._avatar_max_bytes // (1024 * 1024)),
                field="avatar",
            )
        if self._images is None:
            raise ServiceUnavailableError(tr.t("avatar.unavailable"))

        account = await self.get_profile(account_id, tr=tr)
        try:
            stored = await self._images.upload(data)
        except ImageUploadError:
            raise ServerError(tr.t("avatar.upload_failed")) from None

        previous = account.avatar_public_id
        account.avatar = stored.url
        account.avatar_public_id = stored.public_id
        await self._accounts.save(account)
        log.info("avatar_updated", account_id=account_id, size=stored.size)

        if previous and previous != stored.public_id:
            await self._images.delete(previous)
        return account
