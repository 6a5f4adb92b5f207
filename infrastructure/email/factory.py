"""Pick the configured email provider.

Resend wins when both API keys are present; with neither, mails are dropped
by NullEmailProvider (logged, reported as not sent) and the auth flows still
complete because codes can always be resent.
"""

from typing import Optional

from config import EmailSettings
from infrastructure.email.brevo import BrevoProvider
from infrastructure.email.protocol import EmailProvider
from infrastructure.email.resend import ResendProvider
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)


class NullEmailProvider:
    async def send_verification_email(
        self, email: str, name: Optional[str], otp_code: str, locale: str = "fr"
    ) -> bool:
        log.warning("email_not_sent", reason="no_provider_configured", kind="verification")
        return False

    async def send_password_reset_email(
        self, email: str, name: Optional[str], otp_code: str, locale: str = "fr"
    ) -> bool:
        log.warning("email_not_sent", reason="no_provider_configured", kind="password_reset")
        return False


def build_email_provider(
    settings: EmailSettings,
    http_client: HttpClient,
    *,
    app_name: str = "Djulah",
    code_ttl_minutes: int = 10,
) -> EmailProvider:
    if settings.resend_api_key:
        return ResendProvider(
            settings, http_client, app_name=app_name, code_ttl_minutes=code_ttl_minutes
        )
    if settings.brevo_api_key:
        return BrevoProvider(
            settings, http_client, app_name=app_name, code_ttl_minutes=code_ttl_minutes
        )
    log.warning("email_provider_not_configured")
    return NullEmailProvider()
