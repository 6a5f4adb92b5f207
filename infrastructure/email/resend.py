"""Resend implementation of EmailProvider.

Talks to the Resend HTTP API over the shared async HttpClient, so no SMTP
port is needed on the host.
"""

from typing import Optional

from config import EmailSettings
from infrastructure.email.templated import TemplatedEmailProvider
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"


class ResendProvider(TemplatedEmailProvider):
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._settings = settings
        self._http = http_client

    async def send(
        self, to_email: str, to_name: Optional[str], subject: str, html: str
    ) -> bool:
        if not self._settings.resend_api_key:
            log.error("resend_send_failed", reason="api_key_not_configured")
            return False

        payload = {
            "from": f"{self._settings.email_from_name} <{self._settings.email_from}>",
            "to": [to_email],
            "subject": subject,
            "html": html,
        }
        headers = {
            "Authorization": f"Bearer {self._settings.resend_api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.post(
                _RESEND_API_URL, json=payload, headers=headers
            )
            if response.status_code in (200, 201, 202):
                log.info("email_sent_success", provider="resend", subject=subject)
                return True
            log.error(
                "email_sent_failed",
                provider="resend",
                subject=subject,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False
        except Exception as e:
            log.error(
                "email_send_error",
                provider="resend",
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
