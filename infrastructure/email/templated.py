"""Shared rendering for HTTP email providers.

Subclasses implement only ``send(to_email, to_name, subject, html)``; this
base turns a one-time code into a localized subject and Jinja2-rendered body.
"""

import os
from abc import ABC, abstractmethod
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from shared.i18n import Translator
from shared.logging import get_logger

log = get_logger(__name__)

_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class TemplatedEmailProvider(ABC):
    def __init__(
        self,
        app_name: str = "Djulah",
        code_ttl_minutes: int = 10,
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._app_name = app_name
        self._code_ttl_minutes = code_ttl_minutes
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    @abstractmethod
    async def send(
        self, to_email: str, to_name: Optional[str], subject: str, html: str
    ) -> bool:
        """Deliver one rendered email; return False instead of raising."""

    def render(
        self,
        template_name: str,
        kind: str,
        name: Optional[str],
        otp_code: str,
        locale: str,
    ) -> tuple[str, str]:
        """Return ``(subject, html)`` for a code email of *kind*."""
        tr = Translator(locale)
        subject = f"{tr.t(f'email.{kind}.subject')} - {self._app_name}"
        html = self._jinja.get_template(template_name).render(
            lang=tr.locale,
            app_name=self._app_name,
            greeting=tr.t("email.greeting", name=name) if name else "",
            intro=tr.t(f"email.{kind}.intro"),
            otp_code=otp_code,
            expiry=tr.t("email.expiry", minutes=self._code_ttl_minutes),
            ignore=tr.t("email.ignore"),
        )
        return subject, html

    async def send_verification_email(
        self, email: str, name: Optional[str], otp_code: str, locale: str = "fr"
    ) -> bool:
        subject, html = self.render(
            "verification.html", "verification", name, otp_code, locale
        )
        return await self.send(email, name, subject, html)

    async def send_password_reset_email(
        self, email: str, name: Optional[str], otp_code: str, locale: str = "fr"
    ) -> bool:
        subject, html = self.render(
            "password_reset.html", "reset", name, otp_code, locale
        )
        return await self.send(email, name, subject, html)
