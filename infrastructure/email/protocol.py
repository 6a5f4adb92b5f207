"""EmailProvider protocol — services depend on this, not the concrete implementation.

Providers never raise: delivery problems are logged and reported as False.
"""

from typing import Optional, Protocol


class EmailProvider(Protocol):
    async def send_verification_email(
        self, email: str, name: Optional[str], otp_code: str, locale: str = "fr"
    ) -> bool: ...

    async def send_password_reset_email(
        self, email: str, name: Optional[str], otp_code: str, locale: str = "fr"
    ) -> bool: ...
