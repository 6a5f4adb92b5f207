"""
Per-account retry cooldown for code (re)issuance.

Once a purpose has accumulated ``max_failed_attempts`` failed validations,
new codes for it are refused until ``cooldown_seconds`` have passed since the
last issuance (or since account creation when no code was ever issued).
The counter lives on the account document; issuing a code resets it.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from schemas.models.account import AccountDoc, CodePurpose
from shared.datetime_utils import Clock, as_utc, minutes_ceil, utc_now
from shared.logging import get_logger

log = get_logger(__name__)


class CooldownActive(Exception):
    def __init__(self, remaining_minutes: int) -> None:
        super().__init__(f"cooldown active for {remaining_minutes} more minute(s)")
        self.remaining_minutes = remaining_minutes


class CooldownLimiter:
    def __init__(
        self,
        *,
        max_failed_attempts: int = 3,
        cooldown_seconds: int = 900,
        clock: Clock = utc_now,
    ) -> None:
        self._max_failed = max_failed_attempts
        self._cooldown = timedelta(seconds=cooldown_seconds)
        self._clock = clock

    def remaining_minutes(
        self, account: AccountDoc, purpose: CodePurpose
    ) -> Optional[int]:
        """Return whole minutes left in the cooldown, or None if not limited."""
        state = account.codes.get(CodePurpose(purpose).value)
        if state is None or state.failed_attempts < self._max_failed:
            return None
        since = as_utc(state.issued_at) or as_utc(account.created_at)
        if since is None:
            return None
        elapsed = self._clock() - since
        if elapsed >= self._cooldown:
            return None
        return minutes_ceil((self._cooldown - elapsed).total_seconds())

    def check(self, account: AccountDoc, purpose: CodePurpose) -> None:
        """Raise CooldownActive if *account* must wait before a new code."""
        remaining = self.remaining_minutes(account, purpose)
        if remaining is not None:
            log.warning(
                "otp_cooldown_active",
                account_id=account.account_id,
                purpose=CodePurpose(purpose).value,
                remaining_minutes=remaining,
            )
            raise CooldownActive(remaining)
