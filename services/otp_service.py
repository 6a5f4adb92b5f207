"""
One-time code issuance and validation.

Codes are embedded in the account document, one per CodePurpose. Issuing
replaces whatever was there, so at most one code per purpose is ever live.
The service mutates the account in memory; persisting it is the caller's
job.

Once a code has seen ``max_failed_attempts`` wrong submissions it is burnt:
even the right digits are refused until a new code is issued.
"""

from __future__ import annotations

from datetime import timedelta

from schemas.models.account import AccountDoc, CodePurpose
from shared.crypto import code_matches, hash_code
from shared.datetime_utils import Clock, utc_now
from shared.generators import generate_otp_code
from shared.logging import get_logger

log = get_logger(__name__)


class InvalidOrExpiredCode(Exception):
    """Raised for a missing, expired or mismatched code alike."""


class OtpService:
    def __init__(
        self,
        *,
        length: int = 6,
        ttl_seconds: int = 600,
        max_failed_attempts: int = 3,
        clock: Clock = utc_now,
    ) -> None:
        self._length = length
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_failed = max_failed_attempts
        self._clock = clock

    def issue(self, account: AccountDoc, purpose: CodePurpose) -> str:
        """Issue a fresh code for *purpose* and return it in plaintext."""
        now = self._clock()
        code = generate_otp_code(self._length)
        state = account.code_for(purpose)
        state.code_hash = hash_code(code)
        state.issued_at = now
        state.expires_at = now + self._ttl
        state.failed_attempts = 0
        log.info(
            "otp_issued",
            account_id=account.account_id,
            purpose=CodePurpose(purpose).value,
        )
        return code

    def validate(self, account: AccountDoc, purpose: CodePurpose, submitted: str) -> None:
        """Consume the live code for *purpose* if *submitted* matches it.

        Raises:
            InvalidOrExpiredCode: no live code, a different one, or a code
                that already took too many wrong guesses. The failed-attempt
                counter is incremented in every case.
        """
        state = account.code_for(purpose)
        now = self._clock()
        if (
            not submitted
            or state.failed_attempts >= self._max_failed
            or not state.is_live(now)
            or not code_matches(submitted, state.code_hash)
        ):
            state.failed_attempts += 1
            log.warning(
                "otp_validation_failed",
                account_id=account.account_id,
                purpose=CodePurpose(purpose).value,
                failed_attempts=state.failed_attempts,
            )
            raise InvalidOrExpiredCode()

        state.clear()
        log.info(
            "otp_validated",
            account_id=account.account_id,
            purpose=CodePurpose(purpose).value,
        )
