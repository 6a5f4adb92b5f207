"""Unit tests for one-time code issuance/validation and the cooldown limiter."""

from datetime import timedelta

import pytest

from schemas.models.account import AccountDoc, CodePurpose
from services.otp_service import InvalidOrExpiredCode, OtpService
from services.rate_limiter import CooldownActive, CooldownLimiter
from shared.crypto import hash_code

REG = CodePurpose.REGISTRATION_VERIFICATION
RESET = CodePurpose.PASSWORD_RESET


@pytest.fixture
def account(clock):
    return AccountDoc(email="alice@example.com", name="Alice", created_at=clock())


@pytest.fixture
def otp(clock):
    return OtpService(clock=clock)


@pytest.fixture
def limiter(clock):
    return CooldownLimiter(clock=clock)


def _fail(otp, account, purpose, times):
    for _ in range(times):
        with pytest.raises(InvalidOrExpiredCode):
            otp.validate(account, purpose, "not-the-code")


# ── OtpService ────────────────────────────────────────────────────────────────


class TestOtpIssue:
    def test_returns_six_digits(self, otp, account):
        code = otp.issue(account, REG)
        assert len(code) == 6 and code.isdigit()

    def test_stores_only_digest(self, otp, account, clock):
        code = otp.issue(account, REG)
        state = account.codes["registration_verification"]
        assert state.code_hash == hash_code(code)
        assert code not in str(account.to_mongo())
        assert state.issued_at == clock.now
        assert state.expires_at == clock.now + timedelta(minutes=10)

    def test_resets_failed_attempts(self, otp, account):
        otp.issue(account, REG)
        _fail(otp, account, REG, 2)
        otp.issue(account, REG)
        assert account.codes["registration_verification"].failed_attempts == 0

    def test_purposes_are_independent(self, otp, account):
        reg_code = otp.issue(account, REG)
        otp.issue(account, RESET)
        otp.validate(account, REG, reg_code)
        assert account.codes["password_reset"].code_hash is not None


class TestOtpValidate:
    def test_validates_exactly_once(self, otp, account):
        code = otp.issue(account, REG)
        otp.validate(account, REG, code)
        with pytest.raises(InvalidOrExpiredCode):
            otp.validate(account, REG, code)

    def test_success_clears_state(self, otp, account):
        code = otp.issue(account, REG)
        otp.validate(account, REG, code)
        state = account.codes["registration_verification"]
        assert state.code_hash is None
        assert state.expires_at is None
        assert state.failed_attempts == 0

    def test_expired_code_rejected(self, otp, account, clock):
        code = otp.issue(account, REG)
        clock.advance(minutes=10, seconds=1)
        with pytest.raises(InvalidOrExpiredCode):
            otp.validate(account, REG, code)

    def test_just_before_expiry_accepted(self, otp, account, clock):
        code = otp.issue(account, REG)
        clock.advance(minutes=9, seconds=59)
        otp.validate(account, REG, code)

    def test_reissue_invalidates_previous(self, otp, account):
        first = otp.issue(account, REG)
        second = otp.issue(account, REG)
        if first != second:
            with pytest.raises(InvalidOrExpiredCode):
                otp.validate(account, REG, first)
        otp.validate(account, REG, second)

    def test_wrong_code_counts_failure(self, otp, account):
        otp.issue(account, REG)
        _fail(otp, account, REG, 2)
        assert account.codes["registration_verification"].failed_attempts == 2

    def test_no_live_code_counts_failure(self, otp, account):
        _fail(otp, account, REG, 1)
        assert account.codes["registration_verification"].failed_attempts == 1

    def test_empty_submission_rejected(self, otp, account):
        otp.issue(account, REG)
        with pytest.raises(InvalidOrExpiredCode):
            otp.validate(account, REG, "")

    def test_correct_code_refused_after_three_misses(self, otp, account):
        code = otp.issue(account, REG)
        _fail(otp, account, REG, 3)
        with pytest.raises(InvalidOrExpiredCode):
            otp.validate(account, REG, code)
        assert account.codes["registration_verification"].failed_attempts == 4

    def test_two_misses_still_allow_correct_code(self, otp, account):
        code = otp.issue(account, REG)
        _fail(otp, account, REG, 2)
        otp.validate(account, REG, code)

    def test_new_code_accepted_after_lockout(self, otp, account):
        otp.issue(account, REG)
        _fail(otp, account, REG, 3)
        fresh = otp.issue(account, REG)
        otp.validate(account, REG, fresh)

    def test_custom_attempt_cap(self, clock, account):
        otp = OtpService(max_failed_attempts=1, clock=clock)
        code = otp.issue(account, REG)
        _fail(otp, account, REG, 1)
        with pytest.raises(InvalidOrExpiredCode):
            otp.validate(account, REG, code)

    def test_custom_length(self, clock, account):
        assert len(OtpService(length=8, clock=clock).issue(account, REG)) == 8


# ── CooldownLimiter ───────────────────────────────────────────────────────────


class TestCooldownLimiter:
    def test_no_state_not_limited(self, limiter, account):
        assert limiter.remaining_minutes(account, REG) is None
        limiter.check(account, REG)

    def test_below_threshold_not_limited(self, otp, limiter, account):
        otp.issue(account, REG)
        _fail(otp, account, REG, 2)
        limiter.check(account, REG)

    def test_three_failures_trigger_cooldown(self, otp, limiter, account):
        otp.issue(account, REG)
        _fail(otp, account, REG, 3)
        with pytest.raises(CooldownActive) as exc_info:
            limiter.check(account, REG)
        assert exc_info.value.remaining_minutes == 15

    def test_remaining_minutes_rounds_up(self, otp, limiter, account, clock):
        otp.issue(account, REG)
        _fail(otp, account, REG, 3)
        clock.advance(minutes=10, seconds=30)
        assert limiter.remaining_minutes(account, REG) == 5

    def test_window_elapsed_allows_again(self, otp, limiter, account, clock):
        otp.issue(account, REG)
        _fail(otp, account, REG, 3)
        clock.advance(minutes=15)
        limiter.check(account, REG)

    def test_falls_back_to_created_at(self, otp, limiter, account, clock):
        # Failures without any issuance: the window starts at account creation
        _fail(otp, account, REG, 3)
        clock.advance(minutes=5)
        assert limiter.remaining_minutes(account, REG) == 10

    def test_purpose_isolated(self, otp, limiter, account):
        otp.issue(account, REG)
        _fail(otp, account, REG, 3)
        limiter.check(account, RESET)
