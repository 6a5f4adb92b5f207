"""
Unit tests for the shared/ utility modules.

Covers:
- shared.validators      (normalize_identifier, normalize_email,
                          split_full_name, is_long_enough)
- shared.generators      (generate_otp_code)
- shared.datetime_utils  (as_utc, minutes_ceil)
- shared.ip_utils        (get_client_ip)
- shared.crypto          (hash_password, verify_password, hash_code,
                          code_matches)
- shared.i18n            (normalize_locale, interpolate, Translator)
- shared.logging         (redact_sensitive_fields)
"""

from __future__ import annotations

import hashlib
import string
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from shared.crypto import code_matches, hash_code, hash_password, verify_password
from shared.datetime_utils import as_utc, minutes_ceil
from shared.generators import generate_otp_code
from shared.i18n import MESSAGES, Translator, interpolate, normalize_locale
from shared.ip_utils import get_client_ip
from shared.logging import redact_sensitive_fields
from shared.validators import (
    LAST_NAME_PLACEHOLDER,
    is_long_enough,
    normalize_email,
    normalize_identifier,
    split_full_name,
)


# ---------------------------------------------------------------------------
# shared.validators
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  alice  ", "alice"),
        ("", None),
        ("   ", None),
        (None, None),
        (123, None),
    ],
    ids=["trimmed", "empty", "blank", "none", "non_string"],
)
def test_normalize_identifier(value, expected):
    assert normalize_identifier(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  Alice@Example.COM ", "alice@example.com"),
        ("bob@example.com", "bob@example.com"),
        ("  ", None),
        (None, None),
    ],
    ids=["trim_and_lower", "already_normal", "blank", "none"],
)
def test_normalize_email(value, expected):
    assert normalize_email(value) == expected


@pytest.mark.parametrize(
    "full_name, expected",
    [
        ("Alice Nguyen", ("Alice", "Nguyen")),
        ("  Alice   van  Nguyen ", ("Alice", "van Nguyen")),
        ("Alice", ("Alice", LAST_NAME_PLACEHOLDER)),
        ("   ", (None, None)),
        (None, (None, None)),
    ],
    ids=["two_words", "extra_whitespace", "single_word", "blank", "none"],
)
def test_split_full_name(full_name, expected):
    assert split_full_name(full_name) == expected


@pytest.mark.parametrize(
    "password, expected",
    [("1234567", False), ("12345678", True), ("a much longer password", True)],
    ids=["too_short", "exact_minimum", "long"],
)
def test_is_long_enough(password, expected):
    assert is_long_enough(password) is expected


def test_is_long_enough_custom_minimum():
    assert is_long_enough("abc", min_length=3) is True
    assert is_long_enough("ab", min_length=3) is False


# ---------------------------------------------------------------------------
# shared.generators
# ---------------------------------------------------------------------------


class TestGenerateOtpCode:
    @pytest.mark.parametrize("length", [4, 6, 8])
    def test_length(self, length):
        assert len(generate_otp_code(length)) == length

    def test_default_length_is_6(self):
        assert len(generate_otp_code()) == 6

    def test_only_digits(self):
        code = generate_otp_code()
        assert all(c in string.digits for c in code)

    def test_produces_variety(self):
        assert len({generate_otp_code() for _ in range(50)}) > 1


# ---------------------------------------------------------------------------
# shared.datetime_utils
# ---------------------------------------------------------------------------


class TestAsUtc:
    def test_none_passes_through(self):
        assert as_utc(None) is None

    def test_naive_assumed_utc(self):
        naive = datetime(2024, 1, 15, 12, 0, 0)
        assert as_utc(naive) == datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def test_other_offset_converted(self):
        plus_two = datetime(2024, 1, 15, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        result = as_utc(plus_two)
        assert result.tzinfo == timezone.utc
        assert result.hour == 12


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, 1), (1, 1), (60, 1), (61, 2), (899, 15), (900, 15)],
)
def test_minutes_ceil(seconds, expected):
    assert minutes_ceil(seconds) == expected


# ---------------------------------------------------------------------------
# shared.ip_utils — get_client_ip
# ---------------------------------------------------------------------------


def _make_request(headers: dict, client_host: str) -> MagicMock:
    req = MagicMock()
    req.headers = headers
    req.client.host = client_host
    return req


@pytest.mark.parametrize(
    "headers, client_host, expected_ip",
    [
        (
            {"CF-Connecting-IP": "1.2.3.4", "X-Real-IP": "9.9.9.9"},
            "10.0.0.1",
            "1.2.3.4",
        ),
        ({"True-Client-IP": "5.6.7.8"}, "10.0.0.1", "5.6.7.8"),
        ({"X-Forwarded-For": "11.22.33.44, 99.99.99.99"}, "10.0.0.1", "11.22.33.44"),
        ({"X-Real-IP": "55.66.77.88"}, "10.0.0.1", "55.66.77.88"),
        ({"X-Forwarded-For": " , "}, "10.0.0.1", "10.0.0.1"),
        ({}, "192.168.1.50", "192.168.1.50"),
    ],
    ids=[
        "cloudflare",
        "true_client_ip",
        "x_forwarded_for_multi",
        "x_real_ip",
        "empty_forwarded_for",
        "fallback",
    ],
)
def test_get_client_ip(headers, client_host, expected_ip):
    assert get_client_ip(_make_request(headers, client_host)) == expected_ip


def test_get_client_ip_no_client_returns_empty():
    req = MagicMock()
    req.headers = {}
    req.client = None
    assert get_client_ip(req) == ""


# ---------------------------------------------------------------------------
# shared.crypto
# ---------------------------------------------------------------------------


class TestHashPassword:
    def test_returns_string(self):
        assert isinstance(hash_password("secret"), str)

    def test_differs_from_input(self):
        assert hash_password("secret") != "secret"

    def test_unique_salts(self):
        # argon2 produces a new salt each call
        assert hash_password("same") != hash_password("same")


class TestVerifyPassword:
    @pytest.mark.parametrize(
        "candidate, expected",
        [("correct_password", True), ("wrong_password", False)],
        ids=["correct", "wrong"],
    )
    def test_verify(self, candidate, expected):
        h = hash_password("correct_password")
        assert verify_password(candidate, h) is expected

    def test_invalid_hash_returns_false(self):
        assert verify_password("any", "not-a-valid-hash") is False

    def test_empty_hash_returns_false(self):
        assert verify_password("any", "") is False


class TestCodeHashing:
    def test_hash_code_known_value(self):
        assert hash_code("123456") == hashlib.sha256(b"123456").hexdigest()

    def test_matches_same_code(self):
        assert code_matches("042519", hash_code("042519")) is True

    def test_rejects_other_code(self):
        assert code_matches("042518", hash_code("042519")) is False

    def test_leading_zero_is_significant(self):
        assert code_matches("12345", hash_code("012345")) is False


# ---------------------------------------------------------------------------
# shared.i18n
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "header, expected",
    [
        ("en-US,en;q=0.9", "en"),
        ("EN", "en"),
        ("fr-FR", "fr"),
        ("de-DE", "fr"),
        (None, "fr"),
        ("", "fr"),
    ],
    ids=["en_us", "upper_en", "fr_fr", "unsupported", "missing", "empty"],
)
def test_normalize_locale(header, expected):
    assert normalize_locale(header) == expected


def test_normalize_locale_custom_default():
    assert normalize_locale("de", default="en") == "en"
    assert normalize_locale(None, default="xx") == "fr"


def test_interpolate_replaces_known_and_blanks_missing():
    assert interpolate("Try in {minutes} min{suffix}", {"minutes": 4}) == "Try in 4 min"


class TestTranslator:
    def test_english_message(self):
        assert (
            Translator("en").t("login.invalid_credentials")
            == "Invalid email or password."
        )

    def test_french_message(self):
        assert Translator("fr").t("verify.invalid_or_expired") == "Code invalide ou expiré."

    def test_params_interpolated(self):
        msg = Translator("en").t("resend.too_many_requests", minutes=7)
        assert msg == "Too many attempts. Try again in 7 min."

    def test_unknown_key_returns_key(self):
        assert Translator("en").t("no.such.key") == "no.such.key"

    def test_unsupported_locale_falls_back_to_french(self):
        assert Translator("de").locale == "fr"

    def test_from_header(self):
        assert Translator.from_header("en-GB", "fr").locale == "en"

    def test_catalogs_have_same_keys(self):
        assert set(MESSAGES["en"]) == set(MESSAGES["fr"])


# ---------------------------------------------------------------------------
# shared.logging
# ---------------------------------------------------------------------------


class TestRedactSensitiveFields:
    def test_redacts_credentials(self):
        event = {
            "event": "login_attempt",
            "password": "hunter2",
            "session_token": "abc",
            "otp_code": "123456",
            "account_id": "42",
        }
        result = redact_sensitive_fields(None, "info", event)
        assert result["password"] == "***REDACTED***"
        assert result["session_token"] == "***REDACTED***"
        assert result["otp_code"] == "***REDACTED***"
        assert result["account_id"] == "42"
        assert result["event"] == "login_attempt"
