"""
Stateless bearer tokens: purpose-scoped session tokens and access tokens.

Session tokens gate a single step of a multi-step flow (verify the email of
a fresh registration, reset a forgotten password). They carry
``{id, step, type: "session"}`` and live 24 hours. Access tokens carry
``{id, type: "access"}`` and live 7 days; there is no refresh or
revocation, a token is good until it expires.

Signing is behind the TokenSigner protocol; JwtSigner picks RS256 when a
key pair is configured and HS256 with a shared secret otherwise.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Any, Protocol

import jwt

from config import JWTSettings
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger

log = get_logger(__name__)

TOKEN_TYPE_SESSION = "session"
TOKEN_TYPE_ACCESS = "access"


class SessionPurpose(str, Enum):
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"


class TokenRejected(Exception):
    """Any token failure. Deliberately carries no reason for the caller."""


class TokenSigner(Protocol):
    def encode(self, claims: dict[str, Any]) -> str: ...

    def decode(self, token: str) -> dict[str, Any]: ...


class JwtSigner:
    """PyJWT-backed signer. ``decode`` raises ``jwt.InvalidTokenError``.

    ``decode`` checks the signature and that ``exp`` and ``iat`` are present;
    expiry itself is judged by TokenService against its own clock.
    """

    def __init__(self, settings: JWTSettings) -> None:
        if settings.use_rs256:
            # Support keys provided via env with literal \n sequences
            self._private_key: Any = settings.jwt_private_key.replace("\\n", "\n")
            self._public_key: Any = settings.jwt_public_key.replace("\\n", "\n")
            self._algorithm = "RS256"
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._private_key = self._public_key = settings.jwt_secret
            self._algorithm = "HS256"

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def encode(self, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, self._private_key, algorithm=self._algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        return jwt.decode(
            token,
            self._public_key,
            algorithms=[self._algorithm],
            options={
                "require": ["exp", "iat"],
                "verify_exp": False,
                "verify_iat": False,
            },
        )


class TokenService:
    def __init__(
        self,
        signer: TokenSigner,
        *,
        session_ttl_seconds: int = 86400,
        access_ttl_seconds: int = 604800,
        clock: Clock = utc_now,
    ) -> None:
        self._signer = signer
        self._session_ttl = timedelta(seconds=session_ttl_seconds)
        self._access_ttl = timedelta(seconds=access_ttl_seconds)
        self._clock = clock

    def _claims(self, account_id: str, ttl: timedelta, **extra: str) -> dict:
        now = self._clock()
        return {
            "id": str(account_id),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            **extra,
        }

    def _decode(self, token: str) -> dict[str, Any]:
        if not token:
            raise TokenRejected()
        try:
            claims = self._signer.decode(token)
        except jwt.InvalidTokenError as e:
            log.info("token_decode_failed", error_type=type(e).__name__)
            raise TokenRejected() from e

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or exp <= self._clock().timestamp():
            log.info("token_expired")
            raise TokenRejected()
        return claims

    def issue_session(self, account_id: str, purpose: SessionPurpose) -> str:
        claims = self._claims(
            account_id,
            self._session_ttl,
            step=SessionPurpose(purpose).value,
            type=TOKEN_TYPE_SESSION,
        )
        return self._signer.encode(claims)

    def verify_session(self, token: str, expected_purpose: SessionPurpose) -> str:
        """Return the account id of a valid session token for *expected_purpose*.

        Signature, expiry, token type and step are all checked; every failure
        raises the same TokenRejected.
        """
        claims = self._decode(token)
        account_id = claims.get("id")
        if (
            claims.get("type") != TOKEN_TYPE_SESSION
            or claims.get("step") != SessionPurpose(expected_purpose).value
            or not account_id
        ):
            log.info(
                "session_token_rejected",
                expected_step=SessionPurpose(expected_purpose).value,
            )
            raise TokenRejected()
        return str(account_id)

    def issue_access(self, account_id: str) -> str:
        claims = self._claims(account_id, self._access_ttl, type=TOKEN_TYPE_ACCESS)
        return self._signer.encode(claims)

    def verify_access(self, token: str) -> str:
        """Return the account id of a valid access token."""
        claims = self._decode(token)
        account_id = claims.get("id")
        if claims.get("type") != TOKEN_TYPE_ACCESS or not account_id:
            raise TokenRejected()
        return str(account_id)
