"""
Shared fakes and fixtures for unit and integration tests.

InMemoryAccountRepository stands in for MongoDB: it stores deep copies so a
caller only sees changes it explicitly saved, the way a real round trip
through the database behaves.
"""

from datetime import timedelta
from typing import Optional

import pytest
from bson import ObjectId

from config import JWTSettings
from infrastructure.media.protocol import StoredImage
from repositories.protocol import DuplicateKey
from schemas.models.account import AccountDoc
from services.auth_service import AuthService
from services.otp_service import OtpService
from services.rate_limiter import CooldownLimiter
from services.token_service import JwtSigner, TokenService
from shared.crypto import hash_password
from shared.datetime_utils import utc_now

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


class FakeClock:
    """Controllable clock, starting at the current time."""

    def __init__(self, start=None) -> None:
        self.now = start or utc_now()

    def __call__(self):
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class InMemoryAccountRepository:
    def __init__(self, clock=utc_now) -> None:
        self.docs: dict[str, AccountDoc] = {}
        self.deleted: list[str] = []
        self._clock = clock

    def _store(self, account: AccountDoc) -> None:
        pending = account.take_pending_password()
        if pending is not None:
            account.password_hash = hash_password(pending)
        self.docs[account.account_id] = account.model_copy(deep=True)

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        for doc in self.docs.values():
            if doc.email == email:
                return doc.model_copy(deep=True)
        return None

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]:
        doc = self.docs.get(account_id)
        return doc.model_copy(deep=True) if doc is not None else None

    async def create(self, account: AccountDoc) -> AccountDoc:
        if any(doc.email == account.email for doc in self.docs.values()):
            raise DuplicateKey(account.email)
        now = self._clock()
        account.created_at = account.created_at or now
        account.updated_at = now
        account.id = ObjectId()
        self._store(account)
        return account

    async def save(self, account: AccountDoc) -> None:
        if account.id is None:
            raise ValueError("cannot save an account that was never created")
        account.updated_at = self._clock()
        self._store(account)

    async def delete(self, account_id: str) -> None:
        self.docs.pop(account_id, None)
        self.deleted.append(account_id)


class FakeImageStore:
    """Keeps uploads in memory; can be told to fail."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.uploads: list[bytes] = []
        self.deleted: list[str] = []

    async def upload(self, data: bytes) -> StoredImage:
        if self.error is not None:
            raise self.error
        self.uploads.append(data)
        public_id = f"avatars/{len(self.uploads)}"
        return StoredImage(
            url=f"https://images.test/{public_id}.png", public_id=public_id, size=len(data)
        )

    async def delete(self, public_id: str) -> bool:
        self.deleted.append(public_id)
        return True


class RecordingEmailProvider:
    """Records every email instead of sending; can be told to fail."""

    def __init__(self, result: bool = True, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.sent: list[dict] = []

    async def _record(self, kind, email, name, otp_code, locale) -> bool:
        self.sent.append(
            {"kind": kind, "email": email, "name": name, "code": otp_code, "locale": locale}
        )
        if self.error is not None:
            raise self.error
        return self.result

    async def send_verification_email(self, email, name, otp_code, locale="fr"):
        return await self._record("verification", email, name, otp_code, locale)

    async def send_password_reset_email(self, email, name, otp_code, locale="fr"):
        return await self._record("password_reset", email, name, otp_code, locale)

    def last_code(self, kind: Optional[str] = None) -> str:
        mails = [m for m in self.sent if kind is None or m["kind"] == kind]
        return mails[-1]["code"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def accounts(clock):
    return InMemoryAccountRepository(clock)


@pytest.fixture
def email_provider():
    return RecordingEmailProvider()


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def jwt_settings():
    return JWTSettings(jwt_secret=TEST_JWT_SECRET, jwt_private_key="", jwt_public_key="")


@pytest.fixture
def token_service(jwt_settings, clock):
    return TokenService(JwtSigner(jwt_settings), clock=clock)


@pytest.fixture
def auth_service(accounts, token_service, email_provider, image_store, clock):
    return AuthService(
        accounts,
        token_service,
        OtpService(clock=clock),
        CooldownLimiter(clock=clock),
        email_provider,
        images=image_store,
        default_locale="en",
        clock=clock,
    )
