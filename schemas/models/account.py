"""
Account document model.

Maps to the `accounts` MongoDB collection.

One record type covers every kind of account; `account_type` is the
discriminant (only "client" accounts are created by the public API).

One-time codes are embedded per purpose under `codes`, so an issuance, a
failed attempt and a cooldown check all touch the same single document.
The code itself is kept only as a SHA-256 digest.

Passwords are set through `set_password()` and hashed by the repository on
save; `password_hash` is the only password field ever persisted.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, PrivateAttr

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import as_utc


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class CodePurpose(str, Enum):
    REGISTRATION_VERIFICATION = "registration_verification"
    PASSWORD_RESET = "password_reset"


class OneTimeCode(BaseModel):
    """Embedded one-time code state for a single purpose."""

    code_hash: Optional[str] = None
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    failed_attempts: int = Field(default=0, ge=0)

    def is_live(self, now: datetime) -> bool:
        expires_at = as_utc(self.expires_at)
        return bool(self.code_hash) and expires_at is not None and now < expires_at

    def clear(self) -> None:
        self.code_hash = None
        self.expires_at = None
        self.failed_attempts = 0


class AccountDoc(MongoBaseModel):
    """Document model for the `accounts` collection."""

    account_type: str = "client"
    email: str
    password_hash: Optional[str] = None
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    avatar_public_id: Optional[str] = None
    is_verified: bool = False
    account_status: AccountStatus = AccountStatus.ACTIVE.value
    codes: dict[str, OneTimeCode] = Field(default_factory=dict)
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    _pending_password: Optional[str] = PrivateAttr(default=None)

    @property
    def account_id(self) -> str:
        return str(self.id) if self.id is not None else ""

    def set_password(self, plain_password: str) -> None:
        """Stage a new password; it is hashed when the account is saved."""
        self._pending_password = plain_password

    def take_pending_password(self) -> Optional[str]:
        """Return and forget the staged password, if any."""
        pending, self._pending_password = self._pending_password, None
        return pending

    def code_for(self, purpose: CodePurpose | str) -> OneTimeCode:
        """Return the code state for *purpose*, creating an empty one."""
        key = CodePurpose(purpose).value
        if key not in self.codes:
            self.codes[key] = OneTimeCode()
        return self.codes[key]
