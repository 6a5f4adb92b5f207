"""AccountRepository protocol — services depend on this, not the concrete store."""

from typing import Optional, Protocol

from schemas.models.account import AccountDoc


class DuplicateKey(Exception):
    """Raised by create() when an account with the same email already exists."""


class AccountRepository(Protocol):
    async def find_by_email(self, email: str) -> Optional[AccountDoc]: ...

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]: ...

    async def create(self, account: AccountDoc) -> AccountDoc: ...

    async def save(self, account: AccountDoc) -> None: ...

    async def delete(self, account_id: str) -> None: ...
