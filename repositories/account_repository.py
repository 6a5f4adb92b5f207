"""MongoDB implementation of AccountRepository.

Every mutation is a single-document write on the `accounts` collection, so
code issuance, failed-attempt counting and verification inherit MongoDB's
per-document atomicity.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from repositories.protocol import DuplicateKey
from schemas.models.account import AccountDoc
from shared.crypto import hash_password
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger

log = get_logger(__name__)

ACCOUNTS_COLLECTION = "accounts"


async def _apply_pending_password(account: AccountDoc) -> None:
    pending = account.take_pending_password()
    if pending is not None:
        # argon2 is CPU-bound; keep it off the event loop
        account.password_hash = await asyncio.to_thread(hash_password, pending)


class MongoAccountRepository:
    def __init__(self, collection: AsyncCollection, clock: Clock = utc_now) -> None:
        self._col = collection
        self._clock = clock

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)
        await self._col.create_index([("account_status", ASCENDING)])
        log.info("account_indexes_ensured", collection=ACCOUNTS_COLLECTION)

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"email": email})
        return AccountDoc.from_mongo(doc)

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]:
        if not ObjectId.is_valid(account_id):
            return None
        doc = await self._col.find_one({"_id": ObjectId(account_id)})
        return AccountDoc.from_mongo(doc)

    async def create(self, account: AccountDoc) -> AccountDoc:
        now = self._clock()
        account.created_at = account.created_at or now
        account.updated_at = now
        await _apply_pending_password(account)
        try:
            result = await self._col.insert_one(account.to_mongo())
        except DuplicateKeyError as e:
            raise DuplicateKey(account.email) from e
        account.id = result.inserted_id
        return account

    async def save(self, account: AccountDoc) -> None:
        if account.id is None:
            raise ValueError("cannot save an account that was never created")
        account.updated_at = self._clock()
        await _apply_pending_password(account)
        await self._col.replace_one({"_id": account.id}, account.to_mongo())

    async def delete(self, account_id: str) -> None:
        if not ObjectId.is_valid(account_id):
            return
        result = await self._col.delete_one({"_id": ObjectId(account_id)})
        log.info(
            "account_deleted", account_id=account_id, deleted=result.deleted_count
        )
