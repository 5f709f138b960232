"""
Account repository over the `users` collection.

Every mutation is scoped to a single document (or, for the bulk delete, to an
explicit list of ids) and relies on MongoDB's per-document atomicity; there are
no cross-document transactions.

Query helpers encode the lifecycle predicates so services never build raw
filters themselves.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.account import AccountDoc
from shared.logging import get_logger

log = get_logger(__name__)


class AccountRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def ensure_indexes(self) -> None:
        try:
            await self._col.create_index([("email", ASCENDING)], unique=True)
            # Expiration sweep: is_vip + expires range scans
            await self._col.create_index([("is_vip", ASCENDING), ("expires", ASCENDING)])
            # Unverified sweep: email_verified + created_at cutoff
            await self._col.create_index(
                [("email_verified", ASCENDING), ("created_at", ASCENDING)]
            )
            await self._col.create_index([("activation", ASCENDING)])
        except Exception as e:
            log.error(
                "account_index_creation_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

    # ── Reads ────────────────────────────────────────────────────────────────

    async def find_by_id(self, account_id: ObjectId) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"_id": account_id})
        return AccountDoc.from_mongo(doc)

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"email": email})
        return AccountDoc.from_mongo(doc)

    async def find(self, query: dict[str, Any]) -> list[AccountDoc]:
        cursor = self._col.find(query)
        return AccountDoc.from_mongo_many([doc async for doc in cursor])

    async def find_expired_vips(self, now: datetime) -> list[AccountDoc]:
        """VIPs whose subscription ended strictly before *now*."""
        return await self.find({"is_vip": True, "expires": {"$lt": now}})

    async def find_expiring_vips(self, now: datetime, until: datetime) -> list[AccountDoc]:
        """VIPs expiring in the open interval (*now*, *until*)."""
        return await self.find(
            {"is_vip": True, "expires": {"$gt": now, "$lt": until}}
        )

    async def find_stale_unverified(self, cutoff: datetime) -> list[AccountDoc]:
        """Never-verified accounts created strictly before *cutoff*."""
        return await self.find({"email_verified": False, "created_at": {"$lt": cutoff}})

    async def find_paid_activations(
        self, start: datetime, end: datetime
    ) -> list[AccountDoc]:
        return await self.find(
            {"activation": {"$gte": start, "$lt": end}, "payment": {"$gt": 0}}
        )

    # ── Writes ───────────────────────────────────────────────────────────────

    async def update_by_id(
        self,
        account_id: ObjectId,
        set_fields: dict[str, Any],
        unset_fields: Iterable[str] = (),
    ) -> Optional[AccountDoc]:
        """Apply a single-document patch and return the updated account.

        Returns None when the account no longer exists.
        """
        update: dict[str, Any] = {"$set": set_fields}
        unset = {field: "" for field in unset_fields}
        if unset:
            update["$unset"] = unset
        doc = await self._col.find_one_and_update(
            {"_id": account_id},
            update,
            return_document=ReturnDocument.AFTER,
        )
        return AccountDoc.from_mongo(doc)

    async def delete_by_id(self, account_id: ObjectId) -> bool:
        result = await self._col.delete_one({"_id": account_id})
        return result.deleted_count == 1

    async def delete_many(
        self, account_ids: Iterable[ObjectId], extra_filter: Optional[dict] = None
    ) -> int:
        """Delete the listed accounts that still match *extra_filter*."""
        ids = list(account_ids)
        if not ids:
            return 0
        query: dict[str, Any] = {"_id": {"$in": ids}}
        if extra_filter:
            query.update(extra_filter)
        result = await self._col.delete_many(query)
        return result.deleted_count
