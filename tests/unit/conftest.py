"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv().

Also provides in-memory stand-ins for the three external collaborators
(account repository, object store, email provider).
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Optional

import pytest
from bson import ObjectId

from infrastructure.storage.protocol import AssetRef, ExternalUrl, StoredAsset
from schemas.models.account import AccountDoc
from services.notifier import Notifier


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


NOW = datetime(2024, 2, 1, 0, 0, tzinfo=timezone.utc)


class FakeAccountRepository:
    """Dict-backed AccountRepository with the same query semantics."""

    def __init__(self) -> None:
        self.docs: dict[ObjectId, dict] = {}
        self.updates: list[tuple[ObjectId, dict]] = []
        self.deleted_batches: list[list[ObjectId]] = []
        self.fail_update_for: set[ObjectId] = set()

    def add(self, **fields: Any) -> AccountDoc:
        fields.setdefault("_id", ObjectId())
        fields.setdefault("email", f"{fields['_id']}@example.com")
        fields.setdefault("created_at", NOW)
        doc = AccountDoc.model_validate(fields).to_mongo()
        self.docs[doc["_id"]] = doc
        return AccountDoc.from_mongo(copy.deepcopy(doc))

    def get(self, account_id: ObjectId) -> Optional[AccountDoc]:
        return AccountDoc.from_mongo(copy.deepcopy(self.docs.get(account_id)))

    def _select(self, predicate) -> list[AccountDoc]:
        return [
            AccountDoc.from_mongo(copy.deepcopy(doc))
            for doc in self.docs.values()
            if predicate(doc)
        ]

    async def find_by_id(self, account_id):
        return self.get(account_id)

    async def find_by_email(self, email):
        for doc in self.docs.values():
            if doc["email"] == email:
                return AccountDoc.from_mongo(copy.deepcopy(doc))
        return None

    async def find_expired_vips(self, now):
        return self._select(
            lambda d: d["is_vip"] and d["expires"] is not None and d["expires"] < now
        )

    async def find_expiring_vips(self, now, until):
        return self._select(
            lambda d: d["is_vip"]
            and d["expires"] is not None
            and now < d["expires"] < until
        )

    async def find_stale_unverified(self, cutoff):
        return self._select(
            lambda d: not d["email_verified"] and d["created_at"] < cutoff
        )

    async def find_paid_activations(self, start, end):
        return self._select(
            lambda d: d["activation"] is not None
            and start <= d["activation"] < end
            and d["payment"] > 0
        )

    async def update_by_id(self, account_id, set_fields, unset_fields=()):
        if account_id in self.fail_update_for:
            raise RuntimeError("write conflict")
        doc = self.docs.get(account_id)
        if doc is None:
            return None
        self.updates.append((account_id, dict(set_fields)))
        doc.update(copy.deepcopy(set_fields))
        for field in unset_fields:
            doc.pop(field, None)
        return AccountDoc.from_mongo(copy.deepcopy(doc))

    async def delete_by_id(self, account_id):
        return self.docs.pop(account_id, None) is not None

    async def delete_many(self, account_ids, extra_filter=None):
        ids = list(account_ids)
        self.deleted_batches.append(ids)
        deleted = 0
        for account_id in ids:
            doc = self.docs.get(account_id)
            if doc is None:
                continue
            if extra_filter and any(doc.get(k) != v for k, v in extra_filter.items()):
                continue
            del self.docs[account_id]
            deleted += 1
        return deleted


class FakeObjectStore:
    """Treats ``store://<key>`` URLs as its own namespace."""

    PREFIX = "store://"

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_delete = False
        self.fail_upload = False
        self.healthy = True

    def belongs_to_store(self, url: str) -> bool:
        return bool(url) and url.startswith(self.PREFIX)

    def classify(self, url: str) -> AssetRef:
        if self.belongs_to_store(url):
            return StoredAsset(url[len(self.PREFIX):])
        return ExternalUrl(url)

    def object_url(self, key: str) -> str:
        return f"{self.PREFIX}{key}"

    async def upload(self, key, data, content_type):
        if self.fail_upload:
            raise ConnectionError("store offline")
        self.objects[key] = data
        return self.object_url(key)

    async def delete(self, ref):
        if isinstance(ref, ExternalUrl):
            return True
        self.deleted.append(ref.key)
        if self.fail_delete:
            raise ConnectionError("store offline")
        self.objects.pop(ref.key, None)
        return True

    async def ensure_bucket(self):
        return None

    async def ping(self):
        return self.healthy


class RecordingEmailProvider:
    def __init__(self, result: bool = True) -> None:
        self.sent: list[tuple[Any, AccountDoc, dict]] = []
        self.result = result
        self.raise_for: set = set()

    async def send(self, kind, account, payload):
        self.sent.append((kind, account, payload))
        if kind in self.raise_for:
            raise RuntimeError("smtp down")
        return self.result

    def kinds(self) -> list:
        return [kind for kind, _, _ in self.sent]


@pytest.fixture
def repo() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def email_provider() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest.fixture
def notifier(email_provider) -> Notifier:
    return Notifier(email_provider)


@pytest.fixture
def clock():
    return lambda: NOW
