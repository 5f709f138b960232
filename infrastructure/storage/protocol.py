"""ObjectStore protocol - services depend on this, not the concrete implementation.

Asset references are classified once, at the boundary, into either a
``StoredAsset`` (a key inside this store) or an ``ExternalUrl`` (anything
else, never deleted by this system).
"""

from dataclasses import dataclass
from typing import Protocol, Union


@dataclass(frozen=True)
class StoredAsset:
    key: str


@dataclass(frozen=True)
class ExternalUrl:
    url: str


AssetRef = Union[StoredAsset, ExternalUrl]


class ObjectStore(Protocol):
    def belongs_to_store(self, url: str) -> bool: ...

    def classify(self, url: str) -> AssetRef: ...

    def object_url(self, key: str) -> str: ...

    async def upload(self, key: str, data: bytes, content_type: str) -> str: ...

    async def delete(self, ref: AssetRef) -> bool: ...

    async def ensure_bucket(self) -> None: ...

    async def ping(self) -> bool: ...
