"""Best-effort release of stored assets referenced by an account."""

from __future__ import annotations

from typing import Optional

from infrastructure.storage.protocol import ObjectStore, StoredAsset
from shared.logging import get_logger

log = get_logger(__name__)


async def release_asset(
    store: ObjectStore, url: Optional[str], *, account_id: str
) -> bool:
    """Delete *url* from the store if it is one of ours.

    Foreign URLs and empty references are left alone and count as success.
    Storage errors are logged and reported as False, never raised.
    """
    if not url:
        return True
    ref = store.classify(url)
    if not isinstance(ref, StoredAsset):
        return True
    try:
        released = await store.delete(ref)
    except Exception as e:
        log.error(
            "asset_release_failed",
            account_id=account_id,
            key=ref.key,
            error=str(e),
            error_type=type(e).__name__,
        )
        return False
    if not released:
        log.warning("asset_release_failed", account_id=account_id, key=ref.key)
    return released
