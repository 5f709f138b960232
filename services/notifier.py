"""Notification dispatch with log-and-swallow semantics.

notify()   - await one send; never raises, returns whether it was delivered.
dispatch() - fire-and-forget background send via asyncio.create_task() for
             side effects that must not gate the caller's response.

Background tasks are tracked so drain() can wait for them at shutdown (and
so the event loop does not garbage-collect them mid-flight).
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from infrastructure.email.protocol import EmailProvider, NotificationKind
from schemas.models.account import AccountDoc
from shared.logging import get_logger

log = get_logger(__name__)


class Notifier:
    def __init__(self, provider: EmailProvider) -> None:
        self._provider = provider
        self._pending: set[asyncio.Task] = set()

    async def notify(
        self,
        kind: NotificationKind,
        account: AccountDoc,
        payload: Optional[dict[str, Any]] = None,
    ) -> bool:
        try:
            delivered = await self._provider.send(kind, account, payload or {})
        except Exception as e:
            log.error(
                "notification_failed",
                kind=kind.value,
                account_id=account.account_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        if not delivered:
            log.warning(
                "notification_not_delivered",
                kind=kind.value,
                account_id=account.account_id,
            )
        return bool(delivered)

    def dispatch(
        self,
        kind: NotificationKind,
        account: AccountDoc,
        payload: Optional[dict[str, Any]] = None,
    ) -> asyncio.Task:
        task = asyncio.create_task(self.notify(kind, account, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every in-flight background notification."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
