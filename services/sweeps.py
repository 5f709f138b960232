"""
Periodic account sweeps.

ExpirationSweep         - daily: demote expired VIPs, warn VIPs expiring soon.
UnverifiedAccountSweep  - hourly: delete stale never-verified registrations
                          and release their stored profile images.

Each run() is a sequential pass over one query result. Failures are isolated
per account: they are logged and counted in the SweepReport, and the pass
carries on with the next account.

There is no locking. Two overlapping runs can process the same account twice
(a second vip-expired notice, a second warning). Notifications are
at-least-once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from infrastructure.email.protocol import NotificationKind
from infrastructure.storage.protocol import ObjectStore
from repositories.account_repository import AccountRepository
from schemas.models.account import AccountDoc, deactivation_patch
from services.assets import release_asset
from services.notifier import Notifier
from shared.datetime_utils import days_left, utcnow
from shared.logging import get_logger, log_with_context

log = get_logger(__name__)


@dataclass
class SweepReport:
    name: str
    selected: int = 0
    processed: int = 0
    notified: int = 0
    failed: int = 0


class ExpirationSweep:
    name = "vip_expiration"

    def __init__(
        self,
        accounts: AccountRepository,
        notifier: Notifier,
        warning_window: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._accounts = accounts
        self._notifier = notifier
        self._warning_window = warning_window
        self._clock = clock

    async def run(self) -> SweepReport:
        now = self._clock()
        report = SweepReport(name=self.name)
        sweep_log = log_with_context(log, sweep=self.name)

        expired = await self._accounts.find_expired_vips(now)
        report.selected += len(expired)
        for account in expired:
            await self._demote(account, report)

        expiring = await self._accounts.find_expiring_vips(
            now, now + self._warning_window
        )
        report.selected += len(expiring)
        for account in expiring:
            await self._warn(account, now, report)

        sweep_log.info(
            "sweep_completed",
            demoted=len(expired),
            warned=len(expiring),
            failed=report.failed,
        )
        return report

    async def _demote(self, account: AccountDoc, report: SweepReport) -> None:
        # Snapshot before the reset wipes plan/duration/expiry
        payload = {
            "plan": account.vip_plan.value,
            "duration": account.duration,
            "expires": account.expires,
        }
        try:
            updated = await self._accounts.update_by_id(account.id, deactivation_patch())
        except Exception as e:
            report.failed += 1
            log.error(
                "vip_demotion_failed",
                account_id=account.account_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        if updated is None:
            log.info("vip_demotion_skipped", account_id=account.account_id, reason="gone")
            return

        report.processed += 1
        log.info("vip_expired", account_id=account.account_id)
        if await self._notifier.notify(NotificationKind.VIP_EXPIRED, updated, payload):
            report.notified += 1
        else:
            report.failed += 1

    async def _warn(self, account: AccountDoc, now: datetime, report: SweepReport) -> None:
        payload = {
            "expires": account.expires,
            "days_left": days_left(account.expires, now),
        }
        report.processed += 1
        if await self._notifier.notify(
            NotificationKind.VIP_EXPIRING_SOON, account, payload
        ):
            report.notified += 1
        else:
            report.failed += 1


class UnverifiedAccountSweep:
    name = "unverified_cleanup"

    def __init__(
        self,
        accounts: AccountRepository,
        store: ObjectStore,
        retention: timedelta = timedelta(hours=6),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._accounts = accounts
        self._store = store
        self._retention = retention
        self._clock = clock

    async def run(self) -> SweepReport:
        cutoff = self._clock() - self._retention
        report = SweepReport(name=self.name)
        sweep_log = log_with_context(log, sweep=self.name)

        stale = await self._accounts.find_stale_unverified(cutoff)
        report.selected = len(stale)
        if not stale:
            sweep_log.info("sweep_completed", deleted=0)
            return report

        for account in stale:
            if not await release_asset(
                self._store, account.profile_image, account_id=account.account_id
            ):
                report.failed += 1

        # Scoped to the selected ids; an account verified meanwhile survives
        deleted = await self._accounts.delete_many(
            [account.id for account in stale], {"email_verified": False}
        )
        report.processed = deleted
        sweep_log.info(
            "sweep_completed",
            selected=len(stale),
            deleted=deleted,
            image_failures=report.failed,
        )
        return report
