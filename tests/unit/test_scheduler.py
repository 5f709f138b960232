"""Unit tests for services.scheduler.Scheduler."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from services.scheduler import Scheduler

UTC = timezone.utc
NOW = datetime(2024, 2, 1, 15, 30, tzinfo=UTC)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeSleep:
    """Advances the clock and returns *limit* times, then parks until cancelled.

    ``early`` maps a call index to seconds by which that wake-up falls short
    of the requested delay.
    """

    def __init__(self, clock: FakeClock, limit: int, early=None) -> None:
        self.clock = clock
        self.delays: list[float] = []
        self.limit = limit
        self.early = early or {}
        self.exhausted = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        index = len(self.delays)
        self.delays.append(delay)
        if len(self.delays) > self.limit:
            self.exhausted.set()
            await asyncio.Event().wait()
        self.clock.now += timedelta(seconds=delay - self.early.get(index, 0))


def _make(limit=3, start=NOW, early=None):
    clock = FakeClock(start)
    sleep = FakeSleep(clock, limit, early)
    return Scheduler(clock=clock, sleep=sleep), sleep


class TestRegistration:
    def test_add_job(self):
        scheduler, _ = _make()
        job = scheduler.add_job("hourly", lambda: None, timedelta(hours=1))
        assert scheduler.jobs == {"hourly": job}
        assert job.runs == 0

    def test_duplicate_name_rejected(self):
        scheduler, _ = _make()
        scheduler.add_job("hourly", lambda: None, timedelta(hours=1))
        with pytest.raises(RuntimeError):
            scheduler.add_job("hourly", lambda: None, timedelta(hours=2))

    @pytest.mark.parametrize("interval", [timedelta(0), timedelta(seconds=-1)])
    def test_non_positive_interval_rejected(self, interval):
        scheduler, _ = _make()
        with pytest.raises(ValueError):
            scheduler.add_job("bad", lambda: None, interval)


class TestRunJob:
    async def test_returns_result(self):
        scheduler, _ = _make()

        async def work():
            return "done"

        scheduler.add_job("work", work, timedelta(hours=1))
        assert await scheduler.run_job("work") == "done"
        assert scheduler.jobs["work"].runs == 1

    async def test_failure_is_logged_not_raised(self):
        scheduler, _ = _make()

        async def boom():
            raise RuntimeError("db down")

        scheduler.add_job("boom", boom, timedelta(hours=1))
        assert await scheduler.run_job("boom") is None
        job = scheduler.jobs["boom"]
        assert (job.runs, job.failures) == (1, 1)


class TestLoop:
    async def test_runs_repeatedly_on_aligned_boundaries(self):
        scheduler, sleep = _make(limit=3)
        calls = []

        async def work():
            calls.append(1)

        scheduler.add_job("hourly", work, timedelta(hours=1))
        scheduler.start()
        assert scheduler.running is True

        await asyncio.wait_for(sleep.exhausted.wait(), timeout=1)
        await scheduler.stop()

        assert len(calls) == 3
        # 15:30 → 16:00
        assert sleep.delays[0] == 1800
        assert scheduler.running is False

    async def test_daily_job_waits_until_midnight(self):
        scheduler, sleep = _make(limit=0)

        async def work():
            return None

        scheduler.add_job("daily", work, timedelta(days=1))
        scheduler.start()
        await asyncio.wait_for(sleep.exhausted.wait(), timeout=1)
        await scheduler.stop()

        assert sleep.delays == [8.5 * 3600]
        assert scheduler.jobs["daily"].runs == 0

    async def test_keeps_running_after_failures(self):
        scheduler, sleep = _make(limit=3)

        async def boom():
            raise RuntimeError("transient")

        scheduler.add_job("boom", boom, timedelta(hours=1))
        scheduler.start()
        await asyncio.wait_for(sleep.exhausted.wait(), timeout=1)
        await scheduler.stop()

        job = scheduler.jobs["boom"]
        assert (job.runs, job.failures) == (3, 3)

    async def test_start_twice_rejected(self):
        scheduler, sleep = _make(limit=0)
        scheduler.add_job("hourly", lambda: None, timedelta(hours=1))
        scheduler.start()
        with pytest.raises(RuntimeError):
            scheduler.start()
        await scheduler.stop()

    async def test_stop_without_start(self):
        scheduler, _ = _make()
        await scheduler.stop()
        assert scheduler.running is False

    async def test_early_wakeup_does_not_run_twice(self):
        # First wake-up lands at 23:59:59.999, one millisecond short of midnight
        scheduler, sleep = _make(
            limit=2, start=datetime(2024, 2, 1, 23, 0, tzinfo=UTC), early={0: 0.001}
        )
        calls = []

        async def work():
            calls.append(1)

        scheduler.add_job("daily", work, timedelta(days=1))
        scheduler.start()
        await asyncio.wait_for(sleep.exhausted.wait(), timeout=1)
        await scheduler.stop()

        assert len(calls) == 1
        assert sleep.delays[0] == 3600
        assert sleep.delays[1] == pytest.approx(0.001)
        assert sleep.delays[2] == 86400
