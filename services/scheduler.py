"""
In-process periodic job scheduler.

Owned by the app lifespan: jobs are registered once, start() launches one
asyncio task per job, stop() cancels them all and waits for them to finish.

Each job wakes at the next epoch-aligned boundary of its interval (a daily
job at 00:00 UTC, an hourly job at the top of the hour). A run that raises
is logged and the job keeps its schedule.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

from shared.datetime_utils import next_aligned_run, utcnow
from shared.logging import get_logger

log = get_logger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


@dataclass
class Job:
    name: str
    func: JobFunc
    interval: timedelta
    runs: int = 0
    failures: int = 0


class Scheduler:
    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._jobs: dict[str, Job] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def jobs(self) -> dict[str, Job]:
        return dict(self._jobs)

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def add_job(self, name: str, func: JobFunc, interval: timedelta) -> Job:
        if name in self._jobs:
            raise RuntimeError(f"job {name!r} is already registered")
        if interval.total_seconds() <= 0:
            raise ValueError("interval must be positive")
        job = Job(name=name, func=func, interval=interval)
        self._jobs[name] = job
        return job

    def start(self) -> None:
        if self._tasks:
            raise RuntimeError("scheduler already started")
        for job in self._jobs.values():
            self._tasks[job.name] = asyncio.create_task(
                self._loop(job), name=f"scheduler:{job.name}"
            )
        log.info("scheduler_started", jobs=sorted(self._jobs))

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        log.info("scheduler_stopped", jobs=sorted(self._jobs))

    async def run_job(self, name: str) -> Optional[Any]:
        """Run one job immediately; errors are logged, not raised."""
        job = self._jobs[name]
        job.runs += 1
        try:
            return await job.func()
        except Exception as e:
            job.failures += 1
            log.error(
                "scheduled_job_failed",
                job=job.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def _loop(self, job: Job) -> None:
        while True:
            target = next_aligned_run(self._clock(), job.interval)
            # A sleep can end before the wall clock reaches target (clock steps)
            while True:
                now = self._clock()
                if now >= target:
                    break
                await self._sleep((target - now).total_seconds())
            log.info("scheduled_job_started", job=job.name)
            await self.run_job(job.name)
