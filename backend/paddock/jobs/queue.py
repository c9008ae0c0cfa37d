"""
Minimal in-process job queue.

Stands in for an external job system at the boundary: jobs carry JSON-like
args and an attempt counter, and a handler returns a ``JobResult`` telling
the queue to finish, retry, snooze or discard the job.
"""

import asyncio
import enum
import itertools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from paddock.errors import Decision, ETLError, JobAction
from paddock.logging_config import get_logger

logger = get_logger(__name__)

# Guards against a job being snoozed forever by a permanently rate-limited feed.
MAX_SNOOZES = 20


class JobStatus(str, enum.Enum):
    OK = "ok"
    RETRY = "retry"
    SNOOZE = "snooze"
    DISCARD = "discard"


@dataclass
class JobResult:
    """Outcome of one job attempt."""

    status: JobStatus
    delay_seconds: float = 0.0
    stats: dict[str, Any] | None = None
    error: ETLError | None = None

    @classmethod
    def ok(cls, stats: dict[str, Any] | None = None) -> "JobResult":
        return cls(JobStatus.OK, stats=stats)

    @classmethod
    def discard(cls, error: ETLError | None) -> "JobResult":
        return cls(JobStatus.DISCARD, error=error)

    @classmethod
    def from_decision(cls, decision: Decision, error: ETLError) -> "JobResult":
        status = {
            JobAction.RETRY: JobStatus.RETRY,
            JobAction.SNOOZE: JobStatus.SNOOZE,
            JobAction.DISCARD: JobStatus.DISCARD,
        }[decision.action]
        return cls(status, delay_seconds=decision.delay_ms / 1000, error=error)


_job_ids = itertools.count(1)


@dataclass
class Job:
    """A unit of work with its attempt counter."""

    name: str
    args: dict[str, Any]
    max_attempts: int = 5
    attempt: int = 1
    scheduled_at: float = field(default_factory=time.monotonic)
    id: int = field(default_factory=lambda: next(_job_ids))
    snoozes: int = 0
    claimed: bool = False
    result: JobResult | None = None

    @property
    def finished(self) -> bool:
        return self.result is not None and self.result.status in (JobStatus.OK, JobStatus.DISCARD)


Handler = Callable[[Job], Awaitable[JobResult]]


class InMemoryJobQueue:
    """
    Runs enqueued jobs with bounded concurrency.

    Retries increment the attempt counter; snoozes reschedule without
    consuming an attempt. A retry past ``max_attempts`` becomes a discard.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.max_attempts = max_attempts
        self._sleep = sleep
        self.jobs: list[Job] = []

    def enqueue(self, name: str, args: dict[str, Any]) -> Job:
        job = Job(name=name, args=dict(args), max_attempts=self.max_attempts)
        self.jobs.append(job)
        logger.debug("Job enqueued", extra={"job_id": job.id, "job_name": name, "job_args": job.args})
        return job

    @property
    def pending(self) -> list[Job]:
        """Jobs no runner has picked up yet."""
        return [job for job in self.jobs if not job.claimed]

    async def _wait_until(self, scheduled_at: float) -> None:
        delay = scheduled_at - time.monotonic()
        if delay > 0:
            await self._sleep(delay)

    async def _run_job(self, job: Job, handler: Handler, slots: asyncio.Semaphore) -> Job:
        while True:
            await self._wait_until(job.scheduled_at)
            async with slots:
                result = await handler(job)
            job.result = result

            if result.status is JobStatus.OK or result.status is JobStatus.DISCARD:
                break

            if result.status is JobStatus.SNOOZE:
                job.snoozes += 1
                if job.snoozes > MAX_SNOOZES:
                    job.result = JobResult.discard(result.error)
                    break
            else:
                if job.attempt >= job.max_attempts:
                    job.result = JobResult.discard(result.error)
                    break
                job.attempt += 1

            job.scheduled_at = time.monotonic() + result.delay_seconds
            logger.info(
                f"Job {result.status.value}",
                extra={
                    "job_id": job.id,
                    "job_name": job.name,
                    "attempt": job.attempt,
                    "delay_seconds": result.delay_seconds,
                },
            )

        extra = {"job_id": job.id, "job_name": job.name, "attempt": job.attempt}
        if job.result.status is JobStatus.OK:
            logger.info("Job completed", extra=extra)
        else:
            logger.warning("Job discarded", extra=extra)
        return job

    async def run(self, handler: Handler, concurrency: int = 5) -> list[Job]:
        """
        Run every pending job to completion; returns them in enqueue order.

        Finished jobs are dropped from the queue once the run ends, so only the
        returned list keeps their results.
        """
        slots = asyncio.Semaphore(max(concurrency, 1))
        claimed = self.pending
        for job in claimed:
            job.claimed = True
        await asyncio.gather(*(self._run_job(job, handler, slots) for job in claimed))
        self.jobs = [job for job in self.jobs if not job.finished]
        return claimed
