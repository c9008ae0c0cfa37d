"""Job system boundary: an in-process queue and the backfill worker."""

from paddock.jobs.backfill import BackfillDayJob, enqueue_backfill
from paddock.jobs.queue import InMemoryJobQueue, Job, JobResult, JobStatus

__all__ = [
    "BackfillDayJob",
    "InMemoryJobQueue",
    "Job",
    "JobResult",
    "JobStatus",
    "enqueue_backfill",
]
