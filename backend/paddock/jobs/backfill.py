"""Backfill jobs: one job per calendar day."""

import random
from collections.abc import Callable
from datetime import date, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paddock.config import Settings, get_settings
from paddock.config_validator import validate
from paddock.errors import ETLError, classify_exception, decide
from paddock.fetchers.base import DataFetcher
from paddock.fetchers.tab import TabClient
from paddock.jobs.queue import InMemoryJobQueue, Job, JobResult
from paddock.logging_config import get_logger
from paddock.services.day_processor import DayProcessor, parse_iso_date

logger = get_logger(__name__)

BACKFILL_DAY_JOB = "backfill_day"


def date_range(from_date: date, to_date: date) -> list[date]:
    """Every date from ``from_date`` to ``to_date`` inclusive."""
    return [from_date + timedelta(days=offset) for offset in range((to_date - from_date).days + 1)]


def enqueue_backfill(queue: InMemoryJobQueue, from_date: Any, to_date: Any = None) -> list[Job]:
    """
    Enqueue one backfill job per day in the range.

    Raises:
        ETLError: validation_error for unparseable dates or a reversed range
    """
    start = parse_iso_date(from_date)
    end = parse_iso_date(to_date) if to_date is not None else start
    if end < start:
        raise ETLError.validation_error(
            "from_date must not be after to_date",
            {"from_date": start.isoformat(), "to_date": end.isoformat()},
        )

    jobs = [queue.enqueue(BACKFILL_DAY_JOB, {"date": d.isoformat()}) for d in date_range(start, end)]
    logger.info(
        f"Enqueued {len(jobs)} backfill jobs",
        extra={"from_date": start.isoformat(), "to_date": end.isoformat()},
    )
    return jobs


class BackfillDayJob:
    """Worker for a single day: runs the day processor and maps failures to job results."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client_factory: Callable[[], DataFetcher] | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.client_factory = client_factory or (lambda: TabClient(self.settings))
        self.rng = rng

    async def perform(self, args: dict[str, Any], attempt: int) -> JobResult:
        """Process ``args["date"]``; never raises."""
        validation = validate(self.settings)
        if not validation.valid:
            error = ETLError.validation_error("Invalid configuration", {"errors": validation.errors})
            logger.error("Refusing to run backfill job", extra=error.format_for_logging())
            return JobResult.discard(error)

        context = {"date": args.get("date"), "attempt": attempt}
        try:
            async with self.client_factory() as client:
                processor = DayProcessor(self.session_factory, client, self.settings)
                stats = await processor.process(args.get("date"))
        except ETLError as e:
            error = e
        except Exception as e:
            logger.exception("Unexpected failure in backfill job", extra=context)
            error = classify_exception(e, context)
        else:
            return JobResult.ok(stats.to_dict())

        decision = decide(error, attempt, self.settings.job_max_attempts, self.rng)
        logger.warning(
            f"Backfill job {decision.action.value}",
            extra={**context, "delay_ms": decision.delay_ms, **error.format_for_logging()},
        )
        return JobResult.from_decision(decision, error)

    async def __call__(self, job: Job) -> JobResult:
        return await self.perform(job.args, job.attempt)
