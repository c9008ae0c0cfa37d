"""
Backfill TAB feed data for a date range.

Usage:
    python scripts/backfill.py 2025-09-01
    python scripts/backfill.py 2025-09-01 2025-09-07 --concurrency 3
"""

import argparse
import asyncio
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from paddock.config import get_settings
from paddock.config_validator import ConfigurationError, validate_or_raise
from paddock.database import AsyncSessionLocal, async_engine, init_db
from paddock.errors import ETLError
from paddock.jobs import BackfillDayJob, InMemoryJobQueue, JobStatus, enqueue_backfill
from paddock.logging_config import setup_logging


async def main() -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Backfill TAB feed data")
    parser.add_argument("from_date", help="First day to process (YYYY-MM-DD)")
    parser.add_argument("to_date", nargs="?", default=None, help="Last day, inclusive (default: from_date)")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.job_concurrency,
        help=f"Days processed at once (default: {settings.job_concurrency})",
    )
    args = parser.parse_args()

    setup_logging(settings.log_level)

    try:
        validate_or_raise(settings)
    except ConfigurationError as e:
        print(f"Configuration invalid: {e}", file=sys.stderr)
        return 1

    queue = InMemoryJobQueue(max_attempts=settings.job_max_attempts)
    try:
        jobs = enqueue_backfill(queue, args.from_date, args.to_date)
    except ETLError as e:
        print(f"Invalid date range: {e.message}", file=sys.stderr)
        return 1

    try:
        await init_db()
        print(f"Backfilling {len(jobs)} day(s) with concurrency {args.concurrency}")
        await queue.run(BackfillDayJob(AsyncSessionLocal, settings=settings), concurrency=args.concurrency)
    finally:
        await async_engine.dispose()

    failed = 0
    for job in jobs:
        result = job.result
        if result.status is JobStatus.OK:
            stats = result.stats
            print(
                f"  {job.args['date']}: {stats['meetings_processed']} meetings, "
                f"{stats['races_processed']} races, {stats['entries_processed']} entries, "
                f"{stats['skipped_runners']} runners skipped, {len(stats['errors'])} errors"
            )
        else:
            failed += 1
            print(f"  {job.args['date']}: FAILED after {job.attempt} attempt(s): {result.error}")

    print(f"\nDone: {len(jobs) - failed} succeeded, {failed} failed")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
