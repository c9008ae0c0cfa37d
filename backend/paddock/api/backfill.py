"""Backfill API routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from paddock.config import get_settings
from paddock.database import AsyncSessionLocal
from paddock.errors import ETLError
from paddock.jobs import BackfillDayJob, InMemoryJobQueue, enqueue_backfill
from paddock.jobs.queue import Handler
from paddock.schemas import BackfillRequest, BackfillResponse

router = APIRouter(prefix="/backfill", tags=["backfill"])

_queue: InMemoryJobQueue | None = None


def get_job_queue() -> InMemoryJobQueue:
    """The process's job queue."""
    global _queue
    if _queue is None:
        _queue = InMemoryJobQueue(max_attempts=get_settings().job_max_attempts)
    return _queue


def get_backfill_handler() -> Handler:
    """Handler that processes one backfill day."""
    return BackfillDayJob(AsyncSessionLocal)


async def run_queue(queue: InMemoryJobQueue, handler: Handler) -> None:
    await queue.run(handler, concurrency=get_settings().job_concurrency)


@router.post("", response_model=BackfillResponse, status_code=202)
async def start_backfill(
    request: BackfillRequest,
    background_tasks: BackgroundTasks,
    queue: InMemoryJobQueue = Depends(get_job_queue),
    handler: Handler = Depends(get_backfill_handler),
):
    """Enqueue one job per day in the range and run them in the background."""
    try:
        jobs = enqueue_backfill(queue, request.from_date, request.to_date)
    except ETLError as e:
        raise HTTPException(status_code=400, detail=e.message)

    background_tasks.add_task(run_queue, queue, handler)
    return BackfillResponse(
        enqueued=len(jobs),
        dates=[job.args["date"] for job in jobs],
    )
