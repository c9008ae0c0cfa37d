"""Race API routes."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.database import get_db
from paddock.models import Entry, Race
from paddock.repositories import RaceRepository
from paddock.schemas import EntryResponse, RaceDetailResponse, RaceListResponse, RaceResponse

router = APIRouter(prefix="/races", tags=["races"])


def _entry_response(entry: Entry) -> EntryResponse:
    return EntryResponse(
        id=entry.id,
        race_id=entry.race_id,
        horse_id=entry.horse_id,
        trainer_id=entry.trainer_id,
        jockey_id=entry.jockey_id,
        barrier=entry.barrier,
        weight_kg=entry.weight_kg,
        finishing_pos=entry.finishing_pos,
        margin_l=entry.margin_l,
        sp_odds=entry.sp_odds,
        bf_sp=entry.bf_sp,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
        horse_name=entry.horse.name if entry.horse else None,
        trainer_name=entry.trainer.name if entry.trainer else None,
        jockey_name=entry.jockey.name if entry.jockey else None,
    )


def _finish_order(entry: Entry) -> tuple[bool, int, int]:
    # Placed runners first, then by barrier.
    return (
        entry.finishing_pos is None,
        entry.finishing_pos or 0,
        entry.barrier or 0,
    )


@router.get("", response_model=RaceListResponse)
async def get_races(
    race_date: date | None = Query(None, alias="date"),
    track: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Get races for a day (optionally one track), or all races paginated."""
    repo = RaceRepository(db)
    if race_date is not None:
        races: list[Race] = await repo.get_by_date(race_date, track)
        total = len(races)
    else:
        filters = {"track": track} if track else None
        races = await repo.get_all(skip=skip, limit=limit, filters=filters)
        total = await repo.count(filters)

    items = []
    for race in races:
        item = RaceResponse.model_validate(race)
        item.entries_count = await repo.get_entries_count(race.id)
        items.append(item)
    return RaceListResponse(items=items, total=total)


@router.get("/{race_id}", response_model=RaceDetailResponse)
async def get_race(
    race_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a race with its entries."""
    repo = RaceRepository(db)
    race = await repo.get_with_entries(race_id)
    if not race:
        raise HTTPException(status_code=404, detail="Race not found")

    entries = sorted(race.entries, key=_finish_order)
    return RaceDetailResponse(
        **RaceResponse.model_validate(race).model_dump(exclude={"entries_count"}),
        entries_count=len(entries),
        entries=[_entry_response(e) for e in entries],
    )
