"""Horse API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.database import get_db
from paddock.repositories import HorseRepository
from paddock.schemas import HorseDetailResponse, HorseListResponse, HorseRef, HorseResponse

router = APIRouter(prefix="/horses", tags=["horses"])


@router.get("", response_model=HorseListResponse)
async def get_horses(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Get all horses with pagination."""
    repo = HorseRepository(db)
    horses = await repo.get_all(skip=skip, limit=limit)
    total = await repo.count()
    return HorseListResponse(
        items=[HorseResponse.model_validate(h) for h in horses],
        total=total,
    )


@router.get("/search", response_model=list[HorseResponse])
async def search_horses(
    name: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Search horses by name."""
    repo = HorseRepository(db)
    horses = await repo.search_by_name(name, limit)
    return [HorseResponse.model_validate(h) for h in horses]


@router.get("/{horse_id}", response_model=HorseDetailResponse)
async def get_horse(
    horse_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a horse with its sire, dam and damsire."""
    repo = HorseRepository(db)
    horse = await repo.get_with_pedigree(horse_id)
    if not horse:
        raise HTTPException(status_code=404, detail="Horse not found")

    return HorseDetailResponse(
        **HorseResponse.model_validate(horse).model_dump(),
        sire=HorseRef.model_validate(horse.sire) if horse.sire else None,
        dam=HorseRef.model_validate(horse.dam) if horse.dam else None,
        damsire=HorseRef.model_validate(horse.damsire) if horse.damsire else None,
    )
