"""Race schemas."""

import datetime

from pydantic import Field

from paddock.schemas.common import BaseSchema, TimestampSchema
from paddock.schemas.entry import EntryResponse


class RaceResponse(TimestampSchema):
    """Race response schema."""

    id: int
    date: datetime.date
    track: str
    country: str
    race_number: int = Field(..., ge=1)
    distance_m: int = Field(..., gt=0, description="Distance in meters")
    surface: str | None = None
    going: str | None = None
    race_class: str | None = None
    entries_count: int | None = None


class RaceListResponse(BaseSchema):
    """Race list response schema."""

    items: list[RaceResponse]
    total: int


class RaceDetailResponse(RaceResponse):
    """Race detail response with entries."""

    entries: list[EntryResponse] = Field(default_factory=list)
