"""Horse schemas."""

from pydantic import Field

from paddock.schemas.common import BaseSchema, TimestampSchema


class HorseRef(BaseSchema):
    """Minimal horse reference used in pedigrees."""

    id: int
    name: str


class HorseResponse(TimestampSchema):
    """Horse response schema."""

    id: int
    name: str = Field(..., description="Horse name, unique regardless of case")
    country: str | None = Field(None, max_length=3)
    year_foaled: int | None = None
    sex: str | None = Field(None, max_length=1, description="m/f/g/c/h")
    sire_id: int | None = None
    dam_id: int | None = None
    damsire_id: int | None = None


class HorseDetailResponse(HorseResponse):
    """Horse with its sire, dam and damsire."""

    sire: HorseRef | None = None
    dam: HorseRef | None = None
    damsire: HorseRef | None = None


class HorseListResponse(BaseSchema):
    """Horse list response schema."""

    items: list[HorseResponse]
    total: int
