"""Race entry schemas."""

from pydantic import Field

from paddock.schemas.common import TimestampSchema


class EntryResponse(TimestampSchema):
    """Entry response schema."""

    id: int
    race_id: int
    horse_id: int
    trainer_id: int | None = None
    jockey_id: int | None = None
    barrier: int | None = None
    weight_kg: float | None = None
    finishing_pos: int | None = None
    margin_l: float | None = Field(None, description="Beaten margin in lengths")
    sp_odds: float | None = Field(None, description="Fixed/tote starting price")
    bf_sp: float | None = Field(None, description="Exchange starting price")

    # Nested objects
    horse_name: str | None = None
    trainer_name: str | None = None
    jockey_name: str | None = None
