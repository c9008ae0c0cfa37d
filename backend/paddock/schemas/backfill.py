"""Backfill and operations schemas."""

import datetime
from typing import Any

from pydantic import Field, model_validator

from paddock.schemas.common import BaseSchema


class BackfillRequest(BaseSchema):
    """Date range to backfill, inclusive."""

    from_date: datetime.date
    to_date: datetime.date | None = None

    @model_validator(mode="after")
    def check_range(self) -> "BackfillRequest":
        if self.to_date is not None and self.to_date < self.from_date:
            raise ValueError("from_date must not be after to_date")
        return self


class BackfillResponse(BaseSchema):
    """Jobs enqueued for a backfill."""

    enqueued: int
    dates: list[datetime.date] = Field(default_factory=list)


class ConfigCheckResponse(BaseSchema):
    """Configuration validation result."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    summary: dict[str, Any] = Field(default_factory=dict)
