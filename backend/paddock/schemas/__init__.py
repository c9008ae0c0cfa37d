"""Pydantic schemas."""

from paddock.schemas.backfill import BackfillRequest, BackfillResponse, ConfigCheckResponse
from paddock.schemas.common import BaseSchema, TimestampSchema
from paddock.schemas.entry import EntryResponse
from paddock.schemas.horse import (
    HorseDetailResponse,
    HorseListResponse,
    HorseRef,
    HorseResponse,
)
from paddock.schemas.race import RaceDetailResponse, RaceListResponse, RaceResponse

__all__ = [
    # Common
    "BaseSchema",
    "TimestampSchema",
    # Race
    "RaceResponse",
    "RaceListResponse",
    "RaceDetailResponse",
    # Horse
    "HorseRef",
    "HorseResponse",
    "HorseDetailResponse",
    "HorseListResponse",
    # Entry
    "EntryResponse",
    # Operations
    "BackfillRequest",
    "BackfillResponse",
    "ConfigCheckResponse",
]
