"""Data access repositories."""

from paddock.repositories.base import BaseRepository, name_key, wrap_db_errors
from paddock.repositories.entry_repository import EntryRepository
from paddock.repositories.horse_repository import Bloodline, HorseRepository
from paddock.repositories.participant_repository import (
    JockeyRepository,
    ParticipantMaps,
    TrainerRepository,
    batch_upsert_from_runners,
    clean_participant_name,
    get_participant_stats,
)
from paddock.repositories.race_repository import RaceRepository

__all__ = [
    "BaseRepository",
    "Bloodline",
    "EntryRepository",
    "HorseRepository",
    "JockeyRepository",
    "ParticipantMaps",
    "RaceRepository",
    "TrainerRepository",
    "batch_upsert_from_runners",
    "clean_participant_name",
    "get_participant_stats",
    "name_key",
    "wrap_db_errors",
]
