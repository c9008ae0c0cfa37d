"""Business logic services."""

from paddock.services.day_processor import DayProcessor, DayState, DayStats, MeetingOutcome

__all__ = [
    "DayProcessor",
    "DayState",
    "DayStats",
    "MeetingOutcome",
]
