"""
Day processor.

Processes one calendar day of the TAB feed: fetch the schedule, fetch each
meeting's results, normalize, upsert, and fold per-meeting outcomes into
day statistics.

Failure policy:
    - a bad date or a failed schedule fetch fails the day
    - a failed results fetch degrades the meeting to schedule data
    - invalid races and runners are skipped
    - a database failure rolls back that meeting only; the day is reported
      as a retryable database_error once every meeting has been attempted
"""

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paddock.config import Settings, get_settings
from paddock.errors import ErrorKind, ETLError
from paddock.fetchers.base import DataFetcher
from paddock.logging_config import get_logger
from paddock.repositories import (
    Bloodline,
    EntryRepository,
    HorseRepository,
    ParticipantMaps,
    RaceRepository,
    batch_upsert_from_runners,
    wrap_db_errors,
)
from paddock.transformers import RaceData, RunnerData, meeting_number, transform_meeting_detailed
from paddock.transformers.race import MEETING_NUMBER_KEYS

logger = get_logger(__name__)


class DayState(str, enum.Enum):
    """Where a day's processing currently is."""

    PARSING_DATE = "parsing_date"
    FETCHING_SCHEDULE = "fetching_schedule"
    PROCESSING_MEETINGS = "processing_meetings"
    DONE = "done"
    FAILED = "failed"


@dataclass
class MeetingOutcome:
    """What happened to one meeting."""

    meeting_number: int | None
    track: str | None = None
    races_processed: int = 0
    entries_processed: int = 0
    skipped_runners: int = 0
    used_results: bool = False
    errors: list[ETLError] = field(default_factory=list)

    @property
    def persisted(self) -> bool:
        return not any(e.kind is ErrorKind.DATABASE for e in self.errors)


@dataclass
class DayStats:
    """Aggregate statistics for one processed day."""

    date: date
    meetings_processed: int = 0
    races_processed: int = 0
    entries_processed: int = 0
    skipped_runners: int = 0
    errors: list[ETLError] = field(default_factory=list)

    @classmethod
    def fold(cls, race_date: date, outcomes: list[MeetingOutcome]) -> "DayStats":
        stats = cls(date=race_date)
        for outcome in outcomes:
            stats.meetings_processed += 1
            stats.races_processed += outcome.races_processed
            stats.entries_processed += outcome.entries_processed
            stats.skipped_runners += outcome.skipped_runners
            stats.errors.extend(outcome.errors)
        return stats

    @property
    def database_errors(self) -> list[ETLError]:
        return [e for e in self.errors if e.kind is ErrorKind.DATABASE]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "meetings_processed": self.meetings_processed,
            "races_processed": self.races_processed,
            "entries_processed": self.entries_processed,
            "skipped_runners": self.skipped_runners,
            "errors": [e.format_for_logging() for e in self.errors],
        }


def parse_iso_date(value: Any) -> date:
    """Parse a YYYY-MM-DD string; anything else is a validation_error."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ETLError.validation_error("Date must be an ISO-8601 string", {"date": value})
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ETLError.validation_error("Invalid date", {"date": value, "error": str(e)}) from e


def _meetings(schedule: Mapping[str, Any]) -> list[Any]:
    meetings = schedule.get("meetings")
    if meetings is None:
        return []
    if not isinstance(meetings, list):
        raise ETLError.parse_error(
            "Schedule meetings is not a list", {"type": type(meetings).__name__}
        )
    return meetings


def select_races(
    meeting: Mapping[str, Any],
    results: Mapping[str, Any] | None,
) -> tuple[list[Any], bool]:
    """
    Pick the races to process for a schedule meeting.

    Results are matched to the meeting by number. When no results are
    available, or the matched meeting has no races, the schedule's own
    races are used.

    Returns:
        (races, used_results)
    """
    number = meeting_number(meeting)
    if isinstance(results, Mapping) and number is not None:
        for candidate in results.get("meetings") or []:
            if isinstance(candidate, Mapping) and meeting_number(candidate) == number:
                races = candidate.get("races")
                if isinstance(races, list) and races:
                    return races, True
                break

    races = meeting.get("races")
    return (races if isinstance(races, list) else []), False


class DayProcessor:
    """Processes a single day of feed data into the database."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client: DataFetcher,
        settings: Settings | None = None,
    ):
        self.session_factory = session_factory
        self.client = client
        self.settings = settings or get_settings()
        self.state = DayState.PARSING_DATE

    async def process(self, iso_date: Any) -> DayStats:
        """
        Process one day.

        Returns:
            DayStats for the day

        Raises:
            ETLError: validation_error for a bad date, the client's error
                for a failed schedule fetch, database_error when any
                meeting failed to persist
        """
        self.state = DayState.PARSING_DATE
        try:
            race_date = parse_iso_date(iso_date)

            self.state = DayState.FETCHING_SCHEDULE
            schedule = await self.client.fetch_schedule(race_date)
            meetings = _meetings(schedule)

            self.state = DayState.PROCESSING_MEETINGS
            logger.info(
                f"Processing {len(meetings)} meetings",
                extra={"date": race_date.isoformat(), "meetings": len(meetings)},
            )
            outcomes = [await self.process_meeting(race_date, meeting) for meeting in meetings]
        except ETLError as e:
            self.state = DayState.FAILED
            logger.error(f"Day failed: {e.message}", extra={"date": str(iso_date), **e.format_for_logging()})
            raise

        stats = DayStats.fold(race_date, outcomes)

        if stats.database_errors:
            self.state = DayState.FAILED
            failed = [o.meeting_number for o in outcomes if not o.persisted]
            raise ETLError.database_error(
                "Failed to persist some meetings",
                {
                    "date": race_date.isoformat(),
                    "failed_meetings": failed,
                    "errors": [str(e) for e in stats.database_errors],
                },
            )

        self.state = DayState.DONE
        logger.info(
            "Day processed",
            extra={**stats.to_dict(), "errors": len(stats.errors)},
        )
        return stats

    async def _fetch_results(self, race_date: date, number: int | None) -> dict[str, Any] | None:
        if number is None:
            logger.warning(
                "Meeting has no number, using schedule data",
                extra={"date": race_date.isoformat(), "keys": MEETING_NUMBER_KEYS},
            )
            return None
        try:
            return await self.client.fetch_meeting_results(race_date, number)
        except ETLError as e:
            logger.warning(
                f"Failed to fetch results for meeting {number}, using schedule data",
                extra={"date": race_date.isoformat(), "meeting_number": number, **e.format_for_logging()},
            )
            return None

    async def process_meeting(self, race_date: date, meeting: Any) -> MeetingOutcome:
        """Fetch, normalize and persist one meeting. Never raises ETLError."""
        if not isinstance(meeting, Mapping):
            return MeetingOutcome(
                meeting_number=None,
                errors=[ETLError.parse_error("Meeting is not an object", {"date": race_date.isoformat()})],
            )

        number = meeting_number(meeting)
        outcome = MeetingOutcome(meeting_number=number)

        results = await self._fetch_results(race_date, number)
        races, outcome.used_results = select_races(meeting, results)
        if not races:
            return outcome

        try:
            transformed = transform_meeting_detailed(
                race_date, meeting, races, self.settings.default_country
            )
        except ETLError as e:
            logger.warning(
                f"Skipping meeting {number}: {e.message}",
                extra={"date": race_date.isoformat(), **e.format_for_logging()},
            )
            outcome.errors.append(e)
            return outcome

        outcome.errors.extend(transformed.errors)
        outcome.skipped_runners = transformed.skipped_runners
        if transformed.races:
            outcome.track = transformed.races[0].track

        try:
            async with wrap_db_errors(
                "Failed to persist meeting", date=race_date.isoformat(), meeting_number=number
            ):
                async with self.session_factory() as session:
                    async with session.begin():
                        for race in transformed.races:
                            outcome.entries_processed += await self.persist_race(session, race)
                            outcome.races_processed += 1
        except ETLError as e:
            logger.error(
                f"Rolled back meeting {number}",
                extra={"date": race_date.isoformat(), "meeting_number": number, **e.format_for_logging()},
            )
            outcome.races_processed = 0
            outcome.entries_processed = 0
            outcome.errors.append(e)

        return outcome

    async def persist_race(self, session: AsyncSession, race: RaceData) -> int:
        """Upsert a race with its runners. Returns the number of entries written."""
        race_row = await RaceRepository(session).upsert(race.race_attrs())
        participants = await batch_upsert_from_runners(session, race.runners)

        horse_repo = HorseRepository(session)
        entry_repo = EntryRepository(session)
        for runner in race.runners:
            horse = await self._upsert_horse(horse_repo, runner)
            await entry_repo.upsert(self._entry_attrs(race_row.id, horse.id, runner, participants))

        return len(race.runners)

    @staticmethod
    async def _upsert_horse(repo: HorseRepository, runner: RunnerData):
        attrs = {
            "name": runner.horse_name,
            "country": runner.horse_country,
            "year_foaled": runner.horse_year_foaled,
            "sex": runner.horse_sex,
        }
        if runner.has_bloodline:
            return await repo.upsert_with_bloodline(
                attrs, Bloodline(sire_name=runner.sire_name, dam_name=runner.dam_name)
            )
        return await repo.upsert_simple(attrs)

    @staticmethod
    def _entry_attrs(
        race_id: int, horse_id: int, runner: RunnerData, participants: ParticipantMaps
    ) -> dict[str, Any]:
        return {
            "race_id": race_id,
            "horse_id": horse_id,
            "trainer_id": participants.trainer_id(runner.trainer_name),
            "jockey_id": participants.jockey_id(runner.jockey_name),
            "barrier": runner.barrier,
            "weight_kg": runner.weight_kg,
            "finishing_pos": runner.finishing_pos,
            "margin_l": runner.margin_l,
            "sp_odds": runner.sp_odds,
            "bf_sp": runner.bf_sp,
        }
