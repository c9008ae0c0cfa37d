"""
Race transformer.

Turns one meeting's race payloads into validated ``RaceData`` records.
Track and country belong to the meeting and are copied onto every race.
A race that fails validation is dropped on its own; its siblings carry on.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from paddock.errors import ETLError
from paddock.logging_config import get_logger
from paddock.parsers.fields import (
    DEFAULT_COUNTRY,
    extract_number,
    extract_string,
    normalize_country,
)
from paddock.transformers.runner import (
    RunnerData,
    extract_runner_list,
    transform_runners,
)

logger = get_logger(__name__)

TRACK_KEYS = ("venue", "name", "track")
DISTANCE_KEYS = ("distance", "distanceMeters", "length")
RACE_NUMBER_KEYS = ("number", "raceNumber", "race_no")
GOING_KEYS = ("trackCondition", "going", "track")
CLASS_KEYS = ("class", "raceClass")
SURFACE_KEYS = ("surface", "trackSurface")
BREEDING_KEYS = ("winnersbreeding", "winnersBreeding")
MEETING_NUMBER_KEYS = ("number", "meetNo", "meetno")


@dataclass
class RaceData:
    """Canonical race record."""

    date: date
    track: str
    country: str
    distance_m: int
    race_number: int
    going: str | None = None
    race_class: str | None = None
    surface: str | None = None
    runners: list[RunnerData] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.track} R{self.race_number}"

    def race_attrs(self) -> dict[str, Any]:
        """Column values for the races table."""
        return {
            "date": self.date,
            "track": self.track,
            "country": self.country,
            "distance_m": self.distance_m,
            "race_number": self.race_number,
            "going": self.going,
            "race_class": self.race_class,
            "surface": self.surface,
        }


@dataclass
class MeetingTransform:
    """Result of transforming a meeting: kept races plus per-race errors."""

    races: list[RaceData] = field(default_factory=list)
    errors: list[ETLError] = field(default_factory=list)
    skipped_runners: int = 0


def meeting_number(meeting: Mapping[str, Any] | None) -> int | None:
    """The meeting's number as used by the results endpoint."""
    return extract_number(meeting, MEETING_NUMBER_KEYS)


def extract_track_name(meeting: Mapping[str, Any]) -> str:
    track = extract_string(meeting, TRACK_KEYS)
    if track is None:
        raise ETLError.validation_error(
            "Missing track name", {"meeting_number": meeting_number(meeting)}
        )
    return track


def extract_distance(race: Mapping[str, Any]) -> int:
    distance = extract_number(race, DISTANCE_KEYS)
    if distance is None:
        raise ETLError.validation_error("Missing race distance", {"race": _race_ref(race)})
    if distance <= 0:
        raise ETLError.validation_error(
            "Invalid race distance", {"distance": distance, "race": _race_ref(race)}
        )
    return distance


def extract_race_number(race: Mapping[str, Any]) -> int:
    race_number = extract_number(race, RACE_NUMBER_KEYS)
    if race_number is None:
        raise ETLError.validation_error("Missing race number", {"race": _race_ref(race)})
    if race_number <= 0:
        raise ETLError.validation_error(
            "Invalid race number", {"race_number": race_number, "race": _race_ref(race)}
        )
    return race_number


def _race_ref(race: Mapping[str, Any]) -> dict[str, Any]:
    # Keep error context small; full payloads can hold dozens of runners.
    return {key: race.get(key) for key in ("number", "name", *DISTANCE_KEYS) if key in race}


def transform_race(
    race: Mapping[str, Any],
    race_date: date,
    track: str,
    country: str,
    default_country: str = DEFAULT_COUNTRY,
) -> tuple[RaceData, int]:
    """
    Transform a single race payload.

    Returns:
        (race, skipped_runner_count)

    Raises:
        ETLError: validation_error for missing/invalid distance or number,
            parse_error when the payload is not an object
    """
    if not isinstance(race, Mapping):
        raise ETLError.parse_error("Race is not an object", {"track": track, "date": str(race_date)})

    distance = extract_distance(race)
    race_number = extract_race_number(race)
    breeding_text = extract_string(race, BREEDING_KEYS)

    runners, runner_errors = transform_runners(
        extract_runner_list(race), breeding_text, default_country
    )

    return RaceData(
        date=race_date,
        track=track,
        country=country,
        distance_m=distance,
        race_number=race_number,
        going=extract_string(race, GOING_KEYS),
        race_class=extract_string(race, CLASS_KEYS),
        surface=extract_string(race, SURFACE_KEYS),
        runners=runners,
    ), len(runner_errors)


def transform_meeting_detailed(
    race_date: date,
    meeting: Mapping[str, Any],
    races: list[Mapping[str, Any]],
    default_country: str = DEFAULT_COUNTRY,
) -> MeetingTransform:
    """
    Transform every race of a meeting, collecting per-race errors.

    Raises:
        ETLError: validation_error when the meeting has no track name
    """
    track = extract_track_name(meeting)
    country = normalize_country(meeting.get("country"), default_country)

    result = MeetingTransform()
    for race in races:
        try:
            race_data, skipped = transform_race(race, race_date, track, country, default_country)
        except ETLError as e:
            logger.warning(
                f"Skipping race at {track}: {e.message}",
                extra={"track": track, "date": str(race_date), **e.format_for_logging()},
            )
            result.errors.append(e)
            continue
        result.races.append(race_data)
        result.skipped_runners += skipped

    return result


def transform_meeting(
    race_date: date,
    meeting: Mapping[str, Any],
    races: list[Mapping[str, Any]],
    default_country: str = DEFAULT_COUNTRY,
) -> list[RaceData]:
    """Transform a meeting, returning only the races that passed validation."""
    return transform_meeting_detailed(race_date, meeting, races, default_country).races


def validate_race(race: RaceData) -> ETLError | None:
    """Return a validation error for an incomplete race, None when usable."""
    required = ("date", "track", "country", "distance_m", "race_number")
    missing = [name for name in required if getattr(race, name) is None]
    if missing:
        return ETLError.validation_error("Missing required fields", {"missing": missing})
    if race.distance_m <= 0:
        return ETLError.validation_error("Invalid distance", {"distance": race.distance_m})
    if race.race_number <= 0:
        return ETLError.validation_error("Invalid race number", {"race_number": race.race_number})
    if len(race.country) < 2:
        return ETLError.validation_error("Invalid country code", {"country": race.country})
    if not race.runners:
        return ETLError.validation_error("Race has no runners", {"race": race.label})
    return None
