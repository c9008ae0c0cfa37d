"""
Runner transformer.

The feed describes runners in several shapes: a flat list under one of a few
field names, or (for final results) separate ``placings`` and ``also_ran``
arrays. Everything here funnels those into a single ``RunnerData`` record.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from paddock.errors import ETLError
from paddock.logging_config import get_logger
from paddock.parsers import breeding
from paddock.parsers.fields import (
    DEFAULT_COUNTRY,
    extract_first,
    extract_float,
    extract_number,
    normalize_country,
    normalize_string,
    to_int,
)

logger = get_logger(__name__)

# Ordered shape-detection table: the first non-empty list wins.
RUNNER_LIST_FIELDS = ("results", "runners", "entries")
PLACINGS_FIELD = "placings"
ALSO_RAN_FIELD = "also_ran"

FINISH_POSITION_KEYS = ("placing", "finishPosition", "rank")
STARTING_PRICE_KEYS = ("fixedOdds", "sp", "startingPrice")
EXCHANGE_PRICE_KEYS = ("betfairSP",)
YEAR_FOALED_KEYS = ("yob", "yearFoaled", "foaled")

# also_ran rows use 0 for runners that did not finish.
DID_NOT_FINISH = 0


@dataclass
class RunnerData:
    """Canonical runner record."""

    horse_name: str
    horse_country: str | None = None
    horse_year_foaled: int | None = None
    horse_sex: str | None = None
    sire_name: str | None = None
    dam_name: str | None = None
    trainer_name: str | None = None
    jockey_name: str | None = None
    barrier: int | None = None
    weight_kg: float | None = None
    finishing_pos: int | None = None
    margin_l: float | None = None
    sp_odds: float | None = None
    bf_sp: float | None = None

    @property
    def has_bloodline(self) -> bool:
        return bool(self.sire_name) and bool(self.dam_name)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RunnerGroups:
    """Runners split by data quality."""

    complete: list[RunnerData] = field(default_factory=list)
    incomplete: list[RunnerData] = field(default_factory=list)


def _has_list(race: Mapping[str, Any], key: str) -> bool:
    value = race.get(key)
    return isinstance(value, list) and len(value) > 0


def _placing_to_runner(placing: Mapping[str, Any]) -> dict[str, Any]:
    # Placings carry no barrier or weight.
    return {
        "horse": {"name": placing.get("name")},
        "jockey": placing.get("jockey"),
        "placing": placing.get("rank"),
        "margin": placing.get("distance"),
        "barrier": None,
        "weight": None,
        "trainer": None,
    }


def _also_ran_to_runner(also_ran: Mapping[str, Any]) -> dict[str, Any]:
    finish_pos = to_int(also_ran.get("finish_position"))
    return {
        "horse": {"name": also_ran.get("name")},
        "jockey": also_ran.get("jockey"),
        "placing": None if finish_pos in (None, DID_NOT_FINISH) else finish_pos,
        "margin": also_ran.get("distance"),
        "barrier": also_ran.get("barrier"),
        "weight": also_ran.get("weight"),
        "trainer": None,
    }


def synthesize_from_results(race: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Build a flat runner list from ``placings`` + ``also_ran``."""
    placings = race.get(PLACINGS_FIELD) or []
    also_ran = race.get(ALSO_RAN_FIELD) or []
    placed = [_placing_to_runner(p) for p in placings if isinstance(p, Mapping)]
    others = [_also_ran_to_runner(a) for a in also_ran if isinstance(a, Mapping)]
    return placed + others


def extract_runner_list(race: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Pick the race's runner list according to the shape-detection table."""
    for key in RUNNER_LIST_FIELDS:
        if _has_list(race, key):
            return race[key]

    if _has_list(race, PLACINGS_FIELD) or _has_list(race, ALSO_RAN_FIELD):
        return synthesize_from_results(race)

    return []


def _horse_map(runner: Mapping[str, Any]) -> Mapping[str, Any]:
    horse = runner.get("horse")
    return horse if isinstance(horse, Mapping) else runner


def _person_name(value: Any) -> str | None:
    # Jockeys and trainers arrive either as plain strings or {"name": ...}.
    if isinstance(value, Mapping):
        value = value.get("name")
    return normalize_string(value)


def finishing_position(runner: Mapping[str, Any]) -> int | None:
    return extract_number(runner, FINISH_POSITION_KEYS)


def is_winner(runner: Mapping[str, Any]) -> bool:
    return finishing_position(runner) == 1


def transform_runner(
    runner: Mapping[str, Any],
    breeding_text: str | None = None,
    default_country: str = DEFAULT_COUNTRY,
) -> RunnerData:
    """
    Transform one feed runner into a ``RunnerData``.

    Raises:
        ETLError: validation_error when the horse name is missing,
            parse_error when the payload is not a mapping.
    """
    if not isinstance(runner, Mapping):
        raise ETLError.parse_error("Runner is not an object", {"runner": runner})

    horse = _horse_map(runner)
    horse_name = normalize_string(horse.get("name"))
    if horse_name is None:
        horse_name = normalize_string(runner.get("name"))
    if horse_name is None:
        raise ETLError.validation_error("Missing horse name", {"runner": dict(runner)})

    parsed = breeding.parse(breeding_text)

    return RunnerData(
        horse_name=horse_name,
        horse_country=normalize_country(horse.get("country"), default_country),
        horse_year_foaled=extract_number(horse, YEAR_FOALED_KEYS),
        horse_sex=parsed.sex or breeding.normalize_sex(normalize_string(horse.get("sex"))),
        sire_name=parsed.sire_name,
        dam_name=parsed.dam_name,
        trainer_name=_person_name(runner.get("trainer")),
        jockey_name=_person_name(runner.get("jockey")),
        barrier=to_int(runner.get("barrier")),
        weight_kg=extract_float(runner, ("weight",)),
        finishing_pos=finishing_position(runner),
        margin_l=extract_float(runner, ("margin",)),
        sp_odds=extract_float(runner, STARTING_PRICE_KEYS),
        bf_sp=extract_float(runner, EXCHANGE_PRICE_KEYS),
    )


def transform_runners(
    runners: list[Mapping[str, Any]],
    breeding_text: str | None = None,
    default_country: str = DEFAULT_COUNTRY,
) -> tuple[list[RunnerData], list[ETLError]]:
    """
    Transform a runner list, skipping rejected runners.

    Breeding text describes the winner only, so it is attached to the runner
    whose finishing position is 1 and to no one else.

    Returns:
        (runners, errors) where errors holds one ETLError per skipped runner
    """
    transformed: list[RunnerData] = []
    errors: list[ETLError] = []

    for runner in runners:
        winner_breeding = breeding_text if isinstance(runner, Mapping) and is_winner(runner) else None
        try:
            transformed.append(transform_runner(runner, winner_breeding, default_country))
        except ETLError as e:
            logger.debug("Skipping runner", extra=e.format_for_logging())
            errors.append(e)

    return transformed, errors


def validate_runner(runner: RunnerData) -> ETLError | None:
    """Return a validation error for implausible values, None when clean."""
    if not runner.horse_name:
        return ETLError.validation_error("Invalid horse name", {"runner": runner.to_dict()})
    if runner.barrier is not None and runner.barrier <= 0:
        return ETLError.validation_error("Invalid barrier number", {"barrier": runner.barrier})
    if runner.weight_kg is not None and runner.weight_kg <= 0:
        return ETLError.validation_error("Invalid weight", {"weight": runner.weight_kg})
    if runner.finishing_pos is not None and runner.finishing_pos <= 0:
        return ETLError.validation_error(
            "Invalid finishing position", {"position": runner.finishing_pos}
        )
    return None


def group_by_completeness(runners: list[RunnerData]) -> RunnerGroups:
    """Split runners into those passing ``validate_runner`` and the rest."""
    groups = RunnerGroups()
    for runner in runners:
        if validate_runner(runner) is None:
            groups.complete.append(runner)
        else:
            groups.incomplete.append(runner)
    return groups
