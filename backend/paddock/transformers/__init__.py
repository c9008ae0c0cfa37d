"""Feed payload transformers."""

from paddock.transformers.race import (
    MeetingTransform,
    RaceData,
    meeting_number,
    transform_meeting,
    transform_meeting_detailed,
    transform_race,
    validate_race,
)
from paddock.transformers.runner import (
    RunnerData,
    RunnerGroups,
    extract_runner_list,
    group_by_completeness,
    transform_runner,
    transform_runners,
    validate_runner,
)

__all__ = [
    "MeetingTransform",
    "RaceData",
    "RunnerData",
    "RunnerGroups",
    "extract_runner_list",
    "group_by_completeness",
    "meeting_number",
    "transform_meeting",
    "transform_meeting_detailed",
    "transform_race",
    "transform_runner",
    "transform_runners",
    "validate_race",
    "validate_runner",
]
