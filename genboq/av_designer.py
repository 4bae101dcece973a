# genboq/av_designer.py
# AVIXA-style sizing formulas for a single meeting room.
# Every function here is pure and never raises. Missing or junk questionnaire
# input falls back to the defaults below.

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Tuple

from genboq.room_profiles import CABLE_RUN_RULES
from genboq.utils import parse_number

DEFAULT_ROOM_LENGTH_FT = 20.0
DEFAULT_ROOM_WIDTH_FT = 15.0
DEFAULT_ROOM_HEIGHT_FT = 10.0
DEFAULT_TABLE_LENGTH_FT = 12.0
DEFAULT_RACK_DISTANCE_FT = 30.0
DEFAULT_CAPACITY = 10

CABLE_SLACK_FACTOR = 1.4       # service loops + vertical runs
VERTICAL_DROP_ALLOWANCE_FT = 15
SQFT_PER_CEILING_MIC = 700
PEOPLE_PER_TABLE_MIC = 4
SQFT_PER_CEILING_SPEAKER = 175
CAMERA_FOV_FACTOR = 1.2
PTZ_ROOM_LENGTH_FT = 25


@dataclass(frozen=True)
class RoomMetrics:
    length: float
    width: float
    height: float
    table_length: float
    rack_distance: float
    capacity: int
    area: float
    volume: float
    cable_run_estimate: float
    ceiling_mic_count: int
    table_mic_count: int
    ceiling_speaker_count: int
    display_total_run: float
    max_speaker_spacing: float
    camera_fov_width: float
    ptz_camera_required: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _positive_or_default(value: Any, default: float) -> float:
    number = parse_number(value)
    if number is None or number <= 0:
        return default
    return number


def ceiling_mic_count(area: float) -> int:
    return math.ceil(area / SQFT_PER_CEILING_MIC)


def table_mic_count(capacity: int) -> int:
    return math.ceil(capacity / PEOPLE_PER_TABLE_MIC)


def ceiling_speaker_count(area: float) -> int:
    return math.ceil(area / SQFT_PER_CEILING_SPEAKER)


def calculate_room_metrics(requirements: Mapping[str, Any]) -> RoomMetrics:
    """Derive geometry, cable runs and component counts from questionnaire answers."""
    length = _positive_or_default(requirements.get('roomLength'), DEFAULT_ROOM_LENGTH_FT)
    width = _positive_or_default(requirements.get('roomWidth'), DEFAULT_ROOM_WIDTH_FT)
    height = _positive_or_default(requirements.get('roomHeight'), DEFAULT_ROOM_HEIGHT_FT)
    table_length = _positive_or_default(requirements.get('tableLength'), DEFAULT_TABLE_LENGTH_FT)
    rack_distance = _positive_or_default(requirements.get('rackDistance'), DEFAULT_RACK_DISTANCE_FT)

    capacity = int(_positive_or_default(requirements.get('capacity'), DEFAULT_CAPACITY))
    if capacity <= 0:  # 0.5 truncates to 0
        capacity = DEFAULT_CAPACITY

    area = length * width
    return RoomMetrics(
        length=length,
        width=width,
        height=height,
        table_length=table_length,
        rack_distance=rack_distance,
        capacity=capacity,
        area=area,
        volume=area * height,
        cable_run_estimate=(length + width + rack_distance) * CABLE_SLACK_FACTOR,
        ceiling_mic_count=ceiling_mic_count(area),
        table_mic_count=table_mic_count(capacity),
        ceiling_speaker_count=ceiling_speaker_count(area),
        display_total_run=rack_distance + table_length + VERTICAL_DROP_ALLOWANCE_FT,
        max_speaker_spacing=2 * height,
        camera_fov_width=table_length * CAMERA_FOV_FACTOR,
        ptz_camera_required=length > PTZ_ROOM_LENGTH_FT,
    )


def select_cable_solution(run_length_ft: float) -> Tuple[str, str]:
    """Return (tier, description) for a display signal run of the given length."""
    for limit, tier, description in CABLE_RUN_RULES:
        if limit is None or run_length_ft <= limit:
            return tier, description
    return CABLE_RUN_RULES[-1][1], CABLE_RUN_RULES[-1][2]
