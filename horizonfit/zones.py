# horizonfit/zones.py - Static zone table shared by promotion and progress views
from dataclasses import dataclass
from typing import Dict

MAX_ZONE = 5

# Minimum whole days between two accepted body-metrics submissions
METRICS_INTERVAL_DAYS = 7

# Accepted weekly logs needed to complete a zone
WEEKS_REQUIRED = 3


@dataclass(frozen=True)
class ZoneInfo:
    number: int
    name: str
    description: str
    weeks_required: int = WEEKS_REQUIRED


ZONES: Dict[int, ZoneInfo] = {
    1: ZoneInfo(1, "Foundation", "Build healthy habits and establish your baseline metrics"),
    2: ZoneInfo(2, "Adaptation", "Adapt your lifestyle to new routines and patterns"),
    3: ZoneInfo(3, "Momentum", "Build momentum with consistent progress"),
    4: ZoneInfo(4, "Transformation", "Experience visible transformation in your health"),
    5: ZoneInfo(5, "Mastery", "Master your health and sustain lasting results"),
}


def is_valid_zone(zone_number) -> bool:
    return isinstance(zone_number, int) and 1 <= zone_number <= MAX_ZONE


def get_zone(zone_number: int) -> ZoneInfo:
    """Return zone metadata; unknown numbers raise KeyError."""
    return ZONES[zone_number]


def weeks_required(zone_number: int) -> int:
    return ZONES[zone_number].weeks_required
