# horizonfit/services/recommendations.py - daily targets derived from body metrics
import math
from typing import Any, Mapping, Optional, Union

from .. import models, schemas

# Katch-McArdle on lean mass, moderate activity
ACTIVITY_MULTIPLIER = 1.55
WAKE_TIME = "07:00"

MINDSET_TIPS = (
    "Focus on progress, not perfection. Small daily improvements lead to lasting change.",
    "Celebrate every healthy choice you make. You're building a new lifestyle.",
    "Remember: consistency beats intensity. Show up every day, even for 10 minutes.",
    "Your body is adapting. Trust the process and be patient with yourself.",
    "Visualize your healthiest self. The mind leads, the body follows.",
)

OVERRIDABLE_FIELDS = (
    "daily_calories",
    "water_intake",
    "sleep_duration",
    "exercise_minutes",
    "exercise_type",
    "meditation_minutes",
    "custom_notes",
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _bed_time(sleep_duration: float) -> str:
    offset = 7 - sleep_duration
    if offset >= 0:
        hour = math.floor(23 + offset)
    else:
        hour = math.floor(24 + 23 + offset) % 24
    return f"{hour:02d}:00"


def _exercise_plan(body_fat_percentage: float, visceral_fat: float):
    if visceral_fat > 15:
        return 45, "Low-intensity cardio (walking, swimming) + light resistance training"
    if visceral_fat > 10:
        return 40, "Moderate cardio + strength training (3 days/week)"
    if body_fat_percentage > 25:
        return 35, "HIIT (2x/week) + strength training (3x/week)"
    return 30, "Balanced mix of cardio and resistance training"


def calculate_recommendations(weight: float, body_fat_percentage: float, visceral_fat: float) -> schemas.Recommendations:
    """
    Pure function of the three measurements.

    Calories: TDEE (BMR = 370 + 21.6 * lean mass, times 1.55) with a 300 kcal
    deficit above 25% body fat and a 200 kcal surplus below 15%.
    Water: 35 ml per kg, to one decimal.
    Sleep: 8 h when visceral fat > 12 or body fat > 30, else 7.5 h, waking at 07:00.
    """
    lean_body_mass = weight * (1 - body_fat_percentage / 100)
    bmr = 370 + (21.6 * lean_body_mass)
    tdee = bmr * ACTIVITY_MULTIPLIER

    if body_fat_percentage > 25:
        daily_calories = round_half_up(tdee - 300)
    elif body_fat_percentage < 15:
        daily_calories = round_half_up(tdee + 200)
    else:
        daily_calories = round_half_up(tdee)

    water_intake = round_half_up(weight * 0.035 * 10) / 10

    sleep_duration = 8.0 if visceral_fat > 12 or body_fat_percentage > 30 else 7.5
    exercise_minutes, exercise_type = _exercise_plan(body_fat_percentage, visceral_fat)
    meditation_minutes = 15 if visceral_fat > 12 else 10

    tip_index = int(math.floor((weight + body_fat_percentage + visceral_fat) % len(MINDSET_TIPS)))

    return schemas.Recommendations(
        daily_calories=daily_calories,
        water_intake=water_intake,
        sleep_duration=sleep_duration,
        sleep_bed_time=_bed_time(sleep_duration),
        sleep_wake_time=WAKE_TIME,
        exercise_minutes=exercise_minutes,
        exercise_type=exercise_type,
        meditation_minutes=meditation_minutes,
        mindset_tip=MINDSET_TIPS[tip_index],
    )


def apply_overrides(
    computed: Optional[schemas.Recommendations],
    overrides: Union[models.RecommendationOverride, Mapping[str, Any], None],
) -> Optional[schemas.Recommendations]:
    """Field-level merge: an override value wins whenever it is not None."""
    if computed is None:
        return None
    if overrides is None:
        return computed

    if isinstance(overrides, Mapping):
        patch = {name: overrides.get(name) for name in OVERRIDABLE_FIELDS}
    else:
        patch = {name: getattr(overrides, name, None) for name in OVERRIDABLE_FIELDS}
    patch = {name: value for name, value in patch.items() if value is not None}

    return computed.model_copy(update=patch)


def cached_recommendations(cache: Optional[models.RecommendationsCache]) -> Optional[schemas.Recommendations]:
    if cache is None:
        return None
    return schemas.Recommendations.model_validate(cache)


def cache_values(recommendations: schemas.Recommendations) -> dict:
    """Columns of RecommendationsCache carried by a computed result."""
    return recommendations.model_dump(exclude={"custom_notes", "calculated_at"})
