# tests/test_recommendations.py
import pytest

from horizonfit import models
from horizonfit.services.recommendations import (
    MINDSET_TIPS,
    apply_overrides,
    cache_values,
    calculate_recommendations,
    round_half_up,
)


def test_recommendations_for_mid_range_body_fat():
    recs = calculate_recommendations(75, 22, 8)

    assert recs.daily_calories == 2532
    assert recs.water_intake == 2.6
    assert recs.sleep_duration == 7.5
    assert recs.sleep_bed_time == "22:00"
    assert recs.sleep_wake_time == "07:00"
    assert recs.exercise_minutes == 30
    assert recs.exercise_type.startswith("Balanced")
    assert recs.meditation_minutes == 10
    assert recs.mindset_tip == MINDSET_TIPS[0]


def test_high_body_fat_applies_deficit():
    recs = calculate_recommendations(80, 32, 14)

    assert recs.daily_calories == 2095
    assert recs.water_intake == 2.8
    assert recs.sleep_duration == 8
    assert recs.exercise_minutes == 40
    assert recs.exercise_type.startswith("Moderate cardio")
    assert recs.meditation_minutes == 15
    assert recs.mindset_tip == MINDSET_TIPS[1]


def test_low_body_fat_applies_surplus():
    recs = calculate_recommendations(60, 12, 4)

    assert recs.daily_calories == 2541
    assert recs.water_intake == 2.1
    assert recs.sleep_duration == 7.5
    assert recs.exercise_minutes == 30
    assert recs.meditation_minutes == 10


@pytest.mark.parametrize(
    "body_fat, visceral_fat, minutes, prefix",
    [
        (20, 16, 45, "Low-intensity"),
        (20, 11, 40, "Moderate"),
        (28, 5, 35, "HIIT"),
        (20, 10, 30, "Balanced"),
    ],
)
def test_exercise_plan_follows_visceral_then_body_fat(body_fat, visceral_fat, minutes, prefix):
    recs = calculate_recommendations(70, body_fat, visceral_fat)
    assert recs.exercise_minutes == minutes
    assert recs.exercise_type.startswith(prefix)


def test_same_measurements_give_same_result():
    assert calculate_recommendations(91.4, 27.5, 11) == calculate_recommendations(91.4, 27.5, 11)


def test_round_half_up_rounds_halves_towards_positive_infinity():
    assert round_half_up(2.5) == 3
    assert round_half_up(26.5) == 27
    assert round_half_up(-0.5) == 0
    assert round_half_up(2.49) == 2


def test_override_replaces_only_given_fields():
    computed = calculate_recommendations(75, 22, 8)

    merged = apply_overrides(computed, {"daily_calories": 1800, "exercise_type": None, "custom_notes": "No sugar"})

    assert merged.daily_calories == 1800
    assert merged.exercise_type == computed.exercise_type
    assert merged.custom_notes == "No sugar"
    assert merged.water_intake == computed.water_intake


def test_zero_override_wins_over_computed_value():
    computed = calculate_recommendations(75, 22, 8)
    merged = apply_overrides(computed, {"meditation_minutes": 0})
    assert merged.meditation_minutes == 0


def test_override_row_is_merged_like_a_mapping():
    computed = calculate_recommendations(75, 22, 8)
    override = models.RecommendationOverride(patient_id=1, water_intake=3.5)

    merged = apply_overrides(computed, override)

    assert merged.water_intake == 3.5
    assert merged.daily_calories == computed.daily_calories


def test_no_computed_recommendations_means_nothing_to_override():
    assert apply_overrides(None, {"daily_calories": 1800}) is None
    computed = calculate_recommendations(75, 22, 8)
    assert apply_overrides(computed, None) == computed


def test_cache_values_match_cache_columns():
    values = cache_values(calculate_recommendations(75, 22, 8))
    assert "custom_notes" not in values
    assert "calculated_at" not in values
    assert set(values) <= {column.name for column in models.RecommendationsCache.__table__.columns}
