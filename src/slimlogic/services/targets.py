"""Daily calorie target calculation."""

import math

from slimlogic.domain.models import Gender

POUNDS_TO_KG = 0.453592
SEDENTARY_MULTIPLIER = 1.2
DEFICIT_KCAL = 500
MINIMUM_TARGET_KCAL = 1200


def calorie_target(
    weight_lbs: float, height_cm: float, age: float, gender: Gender
) -> int:
    """Return the daily calorie target for steady weight loss.

    Uses Mifflin-St Jeor for BMR, a sedentary activity multiplier and a fixed
    deficit. The result never drops below ``MINIMUM_TARGET_KCAL``.
    """
    if weight_lbs <= 0 or height_cm <= 0 or age <= 0:
        raise ValueError("weight, height and age must be positive")
    weight_kg = weight_lbs * POUNDS_TO_KG
    bmr = 10 * weight_kg + 6.25 * height_cm - 5 * age
    bmr += 5 if gender == "male" else -161
    tdee = bmr * SEDENTARY_MULTIPLIER
    return max(MINIMUM_TARGET_KCAL, round_half_up(tdee - DEFICIT_KCAL))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, rounding halves up."""
    # round() would round halves to even.
    return math.floor(value + 0.5)
