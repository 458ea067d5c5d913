"""Anthropometric helpers: BMI and an estimated body-fat percentage."""

from macro_tracker.domain.models import BmiCategory, Gender, HealthReport, UserRecord

UNDERWEIGHT_BMI = 18.5
NORMAL_BMI = 25.0
OVERWEIGHT_BMI = 30.0

_BODY_FAT_OFFSET = {
    Gender.MALE: 16.2,
    Gender.FEMALE: 5.4,
}


def bmi(weight_kg: float, height_cm: float) -> float:
    """Return weight / height(m)^2, or 0 when the height is 0."""
    if height_cm == 0:
        return 0.0
    height_m = height_cm / 100.0
    return weight_kg / (height_m * height_m)


def body_fat_estimate(
    weight_kg: float, height_cm: float, age: int, gender: Gender
) -> float:
    """Estimate body fat from BMI and age.

    This is a simplified linear approximation,
    ``1.20 * BMI + 0.23 * (age * 0.12) - C``, not the US Navy
    circumference method. Treat it as a rough indication only.
    """
    age_factor = age * 0.12
    offset = _BODY_FAT_OFFSET[gender]
    return 1.20 * bmi(weight_kg, height_cm) + 0.23 * age_factor - offset


def interpret_bmi(value: float) -> BmiCategory:
    if value < UNDERWEIGHT_BMI:
        return BmiCategory.UNDERWEIGHT
    if value < NORMAL_BMI:
        return BmiCategory.NORMAL
    if value < OVERWEIGHT_BMI:
        return BmiCategory.OVERWEIGHT
    return BmiCategory.OBESE


def health_report(user: UserRecord) -> HealthReport:
    """Build the health summary of a user; body fat needs a recorded gender."""
    value = bmi(user.weight_kg, user.height_cm)
    body_fat = (
        body_fat_estimate(user.weight_kg, user.height_cm, user.age, user.gender)
        if user.gender is not None
        else None
    )
    return HealthReport(
        weight_kg=user.weight_kg,
        height_cm=user.height_cm,
        bmi=value,
        category=interpret_bmi(value),
        body_fat_pct=body_fat,
    )
