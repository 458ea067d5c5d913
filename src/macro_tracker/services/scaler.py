"""Portion scaling for per-100g macros."""

import math

from macro_tracker.domain.nutrition import CanonicalMacros


def check_grams(grams: float) -> None:
    """Raise ValueError unless ``grams`` is a finite positive quantity."""
    if not math.isfinite(grams) or grams <= 0:
        raise ValueError("grams must be a finite positive number")


def scale_macros(macros: CanonicalMacros, grams: float) -> CanonicalMacros:
    """Scale per-100g macros to a portion of ``grams``.

    Negative or non-finite products become 0, so zero grams scale to zeros.
    """
    factor = grams / 100.0
    return CanonicalMacros(
        protein_g=macros.protein_g * factor,
        carbs_g=macros.carbs_g * factor,
        fat_g=macros.fat_g * factor,
        calories=macros.calories * factor,
        fiber_g=macros.fiber_g * factor,
    ).clamped()
