"""Tests for portion scaling."""

import pytest

from macro_tracker.domain.nutrition import CanonicalMacros
from macro_tracker.services.scaler import scale_macros

CHICKEN_PER_100G = CanonicalMacros(
    protein_g=31.0, carbs_g=0.0, fat_g=3.6, calories=165.0, fiber_g=0.0
)


def test_scale_150_grams() -> None:
    portion = scale_macros(CHICKEN_PER_100G, 150)

    assert portion.protein_g == pytest.approx(46.5)
    assert portion.carbs_g == 0.0
    assert portion.fat_g == pytest.approx(5.4)
    assert portion.calories == pytest.approx(247.5)
    assert portion.fiber_g == 0.0


def test_scale_100_grams_is_identity() -> None:
    assert scale_macros(CHICKEN_PER_100G, 100) == CHICKEN_PER_100G


def test_scale_zero_grams_is_zero() -> None:
    assert scale_macros(CHICKEN_PER_100G, 0) == CanonicalMacros()


def test_negative_values_are_clamped() -> None:
    portion = scale_macros(CanonicalMacros(protein_g=-2.0, calories=100.0), 50)

    assert portion.protein_g == 0.0
    assert portion.calories == 50.0


def test_non_finite_values_are_clamped() -> None:
    macros = CanonicalMacros(protein_g=float("nan"), fat_g=float("inf"), calories=100)

    portion = scale_macros(macros, 200)

    assert portion == CanonicalMacros(calories=200.0)


def test_non_finite_grams_never_leak() -> None:
    portion = scale_macros(CHICKEN_PER_100G, float("nan"))

    assert portion == CanonicalMacros()
