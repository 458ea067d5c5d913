"""Resolve FDC nutrient lists into canonical per-100g macros.

Providers disagree on the shape of a nutrient entry (flat id + value, nested
``nutrient.id`` + amount, or only a name) and on the id scheme (current FDC
ids vs. the legacy SR numbers). Each macro is resolved by walking an ordered
chain of matchers and keeping the first strictly positive value.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from macro_tracker.domain.nutrition import CanonicalMacros, FoodRecord, RawNutrient

_logger = logging.getLogger(__name__)

Matcher = Callable[[Sequence[RawNutrient]], float | None]


@dataclass(frozen=True)
class NutrientKey:
    """Identifiers used to find one macro in a nutrient list."""

    field: str
    modern_id: int
    legacy_id: int
    keyword: str


NUTRIENT_KEYS = (
    NutrientKey(field="protein_g", modern_id=1003, legacy_id=203, keyword="protein"),
    NutrientKey(
        field="carbs_g", modern_id=1005, legacy_id=205, keyword="carbohydrate"
    ),
    NutrientKey(field="fat_g", modern_id=1004, legacy_id=204, keyword="fat"),
    NutrientKey(field="calories", modern_id=1008, legacy_id=208, keyword="energy"),
    NutrientKey(field="fiber_g", modern_id=1079, legacy_id=291, keyword="fiber"),
)


def resolve_macros(record: FoodRecord) -> CanonicalMacros:
    """Return the per-100g macros of a food record.

    Unmatched macros resolve to 0. A warning is logged when protein, carbs,
    fat and calories are all 0 so schema drift shows up in the logs.
    """
    values = {
        key.field: _resolve_one(record.nutrients, _matchers_for(key))
        for key in NUTRIENT_KEYS
    }
    macros = CanonicalMacros(**values)
    if macros.is_empty():
        _log_unresolved(record)
    return macros


def _resolve_one(nutrients: Sequence[RawNutrient], matchers: list[Matcher]) -> float:
    for matcher in matchers:
        value = matcher(nutrients)
        if value is not None and value > 0:
            return value
    return 0.0


def _matchers_for(key: NutrientKey) -> list[Matcher]:
    return [
        match_flat_id(key.modern_id),
        match_nested_id(key.modern_id),
        match_flat_id(key.legacy_id),
        match_nested_id(key.legacy_id),
        match_keyword(key.keyword),
    ]


def match_flat_id(nutrient_id: int) -> Matcher:
    """Match ``nutrientId`` at the top level of the entry."""

    def matcher(nutrients: Sequence[RawNutrient]) -> float | None:
        for nutrient in nutrients:
            if nutrient.nutrient_id != nutrient_id:
                continue
            value = _first_positive(nutrient.value, nutrient.amount)
            if value is not None:
                return value
        return None

    return matcher


def match_nested_id(nutrient_id: int) -> Matcher:
    """Match the id of the nested ``nutrient`` object."""

    def matcher(nutrients: Sequence[RawNutrient]) -> float | None:
        for nutrient in nutrients:
            if nutrient.nested_id != nutrient_id:
                continue
            value = _first_positive(nutrient.amount, nutrient.value)
            if value is not None:
                return value
        return None

    return matcher


def match_keyword(keyword: str) -> Matcher:
    """Match a case-insensitive substring of the flat or nested name."""
    needle = keyword.lower()

    def matcher(nutrients: Sequence[RawNutrient]) -> float | None:
        for nutrient in nutrients:
            names = (nutrient.name or "", nutrient.nested_name or "")
            if not any(needle in name.lower() for name in names):
                continue
            value = _first_positive(nutrient.amount, nutrient.value)
            if value is not None:
                return value
        return None

    return matcher


def _first_positive(*candidates: float | None) -> float | None:
    for candidate in candidates:
        if candidate is not None and candidate > 0:
            return float(candidate)
    return None


def _log_unresolved(record: FoodRecord) -> None:
    if not record.nutrients:
        _logger.warning(
            "No macros resolved for %r (fdc_id=%s): nutrient list is empty",
            record.description,
            record.fdc_id,
        )
        return
    _logger.warning(
        "No macros resolved for %r (fdc_id=%s); first nutrient: %r",
        record.description,
        record.fdc_id,
        record.nutrients[0],
    )
