import logging
from typing import Iterable, List

from ..models.food_analysis_schema import ConsistencyWarning, FoodItem

logger = logging.getLogger(__name__)

KCAL_PER_GRAM_PROTEIN = 4.0
KCAL_PER_GRAM_CARBS = 4.0
KCAL_PER_GRAM_FAT = 9.0
CALORIE_TOLERANCE = 0.15


def derive_calories(item: FoodItem) -> float:
    """Energy implied by the item's macros (Atwater factors)."""
    return (
        item.protein_g * KCAL_PER_GRAM_PROTEIN
        + item.carbs_g * KCAL_PER_GRAM_CARBS
        + item.fat_g * KCAL_PER_GRAM_FAT
    )


def check_item(item: FoodItem) -> ConsistencyWarning | None:
    derived = derive_calories(item)
    difference = abs(item.calories - derived)
    if difference <= CALORIE_TOLERANCE * item.calories:
        return None
    return ConsistencyWarning(
        label=item.label,
        declared_calories=item.calories,
        derived_calories=round(derived, 2),
        difference=round(difference, 2),
    )


def check_consistency(items: Iterable[FoodItem]) -> List[ConsistencyWarning]:
    """Compare declared calories against macro-derived calories.

    Mismatches are logged and returned; the items themselves are never changed.
    """
    warnings: List[ConsistencyWarning] = []
    for item in items:
        warning = check_item(item)
        if warning is None:
            continue
        logger.warning(
            "Calorie mismatch for %r: declared=%s derived=%s",
            warning.label,
            warning.declared_calories,
            warning.derived_calories,
        )
        warnings.append(warning)
    return warnings
