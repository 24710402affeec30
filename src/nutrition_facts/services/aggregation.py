"""Pure nutrient arithmetic over ingredient lists."""

import math
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from nutrition_facts.domain.ledger import Ingredient
from nutrition_facts.domain.nutrition import (
    GoalProgress,
    NutrientProfile,
    NutrientTotals,
)
from nutrition_facts.domain.profile import DailyGoals

_HALF = Decimal("0.5")
_ONE_DECIMAL = Decimal("0.1")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up, as Math.round does."""
    return int(math.floor(Decimal(value) + _HALF))


def round_one_decimal(value: float) -> float:
    """Round to one decimal place the way toFixed(1) does."""
    return float(Decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def totals(ingredients: Iterable[Ingredient]) -> NutrientTotals:
    """Sum nutrients of weighted ingredients.

    Calories are rounded per ingredient before summing, other macros keep
    full precision. Stored history totals depend on this exact order.
    """
    calories = 0
    protein = 0.0
    fat = 0.0
    carbohydrate = 0.0
    fiber = 0.0
    weight = 0.0
    for ingredient in ingredients:
        ratio = ingredient.weight / 100
        base = ingredient.base_cpfc
        calories += round_half_up(base.calories * ratio)
        protein += base.protein * ratio
        fat += base.fat * ratio
        carbohydrate += base.carbohydrate * ratio
        fiber += base.fiber * ratio
        weight += ingredient.weight
    return NutrientTotals(
        calories=calories,
        protein=protein,
        fat=fat,
        carbohydrate=carbohydrate,
        fiber=fiber,
        weight=weight,
    )


def per100g(ingredients: Iterable[Ingredient]) -> NutrientProfile:
    """Return the nutrients of 100 grams of the combined ingredients."""
    total = totals(ingredients)
    if total.weight == 0:
        return NutrientProfile()
    factor = 100 / total.weight
    return NutrientProfile(
        calories=total.calories * factor,
        protein=total.protein * factor,
        fat=total.fat * factor,
        carbohydrate=total.carbohydrate * factor,
        fiber=total.fiber * factor,
    )


def rounded(profile: NutrientProfile) -> NutrientProfile:
    """Return a copy rounded for storage: whole calories, one-decimal macros."""
    return NutrientProfile(
        calories=round_half_up(profile.calories),
        protein=round_one_decimal(profile.protein),
        fat=round_one_decimal(profile.fat),
        carbohydrate=round_one_decimal(profile.carbohydrate),
        fiber=round_one_decimal(profile.fiber),
    )


def ingredient_nutrition(ingredient: Ingredient) -> NutrientProfile:
    """Return the rounded nutrients of a single ingredient portion."""
    ratio = ingredient.weight / 100
    base = ingredient.base_cpfc
    return NutrientProfile(
        calories=round_half_up(base.calories * ratio),
        protein=round_one_decimal(base.protein * ratio),
        fat=round_one_decimal(base.fat * ratio),
        carbohydrate=round_one_decimal(base.carbohydrate * ratio),
        fiber=round_one_decimal(base.fiber * ratio),
    )


def progress(
    daily_totals: NutrientTotals, daily_goals: DailyGoals | None
) -> GoalProgress | None:
    """Return percentages of the daily goals reached, or None without goals."""
    if daily_goals is None:
        return None
    return GoalProgress(
        calories=_percent(daily_totals.calories, daily_goals.target_calories),
        protein=_percent(daily_totals.protein, daily_goals.protein),
        fat=_percent(daily_totals.fat, daily_goals.fat),
        carbohydrate=_percent(daily_totals.carbohydrate, daily_goals.carbohydrate),
        fiber=_percent(daily_totals.fiber, daily_goals.fiber),
    )


def _percent(actual: float, goal: float) -> int:
    if goal <= 0:
        return 0
    return round_half_up(100 * actual / goal)
