"""Validation of AI-returned ingredient data."""

import logging
from uuid import uuid4

from nutrition_facts.domain.ledger import Ingredient
from nutrition_facts.domain.nutrition import NUTRIENT_FIELDS, NutrientProfile
from nutrition_facts.domain.profile import DailyGoals
from nutrition_facts.services.aggregation import round_half_up
from nutrition_facts.services.coercion import coerce, coerce_nutrient

DEFAULT_WEIGHT_G = 100

_GOAL_FIELDS = {
    "bmr": "bmr",
    "tdee": "tdee",
    "targetCalories": "target_calories",
    "protein": "protein",
    "fat": "fat",
    "carbohydrate": "carbohydrate",
    "fiber": "fiber",
}

_logger = logging.getLogger(__name__)


def normalize(candidates: object) -> list[Ingredient] | None:
    """Turn an AI ingredient array into ingredients.

    Returns ``None`` when the payload is not a list or when no element carries
    a usable name, so callers can tell "nothing recognized" apart from a
    valid result.
    """
    if not isinstance(candidates, list):
        _logger.warning(
            "Ingredient payload is not a list: %s", type(candidates).__name__
        )
        return None
    ingredients = [
        ingredient
        for ingredient in (_normalize_item(item) for item in candidates)
        if ingredient is not None
    ]
    if not ingredients:
        _logger.warning("No usable ingredients in AI payload of %s", len(candidates))
        return None
    return ingredients


def normalize_nutrients(payload: object) -> NutrientProfile | None:
    """Turn a single-product AI answer into a per-100g profile."""
    if not isinstance(payload, dict):
        return None
    profile = _profile_from(payload)
    if profile.calories > 0 or profile.protein > 0:
        return profile
    return None


def normalize_daily_goals(payload: object) -> DailyGoals:
    """Turn an AI daily-goal answer into whole-number goals."""
    data = payload if isinstance(payload, dict) else {}
    values = {
        attribute: round_half_up(coerce(data.get(key)))
        for key, attribute in _GOAL_FIELDS.items()
    }
    return DailyGoals(**values)


def _normalize_item(item: object) -> Ingredient | None:
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    weight = round_half_up(coerce_nutrient(item.get("weight"))) or DEFAULT_WEIGHT_G
    return Ingredient(
        id=str(uuid4()),
        name=name.strip(),
        weight=weight,
        base_cpfc=_profile_from(item),
    )


def _profile_from(payload: dict[str, object]) -> NutrientProfile:
    return NutrientProfile(
        **{field: coerce_nutrient(payload.get(field)) for field in NUTRIENT_FIELDS}
    )
