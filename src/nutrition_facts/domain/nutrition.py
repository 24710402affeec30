"""Nutrient records shared by ingredients, dishes and daily totals."""

from pydantic import BaseModel, ConfigDict, Field

NUTRIENT_FIELDS = ("calories", "protein", "fat", "carbohydrate", "fiber")


class NutrientProfile(BaseModel):
    """Nutrient values for a 100-gram reference portion."""

    model_config = ConfigDict(allow_inf_nan=False)

    calories: float = Field(default=0.0, ge=0)
    protein: float = Field(default=0.0, ge=0)
    fat: float = Field(default=0.0, ge=0)
    carbohydrate: float = Field(default=0.0, ge=0)
    fiber: float = Field(default=0.0, ge=0)


class NutrientTotals(NutrientProfile):
    """Aggregated nutrients for a set of ingredients, including total grams."""

    weight: float = Field(default=0.0, ge=0)


class GoalProgress(BaseModel):
    """Whole-number percentages of the daily goal reached per nutrient."""

    calories: int = 0
    protein: int = 0
    fat: int = 0
    carbohydrate: int = 0
    fiber: int = 0
