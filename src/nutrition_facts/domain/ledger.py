"""Persisted meal history models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from nutrition_facts.domain.nutrition import (
    GoalProgress,
    NutrientProfile,
    NutrientTotals,
)


class MealType(str, Enum):
    """Kinds of meals a user can log."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @property
    def label(self) -> str:
        """Return the localized label used in exports and prompts."""
        return _MEAL_TYPE_LABELS[self]


_MEAL_TYPE_LABELS = {
    MealType.BREAKFAST: "Завтрак",
    MealType.LUNCH: "Обед",
    MealType.DINNER: "Ужин",
    MealType.SNACK: "Перекус",
}


class Ingredient(BaseModel):
    """An ingredient portion with its per-100g nutrient profile."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    id: str
    name: str
    weight: float = Field(ge=0)
    base_cpfc: NutrientProfile = Field(alias="baseCPFC")


class Meal(BaseModel):
    """A logged meal."""

    type: MealType
    ingredients: list[Ingredient]


class DayEntry(BaseModel):
    """All meals of a calendar day with derived totals."""

    model_config = ConfigDict(populate_by_name=True)

    meals: dict[str, Meal]
    daily_totals: NutrientTotals = Field(alias="dailyTotals")
    progress_percentages: GoalProgress | None = Field(
        default=None, alias="progressPercentages"
    )

    def ingredients(self) -> list[Ingredient]:
        """Return every ingredient across the day's meals in insertion order."""
        return [
            ingredient
            for meal in self.meals.values()
            for ingredient in meal.ingredients
        ]


History = dict[str, DayEntry]
