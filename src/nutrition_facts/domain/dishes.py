"""Domain models for the saved dish library."""

from pydantic import BaseModel

from nutrition_facts.domain.nutrition import NutrientProfile


class SavedDish(BaseModel):
    """A reusable dish template with per-100g nutrients."""

    id: str
    name: str
    per100g: NutrientProfile
