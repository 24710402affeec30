"""Domain models for history export."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExportRow:
    """One ingredient of one meal, flattened for export."""

    date: str
    meal_type: str
    ingredient_name: str
    weight: float
    calories: int
    protein: float
    fat: float
    carbohydrate: float
    fiber: float
