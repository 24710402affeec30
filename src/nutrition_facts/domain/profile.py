"""User profile and daily goal models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["male", "female"]
ActivityLevel = Literal["minimal", "light", "moderate", "high", "extreme"]
Goal = Literal["lose", "maintain", "gain"]


class DailyGoals(BaseModel):
    """Target daily intake."""

    model_config = ConfigDict(populate_by_name=True)

    bmr: float = 0
    tdee: float = 0
    target_calories: float = Field(default=0, alias="targetCalories")
    protein: float = 0
    fat: float = 0
    carbohydrate: float = 0
    fiber: float = 0


class UserProfile(BaseModel):
    """Body metrics and preferences used to derive daily goals."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    gender: Gender
    age: float
    weight: float
    height: float
    activity_level: ActivityLevel = Field(alias="activityLevel")
    goal: Goal
    daily_goals: DailyGoals | None = Field(default=None, alias="dailyGoals")
