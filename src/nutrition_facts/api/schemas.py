"""Pydantic request models for the HTTP API."""

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from nutrition_facts.domain.ledger import Ingredient, MealType
from nutrition_facts.domain.nutrition import NutrientProfile


class IngredientDraft(BaseModel):
    """Ingredient as entered by a client; the id is optional."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    id: str | None = None
    name: str = Field(min_length=1)
    weight: float = Field(default=100, ge=0)
    base_cpfc: NutrientProfile = Field(alias="baseCPFC")

    def to_ingredient(self) -> Ingredient:
        """Return a ledger ingredient, assigning an id when missing."""
        return Ingredient(
            id=self.id or str(uuid4()),
            name=self.name.strip(),
            weight=self.weight,
            base_cpfc=self.base_cpfc,
        )


class MealRequest(BaseModel):
    """Payload for recording a meal."""

    model_config = ConfigDict(populate_by_name=True)

    meal_type: MealType = Field(alias="mealType")
    ingredients: list[IngredientDraft] = Field(min_length=1)


class WeightUpdate(BaseModel):
    """New grams for a logged ingredient."""

    weight: float = Field(ge=0, allow_inf_nan=False)


class DishRequest(BaseModel):
    """Manually entered saved dish."""

    name: str
    per100g: NutrientProfile


class DishFromIngredientsRequest(BaseModel):
    """Saved dish built from a list of ingredients."""

    name: str | None = None
    ingredients: list[IngredientDraft] = Field(min_length=1)


class ProviderRequest(BaseModel):
    """Credentials for one provider."""

    model_config = ConfigDict(populate_by_name=True)

    provider_id: str = Field(alias="providerId")
    token: str
    model: str


class TextAnalysisRequest(BaseModel):
    """Free-text dish description to analyze."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    per_100g: bool = Field(default=False, alias="per100g")


class IngredientLookupRequest(BaseModel):
    """Product name to look up."""

    name: str = Field(min_length=1)
