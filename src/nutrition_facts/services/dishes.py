"""Saved dish library."""

from dataclasses import dataclass
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from nutrition_facts.domain.dishes import SavedDish
from nutrition_facts.domain.ledger import Ingredient
from nutrition_facts.domain.nutrition import NutrientProfile
from nutrition_facts.services import aggregation
from nutrition_facts.services.storage import (
    SAVED_DISHES_KEY,
    KeyValueStore,
    discard_blob,
    read_blob,
    write_blob,
)

_DISHES_ADAPTER = TypeAdapter(list[SavedDish])


def dump_dishes(dishes: list[SavedDish]) -> list[object]:
    """Return the JSON-ready form of a dish list."""
    return _DISHES_ADAPTER.dump_python(dishes, mode="json")


@dataclass
class SavedDishService:
    """Manages reusable per-100g dish templates."""

    store: KeyValueStore

    def load(self) -> list[SavedDish]:
        """Return all saved dishes, discarding an unreadable library."""
        blob = read_blob(self.store, SAVED_DISHES_KEY)
        if blob is None:
            return []
        try:
            return _DISHES_ADAPTER.validate_python(blob.data)
        except ValidationError as exc:
            discard_blob(self.store, SAVED_DISHES_KEY, exc)
            return []

    def add(self, name: str, per100g: NutrientProfile) -> SavedDish:
        """Add a dish from manually entered per-100g values."""
        dish = SavedDish(
            id=str(uuid4()),
            name=_require_name(name),
            per100g=aggregation.rounded(per100g),
        )
        self._persist([*self.load(), dish])
        return dish

    def add_from_ingredients(
        self, ingredients: list[Ingredient], name: str | None = None
    ) -> SavedDish:
        """Save a built dish; a single ingredient keeps its own name."""
        if not ingredients:
            raise ValueError("Нет ингредиентов для сохранения")
        if name is None and len(ingredients) == 1:
            name = ingredients[0].name
        dish = SavedDish(
            id=str(uuid4()),
            name=_require_name(name or ""),
            per100g=aggregation.rounded(aggregation.per100g(ingredients)),
        )
        self._persist([*self.load(), dish])
        return dish

    def update(self, dish_id: str, name: str, per100g: NutrientProfile) -> SavedDish:
        """Replace a dish's name and values."""
        dishes = self.load()
        index = next(
            (position for position, dish in enumerate(dishes) if dish.id == dish_id),
            None,
        )
        if index is None:
            raise KeyError(dish_id)
        updated = SavedDish(
            id=dish_id,
            name=_require_name(name),
            per100g=aggregation.rounded(per100g),
        )
        dishes[index] = updated
        self._persist(dishes)
        return updated

    def delete(self, dish_id: str) -> bool:
        """Remove a dish; returns False when it did not exist."""
        dishes = self.load()
        remaining = [dish for dish in dishes if dish.id != dish_id]
        if len(remaining) == len(dishes):
            return False
        self._persist(remaining)
        return True

    def search(self, query: str) -> list[SavedDish]:
        """Case-insensitive name search; a blank query returns everything."""
        dishes = self.load()
        needle = query.strip().lower()
        if not needle:
            return dishes
        return [dish for dish in dishes if needle in dish.name.lower()]

    @staticmethod
    def to_ingredient(dish: SavedDish, weight: float = 100) -> Ingredient:
        """Turn a dish into an ingredient draft for a new meal."""
        return Ingredient(
            id=str(uuid4()),
            name=dish.name,
            weight=weight,
            base_cpfc=dish.per100g.model_copy(),
        )

    def _persist(self, dishes: list[SavedDish]) -> None:
        write_blob(self.store, SAVED_DISHES_KEY, dump_dishes(dishes))


def _require_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Введите название блюда")
    return cleaned
