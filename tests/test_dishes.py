"""Tests for the saved dish library."""

import json

import pytest
from pydantic import ValidationError

from nutrition_facts.domain.nutrition import NutrientProfile
from nutrition_facts.services.dishes import SavedDishService
from nutrition_facts.services.storage import SAVED_DISHES_KEY
from tests.conftest import InMemoryKeyValueStore, make_ingredient


def test_add_rounds_and_persists(store: InMemoryKeyValueStore) -> None:
    service = SavedDishService(store)

    dish = service.add(
        "  Овсянка ", NutrientProfile(calories=88.6, protein=3.04, fat=1.75)
    )

    assert dish.name == "Овсянка"
    assert dish.per100g.calories == 89
    assert dish.per100g.protein == 3.0
    assert dish.per100g.fat == 1.8
    assert service.load() == [dish]


def test_add_validates_input(store: InMemoryKeyValueStore) -> None:
    service = SavedDishService(store)

    with pytest.raises(ValueError, match="название"):
        service.add(" ", NutrientProfile(calories=10))
    assert service.load() == []


def test_per100g_values_must_be_non_negative_and_finite() -> None:
    with pytest.raises(ValidationError):
        NutrientProfile(calories=-1)
    with pytest.raises(ValidationError):
        NutrientProfile(protein=float("nan"))
    with pytest.raises(ValidationError):
        NutrientProfile(fat=float("inf"))


def test_add_from_single_ingredient_keeps_its_name(
    store: InMemoryKeyValueStore,
) -> None:
    service = SavedDishService(store)

    dish = service.add_from_ingredients([make_ingredient("гречка", weight=250)])

    assert dish.name == "гречка"
    assert dish.per100g.calories == 165
    assert dish.per100g.protein == 31


def test_add_from_ingredients_computes_per100g(store: InMemoryKeyValueStore) -> None:
    service = SavedDishService(store)

    dish = service.add_from_ingredients(
        [
            make_ingredient("курица", weight=150, calories=165, protein=31),
            make_ingredient("рис", weight=50, calories=130, protein=2.7),
        ],
        name="Курица с рисом",
    )

    assert dish.name == "Курица с рисом"
    assert dish.per100g.calories == 157
    assert dish.per100g.protein == 23.9


def test_add_from_ingredients_requires_name_and_items(
    store: InMemoryKeyValueStore,
) -> None:
    service = SavedDishService(store)

    with pytest.raises(ValueError):
        service.add_from_ingredients([])
    with pytest.raises(ValueError):
        service.add_from_ingredients([make_ingredient("a"), make_ingredient("b")])


def test_update_and_delete(store: InMemoryKeyValueStore) -> None:
    service = SavedDishService(store)
    dish = service.add("Суп", NutrientProfile(calories=40))

    updated = service.update(dish.id, "Борщ", NutrientProfile(calories=50))

    assert updated.id == dish.id
    assert service.load()[0].name == "Борщ"
    with pytest.raises(KeyError):
        service.update("missing", "x", NutrientProfile())
    assert service.delete(dish.id)
    assert not service.delete(dish.id)
    assert service.load() == []


def test_search_is_case_insensitive(store: InMemoryKeyValueStore) -> None:
    service = SavedDishService(store)
    service.add("Борщ", NutrientProfile(calories=50))
    service.add("Щи", NutrientProfile(calories=30))

    assert [dish.name for dish in service.search("бор")] == ["Борщ"]
    assert len(service.search("  ")) == 2


def test_to_ingredient_uses_per100g(store: InMemoryKeyValueStore) -> None:
    service = SavedDishService(store)
    dish = service.add("Борщ", NutrientProfile(calories=50))

    ingredient = service.to_ingredient(dish, weight=300)

    assert ingredient.name == "Борщ"
    assert ingredient.weight == 300
    assert ingredient.base_cpfc == dish.per100g


def test_load_reads_legacy_list(store: InMemoryKeyValueStore) -> None:
    store.values[SAVED_DISHES_KEY] = json.dumps(
        [{"id": "d1", "name": "Суп", "per100g": {"calories": 40}}]
    )

    dishes = SavedDishService(store).load()

    assert dishes[0].id == "d1"
    assert dishes[0].per100g.protein == 0


def test_load_discards_invalid_library(store: InMemoryKeyValueStore) -> None:
    store.values[SAVED_DISHES_KEY] = json.dumps({"dishes": "broken"})

    assert SavedDishService(store).load() == []
    assert SAVED_DISHES_KEY not in store.values
