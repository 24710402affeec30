"""Day-indexed meal ledger with derived totals."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from nutrition_facts.domain.ledger import DayEntry, History, Ingredient, Meal, MealType
from nutrition_facts.domain.profile import DailyGoals
from nutrition_facts.services import aggregation
from nutrition_facts.services.coercion import coerce_nutrient
from nutrition_facts.services.storage import (
    HISTORY_KEY,
    SCHEMA_VERSION,
    KeyValueStore,
    discard_blob,
    read_blob,
    write_blob,
)

_HISTORY_ADAPTER = TypeAdapter(History)

_logger = logging.getLogger(__name__)


def migrate_on_load(history: History, goals: DailyGoals | None) -> History:
    """Backfill progress percentages for days stored before goals existed.

    Only days missing ``progress_percentages`` change; stored totals and
    existing percentages are left as they are, so repeated runs are no-ops.
    """
    if goals is None:
        return history
    migrated: History = {}
    for day_key, entry in history.items():
        if entry.progress_percentages is None:
            entry = entry.model_copy(
                update={
                    "progress_percentages": aggregation.progress(
                        entry.daily_totals, goals
                    )
                }
            )
        migrated[day_key] = entry
    return migrated


def dump_history(history: History) -> dict[str, object]:
    """Return the JSON-ready form of a history."""
    return _HISTORY_ADAPTER.dump_python(
        history, mode="json", by_alias=True, exclude_none=True
    )


def parse_history(payload: object) -> History:
    """Validate a JSON-decoded history."""
    return _HISTORY_ADAPTER.validate_python(payload)


@dataclass
class LedgerStore:
    """Single writer of the meal history.

    Every mutation recomputes the affected day's totals and progress from all
    of its ingredients and persists before returning.
    """

    store: KeyValueStore
    goals: DailyGoals | None = None
    _history: History = field(default_factory=dict)

    def load(self, goals: DailyGoals | None = None) -> History:
        """Read the persisted history and migrate it for the given goals.

        Without goals any stored progress percentages are dropped.
        """
        self.goals = goals
        self._history = {}
        blob = read_blob(self.store, HISTORY_KEY)
        if blob is None:
            return self.history()
        try:
            stored = parse_history(blob.data)
        except ValidationError as exc:
            discard_blob(self.store, HISTORY_KEY, exc)
            return self.history()
        if goals is None:
            self._history = _without_progress(stored)
        else:
            self._history = migrate_on_load(stored, goals)
        if self._history != stored or blob.version != SCHEMA_VERSION:
            self._persist()
        return self.history()

    def history(self) -> History:
        """Return a copy of the full history."""
        return {
            day_key: entry.model_copy(deep=True)
            for day_key, entry in self._history.items()
        }

    def day(self, day: date | str) -> DayEntry | None:
        """Return a copy of one day's entry."""
        entry = self._history.get(_day_key(day))
        return entry.model_copy(deep=True) if entry else None

    def dates(self) -> list[str]:
        """Return recorded dates, newest first."""
        return sorted(self._history, reverse=True)

    def record_meal(
        self,
        day: date | str,
        meal_type: MealType | str,
        ingredients: list[Ingredient],
    ) -> str:
        """Append a meal to a day, creating the day when needed."""
        if not ingredients:
            raise ValueError("A meal needs at least one ingredient")
        day_key = _day_key(day)
        meal_id = str(uuid4())
        meal = Meal(
            type=MealType(meal_type),
            ingredients=[
                ingredient.model_copy(deep=True) for ingredient in ingredients
            ],
        )
        entry = self._history.get(day_key)
        meals = dict(entry.meals) if entry else {}
        meals[meal_id] = meal
        self._history[day_key] = self._build_entry(meals)
        self._persist()
        _logger.info(
            "Recorded %s meal %s on %s with %s ingredients",
            meal.type.value,
            meal_id,
            day_key,
            len(meal.ingredients),
        )
        return meal_id

    def remove_meal(self, day: date | str, meal_id: str) -> bool:
        """Remove a meal; a day left without meals is deleted."""
        day_key = _day_key(day)
        entry = self._history.get(day_key)
        if entry is None or meal_id not in entry.meals:
            return False
        meals = {key: meal for key, meal in entry.meals.items() if key != meal_id}
        if meals:
            self._history[day_key] = self._build_entry(meals)
        else:
            del self._history[day_key]
        self._persist()
        return True

    def clear_day(self, day: date | str) -> bool:
        """Delete a day with all of its meals."""
        day_key = _day_key(day)
        if self._history.pop(day_key, None) is None:
            return False
        self._persist()
        return True

    def update_ingredient_weight(
        self, day: date | str, meal_id: str, ingredient_id: str, weight: object
    ) -> DayEntry | None:
        """Change the grams of a logged ingredient and refresh the day."""
        day_key = _day_key(day)
        entry = self._history.get(day_key)
        meal = entry.meals.get(meal_id) if entry else None
        if meal is None:
            return None
        if not any(ingredient.id == ingredient_id for ingredient in meal.ingredients):
            return None
        grams = coerce_nutrient(weight)
        updated = Meal(
            type=meal.type,
            ingredients=[
                ingredient.model_copy(update={"weight": grams})
                if ingredient.id == ingredient_id
                else ingredient
                for ingredient in meal.ingredients
            ],
        )
        meals = dict(entry.meals)
        meals[meal_id] = updated
        self._history[day_key] = self._build_entry(meals)
        self._persist()
        return self.day(day_key)

    def apply_goals(self, goals: DailyGoals | None) -> None:
        """Recompute progress for every day after the goals changed."""
        self.goals = goals
        if not self._history:
            return
        self._history = {
            day_key: entry.model_copy(
                update={
                    "progress_percentages": aggregation.progress(
                        entry.daily_totals, goals
                    )
                }
            )
            for day_key, entry in self._history.items()
        }
        self._persist()

    def _build_entry(self, meals: dict[str, Meal]) -> DayEntry:
        daily_totals = aggregation.totals(
            ingredient for meal in meals.values() for ingredient in meal.ingredients
        )
        return DayEntry(
            meals=meals,
            daily_totals=daily_totals,
            progress_percentages=aggregation.progress(daily_totals, self.goals),
        )

    def _persist(self) -> None:
        if not self._history:
            self.store.delete(HISTORY_KEY)
            return
        write_blob(self.store, HISTORY_KEY, dump_history(self._history))


def _without_progress(history: History) -> History:
    return {
        day_key: entry.model_copy(update={"progress_percentages": None})
        if entry.progress_percentages is not None
        else entry
        for day_key, entry in history.items()
    }


def _day_key(day: date | str) -> str:
    if isinstance(day, datetime):
        return day.date().isoformat()
    if isinstance(day, date):
        return day.isoformat()
    return date.fromisoformat(day).isoformat()
