"""Flattened CSV and JSON exports of the meal history."""

import json

from nutrition_facts.domain.export import ExportRow
from nutrition_facts.domain.ledger import History
from nutrition_facts.services.aggregation import ingredient_nutrition
from nutrition_facts.services.ledger import dump_history

CSV_HEADERS = (
    "Дата",
    "Прием пищи",
    "Ингредиент",
    "Вес (г)",
    "Калории",
    "Белки (г)",
    "Жиры (г)",
    "Углеводы (г)",
    "Клетчатка (г)",
)

BOM = "\ufeff"


def filter_history(
    history: History, start: str | None = None, end: str | None = None
) -> History:
    """Keep days within an inclusive ISO date range."""
    return {
        day: entry
        for day, entry in history.items()
        if (start is None or day >= start) and (end is None or day <= end)
    }


def export_rows(
    history: History, start: str | None = None, end: str | None = None
) -> list[ExportRow]:
    """Flatten a history into one row per ingredient, newest date first."""
    rows: list[ExportRow] = []
    for day, entry in filter_history(history, start, end).items():
        for meal in entry.meals.values():
            for ingredient in meal.ingredients:
                nutrition = ingredient_nutrition(ingredient)
                rows.append(
                    ExportRow(
                        date=day,
                        meal_type=meal.type.label,
                        ingredient_name=ingredient.name,
                        weight=ingredient.weight,
                        calories=int(nutrition.calories),
                        protein=nutrition.protein,
                        fat=nutrition.fat,
                        carbohydrate=nutrition.carbohydrate,
                        fiber=nutrition.fiber,
                    )
                )
    rows.sort(key=lambda row: row.date, reverse=True)
    return rows


def render_csv(rows: list[ExportRow]) -> str:
    """Render rows as BOM-prefixed CSV with quoted text columns."""
    lines = [",".join(CSV_HEADERS)]
    for row in rows:
        lines.append(
            ",".join(
                [
                    row.date,
                    _quoted(row.meal_type),
                    _quoted(row.ingredient_name),
                    _number(row.weight),
                    str(row.calories),
                    _number(row.protein),
                    _number(row.fat),
                    _number(row.carbohydrate),
                    _number(row.fiber),
                ]
            )
        )
    return BOM + "\n".join(lines)


def render_json(history: History) -> str:
    """Render a history as indented JSON."""
    return json.dumps(dump_history(history), ensure_ascii=False, indent=2)


def export_filename(
    extension: str, start: str | None = None, end: str | None = None
) -> str:
    """Return a download file name describing the date range."""
    if start and end:
        suffix = f"_{start}_{end}"
    elif start:
        suffix = f"_from_{start}"
    elif end:
        suffix = f"_to_{end}"
    else:
        suffix = ""
    return f"история_КБЖУ{suffix}.{extension}"


def _quoted(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
