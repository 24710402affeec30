"""Tests for history export."""

import json

from nutrition_facts.services.export import (
    BOM,
    CSV_HEADERS,
    export_filename,
    export_rows,
    filter_history,
    render_csv,
    render_json,
)
from nutrition_facts.services.ledger import LedgerStore
from tests.conftest import InMemoryKeyValueStore, make_ingredient


def _ledger(store: InMemoryKeyValueStore) -> LedgerStore:
    ledger = LedgerStore(store)
    ledger.record_meal(
        "2024-05-01", "breakfast", [make_ingredient('сырник "домашний"', weight=150)]
    )
    ledger.record_meal("2024-05-03", "dinner", [make_ingredient("рис", weight=80)])
    ledger.record_meal("2024-05-02", "snack", [make_ingredient("яблоко", weight=120)])
    return ledger


def test_export_rows_newest_first(store: InMemoryKeyValueStore) -> None:
    rows = export_rows(_ledger(store).history())

    assert [row.date for row in rows] == ["2024-05-03", "2024-05-02", "2024-05-01"]
    assert rows[0].meal_type == "Ужин"
    assert rows[2].calories == 248
    assert rows[2].protein == 46.5


def test_filter_history_is_inclusive(store: InMemoryKeyValueStore) -> None:
    history = _ledger(store).history()

    assert sorted(filter_history(history, "2024-05-02", "2024-05-03")) == [
        "2024-05-02",
        "2024-05-03",
    ]
    assert list(filter_history(history, end="2024-05-01")) == ["2024-05-01"]
    assert len(filter_history(history)) == 3


def test_render_csv_quotes_text_and_prefixes_bom(
    store: InMemoryKeyValueStore,
) -> None:
    rows = export_rows(_ledger(store).history(), start="2024-05-01", end="2024-05-01")

    content = render_csv(rows)

    assert content.startswith(BOM)
    header, line = content[len(BOM) :].split("\n")
    assert header == ",".join(CSV_HEADERS)
    assert line == '2024-05-01,"Завтрак","сырник ""домашний""",150,248,46.5,5.4,0,0'


def test_render_json_keeps_cyrillic(store: InMemoryKeyValueStore) -> None:
    content = render_json(_ledger(store).history())

    assert "рис" in content
    assert json.loads(content)["2024-05-03"]["dailyTotals"]["weight"] == 80


def test_export_filename() -> None:
    assert export_filename("csv") == "история_КБЖУ.csv"
    assert export_filename("csv", "2024-05-01", "2024-05-03") == (
        "история_КБЖУ_2024-05-01_2024-05-03.csv"
    )
    assert export_filename("json", start="2024-05-01") == (
        "история_КБЖУ_from_2024-05-01.json"
    )
    assert export_filename("json", end="2024-05-03") == (
        "история_КБЖУ_to_2024-05-03.json"
    )
