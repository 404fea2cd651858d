"""Row edits for the business case form.

Every operation returns a new state; the caller's state is never mutated.
Derived fields and total rows are recomputed by the engine, so edits to them
are ignored here.
"""

from __future__ import annotations

from copy import deepcopy

from business_case.case_config import useful_life_by_label
from business_case.categories import classify_subcategory, resolved_value
from business_case.numeric import to_number
from business_case.schema import (
    ADJUSTMENTS_GROUP,
    CAPITAL_EDITABLE,
    DEPRECIATION_EDITABLE,
    HUMAN_RESOURCE_COLUMNS,
    ONE_TIME_EDITABLE,
    OT_TOTAL_ID,
    PL_EDITABLE,
    PL_PROJECT_EXPENSE_SPEND_ID,
    TECHNOLOGY_RESOURCE_COLUMNS,
    ROW_TABLES,
    blank_row,
)

TABLE_PATHS = {
    "capital_expenses": ("capital_expenses", "rows"),
    "depreciation_summary": ("depreciation_summary", "rows"),
    "one_time_costs": ("one_time_costs", "rows"),
    "p_and_l_impact": ("p_and_l_impact", "rows"),
    "human_resources": ("resource_requirements", "human_resources"),
    "technology_application_resources": ("resource_requirements", "technology_application_resources"),
}
EDITABLE_FIELDS = {
    "capital_expenses": CAPITAL_EDITABLE,
    "depreciation_summary": DEPRECIATION_EDITABLE,
    "one_time_costs": ONE_TIME_EDITABLE,
    "p_and_l_impact": PL_EDITABLE,
    "human_resources": tuple(c for c in HUMAN_RESOURCE_COLUMNS if c != "id"),
    "technology_application_resources": tuple(c for c in TECHNOLOGY_RESOURCE_COLUMNS if c != "id"),
}
EXTENSIBLE_TABLES = {
    "human_resources": "human-resource-",
    "technology_application_resources": "app-resource-",
}


def _rows(state: dict, table: str) -> list[dict]:
    if table not in TABLE_PATHS:
        raise KeyError(f"Unknown table: {table}")
    section, key = TABLE_PATHS[table]
    return state[section][key]


def _find(rows: list[dict], table: str, row_id: str) -> dict:
    for row in rows:
        if row.get("id") == row_id:
            return row
    raise ValueError(f"Unknown row id '{row_id}' in {table}.")


def is_locked(table: str, row: dict) -> bool:
    """Rows whose every value is derived."""
    if table == "capital_expenses":
        return bool(row.get("is_total")) or row.get("group") == ADJUSTMENTS_GROUP
    if table == "p_and_l_impact":
        return bool(row.get("is_total")) or row.get("id") == PL_PROJECT_EXPENSE_SPEND_ID
    if table == "one_time_costs":
        return row.get("id") == OT_TOTAL_ID
    return False


def _coerce(table: str, field: str, value):
    _, numeric, _ = ROW_TABLES[table]
    if field in numeric:
        return to_number(value)
    return "" if value is None else str(value)


def _apply_depreciation_rules(row: dict, previous_category: str, changes: dict, config: dict | None) -> None:
    category_map = (config or {}).get("depreciation_category_map") or {}
    state = classify_subcategory(row.get("category"), row.get("capex_prepaid_category"), category_map, previous_category)
    row["capex_prepaid_category"] = resolved_value(state)
    if "capex_prepaid_category" in changes and "useful_life_years" not in changes:
        life = useful_life_by_label(config or {}).get(row["capex_prepaid_category"])
        if life:
            row["useful_life_years"] = float(life)


def update_row(state: dict, table: str, row_id: str, changes: dict, config: dict | None = None) -> dict:
    new_state = deepcopy(state)
    rows = _rows(new_state, table)
    row = _find(rows, table, row_id)
    if is_locked(table, row):
        return new_state

    previous_category = str(row.get("category") or "")
    allowed = EDITABLE_FIELDS[table]
    for field, value in (changes or {}).items():
        if field in allowed:
            row[field] = _coerce(table, field, value)

    if table == "depreciation_summary":
        _apply_depreciation_rules(row, previous_category, changes or {}, config)
    return new_state


def append_row(state: dict, table: str) -> dict:
    if table not in EXTENSIBLE_TABLES:
        raise KeyError(f"Rows cannot be appended to {table}.")
    new_state = deepcopy(state)
    rows = _rows(new_state, table)
    prefix = EXTENSIBLE_TABLES[table]
    taken = {r.get("id") for r in rows}
    n = len(rows) + 1
    while f"{prefix}{n}" in taken:
        n += 1
    rows.append(blank_row(table, f"{prefix}{n}"))
    return new_state


def remove_row(state: dict, table: str, row_id: str) -> dict:
    """Remove a row from an extensible table; the last remaining row is kept."""
    if table not in EXTENSIBLE_TABLES:
        raise KeyError(f"Rows cannot be removed from {table}.")
    new_state = deepcopy(state)
    rows = _rows(new_state, table)
    row = _find(rows, table, row_id)
    if len(rows) <= 1:
        return new_state
    rows.remove(row)
    return new_state
