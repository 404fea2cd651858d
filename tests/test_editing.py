from __future__ import annotations

import pytest

from business_case.editing import append_row, is_locked, remove_row, update_row


def _row(rows, row_id):
    return next(r for r in rows if r["id"] == row_id)


def test_update_row_coerces_values_without_mutating_input(base_state, config):
    updated = update_row(base_state, "capital_expenses", "hardware-laptop", {"quantity": "3", "unit_cost": "abc"}, config)
    laptop = _row(updated["capital_expenses"]["rows"], "hardware-laptop")
    assert laptop["quantity"] == 3.0
    assert laptop["unit_cost"] == 0.0
    assert _row(base_state["capital_expenses"]["rows"], "hardware-laptop")["quantity"] == 0.0


def test_derived_fields_and_locked_rows_are_ignored(base_state, config):
    updated = update_row(base_state, "capital_expenses", "hardware-laptop", {"total_cost": 999}, config)
    assert _row(updated["capital_expenses"]["rows"], "hardware-laptop")["total_cost"] == 0.0

    for table, row_id in (
        ("capital_expenses", "hardware-total"),
        ("capital_expenses", "contingency"),
        ("one_time_costs", "ot-total"),
        ("p_and_l_impact", "pl-project-expense-spend"),
        ("p_and_l_impact", "pl-nibt"),
    ):
        rows = update_row(base_state, table, row_id, {"q1": 5, "prior_fys": 5, "current_year": 5}, config)
        section = "p_and_l_impact" if table == "p_and_l_impact" else table
        assert rows[section]["rows"] == base_state[section]["rows"]
    assert is_locked("human_resources", {"id": "human-resource-1"}) is False


def test_unknown_table_and_row(base_state):
    with pytest.raises(KeyError):
        update_row(base_state, "nope", "x", {})
    with pytest.raises(ValueError):
        update_row(base_state, "capital_expenses", "missing-row", {})


def test_subcategory_change_fills_useful_life(base_state, config):
    state = update_row(base_state, "depreciation_summary", "depreciation-1", {"category": "Capital"}, config)
    state = update_row(state, "depreciation_summary", "depreciation-1", {"capex_prepaid_category": "Hardware"}, config)
    row = state["depreciation_summary"]["rows"][0]
    assert row["capex_prepaid_category"] == "Hardware"
    assert row["useful_life_years"] == 4.0

    state = update_row(state, "depreciation_summary", "depreciation-1", {"useful_life_years": 7}, config)
    assert state["depreciation_summary"]["rows"][0]["useful_life_years"] == 7.0


def test_category_change_clears_unlisted_subcategory(base_state, config):
    state = update_row(
        base_state,
        "depreciation_summary",
        "depreciation-1",
        {"category": "Capital", "capex_prepaid_category": "Software"},
        config,
    )
    state = update_row(state, "depreciation_summary", "depreciation-1", {"category": "Prepaid"}, config)
    assert state["depreciation_summary"]["rows"][0]["capex_prepaid_category"] == ""


def test_legacy_subcategory_kept_while_category_unchanged(base_state, config):
    base_state["depreciation_summary"]["rows"][0].update(category="Capital", capex_prepaid_category="Mainframe")
    state = update_row(base_state, "depreciation_summary", "depreciation-1", {"phase": "Run"}, config)
    row = state["depreciation_summary"]["rows"][0]
    assert row["phase"] == "Run"
    assert row["capex_prepaid_category"] == "Mainframe"


def test_append_and_remove_extensible_rows(base_state):
    state = append_row(base_state, "human_resources")
    state = append_row(state, "human_resources")
    ids = [r["id"] for r in state["resource_requirements"]["human_resources"]]
    assert ids == ["human-resource-1", "human-resource-2", "human-resource-3"]

    state = remove_row(state, "human_resources", "human-resource-2")
    state = append_row(state, "human_resources")
    ids = [r["id"] for r in state["resource_requirements"]["human_resources"]]
    assert ids == ["human-resource-1", "human-resource-3", "human-resource-4"]

    single = remove_row(base_state, "technology_application_resources", "app-resource-1")
    assert len(single["resource_requirements"]["technology_application_resources"]) == 1

    with pytest.raises(KeyError):
        append_row(base_state, "capital_expenses")
    with pytest.raises(KeyError):
        remove_row(base_state, "p_and_l_impact", "pl-nibt")
