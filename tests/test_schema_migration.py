from __future__ import annotations

from business_case.schema import (
    BUSINESS_CASE_TYPE,
    CAPITAL_BLUEPRINT,
    DEPRECIATION_MIN_ROWS,
    ONE_TIME_BLUEPRINT,
    SCHEMA_VERSION,
    default_business_case,
    migrate_import_payload,
    normalize_business_case,
    snake_key,
)


def _row(rows, row_id):
    return next(r for r in rows if r["id"] == row_id)


def test_default_case_has_every_blueprint_row():
    state = default_business_case(2026)
    ids = [r["id"] for r in state["capital_expenses"]["rows"]]
    assert ids == [rid for rid, *_ in CAPITAL_BLUEPRINT]
    assert len(state["depreciation_summary"]["rows"]) == DEPRECIATION_MIN_ROWS
    assert state["one_time_costs"]["rows"][-1]["id"] == "ot-total"
    assert state["financial_grid"]["incremental"]["years"] == [2027, 2028, 2029, 2030, 2031]


def test_snake_key_handles_camel_case_and_plus_suffixes():
    assert snake_key("projectContingencyPct") == "project_contingency_pct"
    assert snake_key("yearPlus3") == "year_plus_3"
    assert snake_key("fyPlus1") == "fy_plus_1"
    assert snake_key("f2025Q2") == "f2025_q2"


def test_legacy_camel_case_payload_is_bridged():
    legacy = {
        "introduction": {"projectInitiativeName": "Branch refresh", "currentYear": "FY2025"},
        "capitalExpenses": {
            "projectContingencyPct": 5,
            "rows": [
                {
                    "id": "hardware-laptop",
                    "group": "Tampered",
                    "label": "Renamed",
                    "isTotal": True,
                    "quantity": "4",
                    "unitCost": "1,250",
                    "f2025Q1": 1000,
                    "f2025Plan": 4000,
                    "f2026": 10,
                    "f2027": 20,
                }
            ],
        },
        "oneTimeCosts": {"rows": [{"id": "ot-training", "item": "Training", "yearPlus1": 750}]},
    }
    state, warnings, unknown = normalize_business_case(legacy)
    assert warnings == []
    assert unknown == []
    assert state["introduction"]["project_initiative_name"] == "Branch refresh"
    assert state["capital_expenses"]["project_contingency_pct"] == 5.0

    laptop = _row(state["capital_expenses"]["rows"], "hardware-laptop")
    assert laptop["group"] == "IT COSTS - Hardware"
    assert laptop["label"] == "Laptop Computers"
    assert laptop["is_total"] is False
    assert laptop["quantity"] == 4.0
    assert laptop["unit_cost"] == 1250.0
    assert laptop["q1"] == 1000.0
    assert laptop["plan"] == 4000.0
    assert laptop["fy_plus_1"] == 10.0
    assert laptop["fy_plus_2"] == 20.0
    assert _row(state["one_time_costs"]["rows"], "ot-training")["year_plus_1"] == 750.0


def test_out_of_range_percentages_are_clamped():
    state, warnings, _ = normalize_business_case(
        {"capital_expenses": {"project_contingency_pct": 150, "withholding_tax_rate_pct": -3}}
    )
    assert state["capital_expenses"]["project_contingency_pct"] == 100.0
    assert state["capital_expenses"]["withholding_tax_rate_pct"] == 0.0
    assert len(warnings) == 2


def test_garbage_sections_fall_back_to_blueprint():
    state, _, unknown = normalize_business_case(
        {"capital_expenses": "oops", "p_and_l_impact": {"rows": 5}, "mystery": {}}
    )
    assert unknown == ["mystery"]
    assert len(state["capital_expenses"]["rows"]) == len(CAPITAL_BLUEPRINT)
    assert all(r["total"] == 0.0 for r in state["p_and_l_impact"]["rows"])


def test_unknown_one_time_rows_are_kept_before_the_total():
    state, _, _ = normalize_business_case(
        {"one_time_costs": {"rows": [{"id": "ot-custom", "item": "Custom", "prior_fys": 5}] * 3}}
    )
    rows = state["one_time_costs"]["rows"]
    ids = [r["id"] for r in rows]
    assert ids[-1] == "ot-total"
    assert len(ids) == len(set(ids)) == len(ONE_TIME_BLUEPRINT) + 3
    assert ids[-4] == "ot-custom"
    assert [r["item"] for r in rows[-4:-1]] == ["Custom"] * 3


def test_short_one_time_payload_is_matched_by_id():
    state, _, _ = normalize_business_case(
        {"one_time_costs": {"rows": [{"id": "ot-training", "prior_fys": 10}, {"id": "ot-total", "prior_fys": 99}]}}
    )
    rows = state["one_time_costs"]["rows"]
    ids = [r["id"] for r in rows]
    assert ids == [rid for rid, _ in ONE_TIME_BLUEPRINT]
    assert ids.count("ot-total") == 1
    assert "ot-staff-travel" in ids
    assert _row(rows, "ot-training")["prior_fys"] == 10.0
    assert _row(rows, "ot-staff-travel")["item"] == "Staff Travel (excl training)"


def test_id_less_legacy_rows_follow_blueprint_positions():
    state, _, _ = normalize_business_case({"one_time_costs": {"rows": [{"item": "Training", "prior_fys": 1}, {"prior_fys": 2}]}})
    rows = state["one_time_costs"]["rows"]
    assert _row(rows, "ot-training")["prior_fys"] == 1.0
    assert _row(rows, "ot-staff-travel")["prior_fys"] == 2.0


def test_duplicate_depreciation_ids_are_renumbered():
    state, _, _ = normalize_business_case(
        {"depreciation_summary": {"rows": [{"id": "depreciation-3"}, {"id": "depreciation-3"}]}}
    )
    ids = [r["id"] for r in state["depreciation_summary"]["rows"]]
    assert len(ids) == len(set(ids)) == DEPRECIATION_MIN_ROWS
    assert ids[0] == "depreciation-3"


def test_grid_commencement_year_reseeds_years():
    state, _, _ = normalize_business_case(
        {"financial_grid": {"commencement_fiscal_year": 2030, "incremental": {"revenue": [1, 2]}}}
    )
    grid = state["financial_grid"]
    assert grid["incremental"]["years"][0] == 2031
    assert grid["incremental"]["revenue"] == [1.0, 2.0, 0.0, 0.0, 0.0]


def test_bundle_with_older_schema_version_is_migrated():
    bundle = {"type": BUSINESS_CASE_TYPE, "schema_version": 0, "state": {"financials": {"opex": "12"}}}
    state, warnings, _ = migrate_import_payload(bundle)
    assert state["financials"]["opex"] == 12.0
    assert any(f"schema_version={SCHEMA_VERSION}" in w for w in warnings)


def test_bare_state_and_non_object_imports():
    _, warnings, _ = migrate_import_payload({"introduction": {}})
    assert warnings == ["Imported business case JSON without bundle metadata."]
    state, warnings, _ = migrate_import_payload([1, 2, 3])
    assert warnings == ["Import payload is not a JSON object."]
    assert state["capital_expenses"]["rows"]


def test_submission_shape_is_unwrapped():
    submission = {
        "businessCase": {"introduction": {"currentYear": "FY2027"}},
        "financials": {"oneTimeCosts": 300},
    }
    state, _, unknown = normalize_business_case(submission)
    assert unknown == []
    assert state["introduction"]["current_year"] == "FY2027"
    assert state["financials"]["one_time_costs"] == 300.0
