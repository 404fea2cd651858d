from __future__ import annotations

import random

from business_case.capital import ROLLUP_FIELDS, add_back_depreciation, grand_total_row, rollup_capital_expenses
from business_case.case_config import useful_life_by_label
from business_case.schema import ADJUSTMENTS_GROUP, CAPITAL_SCHEDULE_FIELDS


def _rollup(state: dict, config: dict):
    section = state["capital_expenses"]
    return rollup_capital_expenses(
        section["rows"],
        section["project_contingency_pct"],
        section["withholding_tax_rate_pct"],
        useful_life_by_label(config),
    )


def _by_id(df, row_id):
    return df.loc[df["id"] == row_id].iloc[0]


def test_detail_rows_multiply_quantity_by_unit_cost(populated_state, config):
    df = _rollup(populated_state, config)
    laptop = _by_id(df, "hardware-laptop")
    assert laptop["total_cost"] == 15000.0
    assert laptop["annual_depreciation"] == 3750.0
    assert _by_id(df, "premises-building")["annual_depreciation"] == 10000.0


def test_group_totals_sum_their_detail_rows(populated_state, config):
    df = _rollup(populated_state, config)
    sections = df.loc[df["group"] != ADJUSTMENTS_GROUP]
    for group, rows in sections.groupby("group"):
        total = rows.loc[rows["is_total"]].iloc[0]
        details = rows.loc[~rows["is_total"]]
        for field in ROLLUP_FIELDS:
            assert total[field] == details[field].sum(), (group, field)
        assert total["unit_cost"] == 0.0


def test_group_totals_hold_for_random_inputs(base_state, config):
    rng = random.Random(7)
    rows = base_state["capital_expenses"]["rows"]
    for row in rows:
        if row["is_total"] or row["group"] == ADJUSTMENTS_GROUP:
            continue
        row["quantity"] = rng.randint(0, 40)
        row["unit_cost"] = round(rng.uniform(0, 25000), 2)
        row.update({f: round(rng.uniform(0, 90000), 2) for f in CAPITAL_SCHEDULE_FIELDS})

    df = _rollup(base_state, config)
    sections = df.loc[df["group"] != ADJUSTMENTS_GROUP]
    for group, group_rows in sections.groupby("group"):
        total = group_rows.loc[group_rows["is_total"]].iloc[0]
        details = group_rows.loc[~group_rows["is_total"]]
        for field in ROLLUP_FIELDS:
            assert abs(total[field] - details[field].sum()) < 1e-6, (group, field)


def test_adjustments_sit_in_plan_only(populated_state, config):
    df = _rollup(populated_state, config)
    contingency = _by_id(df, "contingency")
    withholding = _by_id(df, "withholding-tax")
    assert contingency["total_cost"] == 13500.0
    assert contingency["plan"] == 13500.0
    assert withholding["plan"] == 2700.0
    for field in CAPITAL_SCHEDULE_FIELDS:
        if field != "plan":
            assert contingency[field] == 0.0
            assert withholding[field] == 0.0


def test_grand_total_sums_group_totals_and_adjustments(populated_state, config):
    df = _rollup(populated_state, config)
    grand = grand_total_row(df)
    assert grand["total_cost"] == 151200.0
    assert grand["plan"] == 36200.0
    assert grand["q1"] == 5000.0
    assert grand["q2"] == 10000.0
    assert grand["fy_plus_1"] == 100000.0


def test_add_back_depreciation_excludes_adjustments(populated_state, config):
    df = _rollup(populated_state, config)
    assert add_back_depreciation(df) == 17750.0


def test_total_rows_ignore_payload_values(base_state, config):
    rows = base_state["capital_expenses"]["rows"]
    next(r for r in rows if r["id"] == "hardware-total").update(q1=999, total_cost=999)
    df = rollup_capital_expenses(rows, 0, 0, useful_life_by_label(config))
    assert _by_id(df, "hardware-total")["q1"] == 0.0
    assert _by_id(df, "capital-total")["total_cost"] == 0.0


def test_non_finite_inputs_are_treated_as_zero(base_state, config):
    rows = base_state["capital_expenses"]["rows"]
    next(r for r in rows if r["id"] == "hardware-servers").update(quantity="nan", unit_cost=float("inf"), q3="1,250.50")
    df = rollup_capital_expenses(rows, "abc", None, useful_life_by_label(config))
    servers = _by_id(df, "hardware-servers")
    assert servers["total_cost"] == 0.0
    assert servers["q3"] == 1250.5
    assert _by_id(df, "contingency")["plan"] == 0.0
