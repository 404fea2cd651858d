from __future__ import annotations

import pytest

from business_case.numeric import round2
from business_case.depreciation import build_depreciation_schedule, resolve_useful_life
from business_case.proration import BUCKETS


def _phase(**overrides) -> dict:
    row = {
        "id": "depreciation-1",
        "phase": "Build",
        "category": "Capital",
        "capex_prepaid_category": "",
        "phase_start_date": "2024-11-01",
        "useful_life_years": 3,
        "project_cost_for_phase": 120000,
    }
    row.update(overrides)
    return row


def test_three_year_phase_from_fiscal_year_start():
    df = build_depreciation_schedule([_phase()], anchor_fy=2025)
    row = df.iloc[0]
    assert row["annual_depreciation"] == 40000.0
    assert [row[b] for b in BUCKETS] == [0.0, 40000.0, 40000.0, 40000.0, 0.0, 0.0, 0.0]
    assert row["total"] == 120000.0
    assert row["beyond_horizon"] == 0.0


def test_long_life_is_truncated_past_the_horizon():
    df = build_depreciation_schedule([_phase(useful_life_years=8, project_cost_for_phase=80000)], anchor_fy=2025)
    row = df.iloc[0]
    assert row["total"] < 80000
    assert row["beyond_horizon"] == round2(80000 * 731 / 2922)
    assert abs(row["total"] + row["beyond_horizon"] - 80000) <= 0.05


def test_total_project_cost_is_reported_on_every_row():
    rows = [_phase(), _phase(id="depreciation-2", project_cost_for_phase=30000), _phase(id="depreciation-3", project_cost_for_phase=0)]
    df = build_depreciation_schedule(rows, anchor_fy=2025)
    assert df["total_project_cost"].tolist() == [150000.0, 150000.0, 150000.0]


def test_zero_cost_or_life_yields_zero_row():
    df = build_depreciation_schedule(
        [_phase(project_cost_for_phase=0), _phase(id="d2", useful_life_years=0, category="", capex_prepaid_category="")],
        anchor_fy=2025,
    )
    assert (df[list(BUCKETS) + ["annual_depreciation", "total"]] == 0).all().all()


def test_invalid_start_keeps_annual_figure_but_no_schedule():
    df = build_depreciation_schedule([_phase(phase_start_date="2025-02-30")], anchor_fy=2025)
    row = df.iloc[0]
    assert row["annual_depreciation"] == 40000.0
    assert row["total"] == 0.0


def test_useful_life_falls_back_to_configured_rules():
    lives = {"Prepaid Maintenance": 1.0, "Capital": 7.0}
    assert resolve_useful_life(_phase(useful_life_years=0, capex_prepaid_category="Prepaid Maintenance"), lives) == 1.0
    assert resolve_useful_life(_phase(useful_life_years=0), lives) == 7.0
    assert resolve_useful_life(_phase(useful_life_years=2), lives) == 2.0


def test_extreme_useful_life_and_start_dates_do_not_raise():
    df = build_depreciation_schedule(
        [
            _phase(useful_life_years=10000),
            _phase(id="depreciation-2", phase_start_date="0001-01-01", useful_life_years=5),
            _phase(id="depreciation-3", phase_start_date="9999-12-01", useful_life_years=2),
        ],
        2025,
    )
    huge, early, late = (df.iloc[i] for i in range(3))
    assert huge["annual_depreciation"] == 12.0
    assert huge["beyond_horizon"] > 0
    assert huge["total"] + huge["beyond_horizon"] == pytest.approx(120000.0, abs=0.05)
    assert early["prior_fys"] == 120000.0
    assert late["total"] == 0.0
    assert late["beyond_horizon"] == 120000.0
