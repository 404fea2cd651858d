from __future__ import annotations

from pathlib import Path

import pytest

import business_case.case_config as case_config
import business_case.persistence as persistence
import business_case.runtime_logging as runtime_logging
from business_case.case_config import normalize_config
from business_case.schema import default_business_case


def _row(rows: list[dict], row_id: str) -> dict:
    return next(r for r in rows if r["id"] == row_id)


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    root = Path(tmp_path) / "store"
    monkeypatch.setattr(case_config, "CONFIG_DIR", root)
    monkeypatch.setattr(case_config, "CONFIG_FILE", root / "business_case_config.json")
    monkeypatch.setattr(runtime_logging, "LOG_DIR", root)
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", root / "runtime_events.jsonl")
    monkeypatch.setattr(persistence, "STORE_DIR", root)
    monkeypatch.setattr(persistence, "DRAFT_STORE_FILE", root / "business_cases.json")
    return root


@pytest.fixture
def config() -> dict:
    cfg, _ = normalize_config(None)
    return cfg


@pytest.fixture
def base_state() -> dict:
    state = default_business_case(2025)
    state["introduction"]["current_year"] = "FY2025"
    return state


@pytest.fixture
def populated_state(base_state) -> dict:
    """A small but complete case anchored on FY2025."""
    state = base_state
    capital = state["capital_expenses"]
    capital["project_contingency_pct"] = 10.0
    capital["withholding_tax_rate_pct"] = 2.0
    _row(capital["rows"], "hardware-laptop").update(quantity=10, unit_cost=1500, q1=5000, q2=10000)
    _row(capital["rows"], "software-app").update(quantity=1, unit_cost=20000, plan=20000)
    _row(capital["rows"], "premises-building").update(quantity=1, unit_cost=100000, fy_plus_1=100000)

    state["depreciation_summary"]["rows"][0].update(
        phase="Build",
        category="Capital",
        capex_prepaid_category="Hardware",
        phase_start_date="2024-11-01",
        phase_end_date="2027-10-31",
        useful_life_years=3,
        project_cost_for_phase=120000,
    )

    state["resource_requirements"]["human_resources"][0].update(
        role_description="Developer",
        resource_type="Internal",
        pay_grade="G4",
        resource_start_date="2025-01-01",
        resource_end_date="2025-01-10",
        average_allocation_pct="50",
        hiring_required="No",
    )

    one_time = state["one_time_costs"]["rows"]
    _row(one_time, "ot-training").update(prior_fys=1000, current_year_spend=2000, current_year_plan=500, year_plus_1=300)
    _row(one_time, "ot-vendor").update(current_year_spend=4000)

    pl = state["p_and_l_impact"]["rows"]
    _row(pl, "pl-revenue-fees").update(current_year=10000, year_plus_1=20000)
    _row(pl, "pl-saved-staff").update(current_year=5000)
    _row(pl, "pl-additional-it").update(current_year=1000, year_plus_1=1000)

    grid = state["financial_grid"]
    grid["investment"]["hardware"]["current_fiscal"] = 15000.0
    grid["incremental"]["revenue"] = [100000.0] * 5
    grid["incremental"]["addl_operating_costs"] = [5000.0] * 5

    state["financial_summary"]["restructuring_hr_bau_funded"]["current_year"] = 2500.0
    return state
