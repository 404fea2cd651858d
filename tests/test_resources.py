from __future__ import annotations

from datetime import date

from business_case.numeric import round2
from business_case.proration import YEARLY_BUCKETS
from business_case.resources import (
    allocate_resource_cost,
    build_resource_costs,
    resource_requirement_summary,
)

SALARIES = {"G4": 5000.0}


def _assignment(**overrides) -> dict:
    row = {
        "id": "human-resource-1",
        "role_description": "Developer",
        "pay_grade": "G4",
        "average_allocation_pct": "50",
        "resource_start_date": "2025-01-01",
        "resource_end_date": "2025-01-10",
    }
    row.update(overrides)
    return row


def test_ten_day_assignment_inside_first_quarter():
    breakdown = allocate_resource_cost(_assignment(), SALARIES, 2025)
    assert breakdown.has_data
    assert breakdown.daily_cost == 83.33
    assert breakdown.quarters == {"q1": 833.33, "q2": 0.0, "q3": 0.0, "q4": 0.0}
    assert breakdown.yearly["current_year"] == 833.33
    assert all(breakdown.yearly[b] == 0.0 for b in YEARLY_BUCKETS[1:])
    assert breakdown.total == 833.33


def test_prior_year_days_reach_total_only():
    breakdown = allocate_resource_cost(_assignment(resource_start_date="2024-10-22"), SALARIES, 2025)
    # 10 days in FY2024 plus 71 days in FY2025.
    assert breakdown.yearly["current_year"] == 5916.67
    assert breakdown.quarters["q1"] == 5916.67
    assert breakdown.total == 6750.0


def test_days_beyond_horizon_reach_total_only():
    breakdown = allocate_resource_cost(
        _assignment(resource_start_date="2030-10-31", resource_end_date="2030-11-01"), SALARIES, 2025
    )
    assert breakdown.yearly["year_plus_5"] == 83.33
    assert sum(breakdown.quarters.values()) == 0.0
    assert breakdown.total == 166.67


def test_failed_preconditions_yield_empty_breakdown():
    cases = [
        _assignment(pay_grade="G99"),
        _assignment(average_allocation_pct="0"),
        _assignment(resource_end_date="2024-12-31"),
        _assignment(resource_start_date="not-a-date"),
        _assignment(resource_end_date=""),
    ]
    for row in cases:
        breakdown = allocate_resource_cost(row, SALARIES, 2025)
        assert not breakdown.has_data
        assert breakdown.total == 0.0
        assert sum(breakdown.yearly.values()) == 0.0


def test_build_resource_costs_is_deterministic():
    rows = [_assignment(), _assignment(id="human-resource-2", pay_grade="")]
    first = build_resource_costs(rows, SALARIES, 2025)
    second = build_resource_costs(rows, SALARIES, 2025)
    assert first.equals(second)
    assert first["has_data"].tolist() == [True, False]


def test_resource_requirement_summary_counts_populated_rows():
    section = {
        "internal_fte_requirements": "2 FTE",
        "hiring_required": "Yes",
        "human_resources": [
            {**_assignment(), "resource_type": "Internal", "hiring_required": "Yes"},
            {"role_description": "", "responsibilities": "", "resource_name": ""},
        ],
        "technology_application_resources": [{"impacted_application": "Core Banking", "availability_application_tier": "1"}],
    }
    text = resource_requirement_summary(section)
    assert "Internal Requirements: 2 FTE" in text
    assert "Human Resource Rows Captured: 1" in text
    assert "Technology Resource Rows Captured: 1" in text
    assert "Hiring Required Roles: 1" in text
    assert "- Developer [Internal], 50% allocation (2025-01-01 to 2025-01-10)" in text
    assert "- Application: Core Banking (tier 1)" in text


def test_open_ended_assignment_is_allocated_without_overflow():
    breakdown = allocate_resource_cost(_assignment(resource_end_date="9999-12-31"), SALARIES, 2025)
    daily = 5000.0 * 50 / 100 / 30
    assert breakdown.has_data
    assert breakdown.quarters["q1"] == round2(daily * 31)
    assert breakdown.yearly["current_year"] == round2(daily * 304)
    assert breakdown.yearly["year_plus_5"] == round2(daily * 365)
    assert breakdown.total == round2(daily * ((date(9999, 12, 31) - date(2025, 1, 1)).days + 1))


def test_assignment_from_year_one_only_reaches_the_total():
    breakdown = allocate_resource_cost(
        _assignment(resource_start_date="0001-01-01", resource_end_date="0001-01-30"), SALARIES, 2025
    )
    assert breakdown.has_data
    assert sum(breakdown.quarters.values()) == 0.0
    assert sum(breakdown.yearly.values()) == 0.0
    assert breakdown.total == round2(5000.0 * 50 / 100 / 30 * 30)
