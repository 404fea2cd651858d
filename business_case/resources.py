"""Human-resource cost allocation and the resource requirement summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from business_case.calendar_utils import inclusive_end, parse_date_only
from business_case.numeric import round2, to_number
from business_case.proration import (
    QUARTERS,
    YEARLY_BUCKETS,
    bucket_for_offset,
    fiscal_year_day_counts,
    quarter_day_counts,
)

# Salary is quoted per month; a month is taken as 30 days.
DAYS_PER_MONTH = 30

BREAKDOWN_FIELDS = ("daily_cost",) + QUARTERS + YEARLY_BUCKETS + ("total",)
RESOURCE_COST_COLUMNS = (
    "id",
    "role_description",
    "resource_name",
    "resource_type",
    "pay_grade",
    "capex_opex",
) + BREAKDOWN_FIELDS + ("has_data",)


@dataclass(frozen=True)
class ResourceCostBreakdown:
    daily_cost: float = 0.0
    quarters: dict[str, float] = field(default_factory=lambda: {q: 0.0 for q in QUARTERS})
    yearly: dict[str, float] = field(default_factory=lambda: {b: 0.0 for b in YEARLY_BUCKETS})
    total: float = 0.0
    has_data: bool = False

    def as_record(self) -> dict:
        return {"daily_cost": self.daily_cost, **self.quarters, **self.yearly, "total": self.total, "has_data": self.has_data}


def monthly_salary_for(pay_grade, salary_table: dict[str, float]) -> float | None:
    grade = str(pay_grade or "").strip()
    if not grade or grade not in salary_table:
        return None
    return to_number(salary_table[grade])


def allocate_resource_cost(row: dict, salary_table: dict[str, float], anchor_fy: int) -> ResourceCostBreakdown:
    """Spread one assignment's cost over the anchor year's quarters and six fiscal years.

    Any failed precondition yields an all-zero breakdown with ``has_data`` False.
    """
    salary = monthly_salary_for(row.get("pay_grade"), salary_table)
    allocation = to_number(row.get("average_allocation_pct"))
    start = parse_date_only(row.get("resource_start_date"))
    end = parse_date_only(row.get("resource_end_date"))
    if salary is None or allocation <= 0 or start is None or end is None or start > end:
        return ResourceCostBreakdown()

    daily = salary * allocation / 100.0 / DAYS_PER_MONTH
    end_exclusive = inclusive_end(end)

    quarters = {q: 0.0 for q in QUARTERS}
    for name, days in quarter_day_counts(start, end_exclusive, anchor_fy).items():
        quarters[name] = round2(daily * days)

    yearly = {b: 0.0 for b in YEARLY_BUCKETS}
    for fy, days in fiscal_year_day_counts(start, end_exclusive).items():
        offset = fy - int(anchor_fy)
        # Prior years and offsets past +5 only reach the running total.
        bucket = bucket_for_offset(offset) if offset >= 0 else None
        if bucket is not None:
            yearly[bucket] += daily * days

    total_days = (end - start).days + 1
    return ResourceCostBreakdown(
        daily_cost=round2(daily),
        quarters=quarters,
        yearly={b: round2(v) for b, v in yearly.items()},
        total=round2(daily * total_days),
        has_data=True,
    )


def build_resource_costs(rows: list[dict], salary_table: dict[str, float], anchor_fy: int) -> pd.DataFrame:
    records = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        breakdown = allocate_resource_cost(row, salary_table, anchor_fy)
        records.append(
            {
                **{col: str(row.get(col) or "") for col in RESOURCE_COST_COLUMNS[:6]},
                **breakdown.as_record(),
            }
        )
    df = pd.DataFrame(records, columns=list(RESOURCE_COST_COLUMNS))
    for col in BREAKDOWN_FIELDS:
        df[col] = df[col].astype(float)
    df["has_data"] = df["has_data"].astype(bool)
    return df


def _has_text(value) -> bool:
    return bool(str(value or "").strip())


def is_human_row_populated(row: dict) -> bool:
    return any(_has_text(row.get(k)) for k in ("role_description", "responsibilities", "resource_name"))


def is_tech_row_populated(row: dict) -> bool:
    return any(_has_text(row.get(k)) for k in ("impacted_application", "rationale_for_completing_work"))


def _format_assignment(row: dict) -> str:
    start = parse_date_only(row.get("resource_start_date"))
    end = parse_date_only(row.get("resource_end_date"))
    if start is None and end is None:
        return ""
    left = start.isoformat() if isinstance(start, date) else "?"
    right = end.isoformat() if isinstance(end, date) else "?"
    return f" ({left} to {right})"


def resource_requirement_summary(resource_requirements: dict) -> str:
    """Plain-text block describing populated human and technology resource rows."""
    section = resource_requirements or {}
    human = [r for r in section.get("human_resources") or [] if isinstance(r, dict)]
    tech = [r for r in section.get("technology_application_resources") or [] if isinstance(r, dict)]
    populated_human = [r for r in human if is_human_row_populated(r)]
    populated_tech = [r for r in tech if is_tech_row_populated(r)]
    hiring = sum(1 for r in human if str(r.get("hiring_required") or "").strip().lower().startswith("yes"))

    lines = [
        f"Internal Requirements: {section.get('internal_fte_requirements') or '-'}",
        f"External Support Required: {section.get('external_support_required') or '-'}",
        f"Hiring Required: {section.get('hiring_required') or '-'}",
        f"Additional Details: {section.get('additional_resource_details') or '-'}",
        f"Human Resource Rows Captured: {len(populated_human)}",
        f"Technology Resource Rows Captured: {len(populated_tech)}",
        f"Hiring Required Roles: {hiring}",
    ]
    for row in populated_human:
        role = row.get("role_description") or row.get("resource_name") or "Unnamed role"
        kind = row.get("resource_type") or "Unspecified"
        allocation = to_number(row.get("average_allocation_pct"))
        detail = f", {allocation:g}% allocation" if allocation > 0 else ""
        lines.append(f"- {role} [{kind}]{detail}{_format_assignment(row)}")
    for row in populated_tech:
        app = row.get("impacted_application") or "Unnamed application"
        tier = row.get("availability_application_tier")
        lines.append(f"- Application: {app}" + (f" (tier {tier})" if tier else ""))
    return "\n".join(lines)


