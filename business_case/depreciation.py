"""Depreciation scheduler for project phases."""

from __future__ import annotations

import pandas as pd

from business_case.calendar_utils import add_years, parse_date_only
from business_case.numeric import frame_from_rows, round2, round_columns, to_number
from business_case.proration import BUCKETS, ProrationResult, allocate
from business_case.schema import DEPRECIATION_COLUMNS, DEPRECIATION_NUMERIC

SCHEDULE_COLUMNS = DEPRECIATION_COLUMNS + ("beyond_horizon",)


def resolve_useful_life(row: dict, useful_life_by_label: dict[str, float] | None) -> float:
    """Explicit row value first, then the rule for the sub-category, then the category."""
    explicit = to_number(row.get("useful_life_years"))
    if explicit > 0:
        return explicit
    lives = useful_life_by_label or {}
    for key in ("capex_prepaid_category", "category"):
        label = str(row.get(key) or "").strip()
        if label and to_number(lives.get(label)) > 0:
            return to_number(lives[label])
    return 0.0


def phase_schedule(row: dict, anchor_fy: int, useful_life: float) -> tuple[float, ProrationResult]:
    """Return (annual depreciation, fiscal schedule) for one phase row."""
    cost = to_number(row.get("project_cost_for_phase"))
    if cost <= 0 or useful_life <= 0:
        return 0.0, ProrationResult()
    annual = round2(cost / useful_life)
    start = parse_date_only(row.get("phase_start_date"))
    if start is None:
        return annual, ProrationResult()
    # Whole years only for the end date; the annual figure keeps the fraction.
    end_exclusive = add_years(start, int(useful_life))
    return annual, allocate(start, end_exclusive, cost, anchor_fy)


def build_depreciation_schedule(
    rows: list[dict],
    anchor_fy: int,
    useful_life_by_label: dict[str, float] | None = None,
) -> pd.DataFrame:
    records = []
    for raw in rows or []:
        if not isinstance(raw, dict):
            continue
        row = dict(raw)
        life = resolve_useful_life(row, useful_life_by_label)
        annual, schedule = phase_schedule(row, anchor_fy, life)
        row["useful_life_years"] = life
        row["annual_depreciation"] = annual
        row.update(schedule.buckets)
        row["total"] = round2(sum(schedule.buckets[b] for b in BUCKETS))
        row["beyond_horizon"] = schedule.beyond_horizon
        records.append(row)

    df = frame_from_rows(records, SCHEDULE_COLUMNS, DEPRECIATION_NUMERIC + ("beyond_horizon",))
    if df.empty:
        return df
    df["total_project_cost"] = round2(df["project_cost_for_phase"].sum())
    return round_columns(df, DEPRECIATION_NUMERIC + ("beyond_horizon",))
