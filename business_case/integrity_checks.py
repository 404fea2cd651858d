"""Rollup identity checks over a derived business case."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from business_case.capital import ROLLUP_FIELDS
from business_case.financial_summary import (
    ADD_BACK_LINE,
    CAPITAL_SPEND_LINE,
    INTERNAL_COST_LINE,
    NET_BENEFIT_LINE,
    NET_CASH_LINE,
    RESTRUCTURING_LINE,
)
from business_case.numeric import round2
from business_case.one_time import grand_total_row as one_time_total
from business_case.pl_impact import GROUP_TOTAL_IDS, project_expense_spend_from_one_time
from business_case.proration import BUCKETS
from business_case.schema import (
    ADJUSTMENTS_GROUP,
    CAPITAL_TOTAL_ID,
    CONTINGENCY_ID,
    ONE_TIME_NUMERIC,
    OT_TOTAL_ID,
    PL_ADDITIONAL_TOTAL_ID,
    PL_NIBT_ID,
    PL_PROJECT_EXPENSE_SPEND_ID,
    PL_REVENUE_TOTAL_ID,
    PL_SAVED_TOTAL_ID,
    PL_TOTAL_EXPENSES_ID,
    WITHHOLDING_ID,
)

# Seven independently rounded buckets may overshoot the phase cost by half a cent each.
_BUCKET_ROUNDING = 0.005 * len(BUCKETS)


def _finding(check: str, max_abs_delta: float, row: str, lhs_name: str, rhs_name: str) -> dict[str, Any]:
    return {
        "Check": check,
        "Max Abs Delta": float(max_abs_delta),
        "Row": row,
        "LHS": lhs_name,
        "RHS": rhs_name,
    }


def _check_series_identity(
    findings: list[dict[str, Any]],
    check_name: str,
    row: str,
    lhs_name: str,
    rhs_name: str,
    lhs,
    rhs,
    tol: float,
) -> None:
    delta = np.nan_to_num(np.asarray(lhs, dtype=float) - np.asarray(rhs, dtype=float), nan=0.0)
    if delta.size == 0:
        return
    max_abs = float(np.max(np.abs(delta)))
    if max_abs > float(tol):
        findings.append(_finding(check_name, max_abs, row, lhs_name, rhs_name))


def _row(df: pd.DataFrame, row_id: str, columns) -> np.ndarray | None:
    match = df.loc[df["id"] == row_id, list(columns)] if not df.empty else df
    if match.empty:
        return None
    return match.iloc[0].to_numpy(dtype=float)


def _check_capital(findings: list[dict[str, Any]], capital: pd.DataFrame, tol: float) -> None:
    if capital.empty:
        return
    cols = list(ROLLUP_FIELDS)
    sections = capital.loc[capital["group"] != ADJUSTMENTS_GROUP]
    group_totals = sections.loc[sections["is_total"]]
    for _, total in group_totals.iterrows():
        members = sections.loc[(sections["group"] == total["group"]) & (~sections["is_total"]), cols]
        _check_series_identity(
            findings,
            "Capital group sum",
            str(total["id"]),
            str(total["label"]),
            f"Sum of {total['group']} rows",
            total[cols].to_numpy(dtype=float),
            members.sum().to_numpy(dtype=float),
            tol,
        )

    for row_id in (CONTINGENCY_ID, WITHHOLDING_ID):
        values = _row(capital, row_id, ("total_cost", "plan"))
        if values is None:
            continue
        others = _row(capital, row_id, [c for c in cols if c not in ("total_cost", "plan")])
        _check_series_identity(
            findings,
            "Capital adjustment placement",
            row_id,
            "total_cost",
            "plan (all other slots zero)",
            np.append(values[0], others),
            np.append(values[1], np.zeros_like(others)),
            tol,
        )

    grand = _row(capital, CAPITAL_TOTAL_ID, cols)
    if grand is not None:
        section_totals = capital["is_total"] & (capital["group"] != ADJUSTMENTS_GROUP)
        parts = capital.loc[section_totals | capital["id"].isin([CONTINGENCY_ID, WITHHOLDING_ID]), cols]
        _check_series_identity(
            findings,
            "Capital grand total",
            CAPITAL_TOTAL_ID,
            "TOTAL CAPITAL EXPENDITURE",
            "Group totals + adjustments",
            grand,
            parts.sum().to_numpy(dtype=float),
            tol,
        )


def _check_depreciation(findings: list[dict[str, Any]], depreciation: pd.DataFrame, tol: float) -> None:
    if depreciation.empty:
        return
    life = depreciation["useful_life_years"].to_numpy(dtype=float)
    cost = depreciation["project_cost_for_phase"].to_numpy(dtype=float)
    expected = np.array(
        [round2(c / n) if n > 0 and c > 0 else 0.0 for c, n in zip(cost, life)],
        dtype=float,
    )
    _check_series_identity(
        findings,
        "Depreciation annual identity",
        "depreciation_summary",
        "annual_depreciation",
        "project_cost_for_phase / useful_life_years",
        depreciation["annual_depreciation"].to_numpy(dtype=float),
        expected,
        tol,
    )
    bucket_sum = depreciation[list(BUCKETS)].sum(axis=1).to_numpy(dtype=float)
    overshoot = np.clip(bucket_sum - np.clip(cost, 0.0, None), 0.0, None)
    _check_series_identity(
        findings,
        "Depreciation schedule bound",
        "depreciation_summary",
        "Bucket sum",
        "project_cost_for_phase",
        overshoot,
        np.zeros_like(overshoot),
        max(tol, _BUCKET_ROUNDING),
    )
    _check_series_identity(
        findings,
        "Depreciation row total",
        "depreciation_summary",
        "total",
        "Sum of schedule buckets",
        depreciation["total"].to_numpy(dtype=float),
        bucket_sum,
        tol,
    )


def _check_one_time(findings: list[dict[str, Any]], one_time: pd.DataFrame, tol: float) -> None:
    grand = _row(one_time, OT_TOTAL_ID, ONE_TIME_NUMERIC)
    if grand is None:
        return
    others = one_time.loc[one_time["id"] != OT_TOTAL_ID, list(ONE_TIME_NUMERIC)]
    _check_series_identity(
        findings,
        "One-time grand total",
        OT_TOTAL_ID,
        "TOTAL ONE-TIME COSTS",
        "Sum of one-time rows",
        grand,
        others.sum().to_numpy(dtype=float),
        tol,
    )


def _check_pl(findings: list[dict[str, Any]], pl: pd.DataFrame, one_time: pd.DataFrame, tol: float) -> None:
    if pl.empty:
        return
    cols = list(BUCKETS)
    for total_id in GROUP_TOTAL_IDS:
        total = _row(pl, total_id, cols)
        if total is None:
            continue
        group = pl.loc[pl["id"] == total_id, "group"].iloc[0]
        members = pl.loc[(pl["group"] == group) & (~pl["is_total"]), cols]
        _check_series_identity(
            findings, "P&L group total", total_id, total_id, f"Sum of {group} rows", total, members.sum().to_numpy(dtype=float), tol
        )

    pes = _row(pl, PL_PROJECT_EXPENSE_SPEND_ID, cols)
    if pes is not None and not one_time.empty:
        mirrored = project_expense_spend_from_one_time(one_time_total(one_time))
        _check_series_identity(
            findings,
            "Project expense spend mirror",
            PL_PROJECT_EXPENSE_SPEND_ID,
            PL_PROJECT_EXPENSE_SPEND_ID,
            OT_TOTAL_ID,
            pes,
            [mirrored[b] for b in cols],
            tol,
        )

    zero = np.zeros(len(cols))

    def values(row_id: str) -> np.ndarray:
        found = _row(pl, row_id, cols)
        return zero if found is None else found

    _check_series_identity(
        findings,
        "Total expenses identity",
        PL_TOTAL_EXPENSES_ID,
        PL_TOTAL_EXPENSES_ID,
        "Project expense spend + additional operating costs",
        values(PL_TOTAL_EXPENSES_ID),
        values(PL_PROJECT_EXPENSE_SPEND_ID) + values(PL_ADDITIONAL_TOTAL_ID),
        tol,
    )
    _check_series_identity(
        findings,
        "NIBT identity",
        PL_NIBT_ID,
        PL_NIBT_ID,
        "Revenue + saved costs - total expenses",
        values(PL_NIBT_ID),
        values(PL_REVENUE_TOTAL_ID) + values(PL_SAVED_TOTAL_ID) - values(PL_TOTAL_EXPENSES_ID),
        tol,
    )
    _check_series_identity(
        findings,
        "P&L row totals",
        "p_and_l_impact",
        "total",
        "Sum of fiscal buckets",
        pl["total"].to_numpy(dtype=float),
        pl[cols].sum(axis=1).to_numpy(dtype=float),
        tol,
    )


def _check_cash_flow(findings: list[dict[str, Any]], cash_flow: pd.DataFrame, tol: float) -> None:
    if cash_flow.empty:
        return
    lines = cash_flow.set_index("line_item")[list(BUCKETS)]
    if NET_CASH_LINE not in lines.index:
        return
    expected = (
        lines.loc[NET_BENEFIT_LINE]
        + lines.loc[ADD_BACK_LINE]
        - lines.loc[CAPITAL_SPEND_LINE]
        - lines.loc[INTERNAL_COST_LINE]
        - lines.loc[RESTRUCTURING_LINE]
    )
    _check_series_identity(
        findings,
        "Net cash flow identity",
        NET_CASH_LINE,
        NET_CASH_LINE,
        "Benefit + depreciation - capital - internal costs - restructuring",
        lines.loc[NET_CASH_LINE].to_numpy(dtype=float),
        expected.to_numpy(dtype=float),
        tol,
    )


def run_integrity_checks(derived, tol: float = 1e-6) -> list[dict[str, Any]]:
    """Return integrity findings (empty list means all checks passed)."""
    if derived is None:
        return [{"Check": "Derived state not available", "Max Abs Delta": np.nan, "Row": "", "LHS": "", "RHS": ""}]

    findings: list[dict[str, Any]] = []
    _check_capital(findings, derived.capital, tol)
    _check_depreciation(findings, derived.depreciation, tol)
    _check_one_time(findings, derived.one_time, tol)
    _check_pl(findings, derived.pl_impact, derived.one_time, tol)
    _check_cash_flow(findings, derived.summary.cash_flow, tol)
    return findings
