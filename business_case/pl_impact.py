"""P&L impact rollup: group totals, project expense mirror, total expenses and NIBT."""

from __future__ import annotations

import pandas as pd

from business_case.numeric import frame_from_rows, round_columns
from business_case.proration import BUCKETS
from business_case.schema import (
    PL_ADDITIONAL_TOTAL_ID,
    PL_COLUMNS,
    PL_NIBT_ID,
    PL_NUMERIC,
    PL_PROJECT_EXPENSE_SPEND_ID,
    PL_REVENUE_TOTAL_ID,
    PL_SAVED_TOTAL_ID,
    PL_TOTAL_EXPENSES_ID,
)

GROUP_TOTAL_IDS = (PL_REVENUE_TOTAL_ID, PL_SAVED_TOTAL_ID, PL_ADDITIONAL_TOTAL_ID)


def project_expense_spend_from_one_time(ot_total: pd.Series) -> dict[str, float]:
    """Mirror of the one-time grand total on the P&L fiscal buckets."""
    values = {
        "prior_fys": float(ot_total.get("prior_fys", 0.0)),
        "current_year": float(ot_total.get("current_year_spend", 0.0)) + float(ot_total.get("current_year_plan", 0.0)),
    }
    for n in range(1, 6):
        values[f"year_plus_{n}"] = float(ot_total.get(f"year_plus_{n}", 0.0))
    return values


def _row_values(df: pd.DataFrame, row_id: str) -> pd.Series:
    match = df.loc[df["id"] == row_id, list(BUCKETS)]
    if match.empty:
        return pd.Series(0.0, index=list(BUCKETS))
    return match.iloc[0]


def _assign(df: pd.DataFrame, row_id: str, values) -> None:
    mask = df["id"] == row_id
    if mask.any():
        df.loc[mask, list(BUCKETS)] = pd.Series(values, index=list(BUCKETS)).to_numpy()


def rollup_pl_impact(rows: list[dict], ot_total: pd.Series) -> pd.DataFrame:
    """Derive the P&L table in dependency order.

    Group totals first, then the project-expense-spend mirror, then total
    expenses, then NIBT; every row's ``total`` is its seven buckets summed.
    """
    df = frame_from_rows(rows, PL_COLUMNS, PL_NUMERIC, bool_columns=("is_total",))
    if df.empty:
        return df
    cols = list(BUCKETS)
    df = round_columns(df, cols)

    for total_id in GROUP_TOTAL_IDS:
        mask = df["id"] == total_id
        if not mask.any():
            continue
        group = df.loc[mask, "group"].iloc[0]
        members = (df["group"] == group) & (~df["is_total"])
        _assign(df, total_id, df.loc[members, cols].sum())

    _assign(df, PL_PROJECT_EXPENSE_SPEND_ID, project_expense_spend_from_one_time(ot_total))
    df = round_columns(df, cols)

    total_expenses = _row_values(df, PL_PROJECT_EXPENSE_SPEND_ID) + _row_values(df, PL_ADDITIONAL_TOTAL_ID)
    _assign(df, PL_TOTAL_EXPENSES_ID, total_expenses)
    df = round_columns(df, cols)

    nibt = (
        _row_values(df, PL_REVENUE_TOTAL_ID)
        + _row_values(df, PL_SAVED_TOTAL_ID)
        - _row_values(df, PL_TOTAL_EXPENSES_ID)
    )
    _assign(df, PL_NIBT_ID, nibt)

    df["total"] = df[cols].sum(axis=1)
    return round_columns(df, PL_NUMERIC)


def row_by_id(pl: pd.DataFrame, row_id: str) -> pd.Series:
    if pl.empty:
        return pd.Series(0.0, index=list(PL_NUMERIC))
    match = pl.loc[pl["id"] == row_id]
    if match.empty:
        return pd.Series(0.0, index=list(PL_NUMERIC))
    return match.iloc[0]
