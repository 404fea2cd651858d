"""Capital expense rollup: row totals, group subtotals, adjustments and grand total."""

from __future__ import annotations

import pandas as pd

from business_case.numeric import frame_from_rows, round2, round_columns, to_number
from business_case.schema import (
    ADJUSTMENTS_GROUP,
    CAPITAL_COLUMNS,
    CAPITAL_NUMERIC,
    CAPITAL_SCHEDULE_FIELDS,
    CAPITAL_TOTAL_ID,
    CONTINGENCY_ID,
    WITHHOLDING_ID,
)

ROLLUP_FIELDS = ("quantity", "total_cost", "annual_depreciation") + CAPITAL_SCHEDULE_FIELDS


def _detail_mask(df: pd.DataFrame) -> pd.Series:
    return (~df["is_total"]) & (df["group"] != ADJUSTMENTS_GROUP)


def _group_total_mask(df: pd.DataFrame) -> pd.Series:
    return df["is_total"] & (df["group"] != ADJUSTMENTS_GROUP)


def adjustment_amount(base_capital: float, pct) -> float:
    return round2(base_capital * to_number(pct) / 100.0)


def rollup_capital_expenses(
    rows: list[dict],
    contingency_pct=0.0,
    withholding_pct=0.0,
    useful_life_by_label: dict[str, float] | None = None,
) -> pd.DataFrame:
    """Return the fully derived capital expense table.

    Detail rows get ``total_cost = quantity * unit_cost`` and an annual
    depreciation from the useful life configured for their group. Every group
    total row is the field-wise sum of its detail rows (unit cost forced to 0).
    Contingency and withholding are percentages of the summed group totals and
    sit entirely in the ``plan`` slot; the grand total sums group totals plus
    both adjustments.
    """
    df = frame_from_rows(rows, CAPITAL_COLUMNS, CAPITAL_NUMERIC, bool_columns=("is_total",))
    df = round_columns(df, CAPITAL_NUMERIC)
    if df.empty:
        return df
    lives = useful_life_by_label or {}

    detail = _detail_mask(df)
    df.loc[detail, "total_cost"] = (df.loc[detail, "quantity"] * df.loc[detail, "unit_cost"]).map(round2)
    life = df["group"].map(lambda g: to_number(lives.get(g, 0.0)))
    depreciable = detail & (life > 0)
    df["annual_depreciation"] = 0.0
    df.loc[depreciable, "annual_depreciation"] = (df.loc[depreciable, "total_cost"] / life[depreciable]).map(round2)

    cols = list(ROLLUP_FIELDS)
    sums = df.loc[detail].groupby("group")[cols].sum()
    group_totals = _group_total_mask(df)
    for idx in df.index[group_totals]:
        group = df.at[idx, "group"]
        df.loc[idx, cols] = sums.loc[group, cols].to_numpy() if group in sums.index else 0.0
        df.at[idx, "unit_cost"] = 0.0

    base_capital = round2(df.loc[group_totals, "total_cost"].sum())
    adjustments = {
        CONTINGENCY_ID: adjustment_amount(base_capital, contingency_pct),
        WITHHOLDING_ID: adjustment_amount(base_capital, withholding_pct),
    }
    adjustment_mask = df["id"].isin(list(adjustments))
    for idx in df.index[adjustment_mask]:
        amount = adjustments[df.at[idx, "id"]]
        df.loc[idx, list(CAPITAL_NUMERIC)] = 0.0
        df.at[idx, "total_cost"] = amount
        df.at[idx, "plan"] = amount

    grand = df["id"] == CAPITAL_TOTAL_ID
    if grand.any():
        grand_sum = df.loc[group_totals | adjustment_mask, cols].sum()
        for idx in df.index[grand]:
            df.loc[idx, cols] = grand_sum[cols].to_numpy()
            df.at[idx, "unit_cost"] = 0.0

    return round_columns(df, CAPITAL_NUMERIC)


def add_back_depreciation(capital: pd.DataFrame) -> float:
    """Annual depreciation summed over detail rows, adjustments excluded."""
    if capital.empty:
        return 0.0
    return round2(capital.loc[_detail_mask(capital), "annual_depreciation"].sum())


def grand_total_row(capital: pd.DataFrame) -> pd.Series:
    match = capital.loc[capital["id"] == CAPITAL_TOTAL_ID]
    if match.empty:
        return pd.Series(0.0, index=list(CAPITAL_NUMERIC))
    return match.iloc[0]
