"""One-time cost rollup."""

from __future__ import annotations

import pandas as pd

from business_case.numeric import frame_from_rows, round_columns
from business_case.schema import ONE_TIME_COLUMNS, ONE_TIME_NUMERIC, ONE_TIME_SCHEDULE, OT_TOTAL_ID


def rollup_one_time_costs(rows: list[dict]) -> pd.DataFrame:
    """Row totals over the eight schedule fields plus a grand total of every numeric field."""
    df = round_columns(frame_from_rows(rows, ONE_TIME_COLUMNS, ONE_TIME_NUMERIC), ONE_TIME_NUMERIC)
    if df.empty:
        return df
    df["total"] = df[list(ONE_TIME_SCHEDULE)].sum(axis=1)
    df = round_columns(df, ("total",))

    grand = df["id"] == OT_TOTAL_ID
    if grand.any():
        sums = df.loc[~grand, list(ONE_TIME_NUMERIC)].sum()
        for idx in df.index[grand]:
            df.loc[idx, list(ONE_TIME_NUMERIC)] = sums.to_numpy()
    return round_columns(df, ONE_TIME_NUMERIC)


def grand_total_row(one_time: pd.DataFrame) -> pd.Series:
    match = one_time.loc[one_time["id"] == OT_TOTAL_ID] if not one_time.empty else one_time
    if match.empty:
        return pd.Series(0.0, index=list(ONE_TIME_NUMERIC))
    return match.iloc[0]
