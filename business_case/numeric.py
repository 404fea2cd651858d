"""Finiteness guard, cent rounding and row-to-frame coercion."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

import pandas as pd


_CENT = Decimal("0.01")


def to_number(value: Any) -> float:
    """Return a finite float for any form value; blanks and garbage become 0."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def round2(value: Any) -> float:
    number = to_number(value)
    rounded = float(Decimal(repr(number)).quantize(_CENT, rounding=ROUND_HALF_UP))
    # Avoid -0.0 leaking into presentation.
    return rounded + 0.0


def round_columns(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    cols = [c for c in columns if c in df.columns]
    if cols and not df.empty:
        df[cols] = df[cols].apply(lambda col: col.map(round2))
    return df


def frame_from_rows(
    rows: Iterable[dict] | None,
    columns: Sequence[str],
    numeric_columns: Sequence[str],
    bool_columns: Sequence[str] = (),
) -> pd.DataFrame:
    """Build a frame with a fixed column set from loosely-typed row dicts."""
    records = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        record = {}
        for col in columns:
            raw = row.get(col)
            if col in numeric_columns:
                record[col] = to_number(raw)
            elif col in bool_columns:
                record[col] = bool(raw)
            else:
                record[col] = "" if raw is None else str(raw)
        records.append(record)
    df = pd.DataFrame(records, columns=list(columns))
    for col in numeric_columns:
        df[col] = df[col].astype(float)
    for col in bool_columns:
        df[col] = df[col].astype(bool)
    return df
