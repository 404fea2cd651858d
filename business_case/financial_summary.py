"""Financial summary tables (Expenses, P&L Summary, Cash Flow) built from derived rollups."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from business_case.numeric import round_columns, to_number
from business_case.proration import BUCKETS, QUARTERS
from business_case.schema import INCREMENTAL_YEARS, PL_REVENUE_TOTAL_ID, PL_SAVED_TOTAL_ID

YEAR_SLOTS = tuple(f"year_plus_{n}" for n in range(1, INCREMENTAL_YEARS + 1))
EXPENSE_SLOTS = ("prior_fys",) + QUARTERS + ("spend_total", "plan", "over_under_plan") + YEAR_SLOTS + ("total",)

CAPITAL_LINE = "Total Capital Expenditure"
ONE_TIME_LINE = "Total One-Time Costs"
OPERATING_LINE = "Operating Expenses"
INTERNAL_RESOURCING_LINE = "Internal Resourcing Operating Expenses"
OPEX_SUBTOTAL_LINE = "Operating Expenditure"
EXPENSES_TOTAL_LINE = "Total"

TOTAL_BENEFIT_LINE = "Total Benefit"

NET_BENEFIT_LINE = "Net Business Benefit"
ADD_BACK_LINE = "Add-back Depreciation"
CAPITAL_SPEND_LINE = "Capital/Prepaid Spending"
INTERNAL_COST_LINE = "Internal Resource Costs"
RESTRUCTURING_LINE = "Restructuring (HR BAU funded)"
NET_CASH_LINE = "Net Cash Flows"


@dataclass(frozen=True, eq=False)
class FinancialSummary:
    expenses: pd.DataFrame
    pl_summary: pd.DataFrame
    cash_flow: pd.DataFrame


def fiscal_year_labels(anchor_fy: int) -> dict[str, str]:
    """Bucket key -> column label: Prior FYs, F<anchor>, F<anchor+1>, ..."""
    labels = {"prior_fys": "Prior FYs"}
    for offset, bucket in enumerate(BUCKETS[1:]):
        labels[bucket] = f"F{int(anchor_fy) + offset}"
    return labels


def expense_labels(anchor_fy: int) -> dict[str, str]:
    labels = {
        "prior_fys": "Prior FYs",
        **{q: f"F{int(anchor_fy)} {q.upper()}" for q in QUARTERS},
        "spend_total": "Spend Total",
        "plan": "Plan",
        "over_under_plan": "Over/Under Plan",
        "total": "Total",
    }
    for n, slot in enumerate(YEAR_SLOTS, start=1):
        labels[slot] = f"F{int(anchor_fy) + n}"
    return labels


def _get(row, key: str) -> float:
    return to_number(row.get(key, 0.0)) if row is not None else 0.0


def _incremental(grid: dict, series: str) -> list[float]:
    values = ((grid or {}).get("incremental") or {}).get(series) or []
    out = [to_number(v) for v in values[:INCREMENTAL_YEARS]]
    return out + [0.0] * (INCREMENTAL_YEARS - len(out))


def _expense_line(line: str, **slots: float) -> dict:
    record = {"line_item": line, **{slot: 0.0 for slot in EXPENSE_SLOTS}}
    record.update(slots)
    return record


def _sum_lines(line: str, *records: dict) -> dict:
    return _expense_line(line, **{slot: sum(r[slot] for r in records) for slot in EXPENSE_SLOTS})


def build_expenses_table(capital_total, one_time_total, pl_additional_total, grid: dict) -> pd.DataFrame:
    spend = sum(_get(capital_total, q) for q in QUARTERS)
    plan = _get(capital_total, "plan")
    capital_years = {f"year_plus_{n}": _get(capital_total, f"fy_plus_{n}") for n in range(1, INCREMENTAL_YEARS + 1)}
    capital = _expense_line(
        CAPITAL_LINE,
        prior_fys=_get(capital_total, "prior_fys"),
        **{q: _get(capital_total, q) for q in QUARTERS},
        spend_total=spend,
        plan=plan,
        over_under_plan=spend - plan,
        **capital_years,
        total=_get(capital_total, "prior_fys") + spend + plan + sum(capital_years.values()),
    )

    ot_spend = _get(one_time_total, "current_year_spend")
    ot_plan = _get(one_time_total, "current_year_plan")
    one_time = _expense_line(
        ONE_TIME_LINE,
        prior_fys=_get(one_time_total, "prior_fys"),
        spend_total=ot_spend,
        plan=ot_plan,
        over_under_plan=ot_spend - ot_plan,
        **{slot: _get(one_time_total, slot) for slot in YEAR_SLOTS},
        total=_get(one_time_total, "total"),
    )

    operating = _expense_line(
        OPERATING_LINE,
        prior_fys=_get(pl_additional_total, "prior_fys"),
        spend_total=_get(pl_additional_total, "current_year"),
        **{slot: _get(pl_additional_total, slot) for slot in YEAR_SLOTS},
        total=_get(pl_additional_total, "total"),
    )

    internal_costs = _incremental(grid, "addl_operating_costs")
    internal = _expense_line(
        INTERNAL_RESOURCING_LINE,
        **dict(zip(YEAR_SLOTS, internal_costs)),
        total=sum(internal_costs),
    )

    opex = _sum_lines(OPEX_SUBTOTAL_LINE, operating, internal)
    total = _sum_lines(EXPENSES_TOTAL_LINE, capital, one_time, opex)
    df = pd.DataFrame([capital, one_time, operating, internal, opex, total], columns=["line_item", *EXPENSE_SLOTS])
    return round_columns(df, EXPENSE_SLOTS)


def build_pl_summary(pl: pd.DataFrame) -> pd.DataFrame:
    """P&L rows on positional fiscal-year buckets with a Total Benefit line after saved costs."""
    columns = ["row_id", "group", "line_item", *BUCKETS, "total"]
    records = []
    for _, row in pl.iterrows():
        records.append(
            {
                "row_id": row["id"],
                "group": row["group"],
                "line_item": row["label"],
                **{b: float(row[b]) for b in BUCKETS},
                "total": float(row["total"]),
            }
        )
        if row["id"] == PL_SAVED_TOTAL_ID:
            revenue = pl.loc[pl["id"] == PL_REVENUE_TOTAL_ID]
            revenue_row = revenue.iloc[0] if not revenue.empty else None
            benefit = {b: _get(revenue_row, b) + float(row[b]) for b in BUCKETS}
            records.append(
                {
                    "row_id": "total-benefit",
                    "group": "Summary",
                    "line_item": TOTAL_BENEFIT_LINE,
                    **benefit,
                    "total": sum(benefit.values()),
                }
            )
    df = pd.DataFrame(records, columns=columns)
    return round_columns(df, (*BUCKETS, "total"))


def build_cash_flow(
    net_benefits: list[float],
    add_back_depreciation: float,
    capital_total,
    grid: dict,
    restructuring: dict,
) -> pd.DataFrame:
    def line(name: str, values: dict[str, float]) -> dict:
        record = {"line_item": name, **{b: to_number(values.get(b, 0.0)) for b in BUCKETS}}
        record["total"] = sum(record[b] for b in BUCKETS)
        return record

    benefit = line(NET_BENEFIT_LINE, dict(zip(YEAR_SLOTS, net_benefits)))
    # Flat annual figure from the current year on; nothing is added back for prior years.
    depreciation = line(ADD_BACK_LINE, {b: add_back_depreciation for b in BUCKETS[1:]})
    capital = line(
        CAPITAL_SPEND_LINE,
        {
            "prior_fys": _get(capital_total, "prior_fys"),
            "current_year": sum(_get(capital_total, q) for q in QUARTERS) + _get(capital_total, "plan"),
            **{slot: _get(capital_total, f"fy_plus_{n}") for n, slot in enumerate(YEAR_SLOTS, start=1)},
        },
    )
    internal = line(INTERNAL_COST_LINE, dict(zip(YEAR_SLOTS, _incremental(grid, "addl_operating_costs"))))
    restructure = line(RESTRUCTURING_LINE, restructuring or {})
    net = line(
        NET_CASH_LINE,
        {
            b: benefit[b] + depreciation[b] - capital[b] - internal[b] - restructure[b]
            for b in BUCKETS
        },
    )
    df = pd.DataFrame(
        [benefit, depreciation, capital, internal, restructure, net],
        columns=["line_item", *BUCKETS, "total"],
    )
    return round_columns(df, (*BUCKETS, "total"))


def build_financial_summary(
    capital_total,
    one_time_total,
    pl: pd.DataFrame,
    pl_additional_total,
    net_benefits: list[float],
    add_back_depreciation: float,
    grid: dict,
    restructuring: dict,
) -> FinancialSummary:
    return FinancialSummary(
        expenses=build_expenses_table(capital_total, one_time_total, pl_additional_total, grid),
        pl_summary=build_pl_summary(pl),
        cash_flow=build_cash_flow(net_benefits, add_back_depreciation, capital_total, grid, restructuring),
    )


def display_frame(df: pd.DataFrame, labels: dict[str, str]) -> pd.DataFrame:
    """Rename slot columns for presentation; identifier columns become title case."""
    renamed = {c: labels.get(c, c.replace("_", " ").title()) for c in df.columns}
    renamed.pop("row_id", None)
    out = df.drop(columns=["row_id"], errors="ignore")
    return out.rename(columns=renamed)
