"""Full recomputation of every derived table from a raw business case.

The host calls :func:`derive_all` after every edit; nothing is updated
incrementally. Tables are computed in ``DERIVATION_ORDER`` because later
tables read the totals of earlier ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any

import pandas as pd

from business_case import capital, depreciation, one_time, pl_impact, resources
from business_case.calendar_utils import fiscal_year
from business_case.case_config import normalize_config, useful_life_by_label
from business_case.financial_summary import FinancialSummary, build_financial_summary
from business_case.metrics import FinancialMetrics, calculate_financial_metrics, net_benefits_by_year
from business_case.numeric import to_number
from business_case.schema import PL_ADDITIONAL_TOTAL_ID, normalize_business_case

DERIVATION_ORDER = (
    "capital_expenses",
    "depreciation_summary",
    "resource_costs",
    "one_time_costs",
    "p_and_l_impact",
    "financial_summary",
    "headline_metrics",
)

_YEAR_RE = re.compile(r"(\d{4})")


def resolve_current_fiscal_year(state: dict) -> int:
    """Anchor year: the introduction's current-year selector, then the grid's commencement year."""
    selector = str(((state or {}).get("introduction") or {}).get("current_year") or "")
    match = _YEAR_RE.search(selector)
    if match:
        return int(match.group(1))
    commencement = int(to_number(((state or {}).get("financial_grid") or {}).get("commencement_fiscal_year")))
    if commencement > 0:
        return commencement
    return fiscal_year(date.today())


@dataclass(frozen=True, eq=False)
class DerivedState:
    anchor_fy: int
    capital: pd.DataFrame
    depreciation: pd.DataFrame
    resource_costs: pd.DataFrame
    one_time: pd.DataFrame
    pl_impact: pd.DataFrame
    summary: FinancialSummary
    add_back_depreciation: float
    net_benefits: list[float]
    metrics: FinancialMetrics
    resource_summary: str

    def frames(self) -> dict[str, pd.DataFrame]:
        return {
            "capital_expenses": self.capital,
            "depreciation_summary": self.depreciation,
            "resource_costs": self.resource_costs,
            "one_time_costs": self.one_time,
            "p_and_l_impact": self.pl_impact,
            "financial_summary_expenses": self.summary.expenses,
            "financial_summary_pl": self.summary.pl_summary,
            "financial_summary_cash_flow": self.summary.cash_flow,
        }

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {name: df.to_dict(orient="records") for name, df in self.frames().items()}
        payload["current_fiscal_year"] = self.anchor_fy
        payload["add_back_depreciation"] = self.add_back_depreciation
        payload["net_benefits_by_year"] = list(self.net_benefits)
        payload["headline_metrics"] = self.metrics.as_dict()
        payload["resource_requirement_summary"] = self.resource_summary
        return payload


def derive_all(raw_state: dict, config: dict | None = None) -> DerivedState:
    state, _, _ = normalize_business_case(raw_state)
    cfg, _ = normalize_config(config)
    lives = useful_life_by_label(cfg)
    anchor = resolve_current_fiscal_year(state)

    cap_section = state["capital_expenses"]
    capital_df = capital.rollup_capital_expenses(
        cap_section["rows"],
        contingency_pct=cap_section["project_contingency_pct"],
        withholding_pct=cap_section["withholding_tax_rate_pct"],
        useful_life_by_label=lives,
    )
    depreciation_df = depreciation.build_depreciation_schedule(state["depreciation_summary"]["rows"], anchor, lives)
    resource_df = resources.build_resource_costs(
        state["resource_requirements"]["human_resources"],
        cfg["pay_grade_monthly_salary"],
        anchor,
    )
    one_time_df = one_time.rollup_one_time_costs(state["one_time_costs"]["rows"])
    ot_total = one_time.grand_total_row(one_time_df)
    pl_df = pl_impact.rollup_pl_impact(state["p_and_l_impact"]["rows"], ot_total)

    grid = state["financial_grid"]
    capital_total = capital.grand_total_row(capital_df)
    add_back = capital.add_back_depreciation(capital_df)
    net_benefits = net_benefits_by_year(grid, state["financials"].get("opex"))
    summary = build_financial_summary(
        capital_total=capital_total,
        one_time_total=ot_total,
        pl=pl_df,
        pl_additional_total=pl_impact.row_by_id(pl_df, PL_ADDITIONAL_TOTAL_ID),
        net_benefits=net_benefits,
        add_back_depreciation=add_back,
        grid=grid,
        restructuring=state["financial_summary"]["restructuring_hr_bau_funded"],
    )
    headline = calculate_financial_metrics(grid, state["financials"], cfg["discount_rate"])

    return DerivedState(
        anchor_fy=anchor,
        capital=capital_df,
        depreciation=depreciation_df,
        resource_costs=resource_df,
        one_time=one_time_df,
        pl_impact=pl_df,
        summary=summary,
        add_back_depreciation=add_back,
        net_benefits=net_benefits,
        metrics=headline,
        resource_summary=resources.resource_requirement_summary(state["resource_requirements"]),
    )
