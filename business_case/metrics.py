"""Headline metrics (NPV, IRR, payback) over the simple investment grid."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

import numpy as np

from business_case.defaults import DEFAULT_DISCOUNT_RATE
from business_case.goal_seek import bisect
from business_case.numeric import round2, to_number
from business_case.schema import INCREMENTAL_YEARS, INVESTMENT_CATEGORIES

USEFUL_LIFE_BY_CATEGORY = {
    "hardware": 4,
    "software": 5,
    "consultancy_vendor": 5,
    "premises_real_estate": 10,
    "other_capital": 5,
    "expenses": 1,
}
CAPITAL_CATEGORIES = tuple(c for c in INVESTMENT_CATEGORIES if c != "expenses")
PAYBACK_MAX_YEARS = 6


@dataclass(frozen=True)
class FinancialMetrics:
    discount_rate: float
    cash_flows: list[float]
    npv: float
    irr_pct: float | None
    payback_years: float | None
    payback_label: str

    def as_dict(self) -> dict:
        return asdict(self)


def _investment(grid: dict, category: str) -> dict[str, float]:
    cell = ((grid or {}).get("investment") or {}).get(category) or {}
    return {k: to_number(cell.get(k)) for k in ("prior_years", "current_fiscal", "future")}


def _series(grid: dict, name: str) -> list[float]:
    values = ((grid or {}).get("incremental") or {}).get(name) or []
    out = [to_number(v) for v in values[:INCREMENTAL_YEARS]]
    return out + [0.0] * (INCREMENTAL_YEARS - len(out))


def depreciation_of_capital_by_year(grid: dict) -> list[float]:
    annual = 0.0
    for category in CAPITAL_CATEGORIES:
        cell = _investment(grid, category)
        annual += sum(cell.values()) / USEFUL_LIFE_BY_CATEGORY[category]
    return [round2(annual)] * INCREMENTAL_YEARS


def net_benefits_by_year(grid: dict, opex=0.0) -> list[float]:
    """Revenue less saved costs, capital depreciation, additional costs and opex per year."""
    depreciation = depreciation_of_capital_by_year(grid)
    revenue = _series(grid, "revenue")
    saved = _series(grid, "saved_costs")
    addl = _series(grid, "addl_operating_costs")
    opex_value = to_number(opex)
    return [
        round2(revenue[i] - (saved[i] + depreciation[i] + addl[i] + opex_value))
        for i in range(INCREMENTAL_YEARS)
    ]


def npv_at_rate(rate: float, cash_flows) -> float:
    flows = np.asarray(cash_flows, dtype=float)
    return float(np.sum(flows / (1.0 + rate) ** np.arange(len(flows))))


def _npv_derivative(rate: float, cash_flows) -> float:
    flows = np.asarray(cash_flows, dtype=float)
    periods = np.arange(len(flows))
    return float(-np.sum(periods[1:] * flows[1:] / (1.0 + rate) ** (periods[1:] + 1)))


def compute_npv(cash_flows: list[float], discount_rate: float = DEFAULT_DISCOUNT_RATE) -> float:
    """Prior-year and year-0 flows are taken at face value; later years discount from period 1."""
    head = sum(cash_flows[:2])
    tail = sum(flow / (1.0 + discount_rate) ** (i + 1) for i, flow in enumerate(cash_flows[2:]))
    return round2(head + tail)


def compute_irr(cash_flows: list[float]) -> float | None:
    """IRR in percent; Newton from 10%, then bisection on [-0.99, 10]."""
    if not (any(f > 0 for f in cash_flows) and any(f < 0 for f in cash_flows)):
        return None

    rate = 0.1
    for _ in range(100):
        value = npv_at_rate(rate, cash_flows)
        slope = _npv_derivative(rate, cash_flows)
        if abs(slope) < 1e-8:
            break
        next_rate = rate - value / slope
        if not math.isfinite(next_rate) or next_rate <= -0.9999 or next_rate > 100:
            break
        if abs(next_rate - rate) < 1e-8:
            return round2(next_rate * 100)
        rate = next_rate

    result = bisect(lambda r: npv_at_rate(r, cash_flows), -0.99, 10.0)
    if result.value is None:
        return None
    return round2(result.value * 100)


def compute_payback_years(cash_flows: list[float], max_years: int = PAYBACK_MAX_YEARS) -> float | None:
    if len(cash_flows) < 2:
        return None
    cumulative = cash_flows[0] + cash_flows[1]
    if cumulative > 0:
        return 0.99
    for i in range(2, min(len(cash_flows) - 1, max_years + 1) + 1):
        previous = cumulative
        flow = cash_flows[i]
        cumulative += flow
        if cumulative > 0:
            if abs(flow) < 1e-8:
                return float(i - 1)
            return round2(i - 1 + abs(previous / flow))
    return None


def payback_label(payback_years: float | None) -> str:
    if payback_years is None:
        return "Negative or >6"
    if payback_years < 1:
        return "<1"
    return f"{round2(payback_years):.2f}"


def calculate_financial_metrics(grid: dict, financials: dict, discount_rate: float = DEFAULT_DISCOUNT_RATE) -> FinancialMetrics:
    prior = sum(_investment(grid, c)["prior_years"] for c in INVESTMENT_CATEGORIES)
    current = sum(_investment(grid, c)["current_fiscal"] for c in INVESTMENT_CATEGORIES)
    details = financials or {}
    flows = [-prior, -current - to_number(details.get("one_time_costs"))]
    flows += net_benefits_by_year(grid, details.get("opex"))
    flows = [f if math.isfinite(f) else 0.0 for f in flows]

    years = compute_payback_years(flows)
    return FinancialMetrics(
        discount_rate=float(discount_rate),
        cash_flows=flows,
        npv=compute_npv(flows, discount_rate),
        irr_pct=compute_irr(flows),
        payback_years=years,
        payback_label=payback_label(years),
    )
