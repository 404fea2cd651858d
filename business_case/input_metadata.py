"""Input guidance metadata and advisory checks for the business case form."""

from __future__ import annotations

from typing import Any

from business_case.calendar_utils import parse_date_only
from business_case.categories import LegacyRetained, classify_subcategory
from business_case.numeric import to_number


INPUT_GUIDANCE: dict[str, dict[str, Any]] = {
    "project_contingency_pct": {"min": 0.0, "max": 25.0, "note": "Contingency is usually a modest share of base capital."},
    "withholding_tax_rate_pct": {"min": 0.0, "max": 25.0, "note": "Withholding tax is generally paid by the vendor."},
    "discount_rate": {"min": 0.03, "max": 0.25, "note": "Nominal annual hurdle rate used for NPV."},
    "average_allocation_pct": {"min": 1.0, "max": 100.0, "note": "Share of the resource's time spent on the project."},
    "useful_life_years": {"min": 1.0, "max": 40.0, "note": "Depreciation window; amounts past five following years are not scheduled."},
}

DATE_ORDER_ERROR_MESSAGE = "End date must be on or after the start date."


def _fmt(v: float) -> str:
    if abs(v - round(v)) < 1e-9:
        return f"{int(round(v))}"
    return f"{v:.3f}".rstrip("0").rstrip(".")


def help_with_guidance(key: str, base_help: str) -> str:
    g = INPUT_GUIDANCE.get(key)
    if not g:
        return base_help
    return f"{base_help} Reasonable range: {_fmt(g['min'])} to {_fmt(g['max'])}. {g['note']}"


def _range_warning(label: str, key: str, raw) -> str | None:
    g = INPUT_GUIDANCE[key]
    if raw in (None, ""):
        return None
    v = to_number(raw)
    if v < g["min"] or v > g["max"]:
        return f"{label}={_fmt(v)} is outside the recommended range [{_fmt(g['min'])}, {_fmt(g['max'])}]."
    return None


def _date_warnings(label: str, start_raw, end_raw) -> list[str]:
    warnings: list[str] = []
    start = parse_date_only(start_raw)
    end = parse_date_only(end_raw)
    for name, raw, parsed in (("start", start_raw, start), ("end", end_raw, end)):
        if str(raw or "").strip() and parsed is None:
            warnings.append(f"{label}: {name} date '{raw}' is not a valid YYYY-MM-DD date.")
    if start is not None and end is not None and end < start:
        warnings.append(f"{label}: {DATE_ORDER_ERROR_MESSAGE}")
    return warnings


def advisory_warnings(state: dict, config: dict) -> list[str]:
    """Form-layer advisories; derivation proceeds regardless."""
    warnings: list[str] = []
    capital = (state or {}).get("capital_expenses") or {}
    for key, label in (("project_contingency_pct", "Contingency %"), ("withholding_tax_rate_pct", "Withholding tax %")):
        message = _range_warning(label, key, capital.get(key))
        if message:
            warnings.append(message)
    message = _range_warning("Discount rate", "discount_rate", (config or {}).get("discount_rate"))
    if message:
        warnings.append(message)

    salaries = (config or {}).get("pay_grade_monthly_salary") or {}
    human = ((state or {}).get("resource_requirements") or {}).get("human_resources") or []
    for idx, row in enumerate(human, start=1):
        label = f"Human resource row {idx}"
        warnings.extend(_date_warnings(label, row.get("resource_start_date"), row.get("resource_end_date")))
        grade = str(row.get("pay_grade") or "").strip()
        if grade and grade not in salaries:
            warnings.append(f"{label}: pay grade '{grade}' has no configured salary; cost is not allocated.")
        message = _range_warning(f"{label} allocation %", "average_allocation_pct", row.get("average_allocation_pct"))
        if message:
            warnings.append(message)

    category_map = (config or {}).get("depreciation_category_map") or {}
    phases = ((state or {}).get("depreciation_summary") or {}).get("rows") or []
    for idx, row in enumerate(phases, start=1):
        label = f"Depreciation phase {idx}"
        warnings.extend(_date_warnings(label, row.get("phase_start_date"), row.get("phase_end_date")))
        category = str(row.get("category") or "").strip()
        subcategory = str(row.get("capex_prepaid_category") or "").strip()
        if subcategory and not category:
            warnings.append(f"{label}: choose a category before the capex/prepaid category.")
        elif isinstance(classify_subcategory(category, subcategory, category_map), LegacyRetained):
            warnings.append(f"{label}: '{subcategory}' is no longer a configured option for {category}; kept as entered.")
        if to_number(row.get("useful_life_years")) > 0:
            message = _range_warning(f"{label} useful life", "useful_life_years", row.get("useful_life_years"))
            if message:
                warnings.append(message)
    return warnings
