"""Business case schema: table columns, blueprint rows, normalization and migration."""

from __future__ import annotations

import re
from copy import deepcopy
from datetime import date
from typing import Any

from business_case.calendar_utils import fiscal_year
from business_case.numeric import to_number
from business_case.proration import BUCKETS


SCHEMA_VERSION = 1
BUSINESS_CASE_TYPE = "business_case"

# Capital expenses.
CAPITAL_SPEND_SCHEDULE = ("prior_fys", "q1", "q2", "q3", "q4")
CAPITAL_SPEND_TIMING = ("plan", "fy_plus_1", "fy_plus_2", "fy_plus_3", "fy_plus_4", "fy_plus_5")
CAPITAL_SCHEDULE_FIELDS = CAPITAL_SPEND_SCHEDULE + CAPITAL_SPEND_TIMING
CAPITAL_NUMERIC = ("quantity", "unit_cost", "total_cost", "annual_depreciation") + CAPITAL_SCHEDULE_FIELDS
CAPITAL_COLUMNS = (
    "id",
    "group",
    "label",
    "is_total",
    "quantity",
    "unit_cost",
    "total_cost",
    "comments",
    "annual_depreciation",
) + CAPITAL_SCHEDULE_FIELDS
CAPITAL_EDITABLE = ("quantity", "unit_cost", "comments") + CAPITAL_SCHEDULE_FIELDS

ADJUSTMENTS_GROUP = "Adjustments"
CONTINGENCY_ID = "contingency"
WITHHOLDING_ID = "withholding-tax"
CAPITAL_TOTAL_ID = "capital-total"

# Depreciation summary.
DEPRECIATION_NUMERIC = (
    "useful_life_years",
    "total_project_cost",
    "project_cost_for_phase",
    "annual_depreciation",
) + BUCKETS + ("total",)
DEPRECIATION_COLUMNS = (
    "id",
    "phase",
    "category",
    "capex_prepaid_category",
    "phase_start_date",
    "phase_end_date",
) + DEPRECIATION_NUMERIC
DEPRECIATION_EDITABLE = (
    "phase",
    "category",
    "capex_prepaid_category",
    "phase_start_date",
    "phase_end_date",
    "useful_life_years",
    "project_cost_for_phase",
)
DEPRECIATION_MIN_ROWS = 15

# Resources.
HUMAN_RESOURCE_COLUMNS = (
    "id",
    "role_description",
    "responsibilities",
    "resource_type",
    "pay_grade",
    "resource_name",
    "comments",
    "capex_opex",
    "resource_start_date",
    "resource_end_date",
    "hiring_required",
    "average_allocation_pct",
)
TECHNOLOGY_RESOURCE_COLUMNS = (
    "id",
    "impacted_application",
    "availability_application_tier",
    "strategic_or_non_strategic",
    "rationale_for_completing_work",
    "introduces_new_application",
    "decommission_opportunity",
)
RESOURCE_TYPES = ("Internal", "External")

# One-time costs.
ONE_TIME_SCHEDULE = (
    "prior_fys",
    "current_year_spend",
    "current_year_plan",
    "year_plus_1",
    "year_plus_2",
    "year_plus_3",
    "year_plus_4",
    "year_plus_5",
)
ONE_TIME_NUMERIC = ("project_total",) + ONE_TIME_SCHEDULE + ("total",)
ONE_TIME_COLUMNS = ("id", "item", "comments") + ONE_TIME_NUMERIC
ONE_TIME_EDITABLE = ("item", "comments", "project_total") + ONE_TIME_SCHEDULE
OT_TOTAL_ID = "ot-total"

# P&L impact.
PL_NUMERIC = BUCKETS + ("total",)
PL_COLUMNS = ("id", "group", "label", "is_total") + PL_NUMERIC
PL_EDITABLE = BUCKETS
PL_REVENUE_TOTAL_ID = "pl-revenue-total"
PL_SAVED_TOTAL_ID = "pl-saved-total"
PL_PROJECT_EXPENSE_SPEND_ID = "pl-project-expense-spend"
PL_ADDITIONAL_TOTAL_ID = "pl-additional-total"
PL_TOTAL_EXPENSES_ID = "pl-total-expenses"
PL_NIBT_ID = "pl-nibt"

INVESTMENT_CATEGORIES = (
    "hardware",
    "software",
    "consultancy_vendor",
    "premises_real_estate",
    "other_capital",
    "expenses",
)
INCREMENTAL_SERIES = ("revenue", "saved_costs", "addl_operating_costs")
INCREMENTAL_YEARS = 5

CAPITAL_BLUEPRINT = (
    ("external-consulting", "External Resources", "Consulting / Contractors", False),
    ("external-vendor", "External Resources", "Vendor", False),
    ("external-total", "External Resources", "TOTAL External Resources", True),
    ("software-os", "IT COSTS - Software", "Operating Systems Software", False),
    ("software-app", "IT COSTS - Software", "Application Systems Software", False),
    ("software-consultancy", "IT COSTS - Software", "Consultancy", False),
    ("software-total", "IT COSTS - Software", "TOTAL Software Cost", True),
    ("hardware-desktop", "IT COSTS - Hardware", "Desktop/Workstation Computers", False),
    ("hardware-laptop", "IT COSTS - Hardware", "Laptop Computers", False),
    ("hardware-monitors", "IT COSTS - Hardware", "Monitors & Printers", False),
    ("hardware-servers", "IT COSTS - Hardware", "Servers", False),
    ("hardware-host", "IT COSTS - Hardware", "Host/Mainframe", False),
    ("hardware-data-comms", "IT COSTS - Hardware", "Data Communication Equipment", False),
    ("hardware-voice-comms", "IT COSTS - Hardware", "Voice Communication Equipment", False),
    ("hardware-atm", "IT COSTS - Hardware", "Automated Banking Machines", False),
    ("hardware-cellular", "IT COSTS - Hardware", "Cellular Phones", False),
    ("hardware-pos", "IT COSTS - Hardware", "POS Terminals", False),
    ("hardware-total", "IT COSTS - Hardware", "TOTAL Hardware Cost", True),
    ("furniture-main", "Furniture and Fixtures", "Furniture (desks, chairs, workstations, tables)", False),
    ("furniture-ac", "Furniture and Fixtures", "Air Conditioners", False),
    ("furniture-signs-ext", "Furniture and Fixtures", "Signs: External", False),
    ("furniture-signs-int", "Furniture and Fixtures", "Signs: Internal", False),
    ("furniture-alarms", "Furniture and Fixtures", "Alarms", False),
    ("furniture-carpets", "Furniture and Fixtures", "Carpets", False),
    ("furniture-drapes", "Furniture and Fixtures", "Drapes/Blinds", False),
    ("furniture-access", "Furniture and Fixtures", "Card Access Control", False),
    ("furniture-total", "Furniture and Fixtures", "TOTAL Furniture and Fixtures Costs", True),
    ("safe-vault-doors", "Safekeeping Cost", "Vault Doors", False),
    ("safe-safes", "Safekeeping Cost", "Safes", False),
    ("safe-locks", "Safekeeping Cost", "Safety & Time Locks", False),
    ("safe-boxes", "Safekeeping Cost", "Built in Safety Deposit Boxes", False),
    ("safe-vaults", "Safekeeping Cost", "Portable insta-vaults, Anti-Holdup Units, Banker's Safe", False),
    ("safe-bullet", "Safekeeping Cost", "Bullet Resistive Wickets", False),
    ("safe-total", "Safekeeping Cost", "TOTAL Safekeeping Cost", True),
    ("office-security", "Office Equipment Costs", "Security Cameras", False),
    ("office-audio", "Office Equipment Costs", "Audio Visual", False),
    ("office-digital", "Office Equipment Costs", "Portable Digital Cameras", False),
    ("office-photocopiers", "Office Equipment Costs", "Photocopiers & Proof Encoders", False),
    ("office-other", "Office Equipment Costs", "Other Office & Mechanical Equipment", False),
    ("office-total", "Office Equipment Costs", "TOTAL Office Equipment Cost", True),
    ("other-banking-pavilion", "Other Costs", "Banking Pavilion", False),
    ("other-aux-power", "Other Costs", "Auxiliary Power Equipment", False),
    ("other-total", "Other Costs", "TOTAL Other Costs", True),
    ("premises-leasehold", "Premises Costs", "Leasehold Premises", False),
    ("premises-building", "Premises Costs", "New Building", False),
    ("premises-total", "Premises Costs", "TOTAL Premises Costs", True),
    (CONTINGENCY_ID, ADJUSTMENTS_GROUP, "Contingency", False),
    (WITHHOLDING_ID, ADJUSTMENTS_GROUP, "Withholding Tax - Barbados Inland Revenue", False),
    (CAPITAL_TOTAL_ID, ADJUSTMENTS_GROUP, "TOTAL CAPITAL EXPENDITURE", True),
)

ONE_TIME_BLUEPRINT = (
    ("ot-training", "Training"),
    ("ot-staff-travel", "Staff Travel (excl training)"),
    ("ot-staff-meals", "Staff Expenses - Meals/mileage"),
    ("ot-staff-overtime", "Staff Expenses - Overtime"),
    ("ot-vendor", "Vendor Costs"),
    ("ot-consultancy", "Consultancy"),
    ("ot-consultants-onsite", "Consultants On-Site Cost"),
    ("ot-contractors", "Contractors"),
    ("ot-marketing", "Marketing"),
    ("ot-seed-funding", "Seed Funding (Requirements & Design)"),
    ("ot-relocation", "Relocation Costs"),
    ("ot-professional-fees", "Professional Fees"),
    ("ot-data-migration", "Data Migration"),
    ("ot-miscellaneous", "Miscellaneous Costs"),
    ("ot-contingency", "Contingency"),
    ("ot-withholding-tax", "Withholding Tax - Barbados Inland Revenue"),
    (OT_TOTAL_ID, "TOTAL ONE-TIME COSTS"),
)

PL_BLUEPRINT = (
    ("pl-revenue-net-interest", "Revenue", "Net interest income", False),
    ("pl-revenue-fees", "Revenue", "Fees & commissions", False),
    ("pl-revenue-other", "Revenue", "Other income", False),
    ("pl-revenue-attrition", "Revenue", "Revenue attrition", False),
    (PL_REVENUE_TOTAL_ID, "Revenue", "Total Revenue", True),
    ("pl-saved-staff", "Saved Costs", "Staff costs", False),
    ("pl-saved-it", "Saved Costs", "IT Costs", False),
    ("pl-saved-premises", "Saved Costs", "Premises costs", False),
    ("pl-saved-depreciation", "Saved Costs", "Depreciation", False),
    ("pl-saved-other", "Saved Costs", "Other costs", False),
    (PL_SAVED_TOTAL_ID, "Saved Costs", "Total Saved Costs", True),
    (PL_PROJECT_EXPENSE_SPEND_ID, "Project Expense Spend (1x)", "Project Expense Spend (1x)", True),
    ("pl-additional-salaries", "Additional Operating Costs", "Salaries & Benefits", False),
    ("pl-additional-maintenance", "Additional Operating Costs", "Maintenance / Licensing", False),
    ("pl-additional-decommissioning", "Additional Operating Costs", "Decommissioning", False),
    ("pl-additional-lease", "Additional Operating Costs", "Lease Payments", False),
    ("pl-additional-it", "Additional Operating Costs", "IT Costs", False),
    ("pl-additional-other", "Additional Operating Costs", "<Other specify>", False),
    ("pl-additional-depreciation-amortization", "Additional Operating Costs", "Depreciation/Amortization", False),
    (PL_ADDITIONAL_TOTAL_ID, "Additional Operating Costs", "Total Additional Operating Costs", True),
    (PL_TOTAL_EXPENSES_ID, "Summary", "Total Expenses", True),
    (PL_NIBT_ID, "Summary", "NIBT (Net Business Benefit)", True),
)

SECTION_FIELDS = {
    "introduction": (
        "project_initiative_name",
        "funding_source",
        "funding_type",
        "in_plan_for_current_year",
        "current_year",
        "current_year_spend_vs_plan",
    ),
    "resource_requirements": (
        "internal_fte_requirements",
        "external_support_required",
        "hiring_required",
        "additional_resource_details",
    ),
    "depreciation_summary": ("end_of_current_year_fiscal", "notes"),
    "financial_summary": ("financial_impacts_note",),
}
FINANCIALS_FIELDS = ("capex", "opex", "one_time_costs", "run_rate_savings")
KNOWN_SECTIONS = {
    "introduction",
    "resource_requirements",
    "capital_expenses",
    "depreciation_summary",
    "one_time_costs",
    "p_and_l_impact",
    "financial_summary",
    "financial_grid",
    "financials",
}

ROW_TABLES = {
    "capital_expenses": (CAPITAL_COLUMNS, CAPITAL_NUMERIC, ("is_total",)),
    "depreciation_summary": (DEPRECIATION_COLUMNS, DEPRECIATION_NUMERIC, ()),
    "one_time_costs": (ONE_TIME_COLUMNS, ONE_TIME_NUMERIC, ()),
    "p_and_l_impact": (PL_COLUMNS, PL_NUMERIC, ("is_total",)),
    "human_resources": (HUMAN_RESOURCE_COLUMNS, (), ()),
    "technology_application_resources": (TECHNOLOGY_RESOURCE_COLUMNS, (), ()),
}


def blank_row(table: str, row_id: str, **identity: Any) -> dict:
    columns, numeric, flags = ROW_TABLES[table]
    row: dict[str, Any] = {}
    for col in columns:
        if col in numeric:
            row[col] = 0.0
        elif col in flags:
            row[col] = False
        else:
            row[col] = ""
    row["id"] = row_id
    row.update(identity)
    return row


def _blank_grid(year: int) -> dict:
    return {
        "commencement_fiscal_year": int(year),
        "investment": {k: {"prior_years": 0.0, "current_fiscal": 0.0, "future": 0.0} for k in INVESTMENT_CATEGORIES},
        "incremental": {
            "years": [int(year) + i for i in range(1, INCREMENTAL_YEARS + 1)],
            **{series: [0.0] * INCREMENTAL_YEARS for series in INCREMENTAL_SERIES},
        },
    }


def default_business_case(year: int | None = None) -> dict:
    """Blank business case with every blueprint row in place."""
    if year is None:
        year = fiscal_year(date.today())
    return {
        "introduction": {key: "" for key in SECTION_FIELDS["introduction"]},
        "resource_requirements": {
            **{key: "" for key in SECTION_FIELDS["resource_requirements"]},
            "human_resources": [blank_row("human_resources", "human-resource-1")],
            "technology_application_resources": [blank_row("technology_application_resources", "app-resource-1")],
        },
        "capital_expenses": {
            "project_contingency_pct": 0.0,
            "withholding_tax_rate_pct": 0.0,
            "withholding_tax_note": "Withholding Tax - Barbados Inland Revenue: WHTax is generally paid by the vendor",
            "rows": [
                blank_row("capital_expenses", rid, group=group, label=label, is_total=is_total)
                for rid, group, label, is_total in CAPITAL_BLUEPRINT
            ],
        },
        "depreciation_summary": {
            "end_of_current_year_fiscal": "",
            "notes": "",
            "rows": [blank_row("depreciation_summary", f"depreciation-{i}") for i in range(1, DEPRECIATION_MIN_ROWS + 1)],
        },
        "one_time_costs": {"rows": [blank_row("one_time_costs", rid, item=item) for rid, item in ONE_TIME_BLUEPRINT]},
        "p_and_l_impact": {
            "rows": [
                blank_row("p_and_l_impact", rid, group=group, label=label, is_total=is_total)
                for rid, group, label, is_total in PL_BLUEPRINT
            ]
        },
        "financial_summary": {
            "financial_impacts_note": "",
            "restructuring_hr_bau_funded": {bucket: 0.0 for bucket in BUCKETS},
        },
        "financial_grid": _blank_grid(year),
        "financials": {key: 0.0 for key in FINANCIALS_FIELDS},
    }


# Legacy camelCase payload bridging.

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")
_PLUS_DIGIT_RE = re.compile(r"^(year_plus|fy_plus)(\d)$")
_STAMPED_QUARTER_RE = re.compile(r"^f\d{4}_q([1-4])$")
_STAMPED_PLAN_RE = re.compile(r"^f\d{4}_plan$")
_STAMPED_YEAR_RE = re.compile(r"^f(\d{4})$")


def snake_key(key: str) -> str:
    text = _CAMEL_RE.sub(r"_\1", str(key)).lower()
    return _PLUS_DIGIT_RE.sub(r"\1_\2", text)


def snake_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {snake_key(k): snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_keys(v) for v in value]
    return value


def bridge_year_stamped(row: dict, year_targets: tuple[str, ...]) -> dict:
    """Map year-stamped legacy keys (f2025_q1, f2025_plan, f2026...) to positional ones."""
    out = dict(row)
    stamped_years = []
    for key in row:
        quarter = _STAMPED_QUARTER_RE.match(key)
        if quarter:
            out.setdefault(f"q{quarter.group(1)}", row[key])
            continue
        if _STAMPED_PLAN_RE.match(key):
            out.setdefault("plan", row[key])
            continue
        year = _STAMPED_YEAR_RE.match(key)
        if year:
            stamped_years.append(key)
    for key, target in zip(sorted(stamped_years), year_targets):
        out.setdefault(target, row[key])
    return out


def _coerce_row(table: str, raw: Any, base: dict) -> dict:
    columns, numeric, flags = ROW_TABLES[table]
    incoming = raw if isinstance(raw, dict) else {}
    row = dict(base)
    for col in columns:
        if col not in incoming:
            continue
        value = incoming[col]
        if col in numeric:
            row[col] = to_number(value)
        elif col in flags:
            row[col] = bool(value)
        else:
            row[col] = "" if value is None else str(value)
    return row


def _fixed_rows(table: str, fallback_rows: list[dict], incoming: Any, bridge=None) -> list[dict]:
    """Structurally fixed tables: blueprint identity always wins over the payload."""
    incoming_rows = [r for r in incoming if isinstance(r, dict)] if isinstance(incoming, list) else []
    by_id = {str(r.get("id")): r for r in incoming_rows if r.get("id")}
    rows = []
    for idx, base in enumerate(fallback_rows):
        raw = by_id.get(base["id"])
        if raw is None and idx < len(incoming_rows) and not incoming_rows[idx].get("id"):
            raw = incoming_rows[idx]
        if raw is not None and bridge is not None:
            raw = bridge(raw)
        row = _coerce_row(table, raw, base)
        for key in ("id", "group", "label", "is_total"):
            if key in base:
                row[key] = base[key]
        rows.append(row)
    return rows


def _fresh_id(id_prefix: str, taken: set[str], start: int) -> str:
    n = start
    while f"{id_prefix}{n}" in taken:
        n += 1
    return f"{id_prefix}{n}"


def _extensible_rows(table: str, fallback_rows: list[dict], incoming: Any, id_prefix: str, min_rows: int) -> list[dict]:
    incoming_rows = incoming if isinstance(incoming, list) else []
    count = max(len(incoming_rows), min_rows)
    template = fallback_rows[0]
    rows: list[dict] = []
    taken: set[str] = set()
    for idx in range(count):
        base = fallback_rows[idx] if idx < len(fallback_rows) else {**template, "id": f"{id_prefix}{idx + 1}"}
        raw = incoming_rows[idx] if idx < len(incoming_rows) else None
        row = _coerce_row(table, raw, base)
        if not row.get("id") or row["id"] in taken:
            row["id"] = _fresh_id(id_prefix, taken, idx + 1)
        taken.add(row["id"])
        rows.append(row)
    return rows


def _keyed_rows(table: str, fallback_rows: list[dict], incoming: Any, id_prefix: str, total_id: str) -> list[dict]:
    """Blueprint rows matched by id, extra payload rows kept, the single total row last.

    A payload row without an id takes the blueprint row at its position.
    """
    incoming_rows = [r for r in incoming if isinstance(r, dict)] if isinstance(incoming, list) else []
    blueprint_ids = [r["id"] for r in fallback_rows]
    matched: dict[str, dict] = {}
    extras: list[dict] = []
    taken = set(blueprint_ids)
    for idx, raw in enumerate(incoming_rows):
        row_id = str(raw.get("id") or "").strip()
        if not row_id and idx < len(blueprint_ids) and blueprint_ids[idx] not in matched:
            row_id = blueprint_ids[idx]
        if row_id in blueprint_ids:
            matched.setdefault(row_id, raw)
            continue
        if not row_id or row_id in taken:
            row_id = _fresh_id(id_prefix, taken, len(fallback_rows) + len(extras) + 1)
        taken.add(row_id)
        row = _coerce_row(table, raw, blank_row(table, row_id))
        row["id"] = row_id
        extras.append(row)

    rows = []
    for base in fallback_rows:
        row = _coerce_row(table, matched.get(base["id"]), base)
        row["id"] = base["id"]
        rows.append(row)
    total = [r for r in rows if r["id"] == total_id]
    return [r for r in rows if r["id"] != total_id] + extras + total


def _normalize_grid(raw: Any, fallback: dict, warnings: list[str]) -> dict:
    grid = deepcopy(fallback)
    payload = raw if isinstance(raw, dict) else {}
    if "commencement_fiscal_year" in payload:
        year = int(to_number(payload["commencement_fiscal_year"]))
        if not 2000 <= year <= 2100:
            warnings.append("financial_grid.commencement_fiscal_year out of range; reset to default.")
            year = fallback["commencement_fiscal_year"]
        grid = _blank_grid(year)
    investment = payload.get("investment") if isinstance(payload.get("investment"), dict) else {}
    for category in INVESTMENT_CATEGORIES:
        cell = investment.get(category) if isinstance(investment.get(category), dict) else {}
        for key in ("prior_years", "current_fiscal", "future"):
            if key in cell:
                grid["investment"][category][key] = to_number(cell[key])
    incremental = payload.get("incremental") if isinstance(payload.get("incremental"), dict) else {}
    for series in INCREMENTAL_SERIES:
        values = incremental.get(series)
        if isinstance(values, list):
            padded = [to_number(v) for v in values[:INCREMENTAL_YEARS]]
            padded += [0.0] * (INCREMENTAL_YEARS - len(padded))
            grid["incremental"][series] = padded
    return grid


def _clamp_pct(section: dict, key: str, warnings: list[str]) -> None:
    value = to_number(section.get(key, 0.0))
    if not 0.0 <= value <= 100.0:
        warnings.append(f"capital_expenses.{key} outside [0, 100]; clamped.")
        value = min(100.0, max(0.0, value))
    section[key] = value


def normalize_business_case(raw: Any) -> tuple[dict, list[str], list[str]]:
    """Return (state, warnings, unknown_keys) for any raw or legacy payload."""
    warnings: list[str] = []
    payload = snake_keys(raw) if isinstance(raw, dict) else {}

    # Full portal submissions nest the case under business_case.
    if isinstance(payload.get("business_case"), dict):
        nested = dict(payload["business_case"])
        for key in ("financial_grid", "financials"):
            if key in payload and key not in nested:
                nested[key] = payload[key]
        payload = nested

    unknown_keys = sorted(k for k in payload if k not in KNOWN_SECTIONS)

    grid_raw = payload.get("financial_grid") if isinstance(payload.get("financial_grid"), dict) else {}
    seed_year = int(to_number(grid_raw.get("commencement_fiscal_year"))) or None
    if seed_year is not None and not 2000 <= seed_year <= 2100:
        seed_year = None
    state = default_business_case(seed_year)

    for section, fields in SECTION_FIELDS.items():
        incoming = payload.get(section) if isinstance(payload.get(section), dict) else {}
        for key in fields:
            if key in incoming:
                state[section][key] = "" if incoming[key] is None else str(incoming[key])

    resources = payload.get("resource_requirements") if isinstance(payload.get("resource_requirements"), dict) else {}
    fallback_resources = state["resource_requirements"]
    human = resources.get("human_resources")
    tech = resources.get("technology_application_resources")
    fallback_resources["human_resources"] = _extensible_rows(
        "human_resources", fallback_resources["human_resources"], human, "human-resource-", 1
    )
    fallback_resources["technology_application_resources"] = _extensible_rows(
        "technology_application_resources",
        fallback_resources["technology_application_resources"],
        tech,
        "app-resource-",
        1,
    )

    capital = payload.get("capital_expenses") if isinstance(payload.get("capital_expenses"), dict) else {}
    cap_state = state["capital_expenses"]
    for key in ("project_contingency_pct", "withholding_tax_rate_pct"):
        if key in capital:
            cap_state[key] = capital[key]
        _clamp_pct(cap_state, key, warnings)
    if capital.get("withholding_tax_note") is not None:
        cap_state["withholding_tax_note"] = str(capital["withholding_tax_note"])
    cap_state["rows"] = _fixed_rows(
        "capital_expenses",
        cap_state["rows"],
        capital.get("rows"),
        bridge=lambda r: bridge_year_stamped(r, CAPITAL_SPEND_TIMING[1:]),
    )

    depreciation = payload.get("depreciation_summary") if isinstance(payload.get("depreciation_summary"), dict) else {}
    state["depreciation_summary"]["rows"] = _extensible_rows(
        "depreciation_summary",
        state["depreciation_summary"]["rows"],
        depreciation.get("rows"),
        "depreciation-",
        DEPRECIATION_MIN_ROWS,
    )

    one_time = payload.get("one_time_costs") if isinstance(payload.get("one_time_costs"), dict) else {}
    state["one_time_costs"]["rows"] = _keyed_rows(
        "one_time_costs", state["one_time_costs"]["rows"], one_time.get("rows"), "ot-", OT_TOTAL_ID
    )

    pl = payload.get("p_and_l_impact") if isinstance(payload.get("p_and_l_impact"), dict) else {}
    state["p_and_l_impact"]["rows"] = _fixed_rows("p_and_l_impact", state["p_and_l_impact"]["rows"], pl.get("rows"))

    summary = payload.get("financial_summary") if isinstance(payload.get("financial_summary"), dict) else {}
    restructuring = summary.get("restructuring_hr_bau_funded")
    if isinstance(restructuring, dict):
        bridged = bridge_year_stamped(restructuring, BUCKETS[1:])
        for bucket in BUCKETS:
            if bucket in bridged:
                state["financial_summary"]["restructuring_hr_bau_funded"][bucket] = to_number(bridged[bucket])

    state["financial_grid"] = _normalize_grid(grid_raw, state["financial_grid"], warnings)

    financials = payload.get("financials") if isinstance(payload.get("financials"), dict) else {}
    for key in FINANCIALS_FIELDS:
        if key in financials:
            state["financials"][key] = to_number(financials[key])

    return state, warnings, unknown_keys


def migrate_import_payload(payload: Any) -> tuple[dict, list[str], list[str]]:
    """Parse an imported bundle or bare legacy state into a normalized state."""
    if not isinstance(payload, dict):
        state, _, _ = normalize_business_case(None)
        return state, ["Import payload is not a JSON object."], []

    if payload.get("type") == BUSINESS_CASE_TYPE:
        state, warnings, unknown = normalize_business_case(payload.get("state", {}))
        version = payload.get("schema_version")
        if version != SCHEMA_VERSION:
            warnings.append(f"Imported schema_version={version}; migrated to schema_version={SCHEMA_VERSION}.")
        return state, warnings, unknown

    state, warnings, unknown = normalize_business_case(payload)
    warnings.append("Imported business case JSON without bundle metadata.")
    return state, warnings, unknown
