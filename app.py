import json
import math
from copy import deepcopy

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from business_case.case_config import load_config
from business_case.categories import subcategory_options
from business_case.editing import EDITABLE_FIELDS, append_row, remove_row, update_row
from business_case.engine import DerivedState, derive_all, resolve_current_fiscal_year
from business_case.financial_summary import display_frame, expense_labels, fiscal_year_labels
from business_case.input_metadata import INPUT_GUIDANCE, advisory_warnings, help_with_guidance
from business_case.integrity_checks import run_integrity_checks
from business_case.persistence import (
    build_business_case_bundle,
    build_submission_payload,
    delete_saved,
    list_saved_names,
    load_saved,
    parse_import_json,
    save_named_bundle,
)
from business_case.proration import BUCKETS, QUARTERS
from business_case.resources import BREAKDOWN_FIELDS
from business_case.runtime_logging import (
    append_runtime_event,
    install_global_exception_logging,
    log_integrity_findings_if_changed,
    read_runtime_events,
    runtime_log_path,
)
from business_case.schema import (
    CAPITAL_SPEND_TIMING,
    INCREMENTAL_SERIES,
    INVESTMENT_CATEGORIES,
    RESOURCE_TYPES,
    default_business_case,
    normalize_business_case,
)


install_global_exception_logging()


UI_DEFAULTS = {
    "active_draft_name": "",
    "editor_revision": 0,
    "findings_signature": "",
}

CAPITAL_VIEW = (
    "group",
    "label",
    "quantity",
    "unit_cost",
    "total_cost",
    "annual_depreciation",
    "prior_fys",
    *QUARTERS,
    *CAPITAL_SPEND_TIMING,
    "comments",
)
DEPRECIATION_VIEW = (
    "phase",
    "category",
    "capex_prepaid_category",
    "phase_start_date",
    "phase_end_date",
    "useful_life_years",
    "project_cost_for_phase",
    "total_project_cost",
    "annual_depreciation",
    *BUCKETS,
    "total",
    "beyond_horizon",
)


def _state() -> dict:
    return st.session_state["business_case"]


def _set_state(state: dict) -> None:
    st.session_state["business_case"] = state
    st.session_state["editor_revision"] += 1


def _serialize(value) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


@st.cache_data(show_spinner=False)
def _derive_cached(state_json: str, config_json: str) -> DerivedState:
    return derive_all(json.loads(state_json), json.loads(config_json))


def _editor_key(name: str) -> str:
    return f"{name}_editor_{st.session_state['editor_revision']}"


def _cell(value):
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _apply_table_edits(table: str, before: pd.DataFrame, after: pd.DataFrame, config: dict) -> None:
    """Push editor changes through the row-edit rules, then rebuild the editors."""
    state = _state()
    touched = False
    editable = EDITABLE_FIELDS[table]
    for old, new in zip(before.to_dict("records"), after.to_dict("records")):
        changes = {k: new[k] for k in editable if k in new and _cell(new[k]) != _cell(old.get(k))}
        if changes:
            touched = True
            state = update_row(state, table, str(old["id"]), changes, config)
    if touched:
        _set_state(state)
        st.rerun()


def _format_money(df: pd.DataFrame) -> pd.DataFrame:
    if not isinstance(df, pd.DataFrame) or df.empty:
        return df
    out = df.copy()
    for col in out.columns:
        if pd.api.types.is_bool_dtype(out[col]) or not pd.api.types.is_numeric_dtype(out[col]):
            continue
        out[col] = out[col].map(lambda v: "" if pd.isna(v) else f"{float(v):,.2f}")
    return out


def _disabled(columns, editable) -> list[str]:
    return [c for c in columns if c not in editable]


for _key, _value in UI_DEFAULTS.items():
    st.session_state.setdefault(_key, deepcopy(_value))
if "business_case" not in st.session_state:
    st.session_state["business_case"] = default_business_case()


st.set_page_config(page_title="Business Case Financial Rollup", layout="wide")
st.title("Business Case Financial Rollup")

config = load_config()

with st.sidebar:
    st.header("Drafts")
    save_name = st.text_input("Save Name", value=st.session_state["active_draft_name"])
    overwrite = st.checkbox("Overwrite existing draft", value=False)
    if st.button("Save Draft"):
        ok, message = save_named_bundle(save_name, build_business_case_bundle(save_name, _state()), overwrite=overwrite)
        if ok:
            st.session_state["active_draft_name"] = save_name
            st.success(message)
        else:
            st.warning(message)

    saved_names = list_saved_names()
    selected_draft = st.selectbox("Saved Drafts", [""] + saved_names)
    load_col, delete_col = st.columns(2)
    load_btn = load_col.button("Load Draft", disabled=not selected_draft)
    delete_btn = delete_col.button("Delete Draft", disabled=not selected_draft)
    if load_btn and selected_draft:
        bundle = load_saved(selected_draft)
        if bundle is None:
            append_runtime_event(
                level="WARNING",
                event="draft_missing",
                message="Selected draft was not found in the local store.",
                context={"name": selected_draft},
            )
            st.warning(f"Saved draft `{selected_draft}` was not found.")
        else:
            loaded, warnings, unknown = parse_import_json(json.dumps(bundle))
            st.session_state["active_draft_name"] = selected_draft
            _set_state(loaded)
            if warnings:
                st.warning(" | ".join(warnings))
            if unknown:
                st.info(f"Ignored unknown sections: {', '.join(unknown)}")
    if delete_btn and selected_draft:
        if delete_saved(selected_draft):
            st.success(f"Deleted draft: {selected_draft}")

    st.subheader("Import/Export")
    import_file = st.file_uploader("Import Business Case JSON", type=["json"])
    if st.button("Apply Imported JSON", disabled=import_file is None) and import_file is not None:
        try:
            import_text = import_file.getvalue().decode("utf-8")
        except UnicodeDecodeError as exc:
            append_runtime_event(
                level="ERROR",
                event="import_decode_failed",
                message="Import failed: file is not valid UTF-8 JSON.",
                context={"file_name": getattr(import_file, "name", "unknown")},
                exc=exc,
            )
            st.error("Import failed: file is not valid UTF-8 JSON.")
        else:
            imported, warnings, unknown = parse_import_json(import_text)
            _set_state(imported)
            if warnings:
                st.warning(" | ".join(warnings))
            if unknown:
                st.info(f"Ignored unknown sections: {', '.join(unknown)}")
            st.success("Imported business case applied.")
    st.download_button(
        "Export Business Case JSON",
        json.dumps(build_business_case_bundle(save_name or "business_case_export", _state()), indent=2),
        file_name="business_case.json",
        mime="application/json",
    )

    st.header("Case Settings")
    state = deepcopy(_state())
    anchor = resolve_current_fiscal_year(state)
    year_options = [f"FY{y}" for y in range(anchor - 5, anchor + 6)]
    current_label = st.selectbox("Current Fiscal Year", year_options, index=year_options.index(f"FY{anchor}"))
    capital_section = state["capital_expenses"]
    contingency = st.number_input(
        "Project Contingency %",
        min_value=0.0,
        max_value=100.0,
        value=float(capital_section["project_contingency_pct"]),
        step=0.5,
        help=help_with_guidance("project_contingency_pct", "Percentage of base capital reserved as contingency."),
    )
    withholding = st.number_input(
        "Withholding Tax Rate %",
        min_value=0.0,
        max_value=100.0,
        value=float(capital_section["withholding_tax_rate_pct"]),
        step=0.5,
        help=help_with_guidance("withholding_tax_rate_pct", "Percentage of base capital withheld for tax."),
    )
    if (
        current_label != f"FY{anchor}"
        or contingency != capital_section["project_contingency_pct"]
        or withholding != capital_section["withholding_tax_rate_pct"]
    ):
        state["introduction"]["current_year"] = current_label
        capital_section["project_contingency_pct"] = contingency
        capital_section["withholding_tax_rate_pct"] = withholding
        _set_state(state)
        st.rerun()


state = _state()
derived = _derive_cached(_serialize(state), _serialize(config))
findings = run_integrity_checks(derived)
st.session_state["findings_signature"] = log_integrity_findings_if_changed(
    findings,
    st.session_state["findings_signature"],
    {"draft": st.session_state["active_draft_name"]},
)
normalized_state, _, _ = normalize_business_case(state)
advisories = advisory_warnings(normalized_state, config)

(
    capital_tab,
    depreciation_tab,
    resources_tab,
    one_time_tab,
    pl_tab,
    grid_tab,
    summary_tab,
    checks_tab,
) = st.tabs(
    [
        "Capital Expenses",
        "Depreciation",
        "Resources",
        "One-Time Costs",
        "P&L Impact",
        "Investment Grid",
        "Financial Summary",
        "Checks & Metrics",
    ]
)

with capital_tab:
    st.caption(state["capital_expenses"].get("withholding_tax_note", ""))
    capital_df = derived.capital
    edited = st.data_editor(
        capital_df,
        column_order=CAPITAL_VIEW,
        disabled=_disabled(capital_df.columns, EDITABLE_FIELDS["capital_expenses"]),
        hide_index=True,
        key=_editor_key("capital"),
        width="stretch",
    )
    _apply_table_edits("capital_expenses", capital_df, edited, config)

with depreciation_tab:
    dep_df = derived.depreciation
    category_map = config["depreciation_category_map"]
    sub_options: list[str] = []
    for _, row in dep_df.iterrows():
        for option in subcategory_options(row["category"], row["capex_prepaid_category"], category_map):
            if option not in sub_options:
                sub_options.append(option)
    edited = st.data_editor(
        dep_df,
        column_order=DEPRECIATION_VIEW,
        column_config={
            "category": st.column_config.SelectboxColumn("Category", options=list(category_map)),
            "capex_prepaid_category": st.column_config.SelectboxColumn("Capex/Prepaid Category", options=sub_options),
            "useful_life_years": st.column_config.NumberColumn(
                "Useful Life (Years)", help=help_with_guidance("useful_life_years", "Years of straight-line depreciation.")
            ),
        },
        disabled=_disabled(dep_df.columns, EDITABLE_FIELDS["depreciation_summary"]),
        hide_index=True,
        key=_editor_key("depreciation"),
        width="stretch",
    )
    _apply_table_edits("depreciation_summary", dep_df, edited, config)
    dropped = float(dep_df["beyond_horizon"].sum()) if not dep_df.empty else 0.0
    if dropped:
        st.info(f"{dropped:,.2f} of depreciation falls after F{derived.anchor_fy + 5} and is not scheduled.")

with resources_tab:
    human = pd.DataFrame(state["resource_requirements"]["human_resources"])
    edited = st.data_editor(
        human,
        column_order=[c for c in human.columns if c != "id"],
        column_config={
            "pay_grade": st.column_config.SelectboxColumn("Pay Grade", options=list(config["pay_grade_monthly_salary"])),
            "resource_type": st.column_config.SelectboxColumn("Resource Type", options=list(RESOURCE_TYPES)),
            "average_allocation_pct": st.column_config.TextColumn(
                "Average Allocation %", help=help_with_guidance("average_allocation_pct", "Percent of time on the project.")
            ),
        },
        hide_index=True,
        key=_editor_key("human_resources"),
        width="stretch",
    )
    _apply_table_edits("human_resources", human, edited, config)
    add_col, remove_col = st.columns(2)
    if add_col.button("Add Human Resource Row"):
        _set_state(append_row(state, "human_resources"))
        st.rerun()
    remove_id = remove_col.selectbox("Row to Remove", list(human["id"]), key="human_remove_id")
    if remove_col.button("Remove Human Resource Row", disabled=len(human) <= 1):
        _set_state(remove_row(state, "human_resources", remove_id))
        st.rerun()

    st.subheader("Resource Cost Breakdown")
    costs = derived.resource_costs
    # Rows without a computable cost render blank rather than zero.
    shown = _format_money(costs.drop(columns=["has_data"]))
    shown.loc[~costs["has_data"], list(BREAKDOWN_FIELDS)] = ""
    st.dataframe(shown, width="stretch", hide_index=True)

    st.subheader("Technology / Application Resources")
    tech = pd.DataFrame(state["resource_requirements"]["technology_application_resources"])
    edited = st.data_editor(
        tech,
        column_order=[c for c in tech.columns if c != "id"],
        hide_index=True,
        key=_editor_key("technology"),
        width="stretch",
    )
    _apply_table_edits("technology_application_resources", tech, edited, config)
    if st.button("Add Technology Row"):
        _set_state(append_row(state, "technology_application_resources"))
        st.rerun()

    st.subheader("Resource Requirement Summary")
    st.text(derived.resource_summary)

with one_time_tab:
    ot_df = derived.one_time
    edited = st.data_editor(
        ot_df,
        column_order=[c for c in ot_df.columns if c != "id"],
        disabled=_disabled(ot_df.columns, EDITABLE_FIELDS["one_time_costs"]),
        hide_index=True,
        key=_editor_key("one_time"),
        width="stretch",
    )
    _apply_table_edits("one_time_costs", ot_df, edited, config)

with pl_tab:
    pl_df = derived.pl_impact
    year_labels = fiscal_year_labels(derived.anchor_fy)
    edited = st.data_editor(
        pl_df,
        column_order=["group", "label", *BUCKETS, "total"],
        column_config={b: st.column_config.NumberColumn(year_labels[b]) for b in BUCKETS},
        disabled=_disabled(pl_df.columns, EDITABLE_FIELDS["p_and_l_impact"]),
        hide_index=True,
        key=_editor_key("pl"),
        width="stretch",
    )
    _apply_table_edits("p_and_l_impact", pl_df, edited, config)

with grid_tab:
    grid = state["financial_grid"]
    st.caption(f"Commencement fiscal year: {grid['commencement_fiscal_year']}")
    investment_df = pd.DataFrame.from_dict(grid["investment"], orient="index").reindex(list(INVESTMENT_CATEGORIES))
    investment_edit = st.data_editor(investment_df, key=_editor_key("investment"), width="stretch")
    incremental_df = pd.DataFrame(
        {series: grid["incremental"][series] for series in INCREMENTAL_SERIES},
        index=[f"F{y}" for y in grid["incremental"]["years"]],
    ).T
    incremental_edit = st.data_editor(incremental_df, key=_editor_key("incremental"), width="stretch")
    fin_col1, fin_col2 = st.columns(2)
    opex = fin_col1.number_input("Annual Opex", value=float(state["financials"]["opex"]), step=1000.0)
    one_time_costs = fin_col2.number_input(
        "One-Time Costs (headline metrics)", value=float(state["financials"]["one_time_costs"]), step=1000.0
    )
    new_grid = deepcopy(grid)
    new_grid["investment"] = {
        k: {c: float(v) if pd.notna(v) else 0.0 for c, v in row.items()}
        for k, row in investment_edit.to_dict(orient="index").items()
    }
    for series in INCREMENTAL_SERIES:
        new_grid["incremental"][series] = [float(v) if pd.notna(v) else 0.0 for v in incremental_edit.loc[series]]
    if new_grid != grid or opex != state["financials"]["opex"] or one_time_costs != state["financials"]["one_time_costs"]:
        new_state = deepcopy(state)
        new_state["financial_grid"] = new_grid
        new_state["financials"]["opex"] = opex
        new_state["financials"]["one_time_costs"] = one_time_costs
        _set_state(new_state)
        st.rerun()

with summary_tab:
    labels = fiscal_year_labels(derived.anchor_fy)
    st.subheader("Expenses")
    st.dataframe(
        _format_money(display_frame(derived.summary.expenses, expense_labels(derived.anchor_fy))),
        width="stretch",
        hide_index=True,
    )
    st.subheader("P&L Summary")
    st.dataframe(_format_money(display_frame(derived.summary.pl_summary, labels)), width="stretch", hide_index=True)

    st.subheader("Cash Flow")
    cash_flow = derived.summary.cash_flow
    st.dataframe(_format_money(display_frame(cash_flow, labels)), width="stretch", hide_index=True)

    restructuring = state["financial_summary"]["restructuring_hr_bau_funded"]
    restructuring_df = pd.DataFrame([restructuring], index=["Restructuring (HR BAU funded)"]).rename(columns=labels)
    restructuring_edit = st.data_editor(restructuring_df, key=_editor_key("restructuring"), width="stretch")
    by_label = {v: k for k, v in labels.items()}
    new_restructuring = {
        by_label[col]: float(v) if pd.notna(v) else 0.0 for col, v in restructuring_edit.iloc[0].items()
    }
    if new_restructuring != restructuring:
        new_state = deepcopy(state)
        new_state["financial_summary"]["restructuring_hr_bau_funded"] = new_restructuring
        _set_state(new_state)
        st.rerun()

    fig = go.Figure()
    x = [labels[b] for b in BUCKETS]
    for _, row in cash_flow.iterrows():
        values = [row[b] for b in BUCKETS]
        if row["line_item"] == "Net Cash Flows":
            fig.add_trace(go.Scatter(x=x, y=values, name=row["line_item"], mode="lines+markers"))
        else:
            fig.add_trace(go.Bar(x=x, y=values, name=row["line_item"]))
    fig.update_layout(barmode="group", title="Cash Flow by Fiscal Year", yaxis_title="Amount")
    st.plotly_chart(fig, width="stretch")

with checks_tab:
    metrics = derived.metrics
    m1, m2, m3 = st.columns(3)
    m1.metric("NPV", f"{metrics.npv:,.2f}", help=help_with_guidance("discount_rate", f"Discounted at {metrics.discount_rate:.0%}."))
    m2.metric("IRR", "n/a" if metrics.irr_pct is None else f"{metrics.irr_pct:.2f}%")
    m3.metric("Payback (years)", metrics.payback_label)

    st.subheader("Integrity Checks")
    if findings:
        st.dataframe(_format_money(pd.DataFrame(findings)), width="stretch", hide_index=True)
    else:
        st.success("All rollup identities hold.")

    st.subheader("Advisories")
    for message in advisories:
        st.warning(message)
    if not advisories:
        st.caption("No advisories.")
    with st.expander("Input guidance"):
        st.dataframe(pd.DataFrame.from_dict(INPUT_GUIDANCE, orient="index"), width="stretch")

    submission = build_submission_payload(st.session_state["active_draft_name"] or "business_case", state, derived)
    st.download_button(
        "Download Submission Payload",
        json.dumps(submission, indent=2, default=str),
        file_name="business_case_submission.json",
        mime="application/json",
    )

    with st.expander("Runtime diagnostics"):
        st.caption(runtime_log_path())
        events = read_runtime_events(limit=100)
        if events:
            runtime_df = pd.DataFrame(events)
            runtime_cols = [c for c in ("timestamp_utc", "level", "event", "message") if c in runtime_df.columns]
            st.dataframe(runtime_df[runtime_cols], width="stretch", hide_index=True)
        else:
            st.caption("No runtime events recorded.")
