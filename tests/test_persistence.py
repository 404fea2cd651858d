from __future__ import annotations

import json

import business_case.persistence as persistence
from business_case.engine import derive_all
from business_case.persistence import (
    build_business_case_bundle,
    build_submission_payload,
    delete_saved,
    list_saved_names,
    load_saved,
    parse_import_json,
    save_named_bundle,
)
from business_case.runtime_logging import read_runtime_events


def test_named_bundle_round_trip(populated_state):
    bundle = build_business_case_bundle("Branch refresh", populated_state)
    assert bundle["type"] == "business_case"
    assert bundle["schema_version"] == 1

    assert save_named_bundle("Branch refresh", bundle) == (True, "Saved.")
    assert save_named_bundle("Branch refresh", bundle) == (False, "Name already exists.")
    assert save_named_bundle("Branch refresh", bundle, overwrite=True) == (True, "Saved.")
    assert save_named_bundle("   ", bundle) == (False, "Name is required.")
    assert list_saved_names() == ["Branch refresh"]

    loaded = load_saved("Branch refresh")
    assert loaded["state"] == populated_state
    loaded["state"]["introduction"]["current_year"] = "FY1999"
    assert load_saved("Branch refresh")["state"]["introduction"]["current_year"] == "FY2025"

    assert delete_saved("Branch refresh") is True
    assert delete_saved("Branch refresh") is False
    assert load_saved("Branch refresh") is None


def test_unreadable_store_is_treated_as_empty_and_logged(isolated_storage):
    isolated_storage.mkdir(parents=True, exist_ok=True)
    persistence.DRAFT_STORE_FILE.write_text("{not json", encoding="utf-8")
    assert list_saved_names() == []
    assert any(e["event"] == "draft_store_unreadable" for e in read_runtime_events())


def test_exported_bundle_imports_without_warnings(populated_state):
    raw = json.dumps(build_business_case_bundle("Case", populated_state))
    state, warnings, unknown = parse_import_json(raw)
    assert warnings == []
    assert unknown == []
    assert state == populated_state


def test_unparseable_import_yields_blank_state():
    state, warnings, _ = parse_import_json("{")
    assert warnings == ["Could not parse import JSON."]
    assert state["one_time_costs"]["rows"][-1]["id"] == "ot-total"


def test_submission_payload_carries_derived_tables(populated_state, config):
    derived = derive_all(populated_state, config)
    payload = build_submission_payload("Case", populated_state, derived)
    assert payload["business_case"] == populated_state
    assert payload["integrity_findings"] == []
    assert payload["headline_metrics"]["payback_label"] == derived.metrics.payback_label
    assert "capital_expenses" in payload["derived"]
    assert "headline_metrics" not in payload["derived"]
    assert payload["resource_requirement_summary"].startswith("Internal Requirements:")
    json.dumps(payload)
