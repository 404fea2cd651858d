"""Local persistence for business case drafts, import/export bundles and submission payloads."""

from __future__ import annotations

import json
import os
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path

from business_case.integrity_checks import run_integrity_checks
from business_case.runtime_logging import append_runtime_event
from business_case.schema import BUSINESS_CASE_TYPE, SCHEMA_VERSION, migrate_import_payload


STORE_DIR = Path(".local_store")
DRAFT_STORE_FILE = STORE_DIR / "business_cases.json"

_DEFAULT_STORE_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "BIZCASE_STORAGE_ROOT"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _expand_storage_root(path_value: str | Path | None) -> Path:
    if path_value is None:
        return _DEFAULT_STORE_DIR
    text = str(path_value).strip()
    if not text:
        return _DEFAULT_STORE_DIR
    return Path(os.path.expandvars(os.path.expanduser(text)))


def configure_storage_root(path_value: str | Path | None) -> Path:
    """Configure the directory holding the draft store."""

    global STORE_DIR, DRAFT_STORE_FILE
    STORE_DIR = _expand_storage_root(path_value)
    DRAFT_STORE_FILE = STORE_DIR / "business_cases.json"
    return STORE_DIR


def storage_root_path() -> str:
    return str(STORE_DIR.resolve())


def storage_root_from_env() -> Path:
    return _expand_storage_root(os.getenv(_STORAGE_ENV_VAR, ""))


def _path_for(kind: str) -> Path:
    if kind == BUSINESS_CASE_TYPE:
        return DRAFT_STORE_FILE
    raise ValueError(f"Unsupported store kind: {kind}")


def _load_store(kind: str = BUSINESS_CASE_TYPE) -> dict:
    p = _path_for(kind)
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        append_runtime_event(
            level="warning",
            event="draft_store_unreadable",
            message="Draft store could not be read; treating it as empty.",
            context={"path": str(p)},
            exc=exc,
        )
        return {}
    return data if isinstance(data, dict) else {}


def _save_store(data: dict, kind: str = BUSINESS_CASE_TYPE) -> None:
    STORE_DIR.mkdir(parents=True, exist_ok=True)
    p = _path_for(kind)
    tmp = p.with_suffix(f"{p.suffix}.tmp")
    tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
    tmp.replace(p)


def list_saved_names() -> list[str]:
    return sorted(_load_store().keys())


def load_saved(name: str) -> dict | None:
    return deepcopy(_load_store().get(name))


def save_named_bundle(name: str, bundle: dict, overwrite: bool = False) -> tuple[bool, str]:
    if not name.strip():
        return False, "Name is required."
    store = _load_store()
    if name in store and not overwrite:
        return False, "Name already exists."
    store[name] = bundle
    _save_store(store)
    return True, "Saved."


def delete_saved(name: str) -> bool:
    store = _load_store()
    if name not in store:
        return False
    del store[name]
    _save_store(store)
    return True


def build_business_case_bundle(name: str, state: dict) -> dict:
    return {
        "type": BUSINESS_CASE_TYPE,
        "schema_version": SCHEMA_VERSION,
        "name": name,
        "created_at": _now_iso(),
        "state": deepcopy(state),
    }


def parse_import_json(raw_json: str) -> tuple[dict, list[str], list[str]]:
    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError:
        state, _, _ = migrate_import_payload({})
        return state, ["Could not parse import JSON."], []
    return migrate_import_payload(payload)


def build_submission_payload(name: str, state: dict, derived) -> dict:
    """Raw state plus every derived table, ready for the workflow layer."""
    payload = derived.to_payload()
    return {
        "type": BUSINESS_CASE_TYPE,
        "schema_version": SCHEMA_VERSION,
        "name": name,
        "submitted_at": _now_iso(),
        "business_case": deepcopy(state),
        "derived": {k: v for k, v in payload.items() if k not in ("headline_metrics", "resource_requirement_summary")},
        "headline_metrics": payload["headline_metrics"],
        "integrity_findings": run_integrity_checks(derived),
        "resource_requirement_summary": payload["resource_requirement_summary"],
    }


configure_storage_root(storage_root_from_env())
