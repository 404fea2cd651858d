"""Business-case configuration store: salary table, depreciation rules, category map."""

from __future__ import annotations

import json
import math
import os
from copy import deepcopy
from pathlib import Path
from typing import Any

from business_case.defaults import DEFAULT_CONFIG, DEFAULT_DISCOUNT_RATE
from business_case.numeric import round2
from business_case.runtime_logging import append_runtime_event


CONFIG_DIR = Path(".local_store")
CONFIG_FILE = CONFIG_DIR / "business_case_config.json"

_DEFAULT_CONFIG_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "BIZCASE_STORAGE_ROOT"


def _expand_config_root(path_value: str | Path | None) -> Path:
    if path_value is None:
        return _DEFAULT_CONFIG_DIR
    text = str(path_value).strip()
    if not text:
        return _DEFAULT_CONFIG_DIR
    return Path(os.path.expandvars(os.path.expanduser(text)))


def configure_config_root(path_value: str | Path | None) -> Path:
    global CONFIG_DIR, CONFIG_FILE
    CONFIG_DIR = _expand_config_root(path_value)
    CONFIG_FILE = CONFIG_DIR / "business_case_config.json"
    return CONFIG_DIR


def _clean_list(values: Any) -> list[str]:
    if not isinstance(values, (list, tuple)):
        return []
    seen: list[str] = []
    for raw in values:
        text = str(raw).strip()
        if text and text not in seen:
            seen.append(text)
    return seen


def _finite(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _normalize_rules(rules: Any, warnings: list[str]) -> list[dict]:
    source = rules if isinstance(rules, list) and rules else DEFAULT_CONFIG["depreciation_rules"]
    normalized: list[dict] = []
    seen: set[str] = set()
    for idx, rule in enumerate(source):
        if not isinstance(rule, dict):
            warnings.append(f"depreciation_rules[{idx}] ignored because entry is not an object.")
            continue
        label = str(rule.get("label", "")).strip()
        if not label or label in seen:
            continue
        years = _finite(rule.get("useful_life_years"))
        normalized.append({"label": label, "useful_life_years": max(1, int(round(years))) if years is not None else 1})
        seen.add(label)
    if not normalized:
        warnings.append("depreciation_rules empty; reset to defaults.")
        return deepcopy(DEFAULT_CONFIG["depreciation_rules"])
    return normalized


def _normalize_category_map(raw: Any) -> dict[str, list[str]]:
    source = raw if isinstance(raw, dict) and raw else DEFAULT_CONFIG["depreciation_category_map"]
    normalized: dict[str, list[str]] = {}
    for raw_category, raw_items in source.items():
        category = str(raw_category).strip()
        if category:
            normalized[category] = _clean_list(raw_items)
    return normalized or deepcopy(DEFAULT_CONFIG["depreciation_category_map"])


def _normalize_salaries(raw: Any, warnings: list[str]) -> dict[str, float]:
    source = raw if isinstance(raw, dict) and raw else DEFAULT_CONFIG["pay_grade_monthly_salary"]
    normalized: dict[str, float] = {}
    for raw_grade, raw_salary in source.items():
        grade = str(raw_grade).strip()
        if not grade:
            continue
        salary = _finite(raw_salary)
        if salary is None or salary < 0:
            warnings.append(f"pay_grade_monthly_salary[{grade}] ignored because salary is invalid.")
            continue
        normalized[grade] = round2(salary)
    return normalized or deepcopy(DEFAULT_CONFIG["pay_grade_monthly_salary"])


def normalize_config(raw: Any) -> tuple[dict, list[str]]:
    """Return a complete, cleaned configuration and any warnings produced."""
    warnings: list[str] = []
    payload = raw if isinstance(raw, dict) else {}
    discount = _finite(payload.get("discount_rate", DEFAULT_DISCOUNT_RATE))
    if discount is None or not (0.0 <= discount < 1.0):
        warnings.append("discount_rate invalid; reset to default.")
        discount = DEFAULT_DISCOUNT_RATE
    config = {
        "depreciation_rules": _normalize_rules(payload.get("depreciation_rules"), warnings),
        "depreciation_category_map": _normalize_category_map(payload.get("depreciation_category_map")),
        "pay_grade_monthly_salary": _normalize_salaries(payload.get("pay_grade_monthly_salary"), warnings),
        "discount_rate": float(discount),
    }
    return config, warnings


def useful_life_by_label(config: dict) -> dict[str, float]:
    return {rule["label"]: float(rule["useful_life_years"]) for rule in config.get("depreciation_rules", [])}


def load_config() -> dict:
    if not CONFIG_FILE.exists():
        return normalize_config(None)[0]
    try:
        raw = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        append_runtime_event(
            level="warning",
            event="config_load_failed",
            message="Business case configuration unreadable; using defaults.",
            context={"path": str(CONFIG_FILE)},
            exc=exc,
        )
        return normalize_config(None)[0]
    config, warnings = normalize_config(raw)
    if warnings:
        append_runtime_event(
            level="warning",
            event="config_normalized",
            message="Business case configuration contained invalid entries.",
            context={"warnings": warnings},
        )
    return config


def save_config(config: dict) -> dict:
    normalized, _ = normalize_config(config)
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    tmp = CONFIG_FILE.with_suffix(f"{CONFIG_FILE.suffix}.tmp")
    tmp.write_text(json.dumps(normalized, indent=2), encoding="utf-8")
    tmp.replace(CONFIG_FILE)
    return normalized


def update_config(patch: dict) -> dict:
    current = load_config()
    merged = {**current, **{k: v for k, v in (patch or {}).items() if v is not None}}
    return save_config(merged)


configure_config_root(os.getenv(_STORAGE_ENV_VAR, ""))
