"""Structured runtime diagnostics for the business case workbench."""

from __future__ import annotations

import json
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from streamlit.runtime.scriptrunner import get_script_run_ctx


LOG_DIR = Path(".local_store")
RUNTIME_EVENTS_LOG_FILE = LOG_DIR / "runtime_events.jsonl"

_DEFAULT_LOG_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "BIZCASE_STORAGE_ROOT"

_EXCEPTION_HOOK_INSTALLED = False


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _json_default(value: Any):
    if isinstance(value, (set, tuple)):
        return list(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def configure_log_root(path_value: str | Path | None) -> Path:
    global LOG_DIR, RUNTIME_EVENTS_LOG_FILE
    text = "" if path_value is None else str(path_value).strip()
    LOG_DIR = Path(os.path.expandvars(os.path.expanduser(text))) if text else _DEFAULT_LOG_DIR
    RUNTIME_EVENTS_LOG_FILE = LOG_DIR / "runtime_events.jsonl"
    return LOG_DIR


def runtime_log_path() -> str:
    return str(RUNTIME_EVENTS_LOG_FILE.resolve())


def _event_record(level: str, event: str, message: str, context: dict | None, exc: BaseException | None) -> dict:
    record: dict[str, Any] = {
        "timestamp_utc": _now_iso(),
        "level": str(level).upper(),
        "event": str(event),
        "message": str(message),
        "context": context or {},
    }
    if exc is not None:
        record["exception_type"] = type(exc).__name__
        record["exception_message"] = str(exc)
        tb = exc.__traceback__
        record["traceback"] = (
            "".join(traceback.format_exception(type(exc), exc, tb)) if tb is not None else traceback.format_exc()
        )
    return record


def append_runtime_event(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    """Append one JSONL event; failures to write are ignored."""
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        line = json.dumps(_event_record(level, event, message, context, exc), default=_json_default, ensure_ascii=False)
        with RUNTIME_EVENTS_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
    except Exception:
        # Diagnostics must not take the workbench down.
        pass


def log_integrity_findings(findings: list[dict[str, Any]], context: dict[str, Any] | None = None) -> None:
    if not findings:
        return
    append_runtime_event(
        level="warning",
        event="integrity_findings",
        message=f"{len(findings)} derived-table identity check(s) failed.",
        context={**(context or {}), "checks": [f.get("Check") for f in findings]},
    )


def log_integrity_findings_if_changed(
    findings: list[dict[str, Any]],
    last_signature: str | None,
    context: dict[str, Any] | None = None,
) -> str:
    """Log findings only when they differ from the last logged set; return the new signature."""
    signature = json.dumps(findings, sort_keys=True, default=_json_default)
    if signature != last_signature:
        log_integrity_findings(findings, context)
    return signature


def read_runtime_events(limit: int = 200) -> list[dict[str, Any]]:
    if limit <= 0 or not RUNTIME_EVENTS_LOG_FILE.exists():
        return []
    try:
        lines = RUNTIME_EVENTS_LOG_FILE.read_text(encoding="utf-8").splitlines()
    except OSError:
        return []
    out: list[dict[str, Any]] = []
    for line in lines[-int(limit) :]:
        if not line.strip():
            continue
        try:
            out.append(json.loads(line))
        except json.JSONDecodeError:
            out.append(
                {
                    "timestamp_utc": _now_iso(),
                    "level": "ERROR",
                    "event": "log_parse_error",
                    "message": "Malformed log line encountered.",
                    "context": {"line": line},
                }
            )
    return out


def install_global_exception_logging() -> None:
    """Record uncaught exceptions raised during a Streamlit script run."""
    global _EXCEPTION_HOOK_INSTALLED
    if _EXCEPTION_HOOK_INSTALLED:
        return
    previous_hook = sys.excepthook

    def _hook(exc_type, exc, exc_tb):
        try:
            if get_script_run_ctx() is not None:
                append_runtime_event(
                    level="ERROR",
                    event="uncaught_exception",
                    message=str(exc),
                    context={"traceback": "".join(traceback.format_exception(exc_type, exc, exc_tb))},
                    exc=exc,
                )
        except Exception:
            pass
        previous_hook(exc_type, exc, exc_tb)

    sys.excepthook = _hook
    _EXCEPTION_HOOK_INSTALLED = True


configure_log_root(os.getenv(_STORAGE_ENV_VAR, ""))
