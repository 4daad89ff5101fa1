from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import yaml

from .model import BackupRecord, ExecutionResult, Outcome

logger = logging.getLogger(__name__)

_DONE = {Outcome.SUCCEEDED.value, Outcome.SUCCEEDED_VIA_FALLBACK.value, Outcome.SKIPPED_IDEMPOTENT.value}


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    fmt = _detect_format(p)
    if fmt in {"yaml", "yml"}:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    else:
        data = json.loads(p.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fmt = _detect_format(p)
    if fmt in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with defaults (without overriding stored values)."""

    state.setdefault("version", 1)
    state.setdefault("runs", [])
    exe = state.setdefault("execution", {})
    exe.setdefault("current_step", None)
    exe.setdefault("completed_steps", [])
    exe.setdefault("outcomes", {})
    exe.setdefault("backups", [])
    exe.setdefault("errors", [])
    return state


def begin_run(state: Dict[str, Any], **details: Any) -> None:
    state.setdefault("runs", []).append({"started": datetime.now().isoformat(timespec="seconds"), **details})


def record_step_result(state: Dict[str, Any], result: ExecutionResult, *, dry_run: bool = False) -> None:
    exe = state.setdefault("execution", {})
    if dry_run:
        # Nothing was changed; keep what would have happened apart from real progress.
        exe.setdefault("dry_run_outcomes", {})[result.step_id] = result.outcome.value
        return
    exe.setdefault("outcomes", {})[result.step_id] = result.outcome.value
    completed = exe.setdefault("completed_steps", [])
    if result.outcome.value in _DONE:
        if result.step_id not in completed:
            completed.append(result.step_id)
    elif result.step_id in completed:
        completed.remove(result.step_id)
    if result.error is not None:
        exe.setdefault("errors", []).append({"step": result.step_id, "error": str(result.error)})


def record_backups(state: Dict[str, Any], backups: list[BackupRecord]) -> None:
    known = state.setdefault("execution", {}).setdefault("backups", [])
    for b in backups:
        entry = {"original": str(b.original), "backup": str(b.backup), "timestamp": b.timestamp.isoformat()}
        if entry not in known:
            known.append(entry)


def writable_state_path(path: str) -> str:
    """Return `path` if it can be written, else a file in the working directory."""

    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.debug("Cannot create %s: %s", p.parent, e)
    else:
        if os.access(p.parent, os.W_OK) and (not p.exists() or os.access(p, os.W_OK)):
            return path

    fallback = str(Path.cwd() / f"fedora-installer-state{p.suffix or '.json'}")
    logger.warning("State file %s is not writable; using %s", path, fallback)
    return fallback
