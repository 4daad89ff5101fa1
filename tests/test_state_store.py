from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fedora_installer.model import BackupRecord, ExecutionResult, Outcome, StepCategory
from fedora_installer.state_store import (
    begin_run,
    ensure_defaults,
    load_state,
    record_backups,
    record_step_result,
    save_state,
    writable_state_path,
)


def test_missing_state_file_is_empty(tmp_path):
    assert load_state(str(tmp_path / "state.json")) == {}


def test_json_and_yaml_round_trip(tmp_path):
    state = ensure_defaults({})
    begin_run(state, workflow="codecs", dry_run=False)

    for name in ("state.json", "state.yaml"):
        path = str(tmp_path / "nested" / name)
        save_state(path, state)
        loaded = load_state(path)
        assert loaded["execution"]["completed_steps"] == []
        assert loaded["runs"][0]["workflow"] == "codecs"


def test_rerun_clears_completed_step_after_failure():
    state = ensure_defaults({})
    ok = ExecutionResult("30_vlc", StepCategory.PACKAGE_GROUP, Outcome.SUCCEEDED)
    bad = ExecutionResult("30_vlc", StepCategory.PACKAGE_GROUP, Outcome.FAILED_ADVISORY)

    record_step_result(state, ok)
    record_step_result(state, ok)
    assert state["execution"]["completed_steps"] == ["30_vlc"]

    record_step_result(state, bad)
    assert state["execution"]["completed_steps"] == []
    assert state["execution"]["outcomes"]["30_vlc"] == "failed-advisory"


def test_backups_recorded_once():
    state = ensure_defaults({})
    record = BackupRecord(Path("/home/u/.bashrc"), Path("/b/.bashrc.x.bak"), datetime(2025, 1, 2, 3, 4, 5))

    record_backups(state, [record])
    record_backups(state, [record])

    assert state["execution"]["backups"] == [
        {"original": "/home/u/.bashrc", "backup": "/b/.bashrc.x.bak", "timestamp": "2025-01-02T03:04:05"}
    ]


def test_unwritable_state_path_falls_back_to_cwd(tmp_path, monkeypatch):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    monkeypatch.chdir(tmp_path)

    path = writable_state_path(str(blocker / "state.json"))

    assert Path(path) == Path.cwd() / "fedora-installer-state.json"


def test_writable_state_path_is_kept(tmp_path):
    path = str(tmp_path / "lib" / "state.yaml")

    assert writable_state_path(path) == path
