from __future__ import annotations

from pathlib import Path

import pytest

from fedora_installer import config as config_mod
from fedora_installer.config import InstallerConfig, load_config


def test_missing_default_config_means_defaults(monkeypatch, tmp_path):
    monkeypatch.setattr(config_mod, "DEFAULT_CONFIG_PATH", str(tmp_path / "absent.yaml"))

    cfg = load_config()

    assert cfg.log_path == "/var/log/fedora-installer.log"
    assert cfg.backup_dir == "/var/backups/fedora-installer"
    assert cfg.state_path == "/var/lib/fedora-installer/state.json"
    assert cfg.min_version == 42
    assert cfg.use_sudo is True
    assert cfg.max_prompt_attempts == 3
    assert cfg.workflows == ["codecs", "devstack"]


def test_explicit_missing_config_is_an_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_yaml_values_override_defaults(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text(
        "system:\n"
        "  min_version: 41\n"
        "  use_sudo: false\n"
        "user:\n"
        f"  home: {tmp_path}\n"
        "prompts:\n"
        "  max_attempts: 5\n"
        "workflows: [codecs]\n"
    )

    cfg = load_config(str(p))

    assert cfg.min_version == 41
    assert cfg.use_sudo is False
    assert cfg.rc_file == Path(tmp_path) / ".bashrc"
    assert cfg.dev_root == Path(tmp_path) / "Development"
    assert cfg.max_prompt_attempts == 5
    assert cfg.workflows == ["codecs"]


def test_non_yaml_config_is_rejected(tmp_path):
    p = tmp_path / "config.json"
    p.write_text("{}")

    with pytest.raises(ValueError):
        load_config(str(p))


def test_overrides_ignore_none_and_keep_original():
    base = InstallerConfig(raw={"paths": {"log": "/tmp/a.log"}})

    cfg = base.with_overrides(log=None, state="/tmp/state.yaml")

    assert cfg.log_path == "/tmp/a.log"
    assert cfg.state_path == "/tmp/state.yaml"
    assert base.state_path == "/var/lib/fedora-installer/state.json"
