from __future__ import annotations

from datetime import datetime

from fedora_installer.lib.files import append_block, backup_file, block_end, block_start, has_block, render_block


def test_render_block_wraps_body_in_sentinels():
    text = render_block("dev-aliases", "alias ll='ls -alF'\n")

    assert text.splitlines() == [
        "# >>> fedora-installer: dev-aliases >>>",
        "alias ll='ls -alF'",
        "# <<< fedora-installer: dev-aliases <<<",
    ]


def test_append_block_once(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_text("export PATH=$PATH:/opt/bin\n")

    assert append_block(rc, "dotnet-tools-path", 'export PATH="$PATH:$HOME/.dotnet/tools"') is True
    assert append_block(rc, "dotnet-tools-path", "something else") is False

    text = rc.read_text()
    assert text.startswith("export PATH=$PATH:/opt/bin\n\n# >>> fedora-installer: dotnet-tools-path >>>")
    assert text.count(block_start("dotnet-tools-path")) == 1
    assert text.rstrip().endswith(block_end("dotnet-tools-path"))
    assert "something else" not in text


def test_append_block_creates_missing_file(tmp_path):
    rc = tmp_path / "nested" / ".bashrc"

    append_block(rc, "npm-global-path", 'export PATH="$HOME/.npm-global/bin:$PATH"')

    assert rc.read_text().startswith(block_start("npm-global-path"))
    assert has_block(rc, "npm-global-path")


def test_append_block_dry_run_leaves_file_untouched(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_text("# mine\n")

    assert append_block(rc, "dev-aliases", "alias gs='git status'", dry_run=True) is True
    assert rc.read_text() == "# mine\n"


def test_backup_of_missing_file_is_none(tmp_path):
    assert backup_file(tmp_path / "absent", tmp_path / "backups") is None


def test_backup_name_and_collision_suffix(tmp_path):
    src = tmp_path / "vscode.repo"
    src.write_text("[code]\n")
    backups = tmp_path / "backups"
    now = datetime(2025, 3, 4, 5, 6, 7, 890123)

    first = backup_file(src, backups, now=now)
    second = backup_file(src, backups, now=now)

    assert first.backup.name == "vscode.repo.20250304_050607_890123.bak"
    assert second.backup.name == "vscode.repo.20250304_050607_890123.1.bak"
    assert first.backup.read_text() == "[code]\n"
    assert first.original == src
    assert first.timestamp == now
