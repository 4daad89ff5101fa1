from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from ..model import BackupRecord
from .command import run_cmd

logger = logging.getLogger(__name__)

MARKER = "fedora-installer"


def block_start(block_id: str) -> str:
    return f"# >>> {MARKER}: {block_id} >>>"


def block_end(block_id: str) -> str:
    return f"# <<< {MARKER}: {block_id} <<<"


def render_block(block_id: str, body: str) -> str:
    return "\n".join([block_start(block_id), body.rstrip("\n"), block_end(block_id)]) + "\n"


def read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except FileNotFoundError:
        return None


def has_block(path: Path, block_id: str) -> bool:
    txt = read_text(path)
    return txt is not None and block_start(block_id) in txt


def _user_can_write(path: Path) -> bool:
    if path.exists():
        return os.access(path, os.W_OK)
    return os.access(path.parent, os.W_OK)


def append_block(
    path: Path,
    block_id: str,
    body: str,
    *,
    elevate: Sequence[str] = (),
    dry_run: bool = False,
) -> bool:
    """Append a sentinel-marked block unless its opening sentinel is already present.

    Returns True when the block was appended.
    """

    if has_block(path, block_id):
        logger.info("Block %s already present in %s", block_id, path)
        return False

    existing = read_text(path) or ""
    if not existing:
        sep = ""
    elif existing.endswith("\n"):
        sep = "\n"
    else:
        sep = "\n\n"
    text = sep + render_block(block_id, body)

    if dry_run:
        logger.info("Would append block %s to %s", block_id, path)
        return True

    if _user_can_write(path):
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(text)
    else:
        run_cmd([*elevate, "tee", "-a", str(path)], input_text=text)

    logger.info("Appended block %s to %s", block_id, path)
    return True


def install_file(src: Path, dst: Path, *, elevate: Sequence[str] = (), mode: str = "0644", dry_run: bool = False) -> None:
    if _user_can_write(dst):
        if dry_run:
            logger.info("Would install %s -> %s", src, dst)
            return
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dst)
        os.chmod(dst, int(mode, 8))
        return
    run_cmd([*elevate, "install", "-D", "-m", mode, str(src), str(dst)], dry_run=dry_run)


def _backup_name(path: Path, ts: datetime, backup_dir: Path) -> Path:
    base = f"{path.name}.{ts.strftime('%Y%m%d_%H%M%S_%f')}"
    candidate = backup_dir / f"{base}.bak"
    n = 1
    while candidate.exists():
        candidate = backup_dir / f"{base}.{n}.bak"
        n += 1
    return candidate


def backup_file(
    path: Path,
    backup_dir: Path,
    *,
    elevate: Sequence[str] = (),
    now: Optional[datetime] = None,
    dry_run: bool = False,
) -> Optional[BackupRecord]:
    """Copy an existing file into backup_dir before it is edited in place.

    Backups are never removed by the installer.
    """

    if not path.is_file():
        return None

    ts = now or datetime.now()
    dst = _backup_name(path, ts, backup_dir)

    if dry_run:
        logger.info("Would back up %s to %s", path, dst)
        return None

    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, dst)
    except PermissionError:
        if not elevate:
            raise
        run_cmd([*elevate, "mkdir", "-p", str(backup_dir)])
        run_cmd([*elevate, "cp", "-p", str(path), str(dst)])

    logger.info("Backed up %s to %s", path, dst)
    return BackupRecord(original=path, backup=dst, timestamp=ts)
