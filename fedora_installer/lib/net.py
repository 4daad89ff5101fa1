from __future__ import annotations

import logging

from .command import run_cmd

logger = logging.getLogger(__name__)


def is_online(host: str, *, timeout_s: int = 3) -> bool:
    """Best-effort online check: one ICMP echo to a known external host."""

    r = run_cmd(["ping", "-c", "1", "-W", str(timeout_s), host], check=False, quiet=True, timeout_s=timeout_s + 5)
    if r.returncode != 0:
        logger.debug("ping %s failed: %s", host, r.stderr.strip())
    return r.returncode == 0
