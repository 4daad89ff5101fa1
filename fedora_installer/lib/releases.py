"""Remote release metadata and artifact downloads over HTTPS."""

from __future__ import annotations

import logging
from pathlib import Path

import requests

from ..errors import ActionError

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
HTTP_TIMEOUT_S = 60


def latest_release_version(repo: str) -> str:
    """Return the latest release tag of a GitHub repo with any leading 'v' stripped."""

    url = f"{GITHUB_API}/repos/{repo}/releases/latest"
    logger.info("Fetching release metadata %s", url)
    try:
        response = requests.get(url, timeout=HTTP_TIMEOUT_S, headers={"Accept": "application/vnd.github+json"})
        response.raise_for_status()
        tag = response.json().get("tag_name")
    except requests.exceptions.RequestException as e:
        raise ActionError(f"Could not fetch release metadata for {repo}: {e}") from e
    except ValueError as e:
        raise ActionError(f"Release metadata for {repo} is not JSON: {e}") from e

    if not tag:
        raise ActionError(f"Release metadata for {repo} has no tag_name")
    return str(tag).lstrip("v")


def download(url: str, dest: Path) -> Path:
    logger.info("Downloading %s -> %s", url, dest)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with requests.get(url, stream=True, timeout=HTTP_TIMEOUT_S) as response:
            response.raise_for_status()
            with dest.open("wb") as f:
                for chunk in response.iter_content(chunk_size=65536):
                    if chunk:
                        f.write(chunk)
    except requests.exceptions.RequestException as e:
        raise ActionError(f"Download failed: {url}: {e}") from e
    return dest
