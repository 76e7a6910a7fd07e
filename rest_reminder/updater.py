"""
Rest Reminder Update Check

Looks up the latest GitHub release and reports whether it is newer than
the running version. Only checks; installing the release is left to the
user.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import requests

from rest_reminder.core.errors import UpdateCheckError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 10  # seconds

_VERSION_RE = re.compile(r"^v?(\d+(?:\.\d+)*)")


@dataclass
class Release:
    """A published release newer than the running version"""
    version: str
    url: str
    notes: str = ""


def parse_version(text: str) -> Tuple[int, ...]:
    """
    Parse "v1.2.3" / "1.2.3-beta" into (1, 2, 3).

    Raises:
        ValueError: If no leading dotted number is present
    """
    match = _VERSION_RE.match(text.strip())
    if not match:
        raise ValueError(f"Cannot parse version: {text!r}")

    parts = [int(p) for p in match.group(1).split(".")]
    # 1.2 == 1.2.0
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def check_for_update(
    current_version: str,
    repo: str,
    session: Optional[requests.Session] = None,
    timeout: int = DEFAULT_TIMEOUT
) -> Optional[Release]:
    """
    Check GitHub for a release newer than current_version.

    Args:
        current_version: Running version, e.g. "1.2.0"
        repo: "owner/name" slug
        session: Optional requests session (for connection reuse / tests)
        timeout: Request timeout in seconds

    Returns:
        Release if a newer one exists, None otherwise

    Raises:
        UpdateCheckError: On network, HTTP or parse failures
    """
    try:
        current = parse_version(current_version)
    except ValueError as e:
        raise UpdateCheckError(f"error parsing version: {e}") from e

    url = f"{GITHUB_API_URL}/repos/{repo}/releases/latest"
    http = session or requests

    try:
        resp = http.get(
            url,
            headers={"Accept": "application/vnd.github+json"},
            timeout=timeout
        )
        if resp.status_code == 404:
            logger.debug(f"No releases published for {repo}")
            return None
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as e:
        raise UpdateCheckError(f"error checking for update: {e}") from e
    except ValueError as e:
        raise UpdateCheckError(f"invalid release response: {e}") from e

    if not isinstance(data, dict):
        raise UpdateCheckError(
            f"invalid release response: expected an object, got {type(data).__name__}"
        )

    tag = data.get("tag_name") or ""
    try:
        latest = parse_version(tag)
    except ValueError as e:
        raise UpdateCheckError(f"invalid release tag: {e}") from e

    if latest <= current:
        logger.debug(f"Current version {current_version} is the latest ({tag})")
        return None

    release = Release(
        version=tag.lstrip("v"),
        url=data.get("html_url") or f"https://github.com/{repo}/releases/latest",
        notes=data.get("body") or ""
    )
    logger.info(f"New version available: {release.version}")
    return release
