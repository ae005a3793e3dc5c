"""
SwiftInstall - Release Update Check
Asks GitHub whether a newer SwiftInstall release exists.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from core import __version__
from core.version import is_newer

logger = logging.getLogger(__name__)

RELEASES_API = "https://api.github.com/repos/cgartlab/SwiftInstall/releases/latest"

# Development builds compare as this release
FALLBACK_VERSION = "v0.1.3"


@dataclass
class UpdateCheckResult:
    """Outcome of a release check."""
    current_version: str
    latest_version: Optional[str] = None
    release_url: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def update_available(self) -> bool:
        if not self.latest_version:
            return False
        return is_newer(self.latest_version, self.current_version)


def check_for_update(current_version: str = __version__, timeout: int = 10) -> UpdateCheckResult:
    """
    Fetch the latest release and compare it with current_version.

    Network, HTTP and parse failures are reported in error_message.
    """
    if not current_version or current_version == "dev":
        current_version = FALLBACK_VERSION
    result = UpdateCheckResult(current_version=current_version)

    try:
        response = requests.get(
            RELEASES_API,
            headers={
                "Accept": "application/vnd.github+json",
                "User-Agent": f"SwiftInstall/{current_version}",
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning(f"Release check failed: {e}")
        result.error_message = str(e)
        return result

    if response.status_code != 200:
        logger.warning(f"Release check returned HTTP {response.status_code}")
        result.error_message = f"HTTP {response.status_code}"
        return result

    try:
        release = response.json()
    except ValueError as e:
        result.error_message = f"invalid response: {e}"
        return result
    if not isinstance(release, dict):
        result.error_message = "invalid response: expected a JSON object"
        return result

    result.latest_version = release.get("tag_name")
    result.release_url = release.get("html_url")
    if not result.latest_version:
        result.error_message = "response has no tag_name"
    return result
