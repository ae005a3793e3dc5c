"""
SwiftInstall - Version Comparison
Compares release tags such as 'v0.1.3' against the running version.
"""

import re
import logging
from typing import List

from packaging.version import Version, InvalidVersion

logger = logging.getLogger(__name__)


def numeric_parts(version: str) -> List[int]:
    """
    Extract the numeric components of a loosely formatted version.

    Used when a tag is not PEP 440 compliant, e.g. 'release-2024.05'.

    Returns:
        List of integers, [0] for empty or unknown versions.
    """
    if not version or version.strip().lower() in ("unknown", "dev", "none"):
        return [0]
    parts = re.findall(r"\d+", version)
    return [int(p) for p in parts] if parts else [0]


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two version strings.

    Returns:
        1 if v1 > v2, -1 if v1 < v2, 0 if equal
    """
    try:
        ver1 = Version((v1 or "").strip().lstrip("vV"))
        ver2 = Version((v2 or "").strip().lstrip("vV"))
        return (ver1 > ver2) - (ver1 < ver2)
    except InvalidVersion:
        logger.debug(f"Non PEP 440 versions {v1!r} / {v2!r}, comparing numerically")

    parts1 = numeric_parts(v1)
    parts2 = numeric_parts(v2)
    width = max(len(parts1), len(parts2))
    parts1 += [0] * (width - len(parts1))
    parts2 += [0] * (width - len(parts2))
    return (parts1 > parts2) - (parts1 < parts2)


def is_newer(candidate: str, current: str) -> bool:
    """Check if candidate is newer than current."""
    return compare_versions(candidate, current) > 0
