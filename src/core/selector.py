"""
SwiftInstall - Installer Selector
Chooses the package manager backend for the running host.
"""

import logging
import platform
from typing import Optional

from backends import (
    PackageManager,
    WingetManager,
    HomebrewManager,
    AptManager,
)

logger = logging.getLogger(__name__)

BACKENDS: dict[str, type[PackageManager]] = {
    "Windows": WingetManager,
    "Darwin": HomebrewManager,
    "Linux": AptManager,
}

MANAGER_NAMES = {
    "Windows": "winget",
    "Darwin": "brew",
    "Linux": "apt",
}


def current_system() -> str:
    """Operating system identifier as reported by platform.system()."""
    return platform.system()


def select_backend(system: Optional[str] = None, config: Optional[dict] = None) -> Optional[PackageManager]:
    """
    Pick the backend for a host platform.

    Args:
        system: Platform identifier; detected when omitted.
        config: Per-backend overrides keyed by backend name.

    Returns:
        A backend instance, or None when the platform is unsupported.
    """
    system = system or current_system()
    backend_cls = BACKENDS.get(system)
    if backend_cls is None:
        logger.warning(f"No package manager backend for platform {system!r}")
        return None

    backend_config = (config or {}).get(MANAGER_NAMES[system], {})
    backend = backend_cls(backend_config)
    logger.debug(f"Selected {backend.name} backend for {system}")
    return backend


def detect_package_manager(system: Optional[str] = None) -> tuple[str, bool]:
    """
    Name of the host's package manager and whether it is usable.

    Returns:
        ("unknown", False) on unsupported platforms.
    """
    backend = select_backend(system)
    if backend is None:
        return "unknown", False
    return backend.name, backend.is_available()
