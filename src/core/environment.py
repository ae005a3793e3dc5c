"""
SwiftInstall - Environment Checker
Read-only gate run before any install or search.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from backends import (
    PackageManager,
    UnsupportedPlatformError,
    EnvironmentNotReadyError,
)
from core.selector import current_system

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvironmentReport:
    """Outcome of an environment check."""
    ready: bool
    details: list[str] = field(default_factory=list)
    manager: Optional[str] = None


def check_environment(backend: Optional[PackageManager]) -> EnvironmentReport:
    """
    Verify the selected backend's prerequisites.

    Has no side effects and may be called any number of times.

    Args:
        backend: Backend from select_backend(), or None.

    Returns:
        EnvironmentReport; details holds one diagnostic per problem.
    """
    if backend is None:
        return EnvironmentReport(
            ready=False,
            details=[f"unsupported platform: {current_system()}"],
        )

    available = backend.is_available()
    details = backend.diagnose()
    if not available and not details:
        details = [f"{backend.name} is not available"]

    report = EnvironmentReport(
        ready=available and not details,
        details=details,
        manager=backend.name,
    )
    if not report.ready:
        logger.warning(f"Environment not ready for {backend.name}: {'; '.join(details)}")
    return report


def ensure_ready(backend: Optional[PackageManager]) -> PackageManager:
    """
    Raise unless the backend exists and is ready.

    Raises:
        UnsupportedPlatformError: If backend is None.
        EnvironmentNotReadyError: If a prerequisite is missing.
    """
    if backend is None:
        raise UnsupportedPlatformError(current_system())
    report = check_environment(backend)
    if not report.ready:
        raise EnvironmentNotReadyError(report.details)
    return backend
