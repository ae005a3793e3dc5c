"""
SwiftInstall - Core Package
"""

__version__ = "0.2.0"

from core.config import InstallRequest, SoftwareConfig
from core.selector import select_backend, detect_package_manager
from core.environment import EnvironmentReport, check_environment, ensure_ready
from core.orchestrator import InstallOrchestrator, BatchSummary

__all__ = [
    "__version__",
    "InstallRequest",
    "SoftwareConfig",
    "select_backend",
    "detect_package_manager",
    "EnvironmentReport",
    "check_environment",
    "ensure_ready",
    "InstallOrchestrator",
    "BatchSummary",
]
