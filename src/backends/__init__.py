"""
SwiftInstall - Backends Package
"""

from backends.base import (
    PackageManager,
    PackageInfo,
    InstallStatus,
    InstallResult,
    SkipRule,
)
from backends.errors import (
    PackageManagerError,
    UnsupportedPlatformError,
    EnvironmentNotReadyError,
    ConcurrencyNotSupportedError,
    BackendError,
    BackendLaunchError,
    BackendExecutionError,
    InstallError,
    UnexpectedFaultError,
)
from backends.winget import WingetManager
from backends.brew import HomebrewManager
from backends.apt import AptManager

__all__ = [
    "PackageManager",
    "PackageInfo",
    "InstallStatus",
    "InstallResult",
    "SkipRule",
    "PackageManagerError",
    "UnsupportedPlatformError",
    "EnvironmentNotReadyError",
    "ConcurrencyNotSupportedError",
    "BackendError",
    "BackendLaunchError",
    "BackendExecutionError",
    "InstallError",
    "UnexpectedFaultError",
    "WingetManager",
    "HomebrewManager",
    "AptManager",
]
