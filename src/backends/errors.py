"""
SwiftInstall - Error Taxonomy
Exceptions shared by the backends, the selector and the orchestrator.
"""

from typing import Optional


class PackageManagerError(Exception):
    """Base class for all SwiftInstall errors."""


class UnsupportedPlatformError(PackageManagerError):
    """No backend matches the host platform."""

    def __init__(self, system: str = ""):
        self.system = system
        message = "unsupported platform"
        if system:
            message = f"unsupported platform: {system}"
        super().__init__(message)


class EnvironmentNotReadyError(PackageManagerError):
    """A backend exists for this host but one of its prerequisites is missing."""

    def __init__(self, details: list[str]):
        self.details = list(details)
        super().__init__("environment not ready: " + "; ".join(self.details))


class ConcurrencyNotSupportedError(PackageManagerError):
    """Parallel mode was requested for a backend that serializes internally."""

    def __init__(self, backend_name: str):
        self.backend_name = backend_name
        super().__init__(
            f"{backend_name} does not support concurrent operations; "
            f"run the batch sequentially"
        )


class BackendError(PackageManagerError):
    """A native package manager call failed."""


class BackendLaunchError(BackendError):
    """The native process could not be started."""

    def __init__(self, command: list[str], reason: str):
        self.command = list(command)
        self.reason = reason
        super().__init__(f"failed to start {command[0] if command else 'process'}: {reason}")


class BackendExecutionError(BackendError):
    """The native process ran and reported failure."""

    def __init__(self, message: str, returncode: Optional[int] = None, output: str = ""):
        self.returncode = returncode
        self.output = output
        super().__init__(message)


# Install/uninstall failures reported by the native tool
InstallError = BackendExecutionError


class UnexpectedFaultError(PackageManagerError):
    """An unforeseen exception escaped a worker and was contained."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"unexpected fault: {type(cause).__name__}: {cause}")
