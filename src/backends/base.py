"""
SwiftInstall - Backend Base
Abstract base class for native package manager backends.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging
import os
import shutil
import subprocess

from .errors import (
    PackageManagerError,
    BackendLaunchError,
    BackendExecutionError,
)

logger = logging.getLogger(__name__)


class InstallStatus(Enum):
    """Normalized outcome of an install or uninstall."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PackageInfo:
    """A package as reported by a backend."""
    name: str                           # Display name
    id: str                             # Backend-native identifier, may be empty
    version: Optional[str] = None
    publisher: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None        # e.g. "winget", "formula", "cask"

    @property
    def display_id(self) -> str:
        """Identifier to show, falling back to the name."""
        return self.id or self.name


@dataclass(frozen=True)
class InstallResult:
    """Result of one install/uninstall against one package."""
    package: PackageInfo
    status: InstallStatus
    error: Optional[PackageManagerError] = None
    output: str = ""

    def __post_init__(self):
        if self.status == InstallStatus.FAILED and self.error is None:
            raise ValueError("a failed result must carry an error")
        if self.status != InstallStatus.FAILED and self.error is not None:
            raise ValueError(f"a {self.status.value} result cannot carry an error")

    @property
    def ok(self) -> bool:
        return self.status != InstallStatus.FAILED

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @classmethod
    def success(cls, package: PackageInfo, output: str = "") -> "InstallResult":
        return cls(package=package, status=InstallStatus.SUCCESS, output=output)

    @classmethod
    def skipped(cls, package: PackageInfo, output: str = "") -> "InstallResult":
        return cls(package=package, status=InstallStatus.SKIPPED, output=output)

    @classmethod
    def failed(cls, package: PackageInfo, error: PackageManagerError, output: str = "") -> "InstallResult":
        return cls(package=package, status=InstallStatus.FAILED, error=error, output=output)


@dataclass(frozen=True)
class SkipRule:
    """
    Native responses that mean "nothing to do".

    A run is skipped when its exit code is listed in exit_codes, or when
    it exits with one of pattern_exit_codes and any pattern occurs
    (case-insensitively) in its combined output. A pattern never turns
    any other exit code into a skip.
    """
    exit_codes: tuple[int, ...] = ()
    patterns: tuple[str, ...] = ()
    pattern_exit_codes: tuple[int, ...] = (0,)

    @staticmethod
    def _code_in(returncode: int, codes: tuple[int, ...]) -> bool:
        code = returncode & 0xFFFFFFFF
        return any(code == (c & 0xFFFFFFFF) for c in codes)

    def matches(self, returncode: int, output: str) -> bool:
        if self._code_in(returncode, self.exit_codes):
            return True
        if not self._code_in(returncode, self.pattern_exit_codes):
            return False
        lowered = output.lower()
        return any(p.lower() in lowered for p in self.patterns)


class PackageManager(ABC):
    """
    Abstract base class for package manager backends.

    Each backend wraps one native command-line tool (winget, brew, apt)
    and normalizes its behaviour: install and uninstall always return an
    InstallResult, search and list return PackageInfo records.
    """

    # Operation name -> SkipRule; overridable via config
    SKIP_RULES: dict[str, SkipRule] = {}

    # False when the native tool holds a global lock while working
    supports_concurrency: bool = True

    PROBE_TIMEOUT = 10

    def __init__(self, config: dict = None):
        """
        Initialize the backend.

        Args:
            config: Optional dict with 'executable', 'skip_patterns'
                   and 'skip_exit_codes' overrides.
        """
        self.config = config or {}
        self.skip_rules = self._load_skip_rules()

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name of the package manager (e.g., 'winget')."""
        pass

    @property
    def executable(self) -> str:
        """Executable resolved on PATH."""
        return self.config.get("executable") or self.name

    @property
    def environment(self) -> dict[str, str]:
        """Environment overrides for every native call."""
        return {"LC_ALL": "C"}

    def _load_skip_rules(self) -> dict[str, SkipRule]:
        rules = dict(self.SKIP_RULES)
        patterns = self.config.get("skip_patterns", {})
        exit_codes = self.config.get("skip_exit_codes", {})
        for action in set(patterns) | set(exit_codes):
            base = rules.get(action, SkipRule())
            rules[action] = SkipRule(
                exit_codes=tuple(exit_codes.get(action, base.exit_codes)),
                patterns=tuple(patterns.get(action, base.patterns)),
                pattern_exit_codes=base.pattern_exit_codes,
            )
        return rules

    # ------------------------------------------------------------------
    # Native command builders and parsers

    @abstractmethod
    def _install_command(self, package_id: str) -> list[str]:
        pass

    @abstractmethod
    def _uninstall_command(self, package_id: str) -> list[str]:
        pass

    @abstractmethod
    def _search_command(self, query: str) -> list[str]:
        pass

    @abstractmethod
    def _list_command(self) -> list[str]:
        pass

    @abstractmethod
    def _refresh_command(self) -> list[str]:
        pass

    @abstractmethod
    def _parse_search(self, output: str) -> list[PackageInfo]:
        pass

    @abstractmethod
    def _parse_installed(self, output: str) -> list[PackageInfo]:
        pass

    def _is_empty_search(self, completed: subprocess.CompletedProcess) -> bool:
        """Whether a non-zero search exit just means 'no matches'."""
        return False

    # ------------------------------------------------------------------
    # Process handling

    def _run(self, command: list[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        """
        Run a native command and capture its output.

        Raises:
            BackendLaunchError: If the process could not be started.
        """
        logger.debug(f"Running: {' '.join(command)}")
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                env={**os.environ, **self.environment},
            )
        except (FileNotFoundError, PermissionError) as e:
            raise BackendLaunchError(command, e.strerror or str(e)) from e
        except OSError as e:
            raise BackendLaunchError(command, str(e)) from e

        if completed.returncode != 0:
            logger.debug(f"{command[0]} exited with {completed.returncode}: {completed.stderr.strip()}")
        return completed

    @staticmethod
    def _combined_output(completed: subprocess.CompletedProcess) -> str:
        return "\n".join(part for part in (completed.stdout, completed.stderr) if part)

    def _execution_error(self, action: str, target: str, completed: subprocess.CompletedProcess) -> BackendExecutionError:
        """Build the error for a native run that reported failure."""
        diagnostic = (completed.stderr or "").strip() or (completed.stdout or "").strip()
        if not diagnostic:
            operation = " ".join(part for part in (self.name, action, target) if part)
            diagnostic = f"{operation} exited with code {completed.returncode}"
        return BackendExecutionError(
            diagnostic,
            returncode=completed.returncode,
            output=self._combined_output(completed),
        )

    def _classify(self, action: str, package: PackageInfo, completed: subprocess.CompletedProcess) -> InstallResult:
        """Map a finished native run to Success, Skipped or Failed."""
        output = self._combined_output(completed)
        rule = self.skip_rules.get(action)
        if rule and rule.matches(completed.returncode, output):
            logger.info(f"{self.name}: {action} {package.id} skipped")
            return InstallResult.skipped(package, output)
        if completed.returncode == 0:
            logger.info(f"{self.name}: {action} {package.id} succeeded")
            return InstallResult.success(package, output)
        error = self._execution_error(action, package.id, completed)
        logger.error(f"{self.name}: {action} {package.id} failed: {error}")
        return InstallResult.failed(package, error, output)

    def _apply(self, action: str, package_id: str, command: list[str]) -> InstallResult:
        package = PackageInfo(name=package_id, id=package_id)
        try:
            completed = self._run(command)
        except BackendLaunchError as e:
            logger.error(f"{self.name}: {action} {package_id} could not start: {e}")
            return InstallResult.failed(package, e)
        return self._classify(action, package, completed)

    # ------------------------------------------------------------------
    # Uniform operations

    def is_available(self) -> bool:
        """Check that the executable is on PATH and answers a version probe."""
        if shutil.which(self.executable) is None:
            return False
        return self.version() is not None

    def version(self) -> Optional[str]:
        """First line of the tool's --version output, or None."""
        try:
            completed = self._run([self.executable, "--version"], timeout=self.PROBE_TIMEOUT)
        except BackendLaunchError:
            return None
        except subprocess.TimeoutExpired:
            logger.warning(f"{self.executable} --version timed out")
            return None
        if completed.returncode != 0:
            return None
        lines = completed.stdout.strip().splitlines()
        return lines[0].strip() if lines else ""

    def diagnose(self) -> list[str]:
        """
        Describe missing prerequisites.

        Returns:
            One human-readable line per problem; empty when ready.
        """
        if shutil.which(self.executable) is None:
            return [f"{self.executable} not found on PATH"]
        if self.version() is None:
            return [f"{self.executable} found but did not respond to --version"]
        return []

    def install(self, package_id: str) -> InstallResult:
        """
        Install a package non-interactively.

        Returns:
            InstallResult; never raises for per-package failures.
        """
        return self._apply("install", package_id, self._install_command(package_id))

    def uninstall(self, package_id: str) -> InstallResult:
        """Uninstall a package; Skipped when it was not installed."""
        return self._apply("uninstall", package_id, self._uninstall_command(package_id))

    def search(self, query: str) -> list[PackageInfo]:
        """
        Search the backend's catalogue.

        Returns:
            Matching packages, in the order the tool reports them.

        Raises:
            BackendError: If the tool cannot be started or fails.
        """
        completed = self._run(self._search_command(query))
        if completed.returncode != 0:
            if self._is_empty_search(completed):
                return []
            raise self._execution_error("search", query, completed)
        return self._parse_search(completed.stdout)

    def list_installed(self) -> list[PackageInfo]:
        """Packages the backend reports as installed."""
        completed = self._run(self._list_command())
        if completed.returncode != 0:
            raise self._execution_error("list", "", completed)
        return self._parse_installed(completed.stdout)

    def refresh_metadata(self) -> None:
        """Sync the backend's package index."""
        completed = self._run(self._refresh_command())
        if completed.returncode != 0:
            raise self._execution_error("refresh", "", completed)
        logger.info(f"{self.name}: package metadata refreshed")
