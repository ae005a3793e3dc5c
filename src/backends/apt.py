"""
SwiftInstall - APT Backend
Installs native Debian/Ubuntu packages through APT.
"""

import os
import shutil
import subprocess
import logging

from .base import (
    PackageManager,
    PackageInfo,
    SkipRule,
)
from .errors import BackendExecutionError

logger = logging.getLogger(__name__)

PRIVILEGE_MARKERS = (
    "a password is required",
    "a terminal is required",
    "are you root?",
    "permission denied",
    "is not in the sudoers file",
)

DPKG_FORMAT = "${binary:Package}\t${Version}\t${db:Status-Status}\t${binary:Summary}\n"


def is_root() -> bool:
    """Whether the current process runs as root."""
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


class AptManager(PackageManager):
    """Backend for APT (apt-get / apt-cache / dpkg-query)."""

    SKIP_RULES = {
        "install": SkipRule(patterns=("is already the newest version",)),
        # apt-get exits 100 for an unknown package
        "uninstall": SkipRule(
            patterns=(
                "is not installed, so not removed",
                "Unable to locate package",
            ),
            pattern_exit_codes=(0, 100),
        ),
    }

    # dpkg takes a frontend lock for the whole run
    supports_concurrency = False

    @property
    def name(self) -> str:
        return "apt"

    @property
    def executable(self) -> str:
        return self.config.get("executable") or "apt-get"

    @property
    def sudo(self) -> str:
        return self.config.get("sudo") or "sudo"

    @property
    def environment(self) -> dict[str, str]:
        return {"DEBIAN_FRONTEND": "noninteractive", "LC_ALL": "C"}

    def _privileged(self, command: list[str]) -> list[str]:
        """Prefix with non-interactive sudo unless already root."""
        if is_root():
            return command
        return [self.sudo, "-n"] + command

    def _install_command(self, package_id: str) -> list[str]:
        return self._privileged([self.executable, "install", "-y", package_id])

    def _uninstall_command(self, package_id: str) -> list[str]:
        return self._privileged([self.executable, "remove", "-y", package_id])

    def _search_command(self, query: str) -> list[str]:
        return ["apt-cache", "search", query]

    def _list_command(self) -> list[str]:
        return ["dpkg-query", "-W", f"-f={DPKG_FORMAT}"]

    def _refresh_command(self) -> list[str]:
        return self._privileged([self.executable, "update"])

    def _execution_error(self, action: str, target: str, completed: subprocess.CompletedProcess) -> BackendExecutionError:
        error = super()._execution_error(action, target, completed)
        lowered = error.output.lower()
        if any(marker in lowered for marker in PRIVILEGE_MARKERS):
            operation = f"{action} {target}".strip()
            return BackendExecutionError(
                f"root privileges required to {operation}: {error}",
                returncode=error.returncode,
                output=error.output,
            )
        return error

    def diagnose(self) -> list[str]:
        details = super().diagnose()
        if not details and not is_root() and shutil.which(self.sudo) is None:
            details.append(f"{self.sudo} not found on PATH; run as root to install or remove packages")
        return details

    def _parse_search(self, output: str) -> list[PackageInfo]:
        # Format: name - summary
        packages = []
        for line in output.splitlines():
            if " - " not in line:
                continue
            name, summary = line.split(" - ", 1)
            name = name.strip()
            if name:
                packages.append(PackageInfo(
                    name=name,
                    id=name,
                    description=summary.strip() or None,
                ))
        return packages

    def _parse_installed(self, output: str) -> list[PackageInfo]:
        packages = []
        for line in output.splitlines():
            parts = line.split("\t")
            if len(parts) < 3 or parts[2].strip() != "installed":
                continue
            packages.append(PackageInfo(
                name=parts[0],
                id=parts[0],
                version=parts[1] or None,
                description=parts[3].strip() if len(parts) > 3 and parts[3].strip() else None,
            ))
        return packages
