"""
SwiftInstall - Homebrew Backend
Installs formulae and casks on macOS through Homebrew.
"""

import re
import subprocess
import logging

from .base import (
    PackageManager,
    PackageInfo,
    SkipRule,
)

logger = logging.getLogger(__name__)

_NAME = re.compile(r"^[\w@+.\-/]+$")


class HomebrewManager(PackageManager):
    """Backend for Homebrew (brew)."""

    SKIP_RULES = {
        "install": SkipRule(patterns=("is already installed",)),
        # brew exits 1 when the keg is missing
        "uninstall": SkipRule(
            patterns=(
                "No such keg",
                "No installed keg or cask with the name",
                "is not installed",
            ),
            pattern_exit_codes=(0, 1),
        ),
    }

    # Per-formula locks; auto-update is disabled so runs don't share the update lock
    supports_concurrency = True

    @property
    def name(self) -> str:
        return "brew"

    @property
    def environment(self) -> dict[str, str]:
        return {
            "HOMEBREW_NO_AUTO_UPDATE": "1",
            "HOMEBREW_NO_ENV_HINTS": "1",
            "NONINTERACTIVE": "1",
        }

    def _install_command(self, package_id: str) -> list[str]:
        return [self.executable, "install", package_id]

    def _uninstall_command(self, package_id: str) -> list[str]:
        return [self.executable, "uninstall", package_id]

    def _search_command(self, query: str) -> list[str]:
        return [self.executable, "search", query]

    def _list_command(self) -> list[str]:
        return [self.executable, "list", "--formula", "--versions"]

    def _refresh_command(self) -> list[str]:
        return [self.executable, "update"]

    def _is_empty_search(self, completed: subprocess.CompletedProcess) -> bool:
        return "no formulae or casks found" in self._combined_output(completed).lower()

    def _parse_search(self, output: str) -> list[PackageInfo]:
        """
        Parse `brew search` output.

        Format (when piped):
            ==> Formulae
            git
            git-lfs

            ==> Casks
            gitkraken
        """
        packages = []
        section = "formula"
        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            if line.startswith("==>"):
                section = "cask" if "cask" in line.lower() else "formula"
                continue
            # Skip hint sentences, keep single-token names
            if not _NAME.match(line):
                continue
            packages.append(PackageInfo(name=line, id=line, source=section))
        return packages

    def _parse_versions(self, output: str, source: str) -> list[PackageInfo]:
        # Format: name version [version...]
        packages = []
        for line in output.splitlines():
            parts = line.split()
            if not parts:
                continue
            packages.append(PackageInfo(
                name=parts[0],
                id=parts[0],
                version=parts[-1] if len(parts) > 1 else None,
                source=source,
            ))
        return packages

    def _parse_installed(self, output: str) -> list[PackageInfo]:
        return self._parse_versions(output, "formula")

    def list_installed(self) -> list[PackageInfo]:
        """Installed formulae followed by installed casks."""
        formulae = super().list_installed()
        completed = self._run([self.executable, "list", "--cask", "--versions"])
        if completed.returncode != 0:
            raise self._execution_error("list", "--cask", completed)
        return formulae + self._parse_versions(completed.stdout, "cask")
