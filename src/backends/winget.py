"""
SwiftInstall - Winget Backend
Installs packages on Windows through the Windows Package Manager.
"""

import re
import subprocess
import unicodedata
import logging

from .base import (
    PackageManager,
    PackageInfo,
    SkipRule,
)

logger = logging.getLogger(__name__)

# HRESULTs returned by winget.exe
NO_APPLICATIONS_FOUND = 0x8A150014
UPDATE_NOT_APPLICABLE = 0x8A15002B
PACKAGE_ALREADY_INSTALLED = 0x8A150061

_SEPARATOR = re.compile(r"^-{10,}\s*$")


def _char_width(char: str) -> int:
    return 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1


def _column_starts(header: str) -> list[int]:
    """Display-column offsets where each header word begins."""
    starts = []
    col = 0
    previous = " "
    for char in header:
        if not char.isspace() and previous.isspace():
            starts.append(col)
        col += _char_width(char)
        previous = char
    return starts


def _split_columns(line: str, starts: list[int]) -> list[str]:
    """Cut a row at display-column offsets."""
    fields = [""] * len(starts)
    col = 0
    index = -1
    for char in line:
        while index + 1 < len(starts) and col >= starts[index + 1]:
            index += 1
        if index >= 0:
            fields[index] += char
        col += _char_width(char)
    return [f.strip() for f in fields]


def parse_table(output: str) -> list[list[str]]:
    """
    Parse winget's fixed-width table output.

    Progress spinners written before the table are discarded, as are
    trailing notes after the first blank line following the rows.

    Returns:
        One list of column values per row (header excluded).
    """
    # Keep only what survives carriage-return overwrites
    lines = [line.split("\r")[-1].rstrip() for line in output.replace("\r\n", "\n").split("\n")]

    for i in range(1, len(lines)):
        if _SEPARATOR.match(lines[i]) and lines[i - 1].strip():
            header = lines[i - 1]
            body = lines[i + 1:]
            break
    else:
        return []

    starts = _column_starts(header)
    rows = []
    for line in body:
        if not line.strip():
            break
        rows.append(_split_columns(line, starts))
    return rows


class WingetManager(PackageManager):
    """Backend for the Windows Package Manager (winget)."""

    SKIP_RULES = {
        "install": SkipRule(
            exit_codes=(UPDATE_NOT_APPLICABLE, PACKAGE_ALREADY_INSTALLED),
            patterns=(
                "No available upgrade found",
                "No newer package versions are available",
            ),
            pattern_exit_codes=(0, UPDATE_NOT_APPLICABLE, PACKAGE_ALREADY_INSTALLED),
        ),
        "uninstall": SkipRule(
            exit_codes=(NO_APPLICATIONS_FOUND,),
            patterns=("No installed package found matching input criteria",),
            pattern_exit_codes=(0, NO_APPLICATIONS_FOUND),
        ),
    }

    supports_concurrency = True

    AGREEMENT_FLAGS = ["--accept-source-agreements", "--disable-interactivity"]

    @property
    def name(self) -> str:
        return "winget"

    def _install_command(self, package_id: str) -> list[str]:
        return [
            self.executable, "install",
            "--id", package_id,
            "--exact",
            "--silent",
            "--accept-package-agreements",
        ] + self.AGREEMENT_FLAGS

    def _uninstall_command(self, package_id: str) -> list[str]:
        return [
            self.executable, "uninstall",
            "--id", package_id,
            "--exact",
            "--silent",
        ] + self.AGREEMENT_FLAGS

    def _search_command(self, query: str) -> list[str]:
        return [self.executable, "search", query] + self.AGREEMENT_FLAGS

    def _list_command(self) -> list[str]:
        return [self.executable, "list"] + self.AGREEMENT_FLAGS

    def _refresh_command(self) -> list[str]:
        return [self.executable, "source", "update"]

    def _is_empty_search(self, completed: subprocess.CompletedProcess) -> bool:
        if completed.returncode & 0xFFFFFFFF == NO_APPLICATIONS_FOUND:
            return True
        return "no package found matching input criteria" in self._combined_output(completed).lower()

    def _rows_to_packages(self, output: str) -> list[PackageInfo]:
        # Columns: Name, Id, Version, [Match | Available], Source
        packages = []
        for row in parse_table(output):
            if len(row) < 2 or not row[1]:
                continue
            source = row[-1] if len(row) >= 4 else ""
            packages.append(PackageInfo(
                name=row[0],
                id=row[1],
                version=row[2] if len(row) > 2 and row[2] else None,
                source=source or None,
            ))
        return packages

    def _parse_search(self, output: str) -> list[PackageInfo]:
        return self._rows_to_packages(output)

    def _parse_installed(self, output: str) -> list[PackageInfo]:
        return self._rows_to_packages(output)
