"""
Tests for backends.winget — table parsing and exit-code mapping.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

import unittest
from unittest import mock

from backends.base import InstallStatus
from backends.errors import BackendExecutionError
from backends.winget import (
    WingetManager,
    parse_table,
    NO_APPLICATIONS_FOUND,
    UPDATE_NOT_APPLICABLE,
)
from fakes import completed

SEARCH_OUTPUT = (
    "   - \r   \\ \r"
    "Name                Id                          Version  Match         Source\n"
    "------------------------------------------------------------------------------\n"
    "Visual Studio Code  Microsoft.VisualStudioCode  1.85.1                 winget\n"
    "VSCodium            VSCodium.VSCodium           1.85.0   Tag: vscode   winget\n"
)

LIST_OUTPUT = (
    "Name            Id               Version        Available  Source\n"
    "------------------------------------------------------------------\n"
    "Git             Git.Git          2.43.0                    winget\n"
    "Microsoft Edge  Microsoft.Edge   120.0.2210.91\n"
    "\n"
    "1 upgrades available.\n"
)

WIDE_OUTPUT = (
    "名称    ID              版本\n"
    "----------------------------\n"
    "微信    Tencent.WeChat  3.9.8\n"
)


def unsigned(code: int) -> int:
    """winget exit codes as Windows reports them to Python."""
    return code - (1 << 32)


class TestParseTable(unittest.TestCase):
    """Tests for parse_table()."""

    def test_search_rows(self):
        rows = parse_table(SEARCH_OUTPUT)
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0], ["Visual Studio Code", "Microsoft.VisualStudioCode", "1.85.1", "", "winget"])
        self.assertEqual(rows[1][3], "Tag: vscode")

    def test_stops_at_blank_line(self):
        rows = parse_table(LIST_OUTPUT)
        self.assertEqual([r[1] for r in rows], ["Git.Git", "Microsoft.Edge"])
        self.assertEqual(rows[1][-1], "")

    def test_double_width_headers(self):
        rows = parse_table(WIDE_OUTPUT)
        self.assertEqual(rows, [["微信", "Tencent.WeChat", "3.9.8"]])

    def test_no_table(self):
        self.assertEqual(parse_table("No package found matching input criteria.\n"), [])


@mock.patch("backends.base.subprocess.run")
class TestWingetManager(unittest.TestCase):
    """Tests for WingetManager operations."""

    def setUp(self):
        self.backend = WingetManager()

    def test_install_command_is_non_interactive(self, run):
        run.return_value = completed("Successfully installed")
        result = self.backend.install("Git.Git")
        self.assertEqual(result.status, InstallStatus.SUCCESS)
        args = run.call_args[0][0]
        self.assertEqual(args[:4], ["winget", "install", "--id", "Git.Git"])
        for flag in ("--exact", "--silent", "--accept-package-agreements", "--accept-source-agreements"):
            self.assertIn(flag, args)

    def test_install_already_installed_is_skipped(self, run):
        run.return_value = completed(
            "Found an existing package already installed.\nNo available upgrade found.",
            returncode=unsigned(UPDATE_NOT_APPLICABLE),
        )
        self.assertEqual(self.backend.install("Git.Git").status, InstallStatus.SKIPPED)

    def test_install_unknown_id_fails(self, run):
        run.return_value = completed(
            "No package found matching input criteria.",
            returncode=unsigned(NO_APPLICATIONS_FOUND),
        )
        result = self.backend.install("BadPkg.Id")
        self.assertEqual(result.status, InstallStatus.FAILED)
        self.assertIn("No package found", result.error_message)

    def test_uninstall_not_installed_is_skipped(self, run):
        run.return_value = completed(
            "No installed package found matching input criteria.",
            returncode=unsigned(NO_APPLICATIONS_FOUND),
        )
        self.assertEqual(self.backend.uninstall("Git.Git").status, InstallStatus.SKIPPED)

    def test_search(self, run):
        run.return_value = completed(SEARCH_OUTPUT)
        results = self.backend.search("vscode")
        self.assertEqual([p.id for p in results], ["Microsoft.VisualStudioCode", "VSCodium.VSCodium"])
        self.assertEqual(results[0].version, "1.85.1")
        self.assertEqual(results[0].source, "winget")

    def test_search_no_match_is_empty(self, run):
        run.return_value = completed(
            "No package found matching input criteria.",
            returncode=unsigned(NO_APPLICATIONS_FOUND),
        )
        self.assertEqual(self.backend.search("zzz"), [])

    def test_search_other_failure_raises(self, run):
        run.return_value = completed("Failed when searching source: winget", returncode=unsigned(0x8A15000F))
        with self.assertRaises(BackendExecutionError):
            self.backend.search("git")

    def test_list_installed(self, run):
        run.return_value = completed(LIST_OUTPUT)
        installed = self.backend.list_installed()
        self.assertEqual(installed[1].name, "Microsoft Edge")
        self.assertEqual(installed[1].version, "120.0.2210.91")
        self.assertIsNone(installed[1].source)

    def test_refresh_command(self, run):
        run.return_value = completed()
        self.backend.refresh_metadata()
        self.assertEqual(run.call_args[0][0], ["winget", "source", "update"])


if __name__ == "__main__":
    unittest.main()
