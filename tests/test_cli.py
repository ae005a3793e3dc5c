"""
Tests for the sis command line interface.
"""

import json
import sys
import tempfile
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

import unittest
from unittest import mock

import click
from click.testing import CliRunner

from backends import PackageInfo, AptManager
from cli import commands
from cli.commands import cli
from core.config import InstallRequest, SoftwareConfig
from core.update_check import UpdateCheckResult
from fakes import FakeBackend


class CliTestCase(unittest.TestCase):
    """Runs commands against a temporary config and a fake backend."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.config_path = Path(self.tmpdir.name) / "config.json"
        self.config = SoftwareConfig(self.config_path)
        self.backend = FakeBackend()
        self.runner = CliRunner()

        patcher = mock.patch("cli.commands.setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.tmpdir.cleanup()

    def invoke(self, *args, backend=None):
        obj = {"config": self.config, "backend": self.backend if backend is None else backend}
        return self.runner.invoke(cli, list(args), obj=obj)

    def configure(self, *ids):
        for package_id in ids:
            self.config.add_software(InstallRequest.from_id(package_id))


class TestInstall(CliTestCase):
    """install / uninstall / batch."""

    def test_install_ids(self):
        result = self.invoke("install", "Git.Git", "Mozilla.Firefox")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self.backend.calls, [("install", "Git.Git"), ("install", "Mozilla.Firefox")])
        self.assertIn("[2/2]", result.output)
        self.assertIn("✓ 2", result.output)

    def test_install_from_config(self):
        self.configure("Git.Git")
        result = self.invoke("install")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self.backend.calls, [("install", "Git.Git")])

    def test_install_marks_environment_checked(self):
        self.invoke("install", "Git.Git")
        self.assertTrue(SoftwareConfig(self.config_path).get_bool("env_checked"))

    def test_failure_sets_exit_code(self):
        self.backend = FakeBackend(fail_ids={"BadPkg.Id"})
        result = self.invoke("install", "Git.Git", "BadPkg.Id", "--parallel")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("✗ BadPkg.Id", result.output)
        self.assertIn("No package found matching input criteria", result.output)

    def test_skipped_is_not_failure(self):
        self.backend = FakeBackend(skip_ids={"Git.Git"})
        result = self.invoke("install", "Git.Git")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("already in desired state", result.output)

    def test_nothing_configured(self):
        result = self.invoke("install")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("No packages configured", result.output)
        self.assertEqual(self.backend.calls, [])

    def test_environment_not_ready(self):
        unavailable = FakeBackend(available=False)
        result = self.invoke("install", "Git.Git", backend=unavailable)
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Environment check failed", result.output)
        self.assertIn("fake not found on PATH", result.output)
        self.assertEqual(unavailable.calls, [])

    @mock.patch("core.selector.platform.system", return_value="Linux")
    def test_backend_selected_with_configured_overrides(self, system):
        self.config.set("backends", {"apt": {"executable": "/opt/apt/bin/apt-get"}})
        ctx = click.Context(cli, obj={"config": self.config})
        backend = commands._backend(ctx)
        self.assertIsInstance(backend, AptManager)
        self.assertEqual(backend.executable, "/opt/apt/bin/apt-get")
        self.assertIs(commands._backend(ctx), backend)

    def test_parallel_refused_by_serial_backend(self):
        self.backend = FakeBackend(concurrent=False)
        result = self.invoke("install", "curl", "git", "--parallel")
        self.assertEqual(result.exit_code, 2)
        self.assertIn("--sequential", result.output)
        self.assertEqual(self.backend.calls, [])

    def test_uninstall(self):
        result = self.invoke("uninstall", "Git.Git")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self.backend.calls, [("uninstall", "Git.Git")])

    def test_uninstall_all(self):
        self.configure("Git.Git", "Mozilla.Firefox")
        result = self.invoke("uninstall-all")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual([c[0] for c in self.backend.calls], ["uninstall", "uninstall"])

    def test_batch_from_file(self):
        source = Path(self.tmpdir.name) / "packages.json"
        source.write_text(json.dumps([{"name": "Git", "id": "Git.Git"}, {"name": "VLC", "id": "VideoLAN.VLC"}]))
        result = self.invoke("batch", str(source))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("in parallel", result.output)
        self.assertEqual(sorted(c[1] for c in self.backend.calls), ["Git.Git", "VideoLAN.VLC"])

    def test_batch_sequential_on_serial_backend(self):
        self.backend = FakeBackend(concurrent=False)
        self.configure("curl", "git")
        result = self.invoke("batch")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("one at a time", result.output)


class TestSearch(CliTestCase):
    """search."""

    def setUp(self):
        super().setUp()
        self.backend = FakeBackend(catalogue=[
            PackageInfo(name="Git", id="Git.Git", version="2.43.0", source="winget"),
            PackageInfo(name="GitHub Desktop", id="GitHub.GitHubDesktop", version="3.3.6"),
        ])

    def test_results_table(self):
        result = self.invoke("search", "git")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Found 2 results", result.output)
        self.assertIn("GitHub.GitHubDesktop", result.output)

    def test_no_results(self):
        result = self.invoke("search", "zzz")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("No results found for: zzz", result.output)

    def test_unsupported_platform(self):
        runner_obj = {"config": self.config, "backend": None}
        result = self.runner.invoke(cli, ["search", "git"], obj=runner_obj)
        self.assertEqual(result.exit_code, 1)
        self.assertIn("unsupported platform", result.output)


class TestConfigCommands(CliTestCase):
    """list / config / export."""

    def test_add_list_remove(self):
        result = self.invoke("config", "add", "Git.Git", "--name", "Git", "--category", "Dev")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(SoftwareConfig(self.config_path).get_software_list()[0].category, "Dev")

        result = self.invoke("list")
        self.assertIn("Git.Git", result.output)
        self.assertIn("Total: 1 packages", result.output)

        result = self.invoke("config", "remove", "1")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(SoftwareConfig(self.config_path).get_software_list(), [])

    def test_remove_unknown_number(self):
        result = self.invoke("config", "remove", "4")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("No package #4", result.output)

    def test_config_path(self):
        result = self.invoke("config", "path")
        self.assertEqual(result.output.strip(), str(self.config_path))

    def test_export_json_stdout(self):
        self.configure("Git.Git")
        result = self.invoke("export", "-f", "json")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(json.loads(result.output)[0]["id"], "Git.Git")

    def test_export_to_file(self):
        self.configure("Git.Git")
        target = Path(self.tmpdir.name) / "install.ps1"
        result = self.invoke("export", "-f", "powershell", "-o", str(target))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"Git.Git"', target.read_text(encoding="utf-8"))

    def test_export_rejects_unknown_format(self):
        result = self.invoke("export", "-f", "yaml")
        self.assertNotEqual(result.exit_code, 0)


class TestInfoCommands(CliTestCase):
    """status / refresh / update / version."""

    def test_status(self):
        self.backend = FakeBackend(catalogue=[PackageInfo(name="git", id="git", version="2.43.0")])
        result = self.invoke("status")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("fake: ✓ available", result.output)
        self.assertIn("git (2.43.0)", result.output)

    def test_status_without_backend(self):
        result = self.runner.invoke(cli, ["status"], obj={"config": self.config, "backend": None})
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("unknown: ✗ unavailable", result.output)

    def test_refresh(self):
        result = self.invoke("refresh")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self.backend.calls, [("refresh", "")])

    @mock.patch("cli.commands.check_for_update")
    def test_update_available(self, check):
        check.return_value = UpdateCheckResult(
            current_version="0.2.0",
            latest_version="v0.3.0",
            release_url="https://github.com/cgartlab/SwiftInstall/releases/tag/v0.3.0",
        )
        result = self.invoke("update")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("A new version is available", result.output)

    @mock.patch("cli.commands.check_for_update")
    def test_update_check_failure(self, check):
        check.return_value = UpdateCheckResult(current_version="0.2.0", error_message="HTTP 403")
        result = self.invoke("update")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Update check failed: HTTP 403", result.output)

    def test_version(self):
        result = self.invoke("version")
        self.assertIn("Version: 0.2.0", result.output)


if __name__ == "__main__":
    unittest.main()
