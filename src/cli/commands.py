"""
SwiftInstall - Command Line Interface
Thin click wrappers over the core: selector, environment gate,
orchestrator and configuration store.
"""

import logging
import platform
import sys
from pathlib import Path
from typing import Optional

import click

from backends import (
    PackageManager,
    BackendError,
    ConcurrencyNotSupportedError,
)
from core import __version__
from core.config import InstallRequest, SoftwareConfig, DEFAULT_CATEGORY
from core.environment import check_environment
from core.export import export_packages, FORMATS
from core.orchestrator import InstallOrchestrator, INSTALL, UNINSTALL
from core.selector import select_backend, current_system, MANAGER_NAMES
from core.update_check import check_for_update
from cli.progress import watch_batch

logger = logging.getLogger(__name__)

LOG_FILE = Path.home() / ".cache" / "swiftinstall" / "sis.log"

STATUS_LIST_LIMIT = 10


def setup_logging(verbose: bool = False) -> None:
    """Log to ~/.cache/swiftinstall/sis.log and warnings to stderr."""
    stream = logging.StreamHandler()
    stream.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handlers: list[logging.Handler] = [stream]
    try:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(LOG_FILE, encoding="utf-8"))
    except OSError:
        pass  # read-only home; stderr only
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[:width - 3] + "..."


def print_table(headers: list[str], widths: list[int], rows: list[list[str]]) -> None:
    click.secho("  ".join(h.ljust(w) for h, w in zip(headers, widths)), fg="cyan", bold=True)
    for row in rows:
        click.echo("  ".join(truncate(v, w).ljust(w) for v, w in zip(row, widths)).rstrip())


# ── Context helpers ─────────────────────────────────────────────


def _config(ctx: click.Context) -> SoftwareConfig:
    return ctx.obj["config"]


def _backend(ctx: click.Context) -> Optional[PackageManager]:
    """Backend for this host, selected once per invocation."""
    if "backend" not in ctx.obj:
        config = _config(ctx)
        overrides = {name: config.backend_config(name) for name in MANAGER_NAMES.values()}
        ctx.obj["backend"] = select_backend(config=overrides)
    return ctx.obj["backend"]


def _require_ready(ctx: click.Context) -> PackageManager:
    """Environment gate for install, uninstall, refresh and search."""
    backend = _backend(ctx)
    report = check_environment(backend)
    if not report.ready:
        click.secho("Environment check failed:", fg="red", bold=True)
        for detail in report.details:
            click.echo(f"  - {detail}")
        click.secho("Please fix environment issues before installation/search.", fg="yellow")
        sys.exit(1)

    config = _config(ctx)
    if not config.get_bool("env_checked"):
        config.set("env_checked", True)
        try:
            config.save()
        except OSError as e:
            logger.warning(f"Could not persist env_checked: {e}")
    return backend


def _requests_from(ctx: click.Context, package_ids: tuple[str, ...]) -> list[InstallRequest]:
    if package_ids:
        return [InstallRequest.from_id(pid) for pid in package_ids]
    requests = _config(ctx).get_software_list()
    if not requests:
        click.secho("No packages configured. Add some with 'sis config add' or 'sis search'.", fg="yellow")
        sys.exit(1)
    return requests


def _run_batch(ctx: click.Context, requests: list[InstallRequest], action: str, parallel: Optional[bool]) -> None:
    backend = _require_ready(ctx)
    if parallel is None:
        parallel = False

    orchestrator = InstallOrchestrator(backend, action=action)
    try:
        orchestrator.start(requests, parallel=parallel)
    except ConcurrencyNotSupportedError as e:
        click.secho(f"❌ {e}", fg="red")
        click.echo("   Re-run with --sequential.")
        sys.exit(2)

    title = "Installing" if action == INSTALL else "Uninstalling"
    mode = "in parallel" if parallel else "one at a time"
    click.secho(f"{title} {len(requests)} package(s) with {backend.name} {mode}", fg="cyan", bold=True)
    click.echo()

    summary = watch_batch(orchestrator)
    if not summary.finished:
        sys.exit(130)
    if summary.failed:
        sys.exit(1)


# ── Root ────────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Use specified config file.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.version_option(__version__, prog_name="sis")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """SwiftInstall: install your software list with the native package manager."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        ctx.obj["config"] = SoftwareConfig(config_path)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── Install / uninstall ─────────────────────────────────────────


@cli.command()
@click.argument("package_ids", nargs=-1)
@click.option("--parallel/--sequential", default=None, help="Run up to 4 operations at once.")
@click.pass_context
def install(ctx: click.Context, package_ids: tuple[str, ...], parallel: Optional[bool]) -> None:
    """Install packages from config, or the given IDs."""
    _run_batch(ctx, _requests_from(ctx, package_ids), INSTALL, parallel)


@cli.command()
@click.argument("package_ids", nargs=-1)
@click.option("--parallel/--sequential", default=None, help="Run up to 4 operations at once.")
@click.pass_context
def uninstall(ctx: click.Context, package_ids: tuple[str, ...], parallel: Optional[bool]) -> None:
    """Uninstall packages from config, or the given IDs."""
    _run_batch(ctx, _requests_from(ctx, package_ids), UNINSTALL, parallel)


@cli.command("uninstall-all")
@click.pass_context
def uninstall_all(ctx: click.Context) -> None:
    """Uninstall every configured package."""
    _run_batch(ctx, _requests_from(ctx, ()), UNINSTALL, False)


@cli.command()
@click.argument("file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--parallel/--sequential", default=None,
              help="Default: parallel when the package manager allows it.")
@click.pass_context
def batch(ctx: click.Context, file: Optional[Path], parallel: Optional[bool]) -> None:
    """Batch install from FILE or from config."""
    config = _config(ctx)
    if file:
        try:
            config.import_from_file(file)
        except (OSError, ValueError) as e:
            click.secho(f"❌ Failed to load file: {e}", fg="red")
            sys.exit(1)

    backend = _backend(ctx)
    if parallel is None:
        parallel = backend is not None and backend.supports_concurrency
    _run_batch(ctx, _requests_from(ctx, ()), INSTALL, parallel)


# ── Search / list / status ──────────────────────────────────────


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str) -> None:
    """Search for packages."""
    backend = _require_ready(ctx)
    try:
        results = backend.search(query)
    except BackendError as e:
        click.secho(f"❌ Search failed: {e}", fg="red")
        sys.exit(1)

    if not results:
        click.secho(f"No results found for: {query}", fg="yellow")
        return

    click.secho(f"Found {len(results)} results", fg="cyan")
    print_table(
        ["Name", "ID", "Version", "Source"],
        [26, 34, 12, 8],
        [[p.name, p.display_id, p.version or "", p.source or p.publisher or backend.name] for p in results],
    )


@cli.command("list")
@click.pass_context
def list_packages(ctx: click.Context) -> None:
    """List configured packages."""
    packages = _config(ctx).get_software_list()
    if not packages:
        click.secho("No packages configured.", fg="yellow")
        return
    print_table(
        ["#", "Name", "ID", "Category"],
        [4, 24, 32, 16],
        [[str(i), p.name, p.package_id, p.category or DEFAULT_CATEGORY] for i, p in enumerate(packages, 1)],
    )
    click.echo()
    click.echo(f"Total: {len(packages)} packages")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show platform, package manager and config status."""
    click.secho("Platform", fg="cyan", bold=True)
    click.echo(f"  OS:   {current_system()}")
    click.echo(f"  Arch: {platform.machine()}")
    click.echo()

    click.secho("Package manager", fg="cyan", bold=True)
    backend = _backend(ctx)
    name = backend.name if backend else "unknown"
    if backend is None or not backend.is_available():
        click.echo(f"  {name}: " + click.style("✗ unavailable", fg="red"))
        click.secho("  Install the package manager for this platform first.", fg="yellow")
    else:
        click.echo(f"  {name}: " + click.style("✓ available", fg="green"))
        version = backend.version()
        if version:
            click.echo(f"  Version: {version}")
        click.echo()
        click.secho("Installed packages", fg="cyan", bold=True)
        try:
            installed = backend.list_installed()
        except BackendError as e:
            click.echo(f"  Error: {e}")
        else:
            click.echo(f"  Total: {len(installed)}")
            for package in installed[:STATUS_LIST_LIMIT]:
                suffix = f" ({package.version})" if package.version else ""
                click.echo(f"    • {package.name or package.id}{suffix}")
            if len(installed) > STATUS_LIST_LIMIT:
                click.echo(f"    ... and {len(installed) - STATUS_LIST_LIMIT} more packages")
    click.echo()

    config = _config(ctx)
    click.secho("Configuration", fg="cyan", bold=True)
    click.echo(f"  Config path: {config.config_path}")
    click.echo(f"  Configured packages: {len(config.get_software_list())}")


# ── Maintenance ─────────────────────────────────────────────────


@cli.command()
@click.pass_context
def refresh(ctx: click.Context) -> None:
    """Refresh the package manager's metadata."""
    backend = _require_ready(ctx)
    try:
        backend.refresh_metadata()
    except BackendError as e:
        click.secho(f"⚠️  Refresh finished with errors: {e}", fg="yellow")
        sys.exit(1)
    click.secho("✓ Package manager metadata is up to date", fg="green")


@cli.command()
def update() -> None:
    """Check for a newer SwiftInstall release."""
    result = check_for_update()
    click.echo(f"Current version: {result.current_version}")
    if result.error_message:
        click.secho(f"⚠️  Update check failed: {result.error_message}", fg="yellow")
        click.echo("Check https://github.com/cgartlab/SwiftInstall/releases manually.")
        return
    click.echo(f"Latest version:  {result.latest_version}")
    if result.update_available:
        click.secho("→ A new version is available", fg="cyan", bold=True)
        if result.release_url:
            click.echo(f"Download: {result.release_url}")
    else:
        click.secho("✓ You are running the latest version", fg="green")


@cli.command()
@click.option("--format", "-f", "fmt", default="json", type=click.Choice(sorted(FORMATS)),
              help="Export format.")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write to file instead of stdout.")
@click.pass_context
def export(ctx: click.Context, fmt: str, output: Optional[Path]) -> None:
    """Export the software list as JSON or an install script."""
    packages = _config(ctx).get_software_list()
    if not packages:
        click.secho("No packages configured.", fg="yellow")
        return
    content = export_packages(packages, fmt)
    if output:
        try:
            output.write_text(content, encoding="utf-8")
        except OSError as e:
            click.secho(f"❌ Failed to write file: {e}", fg="red")
            sys.exit(1)
        click.secho(f"✓ Exported to: {output}", fg="green")
    else:
        click.echo(content, nl=False)


@cli.command()
def version() -> None:
    """Show version information."""
    click.secho(f"Version: {__version__}", fg="cyan", bold=True)
    click.echo(f"Python:  {platform.python_version()}")
    click.echo(f"OS/Arch: {current_system()}/{platform.machine()}")


# ── Config ──────────────────────────────────────────────────────


@cli.group("config")
def config_group() -> None:
    """Manage the configured software list."""


@config_group.command("add")
@click.argument("package_id")
@click.option("--name", default=None, help="Display name (default: the ID).")
@click.option("--category", default=DEFAULT_CATEGORY, show_default=True)
@click.pass_context
def config_add(ctx: click.Context, package_id: str, name: Optional[str], category: str) -> None:
    """Add a package to the software list."""
    config = _config(ctx)
    config.add_software(InstallRequest(name=name or package_id, id=package_id, category=category))
    try:
        config.save()
    except OSError as e:
        click.secho(f"❌ Failed to save config: {e}", fg="red")
        sys.exit(1)
    click.secho(f"✓ Added: {name or package_id}", fg="green")


@config_group.command("remove")
@click.argument("number", type=int)
@click.pass_context
def config_remove(ctx: click.Context, number: int) -> None:
    """Remove package NUMBER (as shown by 'sis list')."""
    config = _config(ctx)
    try:
        removed = config.remove_software(number - 1)
    except IndexError:
        click.secho(f"❌ No package #{number}", fg="red")
        sys.exit(1)
    try:
        config.save()
    except OSError as e:
        click.secho(f"❌ Failed to save config: {e}", fg="red")
        sys.exit(1)
    click.secho(f"✓ Removed: {removed.name}", fg="green")


@config_group.command("path")
@click.pass_context
def config_path(ctx: click.Context) -> None:
    """Print the config file location."""
    click.echo(str(_config(ctx).config_path))


def main() -> None:
    cli(obj={})
