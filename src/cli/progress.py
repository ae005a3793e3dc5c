"""
SwiftInstall - Batch Progress Observer
Polls a running orchestrator and reports each item as it finishes.
"""

import logging
import time
from typing import Callable

import click

from backends import InstallResult, InstallStatus
from core.orchestrator import InstallOrchestrator, BatchSummary

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1

STATUS_ICONS = {
    InstallStatus.SUCCESS: ("✓", "green"),
    InstallStatus.FAILED: ("✗", "red"),
    InstallStatus.SKIPPED: ("⊘", "yellow"),
}


def format_result(result: InstallResult) -> str:
    """One styled status line for a finished item."""
    icon, color = STATUS_ICONS[result.status]
    package = result.package
    label = package.name
    if package.id and package.id != package.name:
        label = f"{package.name} ({package.id})"
    line = f"{click.style(icon, fg=color)} {label}"
    if result.status == InstallStatus.SKIPPED:
        line += click.style("  already in desired state", fg="yellow")
    elif result.error_message:
        first_line = result.error_message.strip().splitlines()[0] if result.error_message.strip() else ""
        line += click.style(f"  {first_line}", fg="red")
    return line


def format_summary(summary: BatchSummary) -> str:
    parts = [click.style(f"✓ {summary.success}", fg="green")]
    if summary.failed:
        parts.append(click.style(f"✗ {summary.failed}", fg="red"))
    if summary.skipped:
        parts.append(click.style(f"⊘ {summary.skipped}", fg="yellow"))
    return "  ".join(parts)


def watch_batch(
    orchestrator: InstallOrchestrator,
    interval: float = POLL_INTERVAL,
    echo: Callable[[str], None] = click.echo,
) -> BatchSummary:
    """
    Report a started batch until it finishes.

    Polls the orchestrator every `interval` seconds; each newly finished
    item is echoed once with its position in the batch. Ctrl-C stops
    waiting but cannot recall native processes already running.

    Returns:
        The summary at the time watching stopped.
    """
    reported: set[int] = set()

    def report_new() -> BatchSummary:
        summary = orchestrator.summary()
        for index, result in enumerate(orchestrator.results()):
            if result is None or index in reported:
                continue
            reported.add(index)
            echo(f"[{len(reported)}/{summary.total}] {format_result(result)}")
        return summary

    try:
        while not orchestrator.wait(interval):
            report_new()
    except KeyboardInterrupt:
        summary = report_new()
        remaining = summary.total - summary.completed
        echo(click.style(
            f"Stopped waiting; {remaining} dispatched operation(s) keep running "
            f"until the package manager finishes them.",
            fg="yellow",
        ))
        logger.warning(f"User stopped waiting with {remaining} operations in flight")
        return summary

    summary = report_new()
    echo("")
    echo(format_summary(summary))
    return summary
