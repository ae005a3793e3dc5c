"""
SwiftInstall - Install Orchestrator
Runs a batch of installs or uninstalls against one backend, sequentially
or on a bounded worker pool, while observers poll live progress.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Optional

from backends import (
    PackageManager,
    PackageInfo,
    InstallResult,
    InstallStatus,
    PackageManagerError,
    UnsupportedPlatformError,
    ConcurrencyNotSupportedError,
    BackendExecutionError,
    UnexpectedFaultError,
)
from core.config import InstallRequest
from core.selector import current_system

logger = logging.getLogger(__name__)

INSTALL = "install"
UNINSTALL = "uninstall"

MAX_WORKERS = 4


@dataclass(frozen=True)
class BatchSummary:
    """Aggregate view of a batch at one instant."""
    total: int
    completed: int
    success: int
    failed: int
    skipped: int

    @property
    def fraction(self) -> float:
        """Completed share of the batch, 1.0 for an empty batch."""
        if self.total == 0:
            return 1.0
        return self.completed / self.total

    @property
    def finished(self) -> bool:
        return self.completed == self.total


class InstallOrchestrator:
    """
    Drives one batch of backend operations.

    Result slot i always belongs to request i, whatever order the items
    finish in. Write-back and every read share a single lock, so a
    progress observer can poll from another thread at any time.

    An instance runs exactly one batch and is then discarded.
    """

    def __init__(
        self,
        backend: Optional[PackageManager],
        action: str = INSTALL,
        max_workers: int = MAX_WORKERS,
    ):
        """
        Initialize the orchestrator.

        Args:
            backend: Backend from select_backend(); None fails every item.
            action: 'install' or 'uninstall'.
            max_workers: Parallel-mode bound on in-flight backend calls.
        """
        if action not in (INSTALL, UNINSTALL):
            raise ValueError(f"unknown action: {action}")
        self.backend = backend
        self.action = action
        self.max_workers = max_workers

        self._lock = threading.Lock()
        self._requests: list[InstallRequest] = []
        self._results: list[Optional[InstallResult]] = []
        self._counts = {status: 0 for status in InstallStatus}
        self._started = False
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Running

    def run(self, requests: list[InstallRequest], parallel: bool = False) -> list[InstallResult]:
        """
        Run a batch and block until every item has finished.

        Returns:
            One InstallResult per request, in submission order.

        Raises:
            ConcurrencyNotSupportedError: parallel=True on a backend that
                cannot run concurrently. Nothing is dispatched.
        """
        self._prepare(requests, parallel)
        self._dispatch(parallel)
        return self.results()

    def start(self, requests: list[InstallRequest], parallel: bool = False) -> None:
        """Dispatch a batch on a background thread and return at once."""
        self._prepare(requests, parallel)
        self._thread = threading.Thread(
            target=self._dispatch,
            args=(parallel,),
            name="sis-orchestrator",
        )
        self._thread.start()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join a started batch. Returns False if timeout elapsed first."""
        return self._done.wait(timeout)

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def _prepare(self, requests: list[InstallRequest], parallel: bool) -> None:
        with self._lock:
            if self._started:
                raise RuntimeError("an orchestrator runs a single batch")
            if parallel and self.backend is not None and not self.backend.supports_concurrency:
                raise ConcurrencyNotSupportedError(self.backend.name)
            self._started = True
            self._requests = list(requests)
            self._results = [None] * len(self._requests)

    def _dispatch(self, parallel: bool) -> None:
        total = len(self._requests)
        mode = "parallel" if parallel else "sequential"
        logger.info(f"Starting {self.action} batch of {total} packages ({mode})")
        try:
            if self.backend is None:
                self._fail_unsupported()
            elif parallel:
                self._run_parallel()
            else:
                self._run_sequential()
        finally:
            self._done.set()
            summary = self.summary()
            logger.info(
                f"Finished {self.action} batch: {summary.success} succeeded, "
                f"{summary.failed} failed, {summary.skipped} skipped"
            )

    def _run_sequential(self) -> None:
        for index in range(len(self._requests)):
            try:
                result = self._execute(index)
            except KeyboardInterrupt:
                raise
            except BaseException as e:
                result = self._fault_result(index, e)
            self._record(index, result)

    def _run_parallel(self) -> None:
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="sis-worker") as executor:
            futures = {
                executor.submit(self._execute, index): index
                for index in range(len(self._requests))
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    result = future.result()
                except KeyboardInterrupt:
                    raise
                except BaseException as e:
                    result = self._fault_result(index, e)
                self._record(index, result)

    def _fail_unsupported(self) -> None:
        system = current_system()
        for index in range(len(self._requests)):
            self._record(index, InstallResult.failed(
                self._package_for(index),
                UnsupportedPlatformError(system),
            ))

    # ------------------------------------------------------------------
    # Per-item work

    def _package_for(self, index: int) -> PackageInfo:
        request = self._requests[index]
        return PackageInfo(name=request.name or request.package_id, id=request.package_id)

    def _execute(self, index: int) -> InstallResult:
        """Run the backend call for one request."""
        request = self._requests[index]
        package = self._package_for(index)
        if not package.id:
            return InstallResult.failed(
                package,
                PackageManagerError(f"no package id configured for {request.name!r}"),
            )

        if self.action == INSTALL:
            result = self.backend.install(package.id)
        else:
            result = self.backend.uninstall(package.id)

        if result is None:
            return InstallResult.failed(
                package,
                BackendExecutionError(f"{self.action} of {package.id} returned an empty result"),
            )
        # Keep the configured display name
        if request.name and result.package.name != request.name:
            result = replace(result, package=replace(result.package, name=request.name))
        return result

    def _fault_result(self, index: int, exc: BaseException) -> InstallResult:
        package = self._package_for(index)
        logger.exception(f"Unexpected fault while processing {package.display_id}")
        return InstallResult.failed(package, UnexpectedFaultError(exc))

    def _record(self, index: int, result: InstallResult) -> None:
        with self._lock:
            if self._results[index] is not None:
                logger.warning(f"Result for item {index} already recorded, keeping the first")
                return
            self._results[index] = result
            self._counts[result.status] += 1

        if result.status == InstallStatus.FAILED:
            logger.error(f"{self.action} {result.package.display_id} failed: {result.error_message}")
        else:
            logger.info(f"{self.action} {result.package.display_id}: {result.status.value}")

    # ------------------------------------------------------------------
    # Observation

    @property
    def requests(self) -> list[InstallRequest]:
        return list(self._requests)

    def summary(self) -> BatchSummary:
        """Counts for the batch so far."""
        with self._lock:
            return BatchSummary(
                total=len(self._results),
                completed=sum(self._counts.values()),
                success=self._counts[InstallStatus.SUCCESS],
                failed=self._counts[InstallStatus.FAILED],
                skipped=self._counts[InstallStatus.SKIPPED],
            )

    def results(self) -> list[Optional[InstallResult]]:
        """Copy of the result slots; None for items still running."""
        with self._lock:
            return list(self._results)

    def result(self, index: int) -> Optional[InstallResult]:
        with self._lock:
            return self._results[index]
