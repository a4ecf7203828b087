"""
Mirror Coordinator — Synchronize every repository concurrently.

Each repository is one task on a bounded thread pool. A task gets its own
deadline when it starts running, so time spent queued behind other tasks
does not count against it. Failures are collected, never raised: one
repository failing or timing out leaves its siblings alone.

## Usage

    from gh_mirror.mirror.coordinator import sync_all, report_errors

    report = sync_all(repos, Synchronizer(target_dir), timeout=60)
    if not report.ok:
        report_errors(report)
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List

from ..config import DEFAULT_WORKERS
from ..models import RepositoryDescriptor, SyncReport, SyncResult
from .git import Deadline
from .synchronizer import Synchronizer

logger = logging.getLogger(__name__)


class _Collector:
    """Lock-guarded, append-only results and errors."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.results: List[SyncResult] = []
        self.errors: List[str] = []

    def add(self, result: SyncResult) -> None:
        with self._lock:
            self.results.append(result)
            if result.error is not None:
                self.errors.append(result.error)


def _sync_one(
    repo: RepositoryDescriptor,
    synchronizer: Synchronizer,
    timeout: float,
    dry_run: bool,
) -> SyncResult:
    started = time.monotonic()
    deadline = Deadline(timeout)

    try:
        if dry_run:
            action = synchronizer.plan(repo)
            logger.info(f"[mirror] Would {action} {repo.clone_url} → {synchronizer.repo_dir(repo)}")
            status = "planned-clone" if action == "clone" else "planned-update"
        else:
            status = synchronizer.sync(repo, deadline)
    except Exception as e:
        result = SyncResult.failure(repo.clone_url, str(e), time.monotonic() - started)
        logger.debug(
            f"[mirror] {repo.clone_url} failed after {result.duration_seconds:.1f}s: {e}",
            exc_info=True,
            extra={"repo": repo.clone_url},
        )
        return result

    result = SyncResult.success(repo.clone_url, status, time.monotonic() - started)
    if not dry_run:
        logger.info(
            f"[mirror] {repo.clone_url} {status} in {result.duration_seconds:.1f}s",
            extra={"repo": repo.clone_url, "stage": "done"},
        )
    return result


def sync_all(
    repos: Iterable[RepositoryDescriptor],
    synchronizer: Synchronizer,
    timeout: float,
    workers: int = DEFAULT_WORKERS,
    dry_run: bool = False,
) -> SyncReport:
    """
    Synchronize all repositories and wait for every task to finish.

    Args:
        repos: Repositories to mirror
        synchronizer: Performs the per-repository clone/update
        timeout: Seconds each repository may take, counted from its start
        workers: Maximum number of repositories in flight
        dry_run: Only report what would be done

    Returns:
        Report with one result per repository and the ordered error list
    """
    repos = list(repos)
    collector = _Collector()

    if not repos:
        logger.info("[mirror] No repositories to synchronize")
        return SyncReport()

    logger.info(
        f"[mirror] Synchronizing {len(repos)} repositories "
        f"into {synchronizer.target_dir} ({workers} workers, {timeout:g}s timeout)"
    )

    def _task(repo: RepositoryDescriptor) -> None:
        collector.add(_sync_one(repo, synchronizer, timeout, dry_run))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mirror-sync") as executor:
        futures = [executor.submit(_task, repo) for repo in repos]
    # Leaving the block joins every worker
    for future in futures:
        future.result()

    report = SyncReport(results=collector.results, errors=collector.errors)
    logger.info(f"[mirror] Synced {report.succeeded}/{len(repos)} repositories")
    return report


def report_errors(report: SyncReport) -> None:
    """Log every collected error."""
    if report.ok:
        return
    logger.error("The following errors occurred:")
    for error in report.errors:
        logger.error(f"- {error}")
