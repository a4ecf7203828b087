"""
Synchronizer — Create or update one local mirror.

A repository whose directory is missing gets cloned with --mirror; one
whose directory exists gets `git remote update`. The directory's existence
is the only record of what has been mirrored before.

After either step the sidecar files git-daemon reads are refreshed:

    <target>/<name>/description           repository description + newline
    <target>/<name>/git-daemon-export-ok  empty; allows git-daemon to serve it

Sidecar failures are logged and never fail the repository.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Callable, Optional

from ..models import RepositoryDescriptor
from ..validation import GhMirrorError
from .git import Deadline, run_git

logger = logging.getLogger(__name__)

DESCRIPTION_FILE = "description"
EXPORT_OK_FILE = "git-daemon-export-ok"

ACTION_CLONE = "clone"
ACTION_UPDATE = "update"

GitRunner = Callable[..., None]


class SyncError(GhMirrorError):
    """A repository could not be synchronized."""

    def __init__(self, clone_url: str, stage: str, message: str):
        self.clone_url = clone_url
        self.stage = stage
        super().__init__(message)


def repo_dir(target_dir: Path, clone_url: str) -> Path:
    """Local mirror directory for a clone URL: target_dir/basename(url)."""
    return Path(target_dir) / posixpath.basename(clone_url)


class Synchronizer:
    """Synchronizes repositories into a target directory."""

    def __init__(self, target_dir: Path, runner: GitRunner = run_git):
        self.target_dir = Path(target_dir)
        self.runner = runner

    def repo_dir(self, repo: RepositoryDescriptor) -> Path:
        return repo_dir(self.target_dir, repo.clone_url)

    def plan(self, repo: RepositoryDescriptor) -> str:
        """Return the action sync() would take, without running it."""
        return ACTION_UPDATE if self._exists(repo, self.repo_dir(repo)) else ACTION_CLONE

    def sync(self, repo: RepositoryDescriptor, deadline: Optional[Deadline] = None) -> str:
        """
        Clone or update the repository, then refresh its sidecar files.

        Returns:
            "cloned" or "updated"

        Raises:
            SyncError: If the directory cannot be stat'ed or git fails
        """
        path = self.repo_dir(repo)
        url = repo.clone_url

        if not self._exists(repo, path):
            logger.info(f"[mirror-sync] Cloning {url}", extra={"repo": url, "stage": "clone"})
            try:
                self.runner("clone", "--mirror", url, str(path), deadline=deadline)
            except GhMirrorError as e:
                raise SyncError(url, "clone", f"failed to clone repository {url!r}: {e}") from e
            action = "cloned"
        else:
            logger.info(f"[mirror-sync] Updating {url}", extra={"repo": url, "stage": "update"})
            try:
                self.runner("--git-dir", str(path), "remote", "update", deadline=deadline)
            except GhMirrorError as e:
                raise SyncError(url, "update", f"failed to update repository {url!r}: {e}") from e
            action = "updated"

        self._write_sidecars(repo, path)
        return action

    def _exists(self, repo: RepositoryDescriptor, path: Path) -> bool:
        try:
            path.stat()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise SyncError(repo.clone_url, "stat", f"failed to stat {str(path)!r}: {e}") from e
        return True

    def _write_sidecars(self, repo: RepositoryDescriptor, path: Path) -> None:
        description = repo.description or ""
        try:
            (path / DESCRIPTION_FILE).write_text(description + "\n", encoding="utf-8")
        except OSError as e:
            logger.warning(
                f"[mirror-sync] Failed to write description for {str(path)!r}: {e}",
                extra={"repo": repo.clone_url, "stage": "description"},
            )

        try:
            (path / EXPORT_OK_FILE).write_bytes(b"")
        except OSError as e:
            logger.warning(
                f"[mirror-sync] Failed to write export file for {str(path)!r}: {e}",
                extra={"repo": repo.clone_url, "stage": "export"},
            )
