"""
Shared fixtures for mirror tests.

Provides repository descriptors and a recording git runner so the
synchronizer and coordinator can be exercised without a network or a
real git binary.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pytest

from gh_mirror.mirror.git import Deadline, GitError
from gh_mirror.models import RepositoryDescriptor


class GitRecorder:
    """
    Stand-in for run_git that records every call.

    A clone creates the target directory, like git would. Directories whose
    name is in ``fail_on`` make the call fail with exit status 128.
    """

    def __init__(self, fail_on: Iterable[str] = ()):
        self.fail_on = set(fail_on)
        self.calls: List[Tuple[str, ...]] = []
        self.deadlines: List[Optional[Deadline]] = []
        self._lock = threading.Lock()

    def __call__(self, *args: str, deadline: Optional[Deadline] = None) -> None:
        with self._lock:
            self.calls.append(args)
            self.deadlines.append(deadline)

        target = Path(args[3] if args[0] == "clone" else args[1])
        if target.name in self.fail_on:
            raise GitError(["git", *args], returncode=128)
        if args[0] == "clone":
            target.mkdir(parents=True)

    def commands(self) -> List[str]:
        """Subcommand of each call: "clone" or "remote"."""
        return [args[0] if args[0] == "clone" else args[2] for args in self.calls]


def _make_repo(name: str, description: Optional[str] = "A repository") -> RepositoryDescriptor:
    return RepositoryDescriptor(
        name=name,
        clone_url=f"https://github.com/octo/{name}.git",
        description=description,
    )


@pytest.fixture
def make_repo():
    """Factory for descriptors with realistic clone URLs."""
    return _make_repo


@pytest.fixture
def recorder() -> GitRecorder:
    return GitRecorder()


@pytest.fixture
def failing_recorder():
    """Factory for recorders that fail on the given directory names."""
    return GitRecorder


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Empty mirror target directory."""
    target = tmp_path / "mirrors"
    target.mkdir()
    return target


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the caller's GitHub/mirror settings out of tests."""
    for var in (
        "GITHUB_TOKEN",
        "GH_MIRROR_API_URL",
        "GH_MIRROR_WORKERS",
        "GH_MIRROR_TIMEOUT",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(var, raising=False)
