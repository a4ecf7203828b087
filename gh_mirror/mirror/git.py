"""
Git Runner — Run the git executable under a per-task deadline.

Output is not captured: git writes straight to the caller's stdout/stderr
so clone and fetch progress stay visible. Only the exit status matters.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import IO, List, Optional, Union

from ..validation import GhMirrorError

logger = logging.getLogger(__name__)

GIT = "git"

Stream = Union[None, int, IO]


class Deadline:
    """A monotonic point in time after which work must stop."""

    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def __repr__(self) -> str:
        return f"Deadline(seconds={self.seconds}, remaining={self.remaining():.3f})"


class GitError(GhMirrorError):
    """A git invocation failed, timed out or could not be started."""

    def __init__(
        self,
        argv: List[str],
        returncode: Optional[int] = None,
        timed_out: bool = False,
        reason: Optional[str] = None,
    ):
        self.argv = argv
        self.returncode = returncode
        self.timed_out = timed_out
        self.reason = reason
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.timed_out:
            return "deadline exceeded"
        if self.reason:
            return f"exec: {self.argv[0]}: {self.reason}"
        return f"exit status {self.returncode}"


def run_git(
    *args: str,
    deadline: Optional[Deadline] = None,
    stdout: Stream = None,
    stderr: Stream = None,
    git: str = GIT,
) -> None:
    """
    Run ``git <args>`` and wait for it to exit.

    Streams default to the parent's own stdout/stderr. If the deadline
    passes while git is running the process is killed.

    Raises:
        GitError: On a non-zero exit, a missing executable, or an
            expired deadline
    """
    argv = [git, *args]

    timeout: Optional[float] = None
    if deadline is not None:
        if deadline.expired:
            raise GitError(argv, timed_out=True)
        timeout = max(deadline.remaining(), 0.0)

    logger.debug(f"[mirror-git] Running: {' '.join(argv)}")

    try:
        proc = subprocess.Popen(argv, stdout=stdout, stderr=stderr)
    except OSError as e:
        raise GitError(argv, reason=e.strerror or str(e)) from e

    try:
        returncode = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
        logger.debug(f"[mirror-git] Killed after deadline: {' '.join(argv)}")
        raise GitError(argv, timed_out=True)

    if returncode != 0:
        raise GitError(argv, returncode=returncode)
