"""
Mirror Configuration — Runtime settings for a mirror run.

Settings come from CLI options, falling back to environment variables:

    GITHUB_TOKEN=ghp_xxxxx              # optional, raises API rate limits
    GH_MIRROR_API_URL=https://api.github.com
    GH_MIRROR_WORKERS=8
    GH_MIRROR_TIMEOUT=1m

Timeouts use Go-style durations: "90s", "1m30s", "2h", "250ms".
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .validation import ConfigurationError, validate_workers

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = "1m"
DEFAULT_WORKERS = 8
PROTOCOLS = ("https", "ssh", "git")

_UNIT_SECONDS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 0.001,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|h|m|s)")


def parse_duration(value: str) -> float:
    """
    Parse a duration such as "1m" or "1h30m" into seconds.

    Raises:
        ConfigurationError: If the value is empty, malformed or not positive
    """
    text = value.strip()
    if not text:
        raise ConfigurationError("empty duration", field="timeout")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ConfigurationError(f"invalid duration {value!r}", field="timeout")
        number, unit = match.groups()
        total += float(number) * _UNIT_SECONDS[unit]
        pos = match.end()

    if total <= 0:
        raise ConfigurationError(f"duration must be positive, got {value!r}", field="timeout")
    return total


def _env_workers() -> int:
    raw = os.environ.get("GH_MIRROR_WORKERS")
    if not raw:
        return DEFAULT_WORKERS
    try:
        workers = int(raw)
    except ValueError:
        raise ConfigurationError(f"not an integer: {raw!r}", field="GH_MIRROR_WORKERS")
    return validate_workers(workers)


@dataclass
class MirrorSettings:
    """Settings for one mirror run."""

    user: str
    target_dir: Path = Path(".")
    timeout: float = 60.0  # seconds per repository
    workers: int = DEFAULT_WORKERS
    token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    protocol: str = "https"
    dry_run: bool = False

    @classmethod
    def from_env(cls, user: str, **overrides) -> "MirrorSettings":
        """
        Build settings from environment variables.

        Keyword overrides that are not None win over the environment, and
        the matching variable is then not read at all.
        """
        timeout = overrides.get("timeout")
        if timeout is None:
            timeout = parse_duration(os.environ.get("GH_MIRROR_TIMEOUT", DEFAULT_TIMEOUT))
        workers = overrides.get("workers")
        if workers is None:
            workers = _env_workers()

        settings = cls(
            user=user,
            timeout=timeout,
            workers=workers,
            token=os.environ.get("GITHUB_TOKEN") or None,
            api_url=os.environ.get("GH_MIRROR_API_URL", DEFAULT_API_URL),
        )

        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(settings, key):
                raise TypeError(f"unknown setting: {key}")
            setattr(settings, key, value)

        settings.validate()
        logger.debug(
            f"Settings: user={settings.user} dir={settings.target_dir} "
            f"timeout={settings.timeout}s workers={settings.workers} "
            f"protocol={settings.protocol} auth={'yes' if settings.token else 'no'}"
        )
        return settings

    def validate(self) -> None:
        """Check values that do not depend on the filesystem."""
        if not self.user:
            raise ConfigurationError("missing account name", field="user")
        if self.timeout <= 0:
            raise ConfigurationError("must be positive", field="timeout")
        validate_workers(self.workers)
        if self.protocol not in PROTOCOLS:
            raise ConfigurationError(
                f"must be one of {', '.join(PROTOCOLS)}", field="protocol"
            )
