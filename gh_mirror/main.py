"""
gh-mirror — CLI Entry Point

Usage:
    gh-mirror USER
    gh-mirror --dir /srv/git --timeout 5m USER
    gh-mirror --dry-run --protocol ssh USER
"""

from __future__ import annotations

# Load .env before anything reads the environment
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import logging
from typing import List, Optional

import click

from . import __version__
from .config import DEFAULT_TIMEOUT, PROTOCOLS, MirrorSettings, parse_duration
from .logging_config import setup_logging
from .mirror.coordinator import report_errors, sync_all
from .mirror.lister import ListingError, list_repositories
from .mirror.synchronizer import Synchronizer
from .validation import ConfigurationError, validate_target_dir

logger = logging.getLogger(__name__)


class DurationParamType(click.ParamType):
    """Click type for durations like "90s", "1m30s" or "2h"."""

    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            return float(value)
        try:
            return parse_duration(value)
        except ConfigurationError as e:
            self.fail(e.message, param, ctx)


DURATION = DurationParamType()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("user")
@click.option(
    "-d", "--dir", "target_dir",
    default=".", show_default=True, metavar="DIR",
    help="Target directory",
)
@click.option(
    "-t", "--timeout",
    type=DURATION, default=None, metavar="DURATION",
    help=f"Per-repository timeout (default: $GH_MIRROR_TIMEOUT or {DEFAULT_TIMEOUT})",
)
@click.option(
    "-w", "--workers",
    type=click.IntRange(min=1), default=None,
    help="Repositories synchronized at once (default: $GH_MIRROR_WORKERS or 8)",
)
@click.option("--token", default=None, help="GitHub API token (default: $GITHUB_TOKEN)")
@click.option("--api-url", default=None, help="GitHub API base URL (default: $GH_MIRROR_API_URL)")
@click.option(
    "--protocol",
    type=click.Choice(PROTOCOLS), default="https", show_default=True,
    help="Clone URL flavour",
)
@click.option("--dry-run", is_flag=True, help="Show what would be cloned or updated")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None, help="Log level (default: $LOG_LEVEL or INFO)",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]), default=None,
    help="Log format (default: $LOG_FORMAT or text)",
)
@click.version_option(__version__, prog_name="gh-mirror")
def cli(
    user: str,
    target_dir: str,
    timeout: Optional[float],
    workers: Optional[int],
    token: Optional[str],
    api_url: Optional[str],
    protocol: str,
    dry_run: bool,
    log_level: Optional[str],
    log_format: Optional[str],
) -> None:
    """Mirror the public, non-fork repositories of USER into DIR."""
    setup_logging(log_level, log_format)

    try:
        settings = MirrorSettings.from_env(
            user,
            target_dir=validate_target_dir(Path(target_dir)),
            timeout=timeout,
            workers=workers,
            token=token,
            api_url=api_url,
            protocol=protocol,
            dry_run=dry_run,
        )
    except ConfigurationError as e:
        logger.error(str(e))
        raise SystemExit(1)

    try:
        repos = list_repositories(
            settings.user,
            token=settings.token,
            api_url=settings.api_url,
            protocol=settings.protocol,
        )
    except ListingError as e:
        logger.error(f"failed to fetch repository list: {e}")
        raise SystemExit(1)

    # Mirrors whose repository vanished upstream are left in place
    synchronizer = Synchronizer(settings.target_dir)
    report = sync_all(
        repos,
        synchronizer,
        timeout=settings.timeout,
        workers=settings.workers,
        dry_run=settings.dry_run,
    )

    if report.ok:
        return

    report_errors(report)
    raise SystemExit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """Console script entry point; usage errors exit 1."""
    try:
        rc = cli.main(args=argv, prog_name="gh-mirror", standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        raise SystemExit(1)
    except click.ClickException as e:
        e.show()
        raise SystemExit(1)
    raise SystemExit(rc or 0)


if __name__ == "__main__":
    main()
