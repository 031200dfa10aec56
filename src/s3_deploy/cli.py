"""Command line entry point: ``s3-deploy``."""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING, Any

import click
from dotenv import dotenv_values, find_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from s3_deploy import __version__
from s3_deploy._config import DeployConfig, MaintenancePair
from s3_deploy._errors import ConfigError
from s3_deploy._events import DeployListener
from s3_deploy._orchestrator import deploy

if TYPE_CHECKING:
    from s3_deploy._models import FileDescriptor, UploadResult

APP_NAME = "s3-deploy"
LOG_FORMAT = "%(message)s"

EXIT_FAILED = 1
EXIT_CONFIG = 2

console = Console(stderr=False)


def setup_logging(verbose: bool = False, debug: bool = False, quiet: bool = False) -> None:
    """Route log records through rich.

    :param verbose: INFO level.
    :param debug: DEBUG level with timestamps and source paths.
    :param quiet: Drop every record at the root logger.
    """
    if quiet:
        level = logging.CRITICAL + 1
    elif debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click],
            )
        ],
        force=True,
    )
    for noisy in ("boto3", "botocore", "s3transfer", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class ConsoleListener(DeployListener):
    """Prints deploy progress in the classic one-line-per-file format."""

    def __init__(self, output: Console, verbose: bool = False) -> None:
        self._console = output
        self._verbose = verbose

    def on_start(self, config: DeployConfig) -> None:
        target = config.bucket or config.backend_options.get("root", "")
        self._console.print(f"Start upload files to [bold]{escape(str(target))}[/bold]")

    def on_upload(self, file: FileDescriptor, percent: float, result: UploadResult) -> None:
        self._console.print(
            f" {percent:3.0f}% {escape(file.full_path)} -> {escape(result.remote_key)}",
            highlight=False,
            soft_wrap=True,
        )
        if self._verbose:
            self._console.print(f" DEBUG> {escape(repr(result))}\n", style="dim", highlight=False, soft_wrap=True)

    def on_error(self, error: Exception) -> None:
        self._console.print(f"\n[red]Error:[/red] {escape(str(error))}")

    def on_complete(self, total_uploaded: int) -> None:
        self._console.print(f"\n {total_uploaded} files uploaded")


def read_environ(env_file: str | None = None) -> dict[str, str]:
    """Variables from ``env_file`` (or a discovered ``.env``) under the process environment.

    The process environment wins and is left untouched.
    """
    values = dotenv_values(env_file or find_dotenv(usecwd=True))
    environ = {key: value for key, value in values.items() if value is not None}
    environ.update(os.environ)
    return environ


def build_config(environ: dict[str, str], **overrides: Any) -> DeployConfig:
    """Environment first, then every non-empty command line override."""
    return DeployConfig.from_env(environ).merged(**overrides)


@click.command(name=APP_NAME)
@click.option("--env-file", type=click.Path(dir_okay=False), help="Read variables from this .env file.")
@click.option("--bucket", help="Destination bucket (S3_BUCKET).")
@click.option("--local-dir", type=click.Path(file_okay=False), help="Source directory (S3_LOCAL_DIR).")
@click.option("--remote-dir", help="Remote key prefix (S3_PREFIX).")
@click.option("--max-async-streams", type=click.IntRange(min=1), help="Concurrent uploads.")
@click.option("--gzip-extensions", help="Comma-separated extensions to gzip, e.g. 'html,css,js'.")
@click.option("--gzip-level", type=click.IntRange(0, 9), help="Gzip compression level.")
@click.option("--cloudfront-distribution", help="CloudFront distribution to invalidate.")
@click.option(
    "--maintenance",
    nargs=2,
    metavar="ORIGINAL STUB",
    default=None,
    help="Serve STUB at ORIGINAL's key until everything else is uploaded.",
)
@click.option("--backend", type=click.Choice(["s3", "local"]), help="Storage binding (S3_BACKEND).")
@click.option("--local-root", type=click.Path(file_okay=False), help="Target directory for the local backend.")
@click.option("-v", "--verbose", is_flag=True, help="Print per-object details and INFO logs.")
@click.option("-d", "--debug", is_flag=True, help="Enable debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress logging.")
@click.version_option(__version__, prog_name=APP_NAME)
def cli(
    env_file: str | None,
    bucket: str | None,
    local_dir: str | None,
    remote_dir: str | None,
    max_async_streams: int | None,
    gzip_extensions: str | None,
    gzip_level: int | None,
    cloudfront_distribution: str | None,
    maintenance: tuple[str, str] | None,
    backend: str | None,
    local_root: str | None,
    verbose: bool,
    debug: bool,
    quiet: bool,
) -> None:
    """Upload a directory tree to an S3 bucket.

    Settings come from the environment (over values read from a .env file) and
    are overridden by any option given here.
    """
    setup_logging(verbose=verbose, debug=debug, quiet=quiet)

    try:
        config = build_config(
            read_environ(env_file),
            bucket=bucket,
            local_dir=local_dir,
            remote_dir=remote_dir,
            max_async_streams=max_async_streams,
            gzip_extensions=gzip_extensions,
            gzip_level=gzip_level,
            cloudfront_distribution=cloudfront_distribution,
            maintenance=MaintenancePair(*maintenance) if maintenance else None,
            backend=backend,
            backend_options={"root": local_root} if local_root else None,
            verbose=verbose or None,
        )
        report = deploy(config, ConsoleListener(console, verbose=config.verbose))
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        sys.exit(EXIT_CONFIG)

    if not report.success:
        sys.exit(EXIT_FAILED)


def main() -> None:
    """Main entry point for the console script."""
    try:
        cli(prog_name=APP_NAME)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
