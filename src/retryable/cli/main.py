"""Retryable CLI entry point: Click group with subcommands."""

import click

from retryable import __version__


@click.group()
@click.version_option(version=__version__, prog_name="retryable")
def cli() -> None:
    """Retryable - run commands under a retry policy."""


# Import and register subcommands
from retryable.cli.run import run  # noqa: E402

cli.add_command(run)
