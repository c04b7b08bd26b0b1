"""CLI command: retryable run -- execute a command with retries."""

from __future__ import annotations

import json
import logging
import subprocess
import sys
import threading
from pathlib import Path
from typing import Any

import click

from retryable.engine import RetryEngine
from retryable.errors import AbortError, ConfigurationError, MaxAttemptsError
from retryable.hooks import AttemptRecorder
from retryable.types.config import AbortController, RetryPolicy, normalize_options
from retryable.types.enums import JitterType

DEFAULT_MAX_ATTEMPTS = 3
EXIT_ABORTED = 130
EXIT_CONFIG = 2


class CommandFailedError(Exception):
    """The command exited with a non-zero status."""

    def __init__(self, command: tuple[str, ...], returncode: int) -> None:
        super().__init__(f"{command[0]} exited with status {returncode}")
        self.command = command
        self.returncode = returncode


def _run_command(command: tuple[str, ...]) -> int:
    completed = subprocess.run(list(command))
    if completed.returncode != 0:
        raise CommandFailedError(command, completed.returncode)
    return completed.returncode


def _load_options(config_path: str | None) -> dict[str, Any]:
    if config_path is None:
        return {}
    data = json.loads(Path(config_path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path}: expected a JSON object")
    return normalize_options(data)


def _exit_code_for(error: BaseException) -> int:
    if isinstance(error, CommandFailedError):
        return error.returncode
    if isinstance(error, FileNotFoundError):
        return 127
    return 1


def _echo_retry(retry_index: int, error: Exception, delay_ms: float) -> None:
    click.echo(
        f"Attempt {retry_index + 1} failed: {error}; retrying in {delay_ms:.0f}ms",
        err=True,
    )


@click.command(context_settings={"allow_interspersed_args": False})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--max-attempts", type=int, default=None, help="Retries after the first attempt")
@click.option("--back-off", type=float, default=None, help="Base delay in milliseconds")
@click.option(
    "--policy",
    "back_off_policy",
    type=click.Choice(["fixed", "exponential"]),
    default=None,
    help="Backoff policy",
)
@click.option("--max-interval", type=float, default=None, help="Exponential delay cap (ms)")
@click.option("--multiplier", type=float, default=None, help="Exponential growth factor")
@click.option(
    "--jitter",
    type=click.Choice([t.value for t in JitterType]),
    default=None,
    help="Jitter applied to each delay",
)
@click.option(
    "--retry-on",
    type=int,
    multiple=True,
    help="Only retry these exit codes (repeatable)",
)
@click.option("--deadline", type=float, default=None, help="Abort pending retries after N seconds")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with retry options",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log retry decisions")
def run(
    command: tuple[str, ...],
    max_attempts: int | None,
    back_off: float | None,
    back_off_policy: str | None,
    max_interval: float | None,
    multiplier: float | None,
    jitter: str | None,
    retry_on: tuple[int, ...],
    deadline: float | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Run COMMAND, retrying while it exits with a non-zero status.

    Options given on the command line override those read from --config.
    """
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    try:
        options = _load_options(config_path)
    except (ConfigurationError, ValueError) as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(EXIT_CONFIG)

    if max_attempts is not None:
        options["max_attempts"] = max_attempts
    options.setdefault("max_attempts", DEFAULT_MAX_ATTEMPTS)
    if back_off is not None:
        options["back_off"] = back_off
    if back_off_policy is not None:
        options["back_off_policy"] = back_off_policy
    if max_interval is not None or multiplier is not None:
        exponential = dict(options.get("exponential_option") or {})
        if max_interval is not None:
            exponential["max_interval"] = max_interval
        if multiplier is not None:
            exponential["multiplier"] = multiplier
        options["exponential_option"] = exponential
    if jitter is not None:
        options["use_jitter"] = jitter != JitterType.NONE
        options["jitter_type"] = jitter
    if retry_on:
        codes = frozenset(retry_on)
        options["do_retry"] = (
            lambda e: isinstance(e, CommandFailedError) and e.returncode in codes
        )

    controller = AbortController()
    recorder = AttemptRecorder(forward=_echo_retry)
    options["signal"] = controller.signal
    options["on_retry"] = recorder.on_retry

    try:
        policy = RetryPolicy.from_options(options)
    except ConfigurationError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(EXIT_CONFIG)

    timer: threading.Timer | None = None
    if deadline is not None:
        timer = threading.Timer(deadline, controller.abort)
        timer.daemon = True
        timer.start()

    try:
        RetryEngine(policy).execute(_run_command, None, (command,))
    except AbortError:
        click.echo("Aborted: deadline reached", err=True)
        sys.exit(EXIT_ABORTED)
    except MaxAttemptsError as exc:
        click.echo(
            f"Giving up after {exc.retry_count} retries: {exc.original_error}",
            err=True,
        )
        sys.exit(_exit_code_for(exc.original_error))
    except (CommandFailedError, OSError) as exc:
        click.echo(f"Not retrying: {exc}", err=True)
        sys.exit(_exit_code_for(exc))
    finally:
        if timer is not None:
            timer.cancel()

    if recorder.attempts:
        click.echo(
            f"Succeeded after {len(recorder.attempts)} retries "
            f"({recorder.total_delay_ms:.0f}ms spent waiting)",
            err=True,
        )
