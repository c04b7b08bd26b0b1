"""Tests for the retryable CLI."""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

from click.testing import CliRunner

from retryable import __version__
from retryable.cli.main import cli

# Exits with status 3 until it has been run argv[2] times, counting in argv[1].
FLAKY = (
    "import pathlib, sys\n"
    "p = pathlib.Path(sys.argv[1])\n"
    "n = int(p.read_text()) + 1 if p.exists() else 1\n"
    "p.write_text(str(n))\n"
    "sys.exit(0 if n >= int(sys.argv[2]) else 3)\n"
)


def _flaky(counter: Path, succeed_on: int) -> list[str]:
    return [sys.executable, "-c", FLAKY, str(counter), str(succeed_on)]


def _runs(counter: Path) -> int:
    return int(counter.read_text())


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


class TestCLIGroup:
    def test_help_lists_run(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "run" in result.output

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_run_help_shows_options(self) -> None:
        result = CliRunner().invoke(cli, ["run", "--help"])
        assert result.exit_code == 0
        for option in ("--max-attempts", "--back-off", "--policy", "--jitter", "--deadline"):
            assert option in result.output


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------


class TestRunCommand:
    def test_success_first_try(self, tmp_path: Path) -> None:
        counter = tmp_path / "count"
        result = CliRunner().invoke(cli, ["run", "--", *_flaky(counter, 1)])
        assert result.exit_code == 0
        assert _runs(counter) == 1

    def test_retries_until_success(self, tmp_path: Path) -> None:
        counter = tmp_path / "count"
        result = CliRunner().invoke(
            cli, ["run", "--max-attempts", "3", "--", *_flaky(counter, 3)]
        )
        assert result.exit_code == 0
        assert _runs(counter) == 3
        assert "Attempt 1 failed" in result.output
        assert "Succeeded after 2 retries" in result.output

    def test_gives_up_with_last_status(self, tmp_path: Path) -> None:
        counter = tmp_path / "count"
        result = CliRunner().invoke(
            cli, ["run", "--max-attempts", "1", "--", *_flaky(counter, 99)]
        )
        assert result.exit_code == 3
        assert _runs(counter) == 2
        assert "Giving up after 1 retries" in result.output

    def test_retry_on_filters_status(self, tmp_path: Path) -> None:
        counter = tmp_path / "count"
        result = CliRunner().invoke(
            cli, ["run", "--max-attempts", "3", "--retry-on", "4", "--", *_flaky(counter, 2)]
        )
        assert result.exit_code == 3
        assert _runs(counter) == 1
        assert "Not retrying" in result.output

    def test_retry_on_matching_status(self, tmp_path: Path) -> None:
        counter = tmp_path / "count"
        result = CliRunner().invoke(
            cli, ["run", "--max-attempts", "3", "--retry-on", "3", "--", *_flaky(counter, 2)]
        )
        assert result.exit_code == 0
        assert _runs(counter) == 2

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["run", "--max-attempts", "0", "--", str(tmp_path / "no-such-binary")]
        )
        assert result.exit_code == 127

    def test_deadline_aborts_backoff(self, tmp_path: Path) -> None:
        counter = tmp_path / "count"
        start = time.monotonic()
        result = CliRunner().invoke(
            cli,
            [
                "run",
                "--max-attempts", "5",
                "--back-off", "5000",
                "--deadline", "0.5",
                "--",
                *_flaky(counter, 99),
            ],
        )
        assert result.exit_code == 130
        assert "Aborted" in result.output
        assert time.monotonic() - start < 4.0
        assert _runs(counter) == 1

    def test_exponential_with_jitter(self, tmp_path: Path) -> None:
        counter = tmp_path / "count"
        result = CliRunner().invoke(
            cli,
            [
                "run",
                "--max-attempts", "2",
                "--policy", "exponential",
                "--back-off", "10",
                "--max-interval", "20",
                "--jitter", "full",
                "--",
                *_flaky(counter, 3),
            ],
        )
        assert result.exit_code == 0
        assert _runs(counter) == 3


# ---------------------------------------------------------------------------
# --config
# ---------------------------------------------------------------------------


class TestConfigFile:
    def test_options_from_file(self, tmp_path: Path) -> None:
        config = tmp_path / "retry.json"
        config.write_text(json.dumps({"maxAttempts": 0}))
        counter = tmp_path / "count"
        result = CliRunner().invoke(
            cli, ["run", "--config", str(config), "--", *_flaky(counter, 2)]
        )
        assert result.exit_code == 3
        assert _runs(counter) == 1

    def test_flags_override_file(self, tmp_path: Path) -> None:
        config = tmp_path / "retry.json"
        config.write_text(json.dumps({"maxAttempts": 0, "backOff": 10}))
        counter = tmp_path / "count"
        result = CliRunner().invoke(
            cli,
            ["run", "--config", str(config), "--max-attempts", "1", "--", *_flaky(counter, 2)],
        )
        assert result.exit_code == 0
        assert _runs(counter) == 2

    def test_unknown_option_in_file(self, tmp_path: Path) -> None:
        config = tmp_path / "retry.json"
        config.write_text(json.dumps({"retries": 3}))
        result = CliRunner().invoke(cli, ["run", "--config", str(config), "--", "true"])
        assert result.exit_code == 2
        assert "Unknown retry option" in result.output

    def test_invalid_json(self, tmp_path: Path) -> None:
        config = tmp_path / "retry.json"
        config.write_text("{not json")
        result = CliRunner().invoke(cli, ["run", "--config", str(config), "--", "true"])
        assert result.exit_code == 2
        assert "Configuration error" in result.output

    def test_negative_attempts(self) -> None:
        result = CliRunner().invoke(cli, ["run", "--max-attempts", "-1", "--", "true"])
        assert result.exit_code == 2
        assert "max_attempts" in result.output

    def test_non_numeric_back_off_in_file(self, tmp_path: Path) -> None:
        config = tmp_path / "retry.json"
        config.write_text(json.dumps({"backOff": "100"}))
        result = CliRunner().invoke(cli, ["run", "--config", str(config), "--", "true"])
        assert result.exit_code == 2
        assert "back_off must be a number" in result.output

    def test_non_numeric_max_interval_in_file(self, tmp_path: Path) -> None:
        config = tmp_path / "retry.json"
        config.write_text(json.dumps({"exponentialOption": {"maxInterval": "x"}}))
        result = CliRunner().invoke(cli, ["run", "--config", str(config), "--", "true"])
        assert result.exit_code == 2
        assert "max_interval must be a number" in result.output
