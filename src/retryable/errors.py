"""Error hierarchy for the retry engine."""
from __future__ import annotations

ABORT_MESSAGE = "Retry operation aborted"


class RetryError(Exception):
    """Base error for all retryable errors."""


class MaxAttemptsError(RetryError):
    """The attempt budget was exhausted.

    Wraps the error raised by the final attempt. *retry_count* is the index of
    that attempt, which equals the policy's ``max_attempts``.
    """

    code = "429"

    def __init__(self, original_error: Exception, retry_count: int) -> None:
        super().__init__(
            f"Max retry reached: {retry_count}, original error: {original_error}"
        )
        self.original_error = original_error
        self.retry_count = retry_count


class AbortError(RetryError):
    """The retry operation was aborted through its signal."""

    code = "ABORT_ERR"

    def __init__(self, message: str = ABORT_MESSAGE) -> None:
        super().__init__(message)


class ConfigurationError(RetryError):
    """Invalid retry configuration."""
