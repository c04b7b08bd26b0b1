"""Built-in retry hooks."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

RetryHook = Callable[[int, Exception, float], None]


def logging_hook(logger: logging.Logger | None = None) -> RetryHook:
    """Create an ``on_retry`` hook that logs each scheduled retry."""
    log = logger or logging.getLogger("retryable")

    def hook(retry_index: int, error: Exception, delay_ms: float) -> None:
        log.warning(
            "Attempt %d failed with %s: %s; next attempt in %.0fms",
            retry_index + 1,
            type(error).__name__,
            error,
            delay_ms,
        )

    return hook


@dataclass(frozen=True)
class Attempt:
    """A failed attempt that was followed by a retry."""

    index: int
    error: Exception
    delay_ms: float
    timestamp: float


@dataclass
class AttemptRecorder:
    """Collects the failed attempts of an execution.

    Pass ``recorder.on_retry`` as the policy's ``on_retry`` hook. Attempts from
    concurrent executions sharing the recorder end up in the same list.
    """

    attempts: list[Attempt] = field(default_factory=list)
    forward: RetryHook | None = None

    def on_retry(self, retry_index: int, error: Exception, delay_ms: float) -> None:
        self.attempts.append(
            Attempt(
                index=retry_index,
                error=error,
                delay_ms=delay_ms,
                timestamp=time.time(),
            )
        )
        if self.forward is not None:
            self.forward(retry_index, error, delay_ms)

    @property
    def total_delay_ms(self) -> float:
        return sum(a.delay_ms for a in self.attempts)
