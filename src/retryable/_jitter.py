"""Randomize backoff delays."""
from __future__ import annotations

import random

from retryable.types.config import RetryPolicy
from retryable.types.enums import JitterType


class Jitter:
    """Jitter state for a single execution.

    Decorrelated jitter depends on the previous actual delay, so every
    execution builds its own instance; the policy itself stays untouched.
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self.jitter_type = policy.jitter_type
        self.base = policy.back_off
        self.max_interval = policy.exponential_option.max_interval
        self.previous = policy.back_off

    def apply(self, nominal: float) -> float:
        """Turn a nominal delay (ms) into the delay to actually wait."""
        if self.jitter_type is JitterType.FULL:
            return random.random() * nominal
        if self.jitter_type is JitterType.EQUAL:
            half = nominal / 2
            return half + random.random() * half
        if self.jitter_type is JitterType.DECORRELATED:
            upper = max(self.previous * 3, self.base)
            delay = min(
                self.max_interval,
                self.base + random.random() * (upper - self.base),
            )
            self.previous = delay
            return delay
        return nominal
