"""Nominal delay between attempts."""
from __future__ import annotations

from retryable.types.config import RetryPolicy
from retryable.types.enums import BackOffPolicy


def nominal_delay(retry_index: int, policy: RetryPolicy) -> float:
    """Compute the delay in milliseconds before retry *retry_index*.

    *retry_index* is zero-based: 0 is the wait before the first retry. Fixed
    backoff always returns ``policy.back_off``; exponential backoff grows it by
    ``multiplier ** retry_index``, clamped to ``max_interval``.
    """
    if policy.back_off_policy is BackOffPolicy.FIXED:
        return policy.back_off

    option = policy.exponential_option
    return min(
        policy.back_off * (option.multiplier ** retry_index),
        option.max_interval,
    )
