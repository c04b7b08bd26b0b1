"""Decide whether a failed attempt may be retried."""
from __future__ import annotations

from retryable.types.config import RetryPolicy


def can_retry(error: Exception, policy: RetryPolicy) -> bool:
    """Return whether *policy* allows another attempt after *error*.

    A ``do_retry`` predicate returning false forbids the retry before the
    error kinds in ``value`` are looked at. Kinds match on the exact type of
    *error*; subclasses of a listed kind are not retried.
    """
    if policy.do_retry is not None and not policy.do_retry(error):
        return False
    if policy.value and type(error) not in policy.value:
        return False
    return True
