"""Attach retry behaviour to functions and methods."""
from __future__ import annotations

import functools
import inspect
from collections.abc import Mapping
from typing import Any, Callable, TypeVar

from retryable.engine import RetryEngine
from retryable.errors import ConfigurationError
from retryable.types.config import RetryPolicy

F = TypeVar("F", bound=Callable[..., Any])


def _resolve_policy(
    policy: RetryPolicy | Mapping[str, Any] | None, options: Mapping[str, Any]
) -> RetryPolicy:
    if isinstance(policy, RetryPolicy):
        if options:
            raise ConfigurationError("Pass either a RetryPolicy or options, not both")
        return policy
    merged = dict(policy or {})
    merged.update(options)
    return RetryPolicy.from_options(merged)


def _wrap(engine: RetryEngine, fn: F) -> F:
    if inspect.iscoroutinefunction(fn):

        @functools.wraps(fn)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            return await engine.execute_async(fn, None, args, kwargs)

        async_wrapper.retry_policy = engine.policy  # type: ignore[attr-defined]
        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return engine.execute(fn, None, args, kwargs)

    wrapper.retry_policy = engine.policy  # type: ignore[attr-defined]
    return wrapper  # type: ignore[return-value]


def retryable(
    policy: RetryPolicy | Mapping[str, Any] | None = None, **options: Any
) -> Callable[[F], F]:
    """Decorator that retries the wrapped function according to a policy.

    Takes a ready :class:`RetryPolicy`, a mapping of options, or the options
    as keyword arguments (camelCase or snake_case)::

        @retryable(max_attempts=3, back_off=1000)
        def fetch(url): ...

        class Service:
            @retryable(maxAttempts=2, useJitter=True, jitterType="equal")
            async def refresh(self): ...

    The policy is built once, when the decorator is applied. Coroutine
    functions get an async wrapper whose backoff waits do not block the loop.
    """
    resolved = _resolve_policy(policy, options)
    engine = RetryEngine(resolved)

    def decorator(fn: F) -> F:
        return _wrap(engine, fn)

    return decorator


def with_retry(policy: RetryPolicy | Mapping[str, Any], fn: F) -> F:
    """Wrap an existing callable with retry logic.

    Same rules as :func:`retryable`, for code that cannot use decorator
    syntax.
    """
    return _wrap(RetryEngine(_resolve_policy(policy, {})), fn)
