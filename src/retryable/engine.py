"""Retry loop: invoke, classify, back off, repeat."""
from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Callable

from retryable._backoff import nominal_delay
from retryable._classifier import can_retry
from retryable._jitter import Jitter
from retryable._sleep import sleep, sleep_async
from retryable.errors import AbortError, MaxAttemptsError
from retryable.types.config import RetryPolicy

logger = logging.getLogger("retryable")


def _describe(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


class RetryEngine:
    """Runs an operation under a :class:`RetryPolicy`.

    The engine keeps no state between calls: attempt counters and jitter
    state are local to each :meth:`execute` / :meth:`execute_async` call, so a
    single engine may serve concurrent callers.
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy

    def execute(
        self,
        fn: Callable[..., Any],
        context: Any = None,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any:
        """Call *fn* until it succeeds or the policy gives up.

        *context*, when not ``None``, is passed as the first positional
        argument, ahead of *args*. Returns the first successful result.

        Raises :class:`AbortError` when the policy's signal is aborted before
        an attempt or during a backoff wait, :class:`MaxAttemptsError` when the
        budget runs out (unless ``reraise`` is set), or the operation's own
        error when it is not retryable.
        """
        jitter = Jitter(self.policy)
        for attempt in range(self.policy.max_attempts + 1):
            self._raise_if_aborted()
            try:
                return self._invoke(fn, context, args, kwargs)
            except Exception as exc:
                delay = self._handle_failure(fn, attempt, exc, jitter)
            if delay > 0:
                sleep(delay, self.policy.signal)
        raise AssertionError("unreachable")  # pragma: no cover

    async def execute_async(
        self,
        fn: Callable[..., Any],
        context: Any = None,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any:
        """Async variant of :meth:`execute`.

        *fn* may be a coroutine function or return any awaitable; plain
        return values are accepted too. Backoff waits do not block the loop.
        """
        jitter = Jitter(self.policy)
        for attempt in range(self.policy.max_attempts + 1):
            self._raise_if_aborted()
            try:
                result = self._invoke(fn, context, args, kwargs)
                if inspect.isawaitable(result):
                    result = await result
                return result
            except Exception as exc:
                delay = self._handle_failure(fn, attempt, exc, jitter)
            if delay > 0:
                await sleep_async(delay, self.policy.signal)
        raise AssertionError("unreachable")  # pragma: no cover

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    @staticmethod
    def _invoke(
        fn: Callable[..., Any],
        context: Any,
        args: Sequence[Any],
        kwargs: Mapping[str, Any] | None,
    ) -> Any:
        if context is not None:
            return fn(context, *args, **(kwargs or {}))
        return fn(*args, **(kwargs or {}))

    def _raise_if_aborted(self) -> None:
        signal = self.policy.signal
        if signal is not None and signal.aborted:
            logger.debug("Retry aborted")
            raise AbortError()

    def _handle_failure(
        self,
        fn: Callable[..., Any],
        attempt: int,
        exc: Exception,
        jitter: Jitter,
    ) -> float:
        """Return the delay (ms) before the next attempt, or raise.

        Running out of attempts is checked before classification, so an error
        on the last attempt is always wrapped (or re-raised with ``reraise``).
        """
        policy = self.policy

        if attempt == policy.max_attempts:
            logger.debug(
                "Giving up on %s after %d retries: %r", _describe(fn), attempt, exc
            )
            if policy.reraise:
                raise exc
            raise MaxAttemptsError(exc, attempt) from exc

        if not can_retry(exc, policy):
            logger.debug("Not retrying %s: %r is not retryable", _describe(fn), exc)
            raise exc

        self._raise_if_aborted()

        delay = jitter.apply(nominal_delay(attempt, policy))
        logger.info(
            "Retrying %s (%d/%d) in %.0fms after %s: %s",
            _describe(fn),
            attempt + 1,
            policy.max_attempts,
            delay,
            type(exc).__name__,
            exc,
        )
        if policy.on_retry is not None:
            policy.on_retry(attempt, exc, delay)
        return delay
