"""Sleeping that can be interrupted through an abort signal."""
from __future__ import annotations

import asyncio
import threading
import time

from retryable.errors import AbortError
from retryable.types.config import AbortSignal


def sleep(delay_ms: float, signal: AbortSignal | None = None) -> None:
    """Block for *delay_ms* milliseconds.

    Raises :class:`AbortError` right away if *signal* is already aborted, or
    as soon as it gets aborted while waiting.
    """
    if signal is None:
        time.sleep(delay_ms / 1000)
        return
    if signal.aborted:
        raise AbortError()

    woken = threading.Event()
    listener = woken.set
    signal.add_listener(listener)
    try:
        if woken.wait(delay_ms / 1000):
            raise AbortError()
    finally:
        signal.remove_listener(listener)


async def sleep_async(delay_ms: float, signal: AbortSignal | None = None) -> None:
    """Async counterpart of :func:`sleep`.

    The signal may be aborted from any thread; the wake-up is handed back to
    the running loop.
    """
    if signal is None:
        await asyncio.sleep(delay_ms / 1000)
        return
    if signal.aborted:
        raise AbortError()

    loop = asyncio.get_running_loop()
    aborted: asyncio.Future[None] = loop.create_future()

    def resolve() -> None:
        if not aborted.done():
            aborted.set_result(None)

    def listener() -> None:
        try:
            loop.call_soon_threadsafe(resolve)
        except RuntimeError:
            # The sleeper already finished and its loop is closed.
            if not loop.is_closed():
                raise

    signal.add_listener(listener)
    try:
        done, _ = await asyncio.wait({aborted}, timeout=delay_ms / 1000)
        if aborted in done:
            raise AbortError()
    finally:
        signal.remove_listener(listener)
        if not aborted.done():
            aborted.cancel()
