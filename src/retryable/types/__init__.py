"""Type definitions for the retry engine."""
from __future__ import annotations

from retryable.types.config import (
    AbortController,
    AbortSignal,
    ExponentialOption,
    RetryPolicy,
)
from retryable.types.enums import BackOffPolicy, JitterType

__all__ = [
    "AbortController",
    "AbortSignal",
    "BackOffPolicy",
    "ExponentialOption",
    "JitterType",
    "RetryPolicy",
]
