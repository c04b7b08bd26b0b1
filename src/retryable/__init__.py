"""Retryable: policy-driven retries for sync and async callables."""
from __future__ import annotations

__version__ = "0.1.0"

# Types
from retryable.types.enums import BackOffPolicy, JitterType
from retryable.types.config import (
    AbortController,
    AbortSignal,
    ExponentialOption,
    RetryPolicy,
)

# Errors
from retryable.errors import (
    RetryError,
    MaxAttemptsError,
    AbortError,
    ConfigurationError,
)

# Core
from retryable.engine import RetryEngine
from retryable.decorator import retryable, with_retry

# Hooks
from retryable.hooks import Attempt, AttemptRecorder, logging_hook

__all__ = [
    "__version__",
    # Enums
    "BackOffPolicy",
    "JitterType",
    # Config
    "AbortController",
    "AbortSignal",
    "ExponentialOption",
    "RetryPolicy",
    # Errors
    "RetryError",
    "MaxAttemptsError",
    "AbortError",
    "ConfigurationError",
    # Core
    "RetryEngine",
    "retryable",
    "with_retry",
    # Hooks
    "Attempt",
    "AttemptRecorder",
    "logging_hook",
]
