"""Enumeration types for retry policies."""
from __future__ import annotations

from enum import StrEnum


class BackOffPolicy(StrEnum):
    """How the delay between attempts evolves."""

    FIXED = "FixedBackOffPolicy"
    EXPONENTIAL = "ExponentialBackOffPolicy"


class JitterType(StrEnum):
    """Randomization applied to a backoff delay."""

    NONE = "none"
    FULL = "full"
    EQUAL = "equal"
    DECORRELATED = "decorrelated"
