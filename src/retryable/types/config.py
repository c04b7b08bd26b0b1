"""Configuration types."""
from __future__ import annotations

import logging
import threading
from numbers import Real
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable, TypeVar

from retryable.errors import ConfigurationError
from retryable.types.enums import BackOffPolicy, JitterType

E = TypeVar("E", bound=StrEnum)

logger = logging.getLogger("retryable")

DEFAULT_EXPONENTIAL_BACK_OFF = 1000
DEFAULT_MAX_INTERVAL = 2000
DEFAULT_MULTIPLIER = 2.0


class AbortSignal:
    """An observable flag indicating whether an operation has been aborted.

    Listeners registered with :meth:`add_listener` are called once, from the
    thread that aborts the signal. A listener added after the abort is called
    immediately.
    """

    def __init__(self) -> None:
        self._aborted = False
        self._lock = threading.Lock()
        self._listeners: list[Callable[[], None]] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    def add_listener(self, listener: Callable[[], None]) -> None:
        with self._lock:
            if not self._aborted:
                self._listeners.append(listener)
                return
        listener()

    def remove_listener(self, listener: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def _abort(self) -> None:
        with self._lock:
            if self._aborted:
                return
            self._aborted = True
            listeners, self._listeners = self._listeners, []
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Abort listener %r failed", listener)


class AbortController:
    """Controls an :class:`AbortSignal` to cancel pending retries."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self) -> None:
        self.signal._abort()


@dataclass(frozen=True)
class ExponentialOption:
    """Cap and growth factor for exponential backoff, in milliseconds."""

    max_interval: float = DEFAULT_MAX_INTERVAL
    multiplier: float = DEFAULT_MULTIPLIER

    def __post_init__(self) -> None:
        _require_number(self.max_interval, "max_interval")
        _require_number(self.multiplier, "multiplier")
        if self.max_interval < 0:
            raise ConfigurationError(
                f"max_interval must be >= 0, got {self.max_interval}"
            )


@dataclass(frozen=True)
class RetryPolicy:
    """Validated retry configuration.

    *max_attempts* counts retries after the initial call, so a policy allows
    ``max_attempts + 1`` invocations. Delays are in milliseconds. Defaults are
    resolved once here: exponential backoff without an explicit *back_off*
    starts at 1000ms, *exponential_option* is merged over ``{2000, 2}`` and an
    enabled jitter without a type means full jitter.
    """

    max_attempts: int
    back_off_policy: BackOffPolicy = BackOffPolicy.FIXED
    back_off: float | None = None
    exponential_option: ExponentialOption | Mapping[str, Any] | None = None
    do_retry: Callable[[Exception], bool] | None = field(
        default=None, compare=False, hash=False
    )
    value: tuple[type[BaseException], ...] = ()
    reraise: bool = False
    signal: AbortSignal | None = field(default=None, compare=False, hash=False)
    use_jitter: bool = False
    jitter_type: JitterType | None = None
    on_retry: Callable[[int, Exception, float], None] | None = field(
        default=None, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.max_attempts, int) or isinstance(self.max_attempts, bool):
            raise ConfigurationError(
                f"max_attempts must be an integer, got {self.max_attempts!r}"
            )
        if self.max_attempts < 0:
            raise ConfigurationError(
                f"max_attempts must be >= 0, got {self.max_attempts}"
            )

        policy = _coerce_enum(BackOffPolicy, self.back_off_policy, "back_off_policy")
        object.__setattr__(self, "back_off_policy", policy)

        back_off = self.back_off
        if back_off is None:
            back_off = DEFAULT_EXPONENTIAL_BACK_OFF if policy is BackOffPolicy.EXPONENTIAL else 0
        _require_number(back_off, "back_off")
        if back_off < 0:
            raise ConfigurationError(f"back_off must be >= 0, got {back_off}")
        object.__setattr__(self, "back_off", back_off)

        object.__setattr__(
            self, "exponential_option", _merge_exponential_option(self.exponential_option)
        )

        if self.use_jitter:
            jitter_type = (
                JitterType.FULL
                if self.jitter_type is None
                else _coerce_enum(JitterType, self.jitter_type, "jitter_type")
            )
        else:
            jitter_type = JitterType.NONE
        object.__setattr__(self, "jitter_type", jitter_type)

        object.__setattr__(self, "value", _coerce_error_kinds(self.value))

        for name in ("do_retry", "on_retry"):
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                raise ConfigurationError(f"{name} must be callable, got {hook!r}")

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> RetryPolicy:
        """Build a policy from recognized options.

        Accepts the camelCase names (``maxAttempts``, ``backOff``, ...) as well
        as the field names. *options* is not modified.
        """
        kwargs = normalize_options(options)
        if "max_attempts" not in kwargs:
            raise ConfigurationError("Retry option 'maxAttempts' is required")
        return cls(**kwargs)


_OPTION_NAMES: dict[str, str] = {
    "maxAttempts": "max_attempts",
    "backOffPolicy": "back_off_policy",
    "backOff": "back_off",
    "exponentialOption": "exponential_option",
    "doRetry": "do_retry",
    "value": "value",
    "reraise": "reraise",
    "signal": "signal",
    "useJitter": "use_jitter",
    "jitterType": "jitter_type",
    "onRetry": "on_retry",
}
_OPTION_NAMES.update({name: name for name in list(_OPTION_NAMES.values())})


def normalize_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Map recognized option names to :class:`RetryPolicy` field names."""
    kwargs: dict[str, Any] = {}
    for key, val in options.items():
        name = _OPTION_NAMES.get(key)
        if name is None:
            raise ConfigurationError(f"Unknown retry option: {key!r}")
        if name in kwargs:
            raise ConfigurationError(f"Retry option given twice: {name!r}")
        kwargs[name] = val
    return kwargs


def _require_number(raw: Any, option: str) -> None:
    if isinstance(raw, bool) or not isinstance(raw, Real):
        raise ConfigurationError(f"{option} must be a number, got {raw!r}")


def _coerce_enum(enum_cls: type[E], raw: Any, option: str) -> E:
    if isinstance(raw, enum_cls):
        return raw
    text = str(raw).strip().lower()
    for member in enum_cls:
        if text in (member.value.lower(), member.name.lower()):
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ConfigurationError(f"Invalid {option} {raw!r}; expected one of: {allowed}")


def _merge_exponential_option(
    raw: ExponentialOption | Mapping[str, Any] | None,
) -> ExponentialOption:
    if raw is None:
        return ExponentialOption()
    if isinstance(raw, ExponentialOption):
        return raw
    merged: dict[str, Any] = {}
    for key, val in raw.items():
        name = {"maxInterval": "max_interval"}.get(key, key)
        if name not in ("max_interval", "multiplier"):
            raise ConfigurationError(f"Unknown exponential option: {key!r}")
        merged[name] = val
    return ExponentialOption(**merged)


def _coerce_error_kinds(raw: Iterable[Any] | None) -> tuple[type[BaseException], ...]:
    if raw is None:
        return ()
    if isinstance(raw, type):
        raw = (raw,)
    kinds = tuple(raw)
    for kind in kinds:
        if not (isinstance(kind, type) and issubclass(kind, BaseException)):
            raise ConfigurationError(f"value must contain exception classes, got {kind!r}")
    return kinds
