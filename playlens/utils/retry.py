"""Retry and backoff helpers for Playlens integrations."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TypeVar

T = TypeVar("T")

DEFAULT_TRANSIENT_WAIT_MS = 300


@dataclass(frozen=True)
class RetryDirective:
    """Instruction returned from ``classify_err`` for ``with_retry``."""

    retry: bool
    delay_override_ms: int | None = None
    error: Exception | None = None


class RetryExhaustedError(RuntimeError):
    """Raised when every step of a backoff schedule failed transiently."""

    def __init__(self, attempts: int, last_error: Exception | None) -> None:
        super().__init__(f"Gave up after {attempts} attempts: {last_error!r}")
        self.attempts = attempts
        self.last_error = last_error


AsyncFactory = Callable[[], Awaitable[T]]
Classifier = Callable[[Exception], RetryDirective | bool]
Sleeper = Callable[[float], Awaitable[None]]
JitterSource = Callable[[float, float], float]
RetryObserver = Callable[[int, Exception, int], None]


def parse_retry_after_ms(value: str | None) -> int | None:
    """Convert a ``Retry-After`` header (seconds or HTTP date) to milliseconds."""

    if not value:
        return None
    text = value.strip()
    try:
        seconds = float(text)
    except (TypeError, ValueError):
        pass
    else:
        return max(0, int(seconds * 1000))
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    delta = parsed - datetime.now(UTC)
    return max(0, int(delta.total_seconds() * 1000))


def _resolve_directive(result: RetryDirective | bool, error: Exception) -> RetryDirective:
    if isinstance(result, RetryDirective):
        resolved_error = result.error if result.error is not None else error
        return RetryDirective(
            retry=bool(result.retry),
            delay_override_ms=(
                max(0, int(result.delay_override_ms))
                if result.delay_override_ms is not None
                else None
            ),
            error=resolved_error,
        )
    if isinstance(result, bool):
        return RetryDirective(retry=result, error=error, delay_override_ms=None)
    msg = "classify_err must return a boolean or RetryDirective"
    raise TypeError(msg)


async def with_retry(
    async_fn: AsyncFactory[T],
    *,
    schedule_ms: Sequence[int],
    jitter_ms: int,
    classify_err: Classifier,
    transient_wait_ms: int = DEFAULT_TRANSIENT_WAIT_MS,
    sleep: Sleeper = asyncio.sleep,
    jitter: JitterSource = random.uniform,
    on_retry: RetryObserver | None = None,
) -> T:
    """Execute ``async_fn`` once per step of a fixed backoff schedule.

    Each non-zero step sleeps for its delay plus up to ``jitter_ms`` before the
    attempt. A retryable failure additionally waits ``delay_override_ms`` from
    the directive (for example a ``Retry-After`` hint) or ``transient_wait_ms``
    before moving on. Non-retryable failures are re-raised immediately and an
    exhausted schedule raises :class:`RetryExhaustedError`.
    """

    steps = [max(0, int(step)) for step in schedule_ms] or [0]
    spread = max(0, int(jitter_ms))
    last_error: Exception | None = None

    for attempt, backoff_ms in enumerate(steps, start=1):
        if backoff_ms > 0:
            delay_ms = backoff_ms + (jitter(0, spread) if spread else 0)
            await sleep(delay_ms / 1000.0)
        try:
            return await async_fn()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            directive = _resolve_directive(classify_err(exc), exc)
            if not directive.retry:
                if directive.error is not exc:
                    raise directive.error from exc
                raise
            last_error = directive.error
            wait_ms = directive.delay_override_ms
            if wait_ms is None:
                wait_ms = transient_wait_ms
            if on_retry is not None:
                on_retry(attempt, exc, wait_ms)
            if attempt < len(steps) and wait_ms > 0:
                await sleep(wait_ms / 1000.0)

    raise RetryExhaustedError(len(steps), last_error)


__all__ = [
    "DEFAULT_TRANSIENT_WAIT_MS",
    "RetryDirective",
    "RetryExhaustedError",
    "parse_retry_after_ms",
    "with_retry",
]
