"""Bounded retry loop and the policy values it is driven by.

One helper serves navigation, page reloads and single UI actions. Waiting is
delegated to a caller supplied ``sleep(ms)`` coroutine so page bound waits
(``page.wait_for_timeout``) stay cooperative and observable in tests.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import RetryExhaustedError

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryPolicy(BaseModel):
    """Status-aware retry settings for one navigation or reload."""

    model_config = ConfigDict(frozen=True)

    status_codes: frozenset[int] = frozenset({430})
    max_attempts: int = Field(default=3, ge=1)
    wait_ms: int = Field(default=10000, ge=0)


class ActionRetryPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=5, ge=1)
    delay_ms: int = Field(default=1000, ge=0)


class ThrottlePolicy(BaseModel):
    """Delay window between two consecutive match requests."""

    model_config = ConfigDict(frozen=True)

    min_ms: int = 0
    max_ms: int = 0

    @model_validator(mode="before")
    @classmethod
    def _clamp(cls, data: Any) -> Any:
        # negative bounds mean "no delay"; missing bounds take the class defaults
        # and a smaller max collapses to min
        if isinstance(data, dict):
            low = data.get("min_ms")
            low = max(0, int(cls.model_fields["min_ms"].default if low is None else low))
            high = data.get("max_ms")
            high = max(low, int(cls.model_fields["max_ms"].default if high is None else high))
            data = {**data, "min_ms": low, "max_ms": high}
        return data

    def resolve_delay(self, rng: Optional[random.Random] = None) -> int:
        if self.max_ms == 0:
            return 0
        if self.min_ms == self.max_ms:
            return self.min_ms
        return (rng or random).randint(self.min_ms, self.max_ms)


def resolve_throttle_delay(
    throttle: Union[ThrottlePolicy, int, None], rng: Optional[random.Random] = None
) -> int:
    """Delay in ms for a throttle given as policy, fixed number or nothing."""
    if throttle is None:
        return 0
    if isinstance(throttle, int):
        return max(0, throttle)
    return throttle.resolve_delay(rng)


SleepFn = Callable[[int], Awaitable[None]]


async def run_with_retry(
    operation: Callable[[int], Awaitable[T]],
    *,
    max_attempts: int,
    wait_ms: int,
    sleep: SleepFn,
    retryable: Callable[[BaseException], bool] = lambda exc: True,
    description: str = "operation",
    exhausted_error: Callable[..., RetryExhaustedError] = RetryExhaustedError,
) -> T:
    """Run ``operation(attempt)`` until it succeeds or ``max_attempts`` is reached.

    Errors for which ``retryable`` returns False propagate untouched. There is no
    wait after the last attempt. On exhaustion ``exhausted_error`` is raised with
    the attempt count and the last error.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    last_error: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation(attempt)
        except Exception as exc:
            if not retryable(exc):
                raise
            last_error = exc
            if attempt >= max_attempts:
                break
            logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %d ms.",
                description,
                attempt,
                max_attempts,
                exc,
                wait_ms,
            )
            if wait_ms > 0:
                await sleep(wait_ms)

    raise exhausted_error(
        f"{description} failed after {max_attempts} attempts: {last_error or 'unknown error'}",
        attempts=max_attempts,
        last_error=last_error,
    )


__all__ = [
    "RetryPolicy",
    "ActionRetryPolicy",
    "ThrottlePolicy",
    "resolve_throttle_delay",
    "run_with_retry",
]
