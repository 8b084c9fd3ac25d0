from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar


T = TypeVar("T")

# Returns the current wall-clock time in milliseconds since the epoch.
Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 5
    base_sleep_s: float = 1.0
    max_sleep_s: float = 30.0


def sleep_backoff(attempt: int, policy: RetryPolicy) -> None:
    # Full jitter exponential backoff
    cap = min(policy.max_sleep_s, policy.base_sleep_s * (2**attempt))
    time.sleep(random.uniform(0, cap))


def with_retries(
    fn: Callable[[], T],
    *,
    retry_on: tuple[type[BaseException], ...],
    policy: RetryPolicy,
) -> T:
    attempt = 0
    while True:
        try:
            return fn()
        except retry_on:
            if attempt >= policy.max_retries:
                raise
            sleep_backoff(attempt, policy)
            attempt += 1
