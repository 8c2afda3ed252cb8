"""Reconnect policy: map a failure count onto retry-after-delay or give-up."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from . import config as _cfg


@dataclass(frozen=True)
class Retry:
    after_delay: float  # seconds


@dataclass(frozen=True)
class GiveUp:
    attempts: int


Action = Union[Retry, GiveUp]
Policy = Callable[[int], Action]


def next_action(
    attempt: int,
    *,
    max_retries: int = _cfg.MAX_RETRIES,
    step: float = _cfg.RETRY_STEP,
) -> Action:
    """
    Linear backoff: attempt 1 waits one *step*, attempt 2 two steps, ...
    Once *attempt* exceeds *max_retries* the channel gives up.
    """
    if attempt < 1:
        raise ValueError(f"attempt numbers start at 1, got {attempt}")
    if attempt > max_retries:
        return GiveUp(attempts=attempt)
    return Retry(after_delay=attempt * step)


def linear_policy(max_retries: int, step: float) -> Policy:
    """Bind a custom budget, e.g. zero-delay retries in tests."""

    def _policy(attempt: int) -> Action:
        return next_action(attempt, max_retries=max_retries, step=step)

    return _policy
