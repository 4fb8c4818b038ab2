"""Bounded retry applied above whole snapshot operations."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from clustersnap.common.errors import ClusterError, ServerError, TransportError
from clustersnap.common.logger import logger
from clustersnap.snapshot.errors import RetentionError

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (TransportError, ServerError)


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, RetentionError):
        return isinstance(exc.cause, RETRYABLE_ERRORS)
    return isinstance(exc, RETRYABLE_ERRORS)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 1
    backoff_base_s: float = 0.5
    backoff_factor: float = 2.0
    backoff_max_s: float = 10.0

    def backoff_s(self, attempt: int) -> float:
        if attempt <= 1:
            return 0.0
        delay = self.backoff_base_s * (self.backoff_factor ** (attempt - 2))
        return min(self.backoff_max_s, delay)

    @classmethod
    def from_config(cls, raw: dict[str, Any] | None) -> "RetryPolicy":
        raw = raw or {}
        return cls(
            max_attempts=max(int(raw.get("max_attempts", 1)), 1),
            backoff_base_s=float(raw.get("backoff_base_s", 0.5)),
            backoff_factor=float(raw.get("backoff_factor", 2.0)),
            backoff_max_s=float(raw.get("backoff_max_s", 10.0)),
        )


def call_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``fn`` until it succeeds or ``policy.max_attempts`` is reached.

    Only transport failures and 5xx responses are retried, including a
    retention run interrupted by one; the rerun lists again, so snapshots
    already deleted are not targeted twice. Any other error is raised
    immediately.
    """

    if policy.max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {policy.max_attempts}")
    attempt = 1
    while True:
        try:
            return fn()
        except ClusterError as exc:
            if not is_retryable(exc) or attempt >= policy.max_attempts:
                raise
            delay = policy.backoff_s(attempt + 1)
            logger.warning("Attempt {}/{} failed: {}; retrying in {:.1f}s", attempt, policy.max_attempts, exc, delay)
            if delay > 0:
                sleep(delay)
            attempt += 1


__all__ = ["RetryPolicy", "call_with_retry", "is_retryable", "RETRYABLE_ERRORS"]
