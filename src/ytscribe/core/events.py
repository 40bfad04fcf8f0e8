"""Retry event system for streaming request progress to external consumers.

The orchestrator emits a RetryEvent before each backoff delay so that
consumers (the CLI spinner, tests) can show "retrying..." progress without
polling. Every attempt is also recorded as a RequestAttempt and returned
alongside the payload or attached to the raised error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RetryEvent:
    """Emitted right before the orchestrator sleeps between attempts.

    Attributes:
        attempt_index: 1-based index of the retry about to happen.
        max_attempts: Retry budget (retries after the first attempt).
        delay_ms: Backoff delay before the next attempt.
        last_error_message: Message of the error that triggered the retry.
    """

    attempt_index: int
    max_attempts: int
    delay_ms: int
    last_error_message: str


@dataclass(frozen=True)
class RequestAttempt:
    """Record of a single attempt within one orchestrated call."""

    attempt_index: int  # 0 for the first attempt
    classification: str | None  # None on success
    delay_ms: int  # delay scheduled after this attempt, 0 if none
    status: int | None = None
    message: str = ""


EventCallback = Callable[[RetryEvent], None]
